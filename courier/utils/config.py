"""
Configuration Management
========================

Centralized configuration for the assistant. Every environment variable the
bot understands is read, typed and defaulted here.

Only the inference API key is required at load time. Slack credentials are
checked when the Slack adapter starts, and tool credentials (SMTP, LinkedIn)
are checked when the tool runs, so a missing email password never stops the
bot from answering questions.

Usage:
    from courier.utils.config import get_config

    config = get_config()
    print(config.openai.model)
    print(config.agent.max_iterations)
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from courier.errors import ConfigurationError


def _required(name: str) -> str:
    """
    Get a required environment variable.

    Raises:
        ConfigurationError: If the variable is not set
    """
    value = os.getenv(name)
    if not value:
        raise ConfigurationError(
            f"Missing required environment variable: {name}\n"
            f"Please ensure {name} is set in your .env file."
        )
    return value


def _optional(name: str, default: str) -> str:
    return os.getenv(name) or default


def _optional_int(name: str, default: int) -> int:
    """
    Get an optional integer environment variable.

    Falls back to the default when the value is missing or not an integer.
    """
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        print(f"Warning: {name} is not a valid integer, using default: {default}")
        return default


def _optional_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        print(f"Warning: {name} is not a valid number, using default: {default}")
        return default


def _store_directory() -> Path:
    """
    Vector store location from VECTOR_STORE_DIR.

    Relative paths are taken from the working directory the command runs in.
    """
    path = Path(_optional("VECTOR_STORE_DIR", "data/vectorstore")).expanduser()
    if not path.is_absolute():
        path = Path.cwd() / path
    return path


# ==============================================================================
# Configuration Dataclasses
# ==============================================================================

@dataclass(frozen=True)
class OpenAIConfig:
    """Chat-completion and embedding service configuration."""
    api_key: str
    model: str
    embedding_model: str
    base_url: str | None    # Any OpenAI-compatible endpoint


@dataclass(frozen=True)
class SlackConfig:
    """Slack credentials. All optional until the Slack adapter starts."""
    bot_token: str | None       # xoxb-...
    signing_secret: str | None
    app_token: str | None       # xapp-..., enables Socket Mode
    port: int                   # HTTP mode listener port
    reply_timeout_seconds: float


@dataclass(frozen=True)
class EmailConfig:
    """SMTP account used by the send_email tool."""
    user: str | None
    password: str | None
    smtp_host: str
    smtp_port: int

    @property
    def is_configured(self) -> bool:
        return bool(self.user and self.password)


@dataclass(frozen=True)
class LinkedInConfig:
    """LinkedIn posting credentials."""
    access_token: str | None
    person_id: str | None


@dataclass(frozen=True)
class RAGConfig:
    """Document index configuration."""
    store_directory: Path
    chunk_size: int
    chunk_overlap: int
    top_k: int


@dataclass(frozen=True)
class AgentConfig:
    """Turn loop limits."""
    max_iterations: int = 5
    completion_timeout_seconds: float = 60.0
    completion_retries: int = 2
    retry_backoff_seconds: float = 1.0
    tool_timeout_seconds: float = 30.0


@dataclass(frozen=True)
class Config:
    """
    Root configuration object.

    Access via:
        config = get_config()
        config.openai.api_key
        config.email.is_configured
        config.agent.max_iterations
    """
    openai: OpenAIConfig
    slack: SlackConfig
    email: EmailConfig
    linkedin: LinkedInConfig
    rag: RAGConfig
    agent: AgentConfig


def load_config() -> Config:
    """
    Load and validate all configuration from the environment.

    Loads a .env file first (existing environment variables win).

    Raises:
        ConfigurationError: If required configuration is missing
    """
    load_dotenv()

    return Config(
        openai=OpenAIConfig(
            api_key=_required("OPENAI_API_KEY"),
            model=_optional("OPENAI_MODEL", "gpt-4o-mini"),
            embedding_model=_optional("OPENAI_EMBEDDING_MODEL", "text-embedding-3-small"),
            base_url=os.getenv("OPENAI_BASE_URL") or None,
        ),
        slack=SlackConfig(
            bot_token=os.getenv("SLACK_BOT_TOKEN"),
            signing_secret=os.getenv("SLACK_SIGNING_SECRET"),
            app_token=os.getenv("SLACK_APP_TOKEN"),
            port=_optional_int("PORT", 3000),
            reply_timeout_seconds=_optional_float("SLACK_REPLY_TIMEOUT_SECONDS", 180.0),
        ),
        email=EmailConfig(
            user=os.getenv("EMAIL_USER"),
            password=os.getenv("EMAIL_PASS"),
            smtp_host=_optional("SMTP_HOST", "smtp.gmail.com"),
            smtp_port=_optional_int("SMTP_PORT", 465),
        ),
        linkedin=LinkedInConfig(
            access_token=os.getenv("LINKEDIN_ACCESS_TOKEN"),
            person_id=os.getenv("LINKEDIN_PERSON_ID"),
        ),
        rag=RAGConfig(
            store_directory=_store_directory(),
            chunk_size=_optional_int("RAG_CHUNK_SIZE", 500),
            chunk_overlap=_optional_int("RAG_CHUNK_OVERLAP", 100),
            top_k=_optional_int("RAG_TOP_K", 3),
        ),
        agent=AgentConfig(
            max_iterations=_optional_int("AGENT_MAX_ITERATIONS", 5),
            completion_timeout_seconds=_optional_float("COMPLETION_TIMEOUT_SECONDS", 60.0),
            completion_retries=_optional_int("COMPLETION_RETRIES", 2),
            tool_timeout_seconds=_optional_float("TOOL_TIMEOUT_SECONDS", 30.0),
        ),
    )


# ==============================================================================
# Singleton
# ==============================================================================

_config_instance: Config | None = None


def get_config() -> Config:
    """
    Get the singleton configuration instance.

    Loaded on first access and cached afterwards.
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = load_config()
    return _config_instance


def require_slack_credentials(config: Config) -> tuple[str, str]:
    """
    Return (bot_token, signing_secret) or fail startup of the Slack adapter.

    Raises:
        ConfigurationError: If either credential is missing
    """
    missing = [
        name for name, value in (
            ("SLACK_BOT_TOKEN", config.slack.bot_token),
            ("SLACK_SIGNING_SECRET", config.slack.signing_secret),
        )
        if not value
    ]
    if missing:
        raise ConfigurationError(
            f"Missing Slack configuration: {', '.join(missing)}. "
            "Set them in your .env file to run the Slack bot."
        )
    return config.slack.bot_token, config.slack.signing_secret
