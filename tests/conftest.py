from __future__ import annotations

import pytest

from courier.utils import config as config_module

_TOOL_ENV = (
    "EMAIL_USER",
    "EMAIL_PASS",
    "SMTP_HOST",
    "SMTP_PORT",
    "LINKEDIN_ACCESS_TOKEN",
    "LINKEDIN_PERSON_ID",
    "OPENAI_BASE_URL",
)


@pytest.fixture
def env(monkeypatch):
    """Minimal environment with no tool credentials; config reloads fresh."""
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    for name in _TOOL_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config_module, "load_dotenv", lambda *a, **k: False)
    monkeypatch.setattr(config_module, "_config_instance", None)
    return monkeypatch
