"""
Logger Utility
==============

Console logging for the bot. Every module creates its own logger with a
component name:

    from courier.utils.logger import Logger

    logger = Logger("Agent")
    logger.info("Turn complete", {"turns": 4})
    logger.error("Tool failed", exc)

Two output formats, chosen with LOG_FORMAT:
- text (default): `[time] [LEVEL] [component] message`, colored on a
  terminal, with structured data pretty-printed below the line
- json: one JSON object per line (timestamp, level, logger, event plus the
  data fields), for log collectors

LOG_LEVEL sets the minimum level. NO_COLOR disables colors. The environment is
read when a record is written, so loggers created at import time follow a
.env file loaded later at startup.
"""

import json
import os
import sys
import traceback
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any


class LogLevel(IntEnum):
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40


class Colors:
    """ANSI escape codes for colored terminal output."""
    RESET = "\033[0m"
    DEBUG = "\033[36m"    # Cyan
    INFO = "\033[32m"     # Green
    WARNING = "\033[33m"  # Yellow
    ERROR = "\033[31m"    # Red
    DIM = "\033[2m"


_LEVELS = {
    LogLevel.DEBUG: ("DEBUG", Colors.DEBUG),
    LogLevel.INFO: ("INFO", Colors.INFO),
    LogLevel.WARNING: ("WARN", Colors.WARNING),
    LogLevel.ERROR: ("ERROR", Colors.ERROR),
}

_LEVEL_NAMES = {
    "DEBUG": LogLevel.DEBUG,
    "INFO": LogLevel.INFO,
    "WARNING": LogLevel.WARNING,
    "WARN": LogLevel.WARNING,
    "ERROR": LogLevel.ERROR,
}


def _level_from_env() -> LogLevel:
    return _LEVEL_NAMES.get(os.getenv("LOG_LEVEL", "INFO").upper(), LogLevel.INFO)


def _json_from_env() -> bool:
    return os.getenv("LOG_FORMAT", "text").lower() == "json"


def _use_color(stream) -> bool:
    if os.getenv("NO_COLOR"):
        return False
    return hasattr(stream, "isatty") and stream.isatty()


class Logger:
    """
    A component logger.

    Example:
        logger = Logger("ToolRegistry")
        logger.debug("Registered tool", {"name": "echo"})
    """

    def __init__(self, context: str = ""):
        self.context = context

    # Read on every call so a .env loaded after import still applies
    @property
    def _min_level(self) -> LogLevel:
        return _level_from_env()

    @property
    def _json(self) -> bool:
        return _json_from_env()

    def _format_text(self, level: LogLevel, message: str, colored: bool) -> str:
        name, color = _LEVELS[level]
        timestamp = datetime.now().isoformat(timespec="seconds")
        context_str = f"[{self.context}] " if self.context else ""

        if not colored:
            return f"[{timestamp}] [{name}] {context_str}{message}"
        return (
            f"{Colors.DIM}[{timestamp}]{Colors.RESET} "
            f"{color}[{name}]{Colors.RESET} "
            f"{context_str}{message}"
        )

    def _format_json(self, level: LogLevel, message: str, data: dict[str, Any] | None) -> str:
        record: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "level": level.name.lower(),
            "logger": self.context,
            "event": message,
        }
        if data:
            record.update(data)
        return json.dumps(record, default=str)

    def _log(self, level: LogLevel, message: str, data: dict[str, Any] | None = None) -> None:
        if level < self._min_level:
            return

        stream = sys.stderr if level >= LogLevel.ERROR else sys.stdout

        if self._json:
            print(self._format_json(level, message, data), file=stream)
            return

        colored = _use_color(stream)
        print(self._format_text(level, message, colored), file=stream)
        if data:
            data_str = json.dumps(data, indent=2, default=str)
            print(f"{Colors.DIM}{data_str}{Colors.RESET}" if colored else data_str, file=stream)

    def debug(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Detailed tracing, shown only with LOG_LEVEL=DEBUG."""
        self._log(LogLevel.DEBUG, message, data)

    def info(self, message: str, data: dict[str, Any] | None = None) -> None:
        self._log(LogLevel.INFO, message, data)

    def warning(self, message: str, data: dict[str, Any] | None = None) -> None:
        self._log(LogLevel.WARNING, message, data)

    def error(self, message: str, error: BaseException | None = None) -> None:
        """
        Log an error, with the exception's type and message when given.

        The traceback is included when LOG_LEVEL=DEBUG.
        """
        data = None
        if error is not None:
            data = {
                "error_type": type(error).__name__,
                "error_message": str(error),
            }
            if self._min_level <= LogLevel.DEBUG:
                data["traceback"] = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        self._log(LogLevel.ERROR, message, data)
