"""Structured logging for the DeployEase CLI.

Log entries regularly carry build commands, environment values and chunks
of compiler output, so every entry is passed through two processors before
rendering: secrets are redacted, then long string values are clipped to
their tail. Logs go to stderr; stdout is reserved for reports and --json
output.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from enum import StrEnum
from functools import cache
from pathlib import Path
from typing import Any

import structlog

from deployease._version import __version__
from deployease.utils.security import SecretRedactor

SERVICE_NAME = "deployease"

# Longest string value kept in a single log field
MAX_FIELD_CHARS = 4000
CLIPPED_PREFIX = "[...] "

EventDict = MutableMapping[str, Any]


class LogFormat(StrEnum):
    """Log output format options."""

    JSON = "json"
    CONSOLE = "console"


class LogLevel(StrEnum):
    """Log level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@cache
def _redactor() -> SecretRedactor:
    return SecretRedactor(placeholder="[REDACTED]")


def sanitize_log_value(value: Any) -> Any:
    """Recursively redact secrets from a log value.

    Strings are redacted; dicts, lists and tuples are walked; anything else
    is returned unchanged.
    """
    if isinstance(value, str):
        return _redactor().redact(value)
    if isinstance(value, dict):
        return {key: sanitize_log_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(sanitize_log_value(item) for item in value)
    return value


def clip_log_value(value: Any, limit: int = MAX_FIELD_CHARS) -> Any:
    """Keep only the tail of overly long strings.

    Build tools print the actual failure last, so the head is dropped.
    """
    if isinstance(value, str) and len(value) > limit:
        return CLIPPED_PREFIX + value[-limit:]
    return value


def secret_sanitizer(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Structlog processor redacting secrets from every field."""
    return {key: sanitize_log_value(value) for key, value in event_dict.items()}


def output_clipper(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Structlog processor clipping long fields such as captured stderr.

    Runs after secret_sanitizer so a clipped field never exposes part of a
    secret.
    """
    for key, value in event_dict.items():
        if key != "event":
            event_dict[key] = clip_log_value(value)
    return event_dict


def add_context_processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add the service name and version to all log entries."""
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("version", __version__)
    return event_dict


def _renderer(log_format: LogFormat) -> Any:
    if log_format == LogFormat.JSON:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=sys.stderr.isatty(), exception_formatter=structlog.dev.plain_traceback
    )


def _handlers(level: int, file_path: Path | None) -> list[logging.Handler]:
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(level)
    handlers: list[logging.Handler] = [stderr_handler]

    if file_path is None:
        return handlers

    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(file_path, encoding="utf-8")
    except OSError as e:
        # structlog is not configured yet; report through the stdlib logger
        logging.getLogger(__name__).warning("Could not open log file %s: %s", file_path, e)
    else:
        file_handler.setLevel(level)
        handlers.append(file_handler)
    return handlers


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    log_format: LogFormat | str = LogFormat.CONSOLE,
    file_path: Path | str | None = None,
    file_enabled: bool = False,
) -> None:
    """Configure structlog and the stdlib root logger.

    Safe to call more than once; the CLI calls it early with command line
    options and again once the configuration file has been read. Loggers are
    not cached, so module-level loggers pick up the latest configuration.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format (json or console)
        file_path: Path to log file (if file logging enabled)
        file_enabled: Whether to enable file logging

    Example:
        # Local troubleshooting
        configure_logging(level="DEBUG")

        # CI job collecting machine-readable logs
        configure_logging(level="INFO", log_format="json",
                          file_path=".deployease.log", file_enabled=True)
    """
    level = LogLevel(level.upper()) if isinstance(level, str) else level
    log_format = LogFormat(log_format.lower()) if isinstance(log_format, str) else log_format
    numeric_level = logging.getLevelName(level.value)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_context_processor,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            secret_sanitizer,
            output_clipper,
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            _renderer(log_format),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(
        format="%(message)s",
        level=numeric_level,
        handlers=_handlers(numeric_level, Path(file_path) if file_enabled and file_path else None),
        force=True,
    )


def bind_context(**kwargs: Any) -> None:
    """Bind session variables for all subsequent log calls.

    Example:
        bind_context(session_id="3f2a9c41d0e7", cwd="/work/site")
        log.info("build_started")  # Includes session_id and cwd
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop all bound session variables."""
    structlog.contextvars.clear_contextvars()
