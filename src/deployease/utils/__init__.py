"""Utility functions and helpers.

- errors: Exception hierarchy for collaborator failures
- security: Secret redaction for build output and logs
- logging: Structured logging with secret sanitization
- commands: Build command parsing and rewriting
"""

from deployease.utils.commands import split_command, with_memory_limit
from deployease.utils.errors import (
    CommandError,
    CommandNotFoundError,
    CommandTimeoutError,
    DeployEaseError,
    ErrorLogError,
    ManifestError,
)
from deployease.utils.logging import (
    LogFormat,
    LogLevel,
    bind_context,
    clear_context,
    configure_logging,
)
from deployease.utils.security import RedactionError, SecretRedactor, SecurityError

__all__ = [
    # Errors
    "CommandError",
    "CommandNotFoundError",
    "CommandTimeoutError",
    "DeployEaseError",
    "ErrorLogError",
    "ManifestError",
    # Logging
    "LogFormat",
    "LogLevel",
    "bind_context",
    "clear_context",
    "configure_logging",
    # Security
    "RedactionError",
    "SecretRedactor",
    "SecurityError",
    # Commands
    "split_command",
    "with_memory_limit",
]
