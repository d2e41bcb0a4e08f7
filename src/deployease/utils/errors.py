"""Exception hierarchy for DeployEase.

Only I/O-bound collaborators raise these. Classification never raises, and
the build orchestrator converts every collaborator failure into a session
result rather than letting it escape.
"""

from __future__ import annotations


class DeployEaseError(Exception):
    """Base exception for all DeployEase errors."""


class CommandError(DeployEaseError):
    """Running an external command failed before it produced an exit code."""

    def __init__(self, message: str, command: list[str] | None = None) -> None:
        super().__init__(message)
        self.command = command or []


class CommandNotFoundError(CommandError):
    """The executable could not be found on PATH."""


class CommandTimeoutError(CommandError):
    """The command did not finish within its timeout."""


class ManifestError(DeployEaseError):
    """The project manifest (package.json) is missing or malformed."""


class ErrorLogError(DeployEaseError):
    """The build error log could not be read or written."""
