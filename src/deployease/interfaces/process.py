"""Abstract interfaces for running commands and installing packages."""

from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

from ..models.build import CommandResult


class CommandRunner(Protocol):
    """Runs an external command to completion and captures its output."""

    async def run(
        self,
        command: str,
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """
        Run a command and wait for it to finish.

        Args:
            command: Command string, optionally prefixed with NAME=value pairs
            cwd: Working directory
            env: Extra environment variables layered over the process environment

        Returns:
            CommandResult with fully buffered stdout/stderr; a non-zero
            return code is a failed command, not an exception

        Raises:
            CommandNotFoundError: If the executable does not exist
            CommandTimeoutError: If the command exceeds its timeout
        """
        ...


class PackageInstaller(Protocol):
    """Installs packages into the project."""

    async def install(self, action: str) -> bool:
        """
        Perform an install directive.

        Args:
            action: Install command, e.g. "npm install vite --save-dev"

        Returns:
            True if the package manager exited with status zero

        Raises:
            CommandError: If the package manager could not be run at all
        """
        ...
