"""Subprocess-backed command runner and npm installer.

Commands are never run through a shell: the command string is split with
shlex, leading NAME=value tokens are moved into the environment, and the
rest is executed as an argument vector. Every run has a timeout, and each
output stream is read incrementally into a bounded tail buffer.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import shutil
from collections import deque
from collections.abc import Mapping
from pathlib import Path

import structlog

from deployease.models.build import CommandResult
from deployease.utils.commands import split_command
from deployease.utils.errors import CommandNotFoundError, CommandTimeoutError

log = structlog.get_logger()

TRUNCATION_MARKER = "[... output truncated ...]\n"

# Bytes requested per read from a child's pipe
READ_CHUNK = 64 * 1024


class OutputTail:
    """Keeps the last ``limit`` bytes written to it.

    Build tools print the failure at the end, so the head is what gets cut.
    Whole chunks are dropped as soon as they fall out of the window, so
    memory stays near ``limit`` however much a command prints.
    """

    def __init__(self, limit: int) -> None:
        self._limit = limit
        self._chunks: deque[bytes] = deque()
        self._size = 0
        self.truncated = False

    @property
    def size(self) -> int:
        """Bytes currently buffered."""
        return self._size

    def write(self, chunk: bytes) -> None:
        self._chunks.append(chunk)
        self._size += len(chunk)
        while self._size - len(self._chunks[0]) >= self._limit:
            self._size -= len(self._chunks.popleft())
            self.truncated = True

    def getvalue(self) -> str:
        """Decoded tail, prefixed with TRUNCATION_MARKER if anything was cut."""
        data = b"".join(self._chunks)
        if len(data) > self._limit:
            data = data[-self._limit :]
            self.truncated = True
        if not self.truncated:
            return data.decode("utf-8", errors="replace")

        # Skip a multi-byte character cut in half at the front
        start = 0
        while start < min(3, len(data)) and data[start] & 0xC0 == 0x80:
            start += 1
        return TRUNCATION_MARKER + data[start:].decode("utf-8", errors="replace")


async def _drain(stream: asyncio.StreamReader, tail: OutputTail) -> None:
    while True:
        chunk = await stream.read(READ_CHUNK)
        if not chunk:
            return
        tail.write(chunk)


class SubprocessRunner:
    """Runs commands as asyncio child processes.

    Example:
        runner = SubprocessRunner(timeout=900)
        result = await runner.run("npm run build", cwd=Path("."))
        if not result.success:
            print(result.stderr)
    """

    # Default timeout for commands (seconds)
    DEFAULT_TIMEOUT = 900

    # Cap per captured stream (bytes)
    DEFAULT_MAX_OUTPUT = 10 * 1024 * 1024

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        max_output_bytes: int = DEFAULT_MAX_OUTPUT,
    ) -> None:
        """Initialize the SubprocessRunner.

        Args:
            timeout: Timeout for each command in seconds.
            max_output_bytes: Maximum bytes kept from each of stdout/stderr.
        """
        self._timeout = timeout
        self._max_output_bytes = max_output_bytes

    async def run(
        self,
        command: str,
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """Run a command to completion.

        Args:
            command: Command string, optionally prefixed with NAME=value pairs
            cwd: Working directory
            env: Extra environment variables

        Returns:
            CommandResult with the tail of stdout and stderr

        Raises:
            ValueError: If the command string cannot be parsed.
            CommandNotFoundError: If the executable is not found.
            CommandTimeoutError: If the command times out.
        """
        command_env, argv = split_command(command)

        executable = shutil.which(argv[0])
        if executable is None:
            raise CommandNotFoundError(f"Command not found: {argv[0]}", command=argv)

        full_env = {**os.environ, **(env or {}), **command_env}

        log.debug("executing_command", command=argv, cwd=str(cwd), timeout=self._timeout)

        try:
            proc = await asyncio.create_subprocess_exec(
                executable,
                *argv[1:],
                cwd=cwd,
                env=full_env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise CommandNotFoundError(f"Command not found: {argv[0]}", command=argv) from e

        assert proc.stdout is not None and proc.stderr is not None
        stdout = OutputTail(self._max_output_bytes)
        stderr = OutputTail(self._max_output_bytes)

        try:
            await asyncio.wait_for(
                asyncio.gather(
                    _drain(proc.stdout, stdout),
                    _drain(proc.stderr, stderr),
                    proc.wait(),
                ),
                timeout=self._timeout,
            )
        except TimeoutError as e:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            msg = f"Command timed out after {self._timeout}s: {command}"
            log.error("command_timeout", command=argv, timeout=self._timeout)
            raise CommandTimeoutError(msg, command=argv) from e

        if stdout.truncated or stderr.truncated:
            log.debug("command_output_truncated", command=argv, limit=self._max_output_bytes)

        return CommandResult(
            stdout=stdout.getvalue(),
            stderr=stderr.getvalue(),
            return_code=proc.returncode if proc.returncode is not None else -1,
            command=argv,
        )


class NpmInstaller:
    """Performs install directives such as ``npm install vite --save-dev``."""

    def __init__(self, runner: SubprocessRunner, cwd: Path) -> None:
        self._runner = runner
        self._cwd = cwd

    async def install(self, action: str) -> bool:
        """Run an install action in the project root.

        Returns:
            True if the package manager exited with status zero
        """
        log.info("installing_packages", action=action)
        result = await self._runner.run(action, cwd=self._cwd)

        if not result.success:
            log.warning(
                "install_failed",
                action=action,
                return_code=result.return_code,
                stderr=result.stderr[-2000:],
            )
        return result.success
