"""File-backed manifest and error log stores."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog

from deployease.utils.errors import ErrorLogError, ManifestError
from deployease.utils.security import RedactionError, SecretRedactor, sanitize_for_logging

log = structlog.get_logger()

MANIFEST_NAME = "package.json"
ERROR_LOG_NAME = ".deployease-build-error.log"


class PackageJsonManifest:
    """Reads and writes a project's package.json.

    Writes use two-space indentation and a trailing newline, matching what
    npm itself produces.
    """

    def __init__(self, root: Path) -> None:
        self.path = root / MANIFEST_NAME

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> dict[str, Any]:
        """Load package.json.

        Raises:
            ManifestError: If the file is missing, unreadable or not a JSON object
        """
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise ManifestError(f"{self.path} not found") from e
        except (OSError, json.JSONDecodeError) as e:
            raise ManifestError(f"Could not read {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise ManifestError(f"{self.path} does not contain a JSON object")
        return data

    def write(self, data: dict[str, Any]) -> None:
        """Replace package.json contents.

        Raises:
            ManifestError: If the file cannot be written
        """
        try:
            self.path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        except OSError as e:
            raise ManifestError(f"Could not write {self.path}: {e}") from e
        log.info("manifest_written", path=str(self.path))


class FileErrorLog:
    """Stores the last build error in the project root.

    Output is stripped of terminal escapes and secrets before it touches disk.
    """

    def __init__(self, path: Path, redactor: SecretRedactor | None = None) -> None:
        self.path = path
        self._redactor = redactor or SecretRedactor()

    def save(self, text: str) -> None:
        """Persist error text, replacing the previous entry.

        Raises:
            ErrorLogError: If the log cannot be redacted or written
        """
        try:
            safe_text = self._redactor.redact(sanitize_for_logging(text))
        except RedactionError as e:
            raise ErrorLogError(f"Could not redact error log: {e}") from e
        try:
            self.path.write_text(safe_text, encoding="utf-8")
        except OSError as e:
            raise ErrorLogError(f"Could not write {self.path}: {e}") from e
        log.debug("error_log_saved", path=str(self.path), size=len(safe_text))

    def load(self) -> str | None:
        if not self.path.is_file():
            return None
        try:
            text = self.path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            log.warning("error_log_unreadable", path=str(self.path), error=str(e))
            return None
        return text or None
