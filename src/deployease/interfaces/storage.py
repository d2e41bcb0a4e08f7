"""Abstract interfaces for the project manifest and the build error log."""

from typing import Any, Protocol


class ManifestStore(Protocol):
    """Reads and writes the project's dependency/script descriptor.

    The manifest is a mapping with at least ``dependencies``,
    ``devDependencies`` and ``scripts`` sub-mappings.
    """

    def exists(self) -> bool:
        """Return True if the manifest file is present."""
        ...

    def read(self) -> dict[str, Any]:
        """
        Load the manifest.

        Raises:
            ManifestError: If the manifest is missing or malformed
        """
        ...

    def write(self, data: dict[str, Any]) -> None:
        """
        Replace the manifest contents.

        Raises:
            ManifestError: If the manifest cannot be written
        """
        ...


class ErrorLogStore(Protocol):
    """Persists the last build error for later questions."""

    def save(self, text: str) -> None:
        """
        Store raw error text, replacing any previous entry.

        Raises:
            ErrorLogError: If the log cannot be written
        """
        ...

    def load(self) -> str | None:
        """Return the stored error text, or None if nothing is stored."""
        ...
