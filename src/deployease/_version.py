"""Version information for DeployEase."""

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


def _resolve_version() -> str:
    """Installed distribution version, or the source checkout's pyproject version.

    Raises:
        RuntimeError: If neither is available
    """
    try:
        return version("deployease")
    except PackageNotFoundError:
        pass

    import tomllib

    if not PYPROJECT.is_file():
        raise RuntimeError("Could not determine package version")
    with PYPROJECT.open("rb") as f:
        return str(tomllib.load(f)["project"]["version"])


__version__ = _resolve_version()

__all__ = ["__version__"]
