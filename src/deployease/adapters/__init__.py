"""Concrete implementations of collaborator interfaces."""

from .console import ConsolePrompter
from .process import NpmInstaller, SubprocessRunner
from .storage import FileErrorLog, PackageJsonManifest

__all__ = [
    "ConsolePrompter",
    "FileErrorLog",
    "NpmInstaller",
    "PackageJsonManifest",
    "SubprocessRunner",
]
