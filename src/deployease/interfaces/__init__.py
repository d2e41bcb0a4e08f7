"""Protocol definitions for pluggable collaborators."""

from .process import CommandRunner, PackageInstaller
from .prompt import Prompter
from .storage import ErrorLogStore, ManifestStore

__all__ = ["CommandRunner", "ErrorLogStore", "ManifestStore", "PackageInstaller", "Prompter"]
