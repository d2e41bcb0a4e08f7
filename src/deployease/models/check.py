"""Data models for the pre-deploy project check."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from deployease.models.analysis import Severity


class CheckCategory(StrEnum):
    """Area a check finding belongs to."""

    DEPENDENCY = "dependency"
    CONFIGURATION = "configuration"
    BUILD = "build"
    PARSE = "parse"
    SECURITY = "security"
    GIT = "git"
    CODE_QUALITY = "code-quality"
    DEPLOYMENT = "deployment"


@dataclass(frozen=True)
class Finding:
    """A problem found while checking the project before deployment."""

    category: CheckCategory
    severity: Severity
    message: str
    solution: str
    path: str | None = None  # Relative to the project root

    def as_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "severity": self.severity.value,
            "message": self.message,
            "solution": self.solution,
            "path": self.path,
        }


@dataclass(frozen=True)
class Suggestion:
    """General deployment advice, shown whatever the findings."""

    message: str
    solution: str


@dataclass(frozen=True)
class CheckReport:
    """Result of a pre-deploy check.

    Issues block deployment; warnings are worth fixing but do not.
    """

    issues: tuple[Finding, ...] = ()
    warnings: tuple[Finding, ...] = ()
    suggestions: tuple[Suggestion, ...] = ()

    @property
    def passed(self) -> bool:
        """True when nothing blocks deployment."""
        return not self.issues

    @property
    def is_clean(self) -> bool:
        return not self.issues and not self.warnings

    def as_dict(self) -> dict[str, Any]:
        """Plain dict for JSON output."""
        return {
            "passed": self.passed,
            "issues": [finding.as_dict() for finding in self.issues],
            "warnings": [finding.as_dict() for finding in self.warnings],
            "suggestions": [
                {"message": s.message, "solution": s.solution} for s in self.suggestions
            ],
        }
