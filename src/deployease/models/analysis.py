"""Data models for build error analysis.

Issue and fix kinds are closed enumerations. Each fix variant is its own
frozen dataclass carrying only the fields that variant needs; callers
dispatch on the concrete type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, ClassVar

from deployease.utils.commands import DEFAULT_BUILD_COMMAND, with_memory_limit


class IssueKind(StrEnum):
    """Category of a detected build problem."""

    MISSING_PACKAGE = "missing_package"
    MISSING_NODE_MODULES = "missing_node_modules"
    MISSING_BUILD_SCRIPT = "missing_build_script"
    SYNTAX_ERROR = "syntax_error"
    TYPESCRIPT_ERROR = "typescript_error"
    PERMISSION_ERROR = "permission_error"
    MEMORY_ERROR = "memory_error"
    PORT_IN_USE = "port_in_use"


class Severity(StrEnum):
    """How badly an issue blocks the build."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class FixKind(StrEnum):
    """Remediation action type."""

    INSTALL_PACKAGE = "install_package"
    INSTALL_DEPENDENCIES = "install_dependencies"
    ADD_BUILD_SCRIPT = "add_build_script"
    INCREASE_MEMORY = "increase_memory"
    FIX_SYNTAX = "fix_syntax"
    FIX_TYPESCRIPT = "fix_typescript"
    FIX_PERMISSIONS = "fix_permissions"
    CHANGE_PORT = "change_port"


MANUAL_FIX_KINDS = frozenset(
    {FixKind.FIX_SYNTAX, FixKind.FIX_TYPESCRIPT, FixKind.FIX_PERMISSIONS, FixKind.CHANGE_PORT}
)


@dataclass(frozen=True)
class Issue:
    """A problem detected in build output."""

    kind: IssueKind
    severity: Severity
    message: str

    def as_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "severity": self.severity.value, "message": self.message}


@dataclass(frozen=True)
class MissingPackageIssue(Issue):
    """A module could not be resolved; ``package`` is None when unnamed."""

    package: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {**super().as_dict(), "package": self.package}


@dataclass(frozen=True)
class InstallPackageFix:
    """Install a single named package."""

    kind: ClassVar[FixKind] = FixKind.INSTALL_PACKAGE
    auto_fixable: ClassVar[bool] = True

    package: str
    dev: bool = False

    @property
    def description(self) -> str:
        return f"Install missing package: {self.package}"

    @property
    def action(self) -> str:
        suffix = " --save-dev" if self.dev else ""
        return f"npm install {self.package}{suffix}"


@dataclass(frozen=True)
class InstallDependenciesFix:
    """Install everything declared in the manifest."""

    kind: ClassVar[FixKind] = FixKind.INSTALL_DEPENDENCIES
    auto_fixable: ClassVar[bool] = True

    description: str = "Install all dependencies"

    @property
    def action(self) -> str:
        return "npm install"


@dataclass(frozen=True)
class AddBuildScriptFix:
    """Insert a build script into the manifest's scripts section."""

    kind: ClassVar[FixKind] = FixKind.ADD_BUILD_SCRIPT
    auto_fixable: ClassVar[bool] = True
    action: ClassVar[str] = "update_package_json"

    command: str
    framework: str
    script_name: str = "build"

    @property
    def description(self) -> str:
        return f"Add build script for {self.framework} app"

    @property
    def script(self) -> dict[str, str]:
        """Manifest fragment merged into ``scripts``."""
        return {self.script_name: self.command}


@dataclass(frozen=True)
class IncreaseMemoryFix:
    """Re-run the build with a larger Node.js heap."""

    kind: ClassVar[FixKind] = FixKind.INCREASE_MEMORY
    auto_fixable: ClassVar[bool] = True
    description: ClassVar[str] = "Increase Node.js memory limit"

    build_command: str = DEFAULT_BUILD_COMMAND
    memory_limit_mb: int = 4096

    @property
    def action(self) -> str:
        return with_memory_limit(self.build_command, self.memory_limit_mb)


@dataclass(frozen=True)
class ManualFix:
    """A remedy that needs a human; never applied automatically."""

    auto_fixable: ClassVar[bool] = False
    action: ClassVar[str] = "manual_fix"

    kind: FixKind
    description: str

    def __post_init__(self) -> None:
        if self.kind not in MANUAL_FIX_KINDS:
            raise ValueError(f"{self.kind} is not a manual fix kind")


SuggestedFix = (
    InstallPackageFix | InstallDependenciesFix | AddBuildScriptFix | IncreaseMemoryFix | ManualFix
)


def fix_as_dict(fix: SuggestedFix) -> dict[str, Any]:
    """Serialize a fix for JSON output."""
    data: dict[str, Any] = {
        "kind": fix.kind.value,
        "description": fix.description,
        "action": fix.action,
        "auto_fixable": fix.auto_fixable,
    }
    if isinstance(fix, InstallPackageFix):
        data["package"] = fix.package
        data["dev"] = fix.dev
    elif isinstance(fix, AddBuildScriptFix):
        data["script"] = fix.script
    return data


UNKNOWN_ERROR_SUMMARY = "Unknown build error. Please check the error output above."


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of classifying one block of error text."""

    issues: tuple[Issue, ...] = ()
    suggested_fixes: tuple[SuggestedFix, ...] = field(default=())

    @property
    def can_auto_fix(self) -> bool:
        """True if at least one suggested fix is auto-fixable."""
        return any(fix.auto_fixable for fix in self.suggested_fixes)

    @property
    def auto_fixable_fixes(self) -> tuple[SuggestedFix, ...]:
        """Auto-fixable fixes, in suggestion order."""
        return tuple(fix for fix in self.suggested_fixes if fix.auto_fixable)

    @property
    def is_empty(self) -> bool:
        """True if no rule matched."""
        return not self.issues

    @property
    def summary(self) -> str:
        """One-line description of the primary issue."""
        if not self.issues:
            return UNKNOWN_ERROR_SUMMARY
        return self.issues[0].message

    def as_dict(self) -> dict[str, Any]:
        return {
            "issues": [issue.as_dict() for issue in self.issues],
            "suggested_fixes": [fix_as_dict(fix) for fix in self.suggested_fixes],
            "can_auto_fix": self.can_auto_fix,
        }
