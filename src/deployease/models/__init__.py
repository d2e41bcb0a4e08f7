"""Data models and transfer objects."""

from .analysis import (
    AddBuildScriptFix,
    AnalysisResult,
    FixKind,
    IncreaseMemoryFix,
    InstallDependenciesFix,
    InstallPackageFix,
    Issue,
    IssueKind,
    ManualFix,
    MissingPackageIssue,
    Severity,
    SuggestedFix,
)
from .build import (
    Attempt,
    BuildSessionResult,
    BuildStatus,
    CommandResult,
    ErrorReport,
    FailureReason,
    FixOutcome,
)
from .check import CheckCategory, CheckReport, Finding, Suggestion
from .project import ProjectContext

__all__ = [
    # Analysis models
    "IssueKind",
    "Severity",
    "FixKind",
    "Issue",
    "MissingPackageIssue",
    "InstallPackageFix",
    "InstallDependenciesFix",
    "AddBuildScriptFix",
    "IncreaseMemoryFix",
    "ManualFix",
    "SuggestedFix",
    "AnalysisResult",
    # Build models
    "CommandResult",
    "ErrorReport",
    "Attempt",
    "BuildStatus",
    "FailureReason",
    "FixOutcome",
    "BuildSessionResult",
    # Check models
    "CheckCategory",
    "Finding",
    "Suggestion",
    "CheckReport",
    # Project model
    "ProjectContext",
]
