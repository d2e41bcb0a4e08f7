"""Data models for build runs and build sessions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from deployease.models.analysis import AnalysisResult, SuggestedFix

SUMMARY_LENGTH = 200


@dataclass(frozen=True)
class CommandResult:
    """Result of running an external command."""

    stdout: str
    stderr: str
    return_code: int
    command: list[str]

    @property
    def success(self) -> bool:
        """Return True if the command succeeded."""
        return self.return_code == 0


@dataclass(frozen=True)
class ErrorReport:
    """Captured error text from a failed build or a stored log."""

    text: str
    summary: str | None = None

    @classmethod
    def from_output(
        cls,
        stdout: str = "",
        stderr: str = "",
        error: BaseException | str | None = None,
    ) -> ErrorReport:
        """Build a report preferring stderr, then stdout, then the error message.

        Args:
            stdout: Captured standard output
            stderr: Captured standard error
            error: Exception (or its message) raised while running the command

        Returns:
            ErrorReport whose summary is the head of the chosen text
        """
        if stderr.strip():
            text = stderr
        elif stdout.strip():
            text = stdout
        elif error is not None:
            text = str(error)
        else:
            text = ""

        summary = text.strip()[:SUMMARY_LENGTH] or None
        return cls(text=text, summary=summary)

    @classmethod
    def from_result(cls, result: CommandResult) -> ErrorReport:
        return cls.from_output(stdout=result.stdout, stderr=result.stderr)


class BuildStatus(Enum):
    """Terminal state of a build session."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FailureReason(Enum):
    """Why a build session ended in failure."""

    UNRECOGNIZED_ERROR = "unrecognized_error"
    MANUAL_FIX_REQUIRED = "manual_fix_required"
    AUTO_FIX_DISABLED = "auto_fix_disabled"
    FIX_DECLINED = "fix_declined"
    NO_FIX_APPLIED = "no_fix_applied"
    RETRY_EXHAUSTED = "retry_exhausted"
    CANCELLED = "cancelled"


@dataclass
class Attempt:
    """Mutable state of one orchestrated build-and-fix cycle.

    ``number`` is 0 for the first build and 1 for the single retry.
    ``build_command`` may be replaced between attempts by a fix.
    """

    build_command: str
    number: int = 0
    last_analysis: AnalysisResult | None = None

    MAX_ATTEMPTS = 2

    @property
    def is_retry(self) -> bool:
        return self.number > 0

    @property
    def has_retry_left(self) -> bool:
        return self.number + 1 < self.MAX_ATTEMPTS


@dataclass(frozen=True)
class FixOutcome:
    """Result of applying a single suggested fix."""

    fix: SuggestedFix
    success: bool
    error: str | None = None


@dataclass(frozen=True)
class BuildSessionResult:
    """Terminal outcome of a build session."""

    status: BuildStatus
    attempts: int
    build_command: str | None
    reason: FailureReason | None = None
    analysis: AnalysisResult | None = None
    error_text: str = ""
    fix_outcomes: tuple[FixOutcome, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.status is BuildStatus.SUCCEEDED

    @property
    def fixes_applied(self) -> int:
        """Number of fixes that were applied successfully."""
        return sum(1 for outcome in self.fix_outcomes if outcome.success)
