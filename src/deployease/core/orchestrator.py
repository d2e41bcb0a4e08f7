"""Build-and-fix session orchestrator.

This module implements the BuildOrchestrator class that drives a build
session:
1. Run the build command
2. On failure, store the error text and classify it
3. Present issues and fixes; ask before applying anything
4. Apply every auto-fixable fix
5. Retry the build once if at least one fix succeeded

Only two builds are ever run per session and auto-fix is attempted at most
once. The orchestrator is the only component that ends a session; every
collaborator failure becomes a BuildSessionResult.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from deployease.models.analysis import AnalysisResult, IncreaseMemoryFix
from deployease.models.build import (
    Attempt,
    BuildSessionResult,
    BuildStatus,
    ErrorReport,
    FailureReason,
    FixOutcome,
)
from deployease.utils.commands import with_memory_limit
from deployease.utils.errors import CommandError, ErrorLogError

if TYPE_CHECKING:
    from deployease.core.classifier import ErrorClassifier
    from deployease.core.fix_applicator import FixApplicator
    from deployease.interfaces.process import CommandRunner
    from deployease.interfaces.prompt import Prompter
    from deployease.interfaces.storage import ErrorLogStore

log = structlog.get_logger()

CONFIRM_QUESTION = "Apply {count} automatic fix(es) and retry the build?"


class BuildOrchestrator:
    """Runs a build with a single classify-fix-retry cycle.

    States: Attempting(0) -> Attempting(1) -> Succeeded | Failed.

    Example:
        orchestrator = BuildOrchestrator(
            runner, classifier, applicator, prompter, error_log,
            cwd=Path("."), build_command="npm run build",
        )
        result = await orchestrator.run()
    """

    def __init__(
        self,
        runner: CommandRunner,
        classifier: ErrorClassifier,
        applicator: FixApplicator,
        prompter: Prompter,
        error_log: ErrorLogStore,
        cwd: Path,
        build_command: str | None,
        auto_fix: bool = True,
        assume_yes: bool = False,
    ) -> None:
        """Initialize the BuildOrchestrator.

        Args:
            runner: Process execution collaborator
            classifier: Shared error classifier
            applicator: Fix applicator
            prompter: Presents analyses and asks for confirmation
            error_log: Stores captured error text
            cwd: Project root the build runs in
            build_command: Initial build command; None means nothing to build
            auto_fix: Whether fixes may be applied at all
            assume_yes: Apply fixes without asking
        """
        self._runner = runner
        self._classifier = classifier
        self._applicator = applicator
        self._prompter = prompter
        self._error_log = error_log
        self._cwd = cwd
        self._build_command = build_command
        self._auto_fix = auto_fix
        self._assume_yes = assume_yes

    async def run(self) -> BuildSessionResult:
        """Run the build session to a terminal state.

        Returns:
            BuildSessionResult describing the outcome
        """
        if not self._build_command:
            log.info("no_build_required")
            return BuildSessionResult(status=BuildStatus.SUCCEEDED, attempts=0, build_command=None)

        attempt = Attempt(build_command=self._build_command)
        outcomes: list[FixOutcome] = []

        while True:
            report = await self._run_build(attempt)

            if report is None:
                log.info("build_succeeded", attempt=attempt.number)
                return self._result(attempt, outcomes, BuildStatus.SUCCEEDED)

            self._save_error_log(report.text)

            if not attempt.has_retry_left:
                log.error("build_failed_after_retry", attempt=attempt.number)
                return self._result(
                    attempt, outcomes, BuildStatus.FAILED, FailureReason.RETRY_EXHAUSTED, report
                )

            analysis = self._classifier.analyze_report(report)
            attempt.last_analysis = analysis
            await self._prompter.show_analysis(analysis)

            reason = await self._remediate(attempt, analysis, outcomes)
            if reason is not None:
                log.error("build_failed", reason=reason.value, issues=len(analysis.issues))
                return self._result(attempt, outcomes, BuildStatus.FAILED, reason, report)

            attempt.number += 1
            log.info("retrying_build", attempt=attempt.number, command=attempt.build_command)

    async def _run_build(self, attempt: Attempt) -> ErrorReport | None:
        """Run the build once.

        Returns:
            None on success, otherwise the captured ErrorReport
        """
        log.info("build_started", attempt=attempt.number, command=attempt.build_command)

        try:
            result = await self._runner.run(attempt.build_command, cwd=self._cwd)
        except (CommandError, ValueError) as e:
            log.warning("build_command_error", error=str(e))
            return ErrorReport.from_output(error=e)

        if result.success:
            return None

        log.warning("build_exited_nonzero", return_code=result.return_code)
        return ErrorReport.from_result(result)

    async def _remediate(
        self,
        attempt: Attempt,
        analysis: AnalysisResult,
        outcomes: list[FixOutcome],
    ) -> FailureReason | None:
        """Decide on and apply fixes after the first failure.

        Returns:
            None if a retry should happen, otherwise why the session fails
        """
        if analysis.is_empty:
            return FailureReason.UNRECOGNIZED_ERROR

        fixes = analysis.auto_fixable_fixes
        if not fixes:
            return FailureReason.MANUAL_FIX_REQUIRED

        if not self._auto_fix:
            return FailureReason.AUTO_FIX_DISABLED

        try:
            accepted = self._assume_yes or await self._prompter.confirm(
                CONFIRM_QUESTION.format(count=len(fixes))
            )
        except (KeyboardInterrupt, EOFError):
            log.warning("confirmation_interrupted")
            return FailureReason.CANCELLED

        if not accepted:
            log.info("fixes_declined")
            return FailureReason.FIX_DECLINED

        for fix in fixes:
            outcome = await self._applicator.apply(fix)
            outcomes.append(outcome)
            if outcome.success and isinstance(fix, IncreaseMemoryFix):
                attempt.build_command = with_memory_limit(
                    attempt.build_command, fix.memory_limit_mb
                )

        applied = sum(1 for outcome in outcomes if outcome.success)
        log.info("fixes_applied", applied=applied, attempted=len(fixes))

        if applied == 0:
            return FailureReason.NO_FIX_APPLIED
        return None

    def _save_error_log(self, text: str) -> None:
        try:
            self._error_log.save(text)
        except ErrorLogError as e:
            log.warning("error_log_save_failed", error=str(e))

    def _result(
        self,
        attempt: Attempt,
        outcomes: list[FixOutcome],
        status: BuildStatus,
        reason: FailureReason | None = None,
        report: ErrorReport | None = None,
    ) -> BuildSessionResult:
        return BuildSessionResult(
            status=status,
            attempts=attempt.number + 1,
            build_command=attempt.build_command,
            reason=reason,
            analysis=attempt.last_analysis,
            error_text=report.text if report else "",
            fix_outcomes=tuple(outcomes),
        )
