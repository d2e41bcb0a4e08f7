"""Plain-text rendering of analyses, session results and project checks."""

from __future__ import annotations

from deployease.models.analysis import AnalysisResult, MissingPackageIssue
from deployease.models.build import BuildSessionResult, FailureReason
from deployease.models.check import CheckReport

ERROR_TAIL_LINES = 20
MAX_WARNINGS_SHOWN = 10

FAILURE_MESSAGES: dict[FailureReason, str] = {
    FailureReason.UNRECOGNIZED_ERROR: "The build failed with an error no known pattern matches.",
    FailureReason.MANUAL_FIX_REQUIRED: "The build failed with issues that need a manual fix.",
    FailureReason.AUTO_FIX_DISABLED: "The build failed and auto-fix is disabled.",
    FailureReason.FIX_DECLINED: "The build failed and the suggested fixes were declined.",
    FailureReason.NO_FIX_APPLIED: "The build failed and no suggested fix could be applied.",
    FailureReason.RETRY_EXHAUSTED: "The build failed again after applying fixes.",
    FailureReason.CANCELLED: "The build session was cancelled.",
}


def render_analysis(analysis: AnalysisResult) -> str:
    """Render detected issues and suggested fixes as a numbered list."""
    if analysis.is_empty:
        return analysis.summary

    lines = ["Detected issues:"]
    for index, issue in enumerate(analysis.issues, start=1):
        lines.append(f"  {index}. {issue.message} (severity: {issue.severity.value})")
        if isinstance(issue, MissingPackageIssue) and issue.package:
            lines.append(f"     Package: {issue.package}")

    if analysis.suggested_fixes:
        lines.append("")
        lines.append("Suggested fixes:")
        for index, fix in enumerate(analysis.suggested_fixes, start=1):
            badge = "[auto-fixable]" if fix.auto_fixable else "[manual]"
            lines.append(f"  {index}. {fix.description} {badge}")
            if fix.auto_fixable:
                lines.append(f"     Command: {fix.action}")

    return "\n".join(lines)


def _tail(text: str, count: int = ERROR_TAIL_LINES) -> str:
    return "\n".join(text.rstrip().splitlines()[-count:])


def render_session(result: BuildSessionResult) -> str:
    """Render the outcome of a build session."""
    if result.succeeded:
        if result.attempts == 0:
            return "Nothing to build: static project."
        if result.attempts > 1:
            return (
                f"Build succeeded after applying {result.fixes_applied} fix(es) "
                f"using: {result.build_command}"
            )
        return "Build succeeded."

    headline = FAILURE_MESSAGES.get(result.reason) if result.reason else None
    lines = [headline or "The build failed."]
    if result.analysis is not None and not result.analysis.is_empty:
        lines.append(f"Primary issue: {result.analysis.summary}")
    failed = [outcome for outcome in result.fix_outcomes if not outcome.success]
    for outcome in failed:
        lines.append(f"  Fix failed: {outcome.fix.description} ({outcome.error})")
    if result.error_text.strip():
        lines.append("")
        lines.append("Last error output:")
        lines.append(_tail(result.error_text))
    return "\n".join(lines)


def render_check(report: CheckReport) -> str:
    """Render a pre-deploy check: issues, the first warnings, then suggestions."""
    lines: list[str] = []

    if report.issues:
        lines.append(f"Found {len(report.issues)} critical issue(s):")
        for index, finding in enumerate(report.issues, start=1):
            lines.append(f"  {index}. [{finding.category.value.upper()}] {finding.message}")
            lines.append(f"     Solution: {finding.solution}")
        lines.append("")

    if report.warnings:
        lines.append(f"Found {len(report.warnings)} warning(s):")
        for index, finding in enumerate(report.warnings[:MAX_WARNINGS_SHOWN], start=1):
            lines.append(f"  {index}. [{finding.category.value.upper()}] {finding.message}")
            lines.append(f"     Solution: {finding.solution}")
        hidden = len(report.warnings) - MAX_WARNINGS_SHOWN
        if hidden > 0:
            lines.append(f"  ... and {hidden} more warnings")
        lines.append("")

    if report.suggestions:
        lines.append("Suggestions for safe deployment:")
        for index, suggestion in enumerate(report.suggestions, start=1):
            lines.append(f"  {index}. {suggestion.message}")
            lines.append(f"     {suggestion.solution}")
        lines.append("")

    if report.is_clean:
        lines.append("No critical issues found. Your project looks safe to deploy.")
    else:
        lines.append(
            f"Summary: {len(report.issues)} critical issue(s), "
            f"{len(report.warnings)} warning(s), {len(report.suggestions)} suggestion(s)"
        )
        if not report.passed:
            lines.append("Fix critical issues before deploying.")

    return "\n".join(lines)
