"""Classifier for build error output.

This module implements the ErrorClassifier class that applies the pattern
library to captured build output. It is shared by the build orchestrator
and the developer assistant so both report the same issues for the same
text.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

import structlog

from deployease.core.patterns import RULES, PatternRule, RuleContext
from deployease.models.analysis import AnalysisResult, Issue, SuggestedFix
from deployease.models.build import ErrorReport
from deployease.utils.commands import DEFAULT_BUILD_COMMAND
from deployease.utils.errors import ManifestError

if TYPE_CHECKING:
    from deployease.interfaces.storage import ManifestStore

log = structlog.get_logger()


class ErrorClassifier:
    """Classifies build error text into issues and suggested fixes.

    Responsibilities:
    - Evaluate every pattern rule against the full text
    - Collect issues and fixes in rule order
    - Look up manifest dependencies (read-only) for rules that need them

    The classifier never raises and never writes. Identical text against an
    unchanged manifest always yields an identical result.

    Example:
        classifier = ErrorClassifier(manifest=PackageJsonManifest(root))
        analysis = classifier.analyze(stderr)
        if analysis.can_auto_fix:
            ...
    """

    def __init__(
        self,
        manifest: ManifestStore | None = None,
        build_command: str = DEFAULT_BUILD_COMMAND,
        memory_limit_mb: int = 4096,
        rules: tuple[PatternRule, ...] = RULES,
    ) -> None:
        """Initialize the ErrorClassifier.

        Args:
            manifest: Project manifest consulted for build-script fixes
            build_command: Build command that memory fixes rewrite
            memory_limit_mb: Heap size proposed for out-of-memory failures
            rules: Ordered pattern rules
        """
        self._manifest = manifest
        self._rules = rules
        self._context = RuleContext(
            load_dependencies=self._load_dependencies,
            build_command=build_command,
            memory_limit_mb=memory_limit_mb,
        )

    def analyze(self, text: str) -> AnalysisResult:
        """Classify a block of error text.

        Args:
            text: Captured build output

        Returns:
            AnalysisResult with issues and fixes in rule order; empty if no
            rule matched
        """
        if not text:
            return AnalysisResult()

        issues: list[Issue] = []
        fixes: list[SuggestedFix] = []
        emitted: set[tuple[str, str]] = set()

        for rule in self._rules:
            rule_issues, rule_fixes = rule.apply(text, self._context)
            issues.extend(rule_issues)
            for fix in rule_fixes:
                # Several rules may propose the same command; keep the first
                key = (fix.kind.value, fix.action)
                if key not in emitted:
                    emitted.add(key)
                    fixes.append(fix)

        result = AnalysisResult(issues=tuple(issues), suggested_fixes=tuple(fixes))

        log.info(
            "build_error_analyzed",
            issues=[issue.kind.value for issue in result.issues],
            fixes_count=len(result.suggested_fixes),
            can_auto_fix=result.can_auto_fix,
        )

        return result

    def analyze_report(self, report: ErrorReport) -> AnalysisResult:
        """Classify a captured ErrorReport."""
        return self.analyze(report.text or report.summary or "")

    def _load_dependencies(self) -> Mapping[str, str] | None:
        """Merged dependencies and devDependencies, or None if unavailable."""
        if self._manifest is None or not self._manifest.exists():
            return None

        try:
            data = self._manifest.read()
        except ManifestError as e:
            log.debug("manifest_unreadable", error=str(e))
            return None

        dependencies: dict[str, str] = {}
        for section in ("dependencies", "devDependencies"):
            value = data.get(section)
            if isinstance(value, dict):
                dependencies.update(value)
        return dependencies
