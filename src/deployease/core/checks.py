"""Pre-deploy project check.

This module implements the ProjectChecker class that inspects a project
before it is published: the manifest, sensitive files, the .gitignore and
the HTML and script sources. Nothing is modified.
"""

from __future__ import annotations

import fnmatch
import os
import re
from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from deployease.models.analysis import Severity
from deployease.models.check import CheckCategory, CheckReport, Finding, Suggestion
from deployease.utils.errors import ManifestError
from deployease.utils.security import SecretRedactor

if TYPE_CHECKING:
    from deployease.interfaces.storage import ManifestStore
    from deployease.models.project import ProjectContext

log = structlog.get_logger()

# Dependencies worth a second look before shipping
PROBLEMATIC_PACKAGES = ("serialize-javascript", "moment", "lodash")

SENSITIVE_FILES = (".env", ".env.local", ".env.production", "secrets.json")

GITIGNORE_REQUIRED = ("node_modules", ".env", "dist", "build")

SKIP_DIRS = frozenset({"node_modules", ".git", "dist", "build", ".next", ".cache"})
HTML_EXTENSIONS = frozenset({".html"})
SCRIPT_EXTENSIONS = frozenset({".js", ".jsx", ".ts", ".tsx"})

# Larger files are generated bundles, not sources
MAX_SCAN_BYTES = 1024 * 1024

INSECURE_LINK = re.compile(r"http://(?!localhost|127\.0\.0\.1)")
WORK_MARKER = re.compile(r"\b(?:TODO|FIXME|XXX)\b", re.IGNORECASE)


def iter_source_files(root: Path, extensions: frozenset[str]) -> Iterator[Path]:
    """Yield files under ``root`` with one of ``extensions``, skipping build and vendor dirs."""
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
        for filename in sorted(filenames):
            if os.path.splitext(filename)[1] in extensions:
                yield Path(dirpath) / filename


class ProjectChecker:
    """Checks a project for problems that should be fixed before deploying.

    Responsibilities:
    - Validate package.json (parse errors, build script, homepage, risky packages)
    - Flag sensitive files and an incomplete .gitignore
    - Scan HTML and script sources for secrets and unsafe code

    Example:
        context = detect_project(root, manifest, config.deploy)
        report = ProjectChecker(context, manifest).check()
        if not report.passed:
            ...
    """

    def __init__(
        self,
        context: ProjectContext,
        manifest: ManifestStore | None = None,
        redactor: SecretRedactor | None = None,
    ) -> None:
        """Initialize the ProjectChecker.

        Args:
            context: Detected project facts and deployment target
            manifest: package.json store, read directly so parse errors surface
            redactor: Secret detector used on source files
        """
        self._context = context
        self._root = context.root
        self._manifest = manifest
        self._redactor = redactor or SecretRedactor()

    def check(self) -> CheckReport:
        """Run every check.

        Returns:
            CheckReport with issues and warnings in check order
        """
        issues: list[Finding] = []
        warnings: list[Finding] = []

        for finding in self._check_manifest():
            self._route(finding, issues, warnings)

        gitignore = self._read_gitignore()
        for finding in self._check_sensitive_files(gitignore):
            self._route(finding, issues, warnings)
        for finding in self._check_gitignore(gitignore):
            self._route(finding, issues, warnings)

        for finding in self._scan_sources():
            self._route(finding, issues, warnings)

        report = CheckReport(
            issues=tuple(issues),
            warnings=tuple(warnings),
            suggestions=self._suggestions(),
        )

        log.info(
            "project_checked",
            issues=len(report.issues),
            warnings=len(report.warnings),
            passed=report.passed,
        )

        return report

    @staticmethod
    def _route(finding: Finding, issues: list[Finding], warnings: list[Finding]) -> None:
        if finding.severity in (Severity.HIGH, Severity.CRITICAL):
            issues.append(finding)
        else:
            warnings.append(finding)

    def _check_manifest(self) -> Iterator[Finding]:
        if self._manifest is None or not self._manifest.exists():
            return

        try:
            data = self._manifest.read()
        except ManifestError as e:
            log.debug("manifest_invalid", error=str(e))
            yield Finding(
                CheckCategory.PARSE,
                Severity.HIGH,
                "Invalid package.json file",
                "Fix JSON syntax errors in package.json",
                path="package.json",
            )
            return

        dependencies = {
            **_mapping(data.get("dependencies")),
            **_mapping(data.get("devDependencies")),
        }

        for package in PROBLEMATIC_PACKAGES:
            if package in dependencies:
                yield Finding(
                    CheckCategory.DEPENDENCY,
                    Severity.MEDIUM,
                    f'Package "{package}" detected - consider updating to latest version',
                    f"Run: npm update {package} or consider alternatives",
                    path="package.json",
                )

        if "react-scripts" in dependencies and not data.get("homepage"):
            url = self._context.pages_url or "https://yourusername.github.io/your-repo"
            yield Finding(
                CheckCategory.CONFIGURATION,
                Severity.HIGH,
                "React app missing 'homepage' field in package.json",
                f'Add "homepage": "{url}" to package.json for GitHub Pages',
                path="package.json",
            )

        if "build" not in _mapping(data.get("scripts")):
            yield Finding(
                CheckCategory.BUILD,
                Severity.LOW,
                "No build script found in package.json",
                'Add build script: "build": "your-build-command"',
                path="package.json",
            )

    def _read_gitignore(self) -> list[str] | None:
        path = self._root / ".gitignore"
        if not path.is_file():
            return None
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            log.debug("gitignore_unreadable", error=str(e))
            return None
        return [line.strip() for line in text.splitlines() if line.strip()]

    def _check_sensitive_files(self, gitignore: list[str] | None) -> Iterator[Finding]:
        for name in SENSITIVE_FILES:
            if not (self._root / name).exists():
                continue
            if gitignore is not None and _is_ignored(name, gitignore):
                yield Finding(
                    CheckCategory.SECURITY,
                    Severity.MEDIUM,
                    f'Sensitive file "{name}" found in project (ignored by git)',
                    "Make sure the file is not copied into the build output",
                    path=name,
                )
                continue
            yield Finding(
                CheckCategory.SECURITY,
                Severity.CRITICAL,
                f'Sensitive file "{name}" found in project',
                f'Add "{name}" to .gitignore and use environment variables instead',
                path=name,
            )

    def _check_gitignore(self, gitignore: list[str] | None) -> Iterator[Finding]:
        if gitignore is None:
            yield Finding(
                CheckCategory.GIT,
                Severity.MEDIUM,
                ".gitignore file not found",
                "Create .gitignore to exclude node_modules, build files, and sensitive data",
            )
            return

        text = "\n".join(gitignore)
        for entry in GITIGNORE_REQUIRED:
            if entry not in text:
                yield Finding(
                    CheckCategory.GIT,
                    Severity.LOW,
                    f'.gitignore missing "{entry}"',
                    f'Add "{entry}/" to .gitignore',
                    path=".gitignore",
                )

    def _scan_sources(self) -> Iterator[Finding]:
        for path in iter_source_files(self._root, HTML_EXTENSIONS | SCRIPT_EXTENSIONS):
            content = self._read_source(path)
            if content is None:
                continue

            relative = path.relative_to(self._root).as_posix()
            kinds = self._redactor.detect(content)
            if kinds:
                yield Finding(
                    CheckCategory.SECURITY,
                    Severity.CRITICAL,
                    f"Possible secret ({', '.join(kinds)}) found in {relative}",
                    "Move keys to environment variables or a backend, never ship them "
                    "in frontend code",
                    path=relative,
                )

            if path.suffix in HTML_EXTENSIONS:
                yield from _check_html(content, relative)
            else:
                yield from _check_script(content, relative)

    def _read_source(self, path: Path) -> str | None:
        try:
            if path.stat().st_size > MAX_SCAN_BYTES:
                log.debug("source_skipped", path=str(path), reason="too_large")
                return None
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            log.debug("source_unreadable", path=str(path), error=str(e))
            return None

    def _suggestions(self) -> tuple[Suggestion, ...]:
        return (
            Suggestion(
                "Ensure all environment variables are set correctly",
                "Use environment variables for API keys and sensitive data",
            ),
            Suggestion(
                "Test your build locally before deploying",
                "Run 'npm run build' and test the build folder locally",
            ),
            Suggestion(
                "Enable GitHub Pages in repository settings",
                f"Go to Settings > Pages and select the '{self._context.branch}' branch as source",
            ),
        )


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _is_ignored(name: str, patterns: list[str]) -> bool:
    for pattern in patterns:
        if pattern.startswith(("#", "!")):
            continue
        pattern = pattern.lstrip("/").rstrip("/")
        if fnmatch.fnmatchcase(name, pattern):
            return True
    return False


def _check_html(content: str, relative: str) -> Iterator[Finding]:
    if "<script>" in content and "innerHTML" in content:
        yield Finding(
            CheckCategory.SECURITY,
            Severity.MEDIUM,
            f"Potential XSS vulnerability in {relative}",
            "Avoid using innerHTML with user input. Use textContent or sanitize input.",
            path=relative,
        )
    if INSECURE_LINK.search(content):
        yield Finding(
            CheckCategory.SECURITY,
            Severity.MEDIUM,
            f"HTTP links found in {relative} (use HTTPS)",
            "Replace http:// with https:// for security",
            path=relative,
        )


def _check_script(content: str, relative: str) -> Iterator[Finding]:
    if "eval(" in content:
        yield Finding(
            CheckCategory.SECURITY,
            Severity.HIGH,
            f"eval() usage found in {relative}",
            "Avoid eval(); use JSON.parse() or another safe alternative",
            path=relative,
        )
    markers = len(WORK_MARKER.findall(content))
    if markers:
        yield Finding(
            CheckCategory.CODE_QUALITY,
            Severity.LOW,
            f"{markers} TODO/FIXME comments found in {relative}",
            "Review and address TODO/FIXME comments before deployment",
            path=relative,
        )
