"""Known build failure signatures and the fixes they suggest.

Each PatternRule pairs a case-insensitive trigger with a builder that emits
the rule's issues and fixes. Every rule is evaluated against the full text
independently, so one log can trigger several rules. RULES is ordered and
that order is the order issues and fixes are reported in.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from deployease.models.analysis import (
    AddBuildScriptFix,
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
from deployease.utils.commands import DEFAULT_BUILD_COMMAND

# Known aliases mapped to the name that should actually be installed
PACKAGE_MAPPINGS: dict[str, str] = {
    "react-scripts": "react-scripts",
    "react/react": "react",
    "react-dom": "react-dom",
    "vite": "vite",
    "next": "next",
    "webpack": "webpack",
}

# Substrings of packages that belong in devDependencies. Heuristic: anything
# not listed here installs as a regular dependency.
DEV_DEPENDENCY_MARKERS: tuple[str, ...] = (
    "react-scripts",
    "vite",
    "webpack",
    "typescript",
    "@types",
    "eslint",
    "jest",
    "babel",
    "@vitejs",
)

# Build scripts proposed when the manifest has none, by builder dependency
BUILD_SCRIPTS: tuple[tuple[str, str, str], ...] = (
    ("react-scripts", "React", "react-scripts build"),
    ("vite", "Vite", "vite build"),
)

# Missing package name extraction, tried in order; first match wins
CANNOT_FIND_MODULE = re.compile(r"Cannot find module ['\"]([^'\"]+)['\"]", re.IGNORECASE)
CANNOT_RESOLVE = re.compile(r"Can't resolve ['\"]([^'\"]+)['\"]", re.IGNORECASE)
REACT_SCRIPTS_NOT_FOUND = re.compile(
    r"react-scripts['\"]?:?\s+(?:command\s+)?not found", re.IGNORECASE
)
COMMAND_NOT_FOUND = re.compile(r"sh: ([\w-]+): command not found", re.IGNORECASE)
NPM_MISSING = re.compile(r"npm ERR! missing: ([\w@/-]+)", re.IGNORECASE)

SYNTAX_MESSAGE = re.compile(r"(?:SyntaxError|ParseError)[^\n]+")


@dataclass(frozen=True)
class RuleContext:
    """Inputs a rule may need beyond the error text."""

    load_dependencies: Callable[[], Mapping[str, str] | None] = lambda: None
    build_command: str = DEFAULT_BUILD_COMMAND
    memory_limit_mb: int = 4096


@dataclass(frozen=True)
class Trigger:
    """Case-insensitive trigger: any phrase, or tokens appearing in order on one line.

    Ordered tokens are checked one line at a time from the first occurrence of
    the leading token, so a long log line is scanned in linear time.
    """

    phrases: re.Pattern[str] | None
    sequences: tuple[tuple[re.Pattern[str], ...], ...] = ()

    def search(self, text: str) -> bool:
        if self.phrases is not None and self.phrases.search(text):
            return True
        return any(_tokens_in_order(text, tokens) for tokens in self.sequences)


def _tokens_in_order(text: str, tokens: tuple[re.Pattern[str], ...]) -> bool:
    first, rest = tokens[0], tokens[1:]
    pos = 0
    while True:
        match = first.search(text, pos)
        if match is None:
            return False
        line_end = text.find("\n", match.end())
        if line_end == -1:
            line_end = len(text)
        cursor = match.end()
        for token in rest:
            found = token.search(text, cursor, line_end)
            if found is None:
                break
            cursor = found.end()
        else:
            return True
        # The leftmost occurrence ends earliest, so this line cannot match
        pos = line_end + 1


RuleOutput = tuple[list[Issue], list[SuggestedFix]]


@dataclass(frozen=True)
class PatternRule:
    """A build failure signature."""

    name: str
    trigger: Trigger
    build: Callable[[str, RuleContext], RuleOutput]

    def matches(self, text: str) -> bool:
        return self.trigger.search(text)

    def apply(self, text: str, context: RuleContext) -> RuleOutput:
        """Return this rule's issues and fixes, or nothing if it does not match."""
        if not self.matches(text):
            return [], []
        return self.build(text, context)


def _trigger(*phrases: str, ordered: tuple[tuple[str, ...], ...] = ()) -> Trigger:
    return Trigger(
        phrases=re.compile("|".join(phrases), re.IGNORECASE) if phrases else None,
        sequences=tuple(
            tuple(re.compile(re.escape(token), re.IGNORECASE) for token in tokens)
            for tokens in ordered
        ),
    )


def extract_missing_package(text: str) -> str | None:
    """Extract the name of the module a build failed to resolve.

    Args:
        text: Raw build output

    Returns:
        The module name as written in the output, or None
    """
    for pattern in (CANNOT_FIND_MODULE, CANNOT_RESOLVE):
        match = pattern.search(text)
        if match:
            return match.group(1)

    if REACT_SCRIPTS_NOT_FOUND.search(text):
        return "react-scripts"

    for pattern in (COMMAND_NOT_FOUND, NPM_MISSING):
        match = pattern.search(text)
        if match:
            return match.group(1)

    return None


def normalize_package_name(name: str) -> str | None:
    """Turn an extracted module name into an installable package name.

    Scoped or nested names keep their first two path segments. Relative
    and absolute paths point at project files, not packages.

    Returns:
        The canonical install target, or None if the name is not a package
    """
    name = name.strip().strip("'\"").strip()
    if not name or name.startswith((".", "/")):
        return None

    if "/" in name:
        segments = name.split("/")
        name = f"{segments[0]}/{segments[1]}"

    return PACKAGE_MAPPINGS.get(name, name)


def is_dev_dependency(package: str) -> bool:
    """Return True if ``package`` conventionally belongs in devDependencies."""
    return any(marker in package for marker in DEV_DEPENDENCY_MARKERS)


def _missing_package(text: str, context: RuleContext) -> RuleOutput:
    raw_name = extract_missing_package(text)
    package = normalize_package_name(raw_name) if raw_name else None

    issue = MissingPackageIssue(
        kind=IssueKind.MISSING_PACKAGE,
        severity=Severity.HIGH,
        message=f"Missing package or module: {raw_name or 'unknown'}",
        package=package,
    )

    fix: SuggestedFix
    if package:
        fix = InstallPackageFix(package=package, dev=is_dev_dependency(package))
    else:
        fix = InstallDependenciesFix(description="Install missing dependencies")

    return [issue], [fix]


def _missing_node_modules(text: str, context: RuleContext) -> RuleOutput:
    issue = Issue(
        kind=IssueKind.MISSING_NODE_MODULES,
        severity=Severity.HIGH,
        message="node_modules directory not found or incomplete",
    )
    return [issue], [InstallDependenciesFix()]


def _missing_build_script(text: str, context: RuleContext) -> RuleOutput:
    issue = Issue(
        kind=IssueKind.MISSING_BUILD_SCRIPT,
        severity=Severity.HIGH,
        message="Build script not found in package.json",
    )

    dependencies = context.load_dependencies() or {}
    for dependency, framework, command in BUILD_SCRIPTS:
        if dependency in dependencies:
            return [issue], [AddBuildScriptFix(command=command, framework=framework)]

    return [issue], []


def _syntax_error(text: str, context: RuleContext) -> RuleOutput:
    match = SYNTAX_MESSAGE.search(text)
    issue = Issue(
        kind=IssueKind.SYNTAX_ERROR,
        severity=Severity.HIGH,
        message=match.group(0).strip() if match else "Syntax error in source code",
    )
    fix = ManualFix(kind=FixKind.FIX_SYNTAX, description="Fix syntax errors in source code")
    return [issue], [fix]


def _typescript_error(text: str, context: RuleContext) -> RuleOutput:
    issue = Issue(
        kind=IssueKind.TYPESCRIPT_ERROR,
        severity=Severity.MEDIUM,
        message="TypeScript compilation errors",
    )
    return [issue], [ManualFix(kind=FixKind.FIX_TYPESCRIPT, description="Fix TypeScript errors")]


def _permission_error(text: str, context: RuleContext) -> RuleOutput:
    issue = Issue(
        kind=IssueKind.PERMISSION_ERROR,
        severity=Severity.HIGH,
        message="Permission denied error",
    )
    return [issue], [ManualFix(kind=FixKind.FIX_PERMISSIONS, description="Fix file permissions")]


def _memory_error(text: str, context: RuleContext) -> RuleOutput:
    issue = Issue(
        kind=IssueKind.MEMORY_ERROR,
        severity=Severity.HIGH,
        message="JavaScript heap out of memory",
    )
    fix = IncreaseMemoryFix(
        build_command=context.build_command,
        memory_limit_mb=context.memory_limit_mb,
    )
    return [issue], [fix]


def _port_in_use(text: str, context: RuleContext) -> RuleOutput:
    issue = Issue(
        kind=IssueKind.PORT_IN_USE,
        severity=Severity.MEDIUM,
        message="Port already in use",
    )
    fix = ManualFix(kind=FixKind.CHANGE_PORT, description="Change port or stop conflicting process")
    return [issue], [fix]


RULES: tuple[PatternRule, ...] = (
    PatternRule(
        name="missing_package",
        trigger=_trigger(
            "cannot find module",
            "module not found",
            "cannot resolve",
            ordered=(("missing", "package"), ("react-scripts", "not found")),
        ),
        build=_missing_package,
    ),
    PatternRule(
        name="missing_node_modules",
        trigger=_trigger(
            ordered=(("ENOENT", "node_modules"), ("cannot find module", "node_modules")),
        ),
        build=_missing_node_modules,
    ),
    PatternRule(
        name="missing_build_script",
        trigger=_trigger(r"missing script"),
        build=_missing_build_script,
    ),
    PatternRule(
        name="syntax_error",
        trigger=_trigger(r"SyntaxError", r"ParseError", r"Unexpected token"),
        build=_syntax_error,
    ),
    PatternRule(
        name="typescript_error",
        trigger=_trigger(r"Type error", r"TS\d+:"),
        build=_typescript_error,
    ),
    PatternRule(
        name="permission_error",
        trigger=_trigger(r"EACCES", r"permission denied"),
        build=_permission_error,
    ),
    PatternRule(
        name="memory_error",
        trigger=_trigger(r"heap out of memory", ordered=(("FATAL ERROR", "heap"),)),
        build=_memory_error,
    ),
    PatternRule(
        name="port_in_use",
        trigger=_trigger(r"EADDRINUSE", ordered=(("port", "already in use"),)),
        build=_port_in_use,
    ),
)
