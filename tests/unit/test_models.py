"""Tests for analysis, build and project data models."""

from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest

from deployease.models.analysis import (
    UNKNOWN_ERROR_SUMMARY,
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
    fix_as_dict,
)
from deployease.models.build import (
    Attempt,
    BuildSessionResult,
    BuildStatus,
    CommandResult,
    ErrorReport,
    FixOutcome,
)
from deployease.models.check import CheckCategory, CheckReport, Finding
from deployease.models.project import ProjectContext


class TestFixes:
    """Test fix variants."""

    def test_install_package(self) -> None:
        """Test package install action and description."""
        fix = InstallPackageFix(package="@types/react", dev=True)

        assert fix.kind == FixKind.INSTALL_PACKAGE
        assert fix.auto_fixable is True
        assert fix.action == "npm install @types/react --save-dev"
        assert fix.description == "Install missing package: @types/react"

    def test_install_dependencies(self) -> None:
        """Test the full install fix."""
        fix = InstallDependenciesFix()
        assert fix.action == "npm install"
        assert fix.description == "Install all dependencies"

    def test_add_build_script(self) -> None:
        """Test the build script fix carries its fragment."""
        fix = AddBuildScriptFix(command="vite build", framework="Vite")

        assert fix.action == "update_package_json"
        assert fix.script == {"build": "vite build"}
        assert fix.description == "Add build script for Vite app"

    def test_increase_memory(self) -> None:
        """Test the memory fix action is the rewritten build command."""
        fix = IncreaseMemoryFix(build_command="npm run build", memory_limit_mb=2048)

        assert fix.kind == FixKind.INCREASE_MEMORY
        assert fix.action == "NODE_OPTIONS=--max_old_space_size=2048 npm run build"

    def test_manual_fix(self) -> None:
        """Test manual fixes are never auto-fixable."""
        fix = ManualFix(kind=FixKind.CHANGE_PORT, description="Change port")

        assert fix.auto_fixable is False
        assert fix.action == "manual_fix"

    def test_manual_fix_rejects_automatic_kind(self) -> None:
        """Test a manual fix cannot claim an automatic kind."""
        with pytest.raises(ValueError, match="not a manual fix kind"):
            ManualFix(kind=FixKind.INSTALL_PACKAGE, description="nope")

    def test_fixes_are_frozen(self) -> None:
        """Test fixes are immutable."""
        fix = InstallPackageFix(package="left-pad")
        with pytest.raises(FrozenInstanceError):
            fix.package = "right-pad"  # type: ignore[misc]

    def test_fix_as_dict(self) -> None:
        """Test fix serialisation includes variant fields."""
        assert fix_as_dict(InstallPackageFix(package="vite", dev=True)) == {
            "kind": "install_package",
            "description": "Install missing package: vite",
            "action": "npm install vite --save-dev",
            "auto_fixable": True,
            "package": "vite",
            "dev": True,
        }
        script_fix = AddBuildScriptFix(command="vite build", framework="Vite")
        assert fix_as_dict(script_fix)["script"] == {"build": "vite build"}


class TestAnalysisResult:
    """Test AnalysisResult behaviour."""

    def test_empty(self) -> None:
        """Test the empty result."""
        result = AnalysisResult()

        assert result.is_empty
        assert result.can_auto_fix is False
        assert result.summary == UNKNOWN_ERROR_SUMMARY
        assert result.as_dict() == {"issues": [], "suggested_fixes": [], "can_auto_fix": False}

    def test_auto_fixable_fixes_keep_order(self) -> None:
        """Test manual fixes are filtered out in order."""
        manual = ManualFix(kind=FixKind.FIX_SYNTAX, description="Fix syntax")
        install = InstallDependenciesFix()
        memory = IncreaseMemoryFix()
        result = AnalysisResult(
            issues=(Issue(IssueKind.SYNTAX_ERROR, Severity.HIGH, "SyntaxError: x"),),
            suggested_fixes=(install, manual, memory),
        )

        assert result.auto_fixable_fixes == (install, memory)
        assert result.can_auto_fix is True
        assert result.summary == "SyntaxError: x"

    def test_as_dict_includes_package(self) -> None:
        """Test only missing package issues carry a package field."""
        result = AnalysisResult(
            issues=(
                MissingPackageIssue(IssueKind.MISSING_PACKAGE, Severity.HIGH, "m", package="vite"),
                Issue(IssueKind.PORT_IN_USE, Severity.MEDIUM, "Port already in use"),
            )
        )

        issues = result.as_dict()["issues"]
        assert issues[0]["package"] == "vite"
        assert "package" not in issues[1]


class TestErrorReport:
    """Test ErrorReport construction."""

    def test_prefers_stderr(self) -> None:
        """Test stderr wins over stdout."""
        report = ErrorReport.from_output(stdout="out", stderr="err")
        assert report.text == "err"

    def test_falls_back_to_stdout(self) -> None:
        """Test blank stderr falls back to stdout."""
        report = ErrorReport.from_output(stdout="Failed to compile.", stderr="  \n")
        assert report.text == "Failed to compile."

    def test_falls_back_to_error(self) -> None:
        """Test an exception message is used when there is no output."""
        report = ErrorReport.from_output(error=TimeoutError("timed out"))
        assert report.text == "timed out"

    def test_summary_is_truncated(self) -> None:
        """Test the summary keeps the first 200 characters."""
        report = ErrorReport.from_output(stderr="x" * 500)
        assert report.summary == "x" * 200

    def test_empty(self) -> None:
        """Test a report with nothing at all."""
        report = ErrorReport.from_output()
        assert report.text == ""
        assert report.summary is None

    def test_from_result(self) -> None:
        """Test construction from a CommandResult."""
        result = CommandResult(stdout="", stderr="boom", return_code=1, command=["npm"])
        assert ErrorReport.from_result(result).text == "boom"


class TestBuildModels:
    """Test attempt and session models."""

    def test_attempt_retry_budget(self) -> None:
        """Test only one retry is allowed."""
        attempt = Attempt(build_command="npm run build")

        assert not attempt.is_retry
        assert attempt.has_retry_left

        attempt.number += 1
        assert attempt.is_retry
        assert not attempt.has_retry_left

    def test_session_fixes_applied(self) -> None:
        """Test counting successful fix outcomes."""
        fix = InstallDependenciesFix()
        result = BuildSessionResult(
            status=BuildStatus.SUCCEEDED,
            attempts=2,
            build_command="npm run build",
            fix_outcomes=(
                FixOutcome(fix=fix, success=True),
                FixOutcome(fix=fix, success=False, error="exit 1"),
            ),
        )

        assert result.succeeded
        assert result.fixes_applied == 1


class TestCheckReport:
    """Test pre-deploy check results."""

    def test_warnings_do_not_block(self) -> None:
        """Test a report with only warnings passes but is not clean."""
        finding = Finding(CheckCategory.GIT, Severity.MEDIUM, ".gitignore file not found", "Add")
        report = CheckReport(warnings=(finding,))

        assert report.passed
        assert not report.is_clean

    def test_as_dict(self) -> None:
        """Test the JSON shape of a failing report."""
        finding = Finding(
            CheckCategory.PARSE,
            Severity.HIGH,
            "Invalid package.json file",
            "Fix JSON syntax errors in package.json",
            path="package.json",
        )

        data = CheckReport(issues=(finding,)).as_dict()

        assert data["passed"] is False
        assert data["issues"] == [
            {
                "category": "parse",
                "severity": "high",
                "message": "Invalid package.json file",
                "solution": "Fix JSON syntax errors in package.json",
                "path": "package.json",
            }
        ]
        assert data["warnings"] == []
        assert data["suggestions"] == []


class TestProjectContext:
    """Test ProjectContext properties."""

    def test_build_command(self) -> None:
        """Test the build command follows the build script."""
        assert ProjectContext(root=Path("."), scripts={"build": "vite build"}).build_command == (
            "npm run build"
        )
        assert ProjectContext(root=Path(".")).build_command is None

    def test_static_site(self) -> None:
        """Test a plain HTML project is static."""
        assert ProjectContext(root=Path("."), has_index_html=True).is_static
        built = ProjectContext(root=Path("."), scripts={"build": "x"}, has_index_html=True)
        assert not built.is_static

    def test_pages_url(self) -> None:
        """Test the GitHub Pages URL needs owner and repo."""
        assert ProjectContext(root=Path("."), owner="octocat", repo="site").pages_url == (
            "https://octocat.github.io/site/"
        )
        assert ProjectContext(root=Path("."), owner="octocat").pages_url is None

    def test_has_node_modules(self, tmp_path: Path) -> None:
        """Test node_modules detection looks at the project root."""
        context = ProjectContext(root=tmp_path)
        assert not context.has_node_modules

        (tmp_path / "node_modules").mkdir()
        assert context.has_node_modules
