"""Tests for the command line entry point."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from deployease.__main__ import main, parse_args
from deployease.models.build import BuildSessionResult, BuildStatus


class TestParseArgs:
    """Test argument parsing."""

    def test_build_defaults(self) -> None:
        """Test build defaults to asking before fixing."""
        args = parse_args(["build"])

        assert args.command_name == "build"
        assert args.build_command is None
        assert args.yes is False
        assert args.auto_fix is True
        assert args.cwd == Path(".")
        assert args.config is None

    def test_build_options(self) -> None:
        """Test build flags."""
        args = parse_args(["-C", "site", "build", "--command", "yarn build", "-y", "--no-auto-fix"])

        assert args.cwd == Path("site")
        assert args.build_command == "yarn build"
        assert args.yes is True
        assert args.auto_fix is False

    def test_ask_joins_words(self) -> None:
        """Test the question is collected as words."""
        assert parse_args(["ask", "why", "did", "it", "fail"]).question == [
            "why",
            "did",
            "it",
            "fail",
        ]

    def test_command_required(self) -> None:
        """Test a subcommand must be given."""
        with pytest.raises(SystemExit):
            parse_args([])


class TestAnalyzeCommand:
    """Test the analyze subcommand."""

    def test_analyze_file_json(
        self,
        make_project: Callable[..., Path],
        build_log: Callable[[str], str],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Test classifying a log file with JSON output."""
        root = make_project(files={"build.log": build_log("vite_missing")})

        exit_code = main(["-C", str(root), "analyze", str(root / "build.log"), "--json"])

        assert exit_code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["can_auto_fix"] is True
        assert data["issues"][0]["kind"] == "missing_package"
        assert data["suggested_fixes"][0]["action"] == "npm install vite --save-dev"

    def test_analyze_stored_log(
        self,
        make_project: Callable[..., Path],
        build_log: Callable[[str], str],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Test the stored build error is analyzed by default."""
        root = make_project(files={".deployease-build-error.log": build_log("heap")})

        assert main(["-C", str(root), "analyze"]) == 0
        assert "JavaScript heap out of memory" in capsys.readouterr().out

    def test_analyze_without_log(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test a helpful message when nothing was stored."""
        assert main(["-C", str(tmp_path), "analyze"]) == 1
        assert "No stored build error found" in capsys.readouterr().out

    def test_analyze_missing_file(self, tmp_path: Path) -> None:
        """Test an unreadable log file exits with an error."""
        assert main(["-C", str(tmp_path), "analyze", str(tmp_path / "nope.log")]) == 1


class TestCheckCommand:
    """Test the check subcommand."""

    def test_clean_project(
        self, make_project: Callable[..., Path], capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test a tidy project passes with exit code 0."""
        root = make_project(
            package={"name": "site", "scripts": {"build": "vite build"}},
            files={".gitignore": "node_modules/\n.env\ndist/\nbuild/\n"},
        )

        assert main(["-C", str(root), "check"]) == 0
        assert "looks safe to deploy" in capsys.readouterr().out

    def test_critical_issue_fails(
        self, make_project: Callable[..., Path], capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test a committed .env file fails the check with JSON details."""
        root = make_project(
            package={"name": "site", "scripts": {"build": "vite build"}},
            files={".env": "API_URL=https://api.example.com\n"},
        )

        assert main(["-C", str(root), "check", "--json"]) == 1
        data = json.loads(capsys.readouterr().out)
        assert data["passed"] is False
        assert data["issues"][0]["path"] == ".env"
        assert data["issues"][0]["severity"] == "critical"


class TestConfiguration:
    """Test configuration errors."""

    def test_missing_explicit_config(self, tmp_path: Path) -> None:
        """Test a missing --config file exits with an error."""
        assert main(["-c", str(tmp_path / "nope.yaml"), "-C", str(tmp_path), "analyze"]) == 1

    def test_invalid_config(self, make_project: Callable[..., Path]) -> None:
        """Test an invalid default config file exits with an error."""
        root = make_project(files={"deployease.yaml": "build:\n  timeout: 5\n"})
        assert main(["-C", str(root), "analyze"]) == 1

    def test_malformed_yaml(self, make_project: Callable[..., Path]) -> None:
        """Test a YAML syntax error exits with an error."""
        root = make_project(files={"deployease.yaml": "build: [unclosed\n"})
        assert main(["-C", str(root), "analyze"]) == 1


class TestAssistantCommands:
    """Test the ask and chat subcommands."""

    def test_ask(
        self, make_project: Callable[..., Path], capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test a single question is answered."""
        root = make_project(package={"dependencies": {"vite": "^5.0.0"}})

        assert main(["-C", str(root), "ask", "Why", "did", "my", "build", "fail?"]) == 0
        assert "## Build failure analysis" in capsys.readouterr().out

    def test_chat(
        self,
        make_project: Callable[..., Path],
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Test the chat loop answers until exit."""
        root = make_project(package={"dependencies": {"vite": "^5.0.0"}})
        answers = iter(["", "help", "I have a deployment problem", "exit", "never read"])
        monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))

        assert main(["-C", str(root), "chat"]) == 0

        out = capsys.readouterr().out
        assert "- Why did my build fail?" in out
        assert "## Deployment issue analysis" in out
        assert next(answers) == "never read"

    def test_chat_end_of_input(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test end of input ends the session cleanly."""

        def closed(prompt: str = "") -> str:
            raise EOFError

        monkeypatch.setattr("builtins.input", closed)
        assert main(["-C", str(tmp_path), "chat"]) == 0


class TestBuildCommand:
    """Test the build subcommand wiring."""

    @pytest.fixture
    def orchestrator_cls(self) -> Iterator[MagicMock]:
        """Patch BuildOrchestrator with a successful double."""
        orchestrator = MagicMock()
        orchestrator.run = AsyncMock(
            return_value=BuildSessionResult(
                status=BuildStatus.SUCCEEDED, attempts=1, build_command="npm run build"
            )
        )
        with patch("deployease.core.BuildOrchestrator", return_value=orchestrator) as cls:
            yield cls

    def test_build_success(
        self,
        make_project: Callable[..., Path],
        orchestrator_cls: MagicMock,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Test a successful session exits zero."""
        root = make_project(package={"scripts": {"build": "vite build"}})

        assert main(["-C", str(root), "build"]) == 0
        assert "Build succeeded." in capsys.readouterr().out

        kwargs = orchestrator_cls.call_args.kwargs
        assert kwargs["build_command"] == "npm run build"
        assert kwargs["auto_fix"] is True
        assert kwargs["assume_yes"] is False
        assert kwargs["cwd"] == root

    def test_build_flags(
        self, make_project: Callable[..., Path], orchestrator_cls: MagicMock
    ) -> None:
        """Test command line flags reach the orchestrator."""
        root = make_project(package={"scripts": {"build": "vite build"}})

        main(["-C", str(root), "build", "--command", "yarn build", "-y", "--no-auto-fix"])

        kwargs = orchestrator_cls.call_args.kwargs
        assert kwargs["build_command"] == "yarn build"
        assert kwargs["auto_fix"] is False
        assert kwargs["assume_yes"] is True

    def test_build_failure(
        self, make_project: Callable[..., Path], orchestrator_cls: MagicMock
    ) -> None:
        """Test a failed session exits non-zero."""
        orchestrator_cls.return_value.run.return_value = BuildSessionResult(
            status=BuildStatus.FAILED, attempts=2, build_command="npm run build"
        )
        root = make_project(package={"scripts": {"build": "vite build"}})

        assert main(["-C", str(root), "build"]) == 1
