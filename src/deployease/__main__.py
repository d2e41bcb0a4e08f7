"""Command line entry point for DeployEase.

This module provides the main entry point for the DeployEase CLI.
It handles:
- Configuration loading
- Logging setup with secret sanitization
- Collaborator wiring for the build session
- The analyze, check, ask and chat commands
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import uuid
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
import yaml

from deployease._version import __version__

if TYPE_CHECKING:
    from deployease.config.schema import DeployEaseConfig
    from deployease.core.assistant import DeveloperAssistant

log = structlog.get_logger()

DEFAULT_CONFIG_NAME = "deployease.yaml"


def setup_logging(
    debug: bool = False,
    log_format: str = "console",
    file_path: Path | None = None,
    file_enabled: bool = False,
) -> None:
    """Configure structured logging with secret sanitization.

    Args:
        debug: Enable debug logging if True
        log_format: Output format ("json" or "console")
        file_path: Path to log file (if file logging enabled)
        file_enabled: Whether to enable file logging
    """
    from deployease.utils.logging import LogFormat, LogLevel, configure_logging

    level = LogLevel.DEBUG if debug else LogLevel.INFO
    fmt = LogFormat(log_format.lower()) if isinstance(log_format, str) else log_format

    configure_logging(
        level=level,
        log_format=fmt,
        file_path=file_path,
        file_enabled=file_enabled,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="deployease",
        description="DeployEase - diagnose and auto-fix failing frontend builds",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help=f"Path to configuration file (default: {DEFAULT_CONFIG_NAME} in the project root)",
    )

    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--format",
        choices=["json", "console"],
        default="console",
        help="Log output format (default: console)",
    )

    parser.add_argument(
        "-C",
        "--cwd",
        type=Path,
        default=Path("."),
        help="Project root (default: current directory)",
    )

    subparsers = parser.add_subparsers(dest="command_name", required=True)

    build = subparsers.add_parser("build", help="Run the build, fixing known errors once")
    build.add_argument("--command", dest="build_command", help="Build command to run")
    build.add_argument("-y", "--yes", action="store_true", help="Apply fixes without asking")
    build.add_argument(
        "--no-auto-fix",
        dest="auto_fix",
        action="store_false",
        help="Only report issues, never apply fixes",
    )

    analyze = subparsers.add_parser("analyze", help="Classify a build log")
    analyze.add_argument(
        "file",
        nargs="?",
        help="Log file to analyze, '-' for stdin (default: last stored build error)",
    )
    analyze.add_argument("--json", action="store_true", help="Print the analysis as JSON")

    ask = subparsers.add_parser("ask", help="Ask the assistant a single question")
    ask.add_argument("question", nargs="+", help="Question text")

    check = subparsers.add_parser("check", help="Check the project for problems before deploying")
    check.add_argument("--json", action="store_true", help="Print the report as JSON")

    subparsers.add_parser("chat", help="Start an interactive assistant session")

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed argument namespace
    """
    return build_parser().parse_args(argv)


def load_settings(args: argparse.Namespace) -> DeployEaseConfig:
    """Load configuration for the selected project root.

    An explicit --config must exist; the default file is optional.

    Raises:
        FileNotFoundError: If an explicit config file is missing
        ValueError: If the config is invalid
    """
    from deployease.config.loader import load_config, load_config_or_default

    if args.config is not None:
        log.info("loading_configuration", path=str(args.config))
        return load_config(args.config)
    return load_config_or_default(args.cwd / DEFAULT_CONFIG_NAME)


async def run_build(args: argparse.Namespace, config: DeployEaseConfig) -> int:
    """Run one build session.

    Returns:
        Exit code (0 when the build succeeded)
    """
    from deployease.adapters import (
        ConsolePrompter,
        FileErrorLog,
        NpmInstaller,
        PackageJsonManifest,
        SubprocessRunner,
    )
    from deployease.core import BuildOrchestrator, ErrorClassifier, FixApplicator, detect_project
    from deployease.core.reporting import render_session
    from deployease.utils.commands import DEFAULT_BUILD_COMMAND
    from deployease.utils.logging import bind_context, clear_context

    cwd: Path = args.cwd
    manifest = PackageJsonManifest(cwd)
    context = detect_project(cwd, manifest, config.deploy)
    build_command = args.build_command or config.build.command or context.build_command

    runner = SubprocessRunner(
        timeout=config.build.timeout,
        max_output_bytes=config.build.max_output_bytes,
    )
    classifier = ErrorClassifier(
        manifest=manifest,
        build_command=build_command or DEFAULT_BUILD_COMMAND,
        memory_limit_mb=config.auto_fix.memory_limit_mb,
    )
    orchestrator = BuildOrchestrator(
        runner=runner,
        classifier=classifier,
        applicator=FixApplicator(NpmInstaller(runner, cwd), manifest),
        prompter=ConsolePrompter(),
        error_log=FileErrorLog(cwd / config.build.error_log),
        cwd=cwd,
        build_command=build_command,
        auto_fix=config.auto_fix.enabled and args.auto_fix,
        assume_yes=config.auto_fix.assume_yes or args.yes,
    )

    bind_context(session_id=uuid.uuid4().hex[:12], cwd=str(cwd))
    try:
        log.info(
            "build_session_started",
            framework=context.framework,
            command=build_command,
        )
        result = await orchestrator.run()
    finally:
        clear_context()

    print(render_session(result))
    return 0 if result.succeeded else 1


def read_log_source(args: argparse.Namespace, config: DeployEaseConfig) -> str | None:
    """Return the text to analyze, or None when nothing is available."""
    from deployease.adapters import FileErrorLog

    if args.file == "-":
        return sys.stdin.read()
    if args.file:
        return Path(args.file).read_text(encoding="utf-8", errors="replace")
    return FileErrorLog(args.cwd / config.build.error_log).load()


def run_analyze(args: argparse.Namespace, config: DeployEaseConfig) -> int:
    """Classify a log and print the analysis."""
    from deployease.adapters import PackageJsonManifest
    from deployease.core import ErrorClassifier
    from deployease.core.reporting import render_analysis
    from deployease.utils.commands import DEFAULT_BUILD_COMMAND

    try:
        text = read_log_source(args, config)
    except OSError as e:
        log.error("log_unreadable", path=args.file, error=str(e))
        return 1

    if text is None:
        print("No stored build error found. Run `deployease build` first or pass a log file.")
        return 1

    classifier = ErrorClassifier(
        manifest=PackageJsonManifest(args.cwd),
        build_command=config.build.command or DEFAULT_BUILD_COMMAND,
        memory_limit_mb=config.auto_fix.memory_limit_mb,
    )
    analysis = classifier.analyze(text)

    if args.json:
        print(json.dumps(analysis.as_dict(), indent=2))
    else:
        print(render_analysis(analysis))
    return 0


def run_check(args: argparse.Namespace, config: DeployEaseConfig) -> int:
    """Run the pre-deploy check.

    Returns:
        Exit code (1 when critical issues were found)
    """
    from deployease.adapters import PackageJsonManifest
    from deployease.core import ProjectChecker, detect_project
    from deployease.core.reporting import render_check

    manifest = PackageJsonManifest(args.cwd)
    context = detect_project(args.cwd, manifest, config.deploy)
    report = ProjectChecker(context, manifest).check()

    if args.json:
        print(json.dumps(report.as_dict(), indent=2))
    else:
        print(render_check(report))
    return 0 if report.passed else 1


def create_assistant(args: argparse.Namespace, config: DeployEaseConfig) -> DeveloperAssistant:
    """Wire a DeveloperAssistant for the project root."""
    from deployease.adapters import FileErrorLog, PackageJsonManifest
    from deployease.core import DeveloperAssistant, ErrorClassifier, detect_project
    from deployease.utils.commands import DEFAULT_BUILD_COMMAND

    manifest = PackageJsonManifest(args.cwd)
    context = detect_project(args.cwd, manifest, config.deploy)
    classifier = ErrorClassifier(
        manifest=manifest,
        build_command=config.build.command or context.build_command or DEFAULT_BUILD_COMMAND,
        memory_limit_mb=config.auto_fix.memory_limit_mb,
    )
    return DeveloperAssistant(context, classifier, FileErrorLog(args.cwd / config.build.error_log))


def run_ask(args: argparse.Namespace, config: DeployEaseConfig) -> int:
    assistant = create_assistant(args, config)
    print(assistant.answer(" ".join(args.question)))
    return 0


def run_chat(args: argparse.Namespace, config: DeployEaseConfig) -> int:
    """Interactive question loop; ends on exit, quit or end of input."""
    from deployease.core.assistant import EXAMPLE_QUESTIONS

    assistant = create_assistant(args, config)
    print("DeployEase assistant. Type 'help' for examples, 'exit' to quit.")

    while True:
        try:
            question = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break

        if not question:
            continue
        if question.lower() in ("exit", "quit"):
            break
        if question.lower() == "help":
            print("\n".join(f"  - {example}" for example in EXAMPLE_QUESTIONS))
            continue

        print(assistant.answer(question))
        print()

    return 0


def run(args: argparse.Namespace) -> int:
    """Dispatch a parsed command line.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    try:
        config = load_settings(args)
    except FileNotFoundError as e:
        log.error("configuration_file_not_found", path=str(args.config), error=str(e))
        return 1
    except (ValueError, yaml.YAMLError) as e:
        log.error("configuration_invalid", error=str(e))
        return 1

    # Reconfigure logging from config file settings unless --debug asked for more
    if not args.debug:
        from deployease.utils.logging import configure_logging

        configure_logging(
            level=config.logging.level,
            log_format=config.logging.format if args.format == "console" else args.format,
            file_path=config.logging.file.path if config.logging.file.enabled else None,
            file_enabled=config.logging.file.enabled,
        )

    if args.command_name == "build":
        return asyncio.run(run_build(args, config))
    if args.command_name == "analyze":
        return run_analyze(args, config)
    if args.command_name == "ask":
        return run_ask(args, config)
    if args.command_name == "check":
        return run_check(args, config)
    return run_chat(args, config)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    # Setup logging with CLI options
    setup_logging(
        debug=args.debug,
        log_format=args.format,
    )

    try:
        return run(args)
    except KeyboardInterrupt:
        log.info("interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
