"""Tests for build command string helpers."""

import pytest

from deployease.utils.commands import heap_directive, split_command, with_memory_limit


class TestSplitCommand:
    """Test splitting command strings without a shell."""

    def test_plain_command(self) -> None:
        """Test a command without assignments."""
        assert split_command("npm run build") == ({}, ["npm", "run", "build"])

    def test_leading_assignments(self) -> None:
        """Test NAME=value prefixes become environment variables."""
        env, argv = split_command("CI=true NODE_ENV=production npm run build")

        assert env == {"CI": "true", "NODE_ENV": "production"}
        assert argv == ["npm", "run", "build"]

    def test_quoted_assignment(self) -> None:
        """Test quoted values keep their spaces."""
        env, argv = split_command(
            "NODE_OPTIONS='--max_old_space_size=4096 --trace-warnings' npm run build"
        )

        assert env == {"NODE_OPTIONS": "--max_old_space_size=4096 --trace-warnings"}
        assert argv == ["npm", "run", "build"]

    def test_assignment_after_executable_is_an_argument(self) -> None:
        """Test only leading assignments are lifted."""
        assert split_command("vite build --mode=staging") == (
            {},
            ["vite", "build", "--mode=staging"],
        )

    def test_shell_metacharacters_are_literal(self) -> None:
        """Test operators are passed as plain arguments, never interpreted."""
        _, argv = split_command("npm run build && rm -rf /")
        assert argv == ["npm", "run", "build", "&&", "rm", "-rf", "/"]

    @pytest.mark.parametrize("command", ["", "   ", "FOO=bar", "A=1 B=2"])
    def test_no_executable(self, command: str) -> None:
        """Test commands without an executable are rejected."""
        with pytest.raises(ValueError, match="No executable"):
            split_command(command)

    def test_unbalanced_quotes(self) -> None:
        """Test malformed quoting raises ValueError."""
        with pytest.raises(ValueError):
            split_command("npm run 'build")


class TestWithMemoryLimit:
    """Test heap limit rewriting."""

    def test_heap_directive(self) -> None:
        """Test the Node.js flag format."""
        assert heap_directive(4096) == "--max_old_space_size=4096"

    def test_prepends_node_options(self) -> None:
        """Test a plain command gains a NODE_OPTIONS prefix."""
        assert (
            with_memory_limit("npm run build")
            == "NODE_OPTIONS=--max_old_space_size=4096 npm run build"
        )

    def test_custom_limit(self) -> None:
        """Test the configured heap size is used."""
        assert with_memory_limit("yarn build", 8192) == (
            "NODE_OPTIONS=--max_old_space_size=8192 yarn build"
        )

    def test_replaces_existing_flag(self) -> None:
        """Test an existing heap flag is replaced, not duplicated."""
        command = with_memory_limit("NODE_OPTIONS=--max-old-space-size=2048 npm run build", 4096)

        assert command == "NODE_OPTIONS=--max_old_space_size=4096 npm run build"
        assert command.count("max") == 1

    def test_extends_existing_options(self) -> None:
        """Test other NODE_OPTIONS flags are kept."""
        command = with_memory_limit("NODE_OPTIONS=--trace-warnings CI=1 npm run build")

        env, argv = split_command(command)
        assert env == {
            "NODE_OPTIONS": "--trace-warnings --max_old_space_size=4096",
            "CI": "1",
        }
        assert argv == ["npm", "run", "build"]
        assert command.startswith("NODE_OPTIONS=")

    def test_idempotent(self) -> None:
        """Test rewriting twice gives the same command."""
        once = with_memory_limit("npm run build")
        assert with_memory_limit(once) == once

    def test_unparseable_command(self) -> None:
        """Test a command that cannot be split is still prefixed."""
        assert with_memory_limit("npm run 'build") == (
            "NODE_OPTIONS=--max_old_space_size=4096 npm run 'build"
        )
