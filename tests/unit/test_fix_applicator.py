"""Tests for FixApplicator functionality."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from deployease.core.fix_applicator import FixApplicator
from deployease.models.analysis import (
    AddBuildScriptFix,
    FixKind,
    IncreaseMemoryFix,
    InstallDependenciesFix,
    InstallPackageFix,
    ManualFix,
)
from deployease.utils.errors import CommandNotFoundError, ManifestError


@pytest.fixture
def installer() -> AsyncMock:
    """Create a package installer that always succeeds."""
    mock = AsyncMock()
    mock.install.return_value = True
    return mock


class TestInstallFixes:
    """Test install_package and install_dependencies fixes."""

    async def test_install_package(self, installer: AsyncMock, react_manifest: Any) -> None:
        """Test the installer receives the fix action."""
        applicator = FixApplicator(installer, react_manifest)

        outcome = await applicator.apply(InstallPackageFix(package="vite", dev=True))

        assert outcome.success is True
        assert outcome.error is None
        installer.install.assert_awaited_once_with("npm install vite --save-dev")

    async def test_install_dependencies(self, installer: AsyncMock, react_manifest: Any) -> None:
        """Test a full install runs npm install."""
        applicator = FixApplicator(installer, react_manifest)

        outcome = await applicator.apply(InstallDependenciesFix())

        assert outcome.success is True
        installer.install.assert_awaited_once_with("npm install")

    async def test_install_nonzero_exit(self, installer: AsyncMock, react_manifest: Any) -> None:
        """Test a failed install is reported, not raised."""
        installer.install.return_value = False
        applicator = FixApplicator(installer, react_manifest)

        outcome = await applicator.apply(InstallPackageFix(package="left-pad"))

        assert outcome.success is False
        assert outcome.error == "Install failed: npm install left-pad"

    async def test_install_raises(self, installer: AsyncMock, react_manifest: Any) -> None:
        """Test installer exceptions are contained in the outcome."""
        installer.install.side_effect = CommandNotFoundError("Command not found: npm")
        applicator = FixApplicator(installer, react_manifest)

        outcome = await applicator.apply(InstallDependenciesFix())

        assert outcome.success is False
        assert outcome.error == "Command not found: npm"


class TestAddBuildScript:
    """Test the add_build_script fix."""

    async def test_adds_script(self, installer: AsyncMock, react_manifest: Any) -> None:
        """Test the script is merged next to existing scripts."""
        applicator = FixApplicator(installer, react_manifest)
        fix = AddBuildScriptFix(command="react-scripts build", framework="React")

        outcome = await applicator.apply(fix)

        assert outcome.success is True
        assert react_manifest.data["scripts"] == {
            "start": "react-scripts start",
            "build": "react-scripts build",
        }
        installer.install.assert_not_awaited()

    async def test_idempotent(self, installer: AsyncMock, react_manifest: Any) -> None:
        """Test applying the same script twice leaves a single entry."""
        applicator = FixApplicator(installer, react_manifest)
        fix = AddBuildScriptFix(command="vite build", framework="Vite")

        await applicator.apply(fix)
        await applicator.apply(fix)

        scripts = react_manifest.data["scripts"]
        assert list(scripts).count("build") == 1
        assert scripts["build"] == "vite build"
        assert len(scripts) == 2

    async def test_fix_wins_on_conflict(self, installer: AsyncMock, memory_manifest: Any) -> None:
        """Test the fix's script replaces an existing entry with the same name."""
        manifest = memory_manifest({"scripts": {"build": "echo nope"}})
        applicator = FixApplicator(installer, manifest)

        await applicator.apply(AddBuildScriptFix(command="vite build", framework="Vite"))

        assert manifest.data["scripts"] == {"build": "vite build"}

    async def test_creates_scripts_section(
        self, installer: AsyncMock, memory_manifest: Any
    ) -> None:
        """Test a manifest without scripts gains one."""
        manifest = memory_manifest({"name": "site"})
        applicator = FixApplicator(installer, manifest)

        outcome = await applicator.apply(AddBuildScriptFix(command="vite build", framework="Vite"))

        assert outcome.success is True
        assert manifest.data == {"name": "site", "scripts": {"build": "vite build"}}

    async def test_missing_manifest(self, installer: AsyncMock, memory_manifest: Any) -> None:
        """Test a missing package.json is a failed fix."""
        applicator = FixApplicator(installer, memory_manifest(None))

        outcome = await applicator.apply(AddBuildScriptFix(command="vite build", framework="Vite"))

        assert outcome.success is False
        assert outcome.error == "package.json not found"

    async def test_write_error(self, installer: AsyncMock) -> None:
        """Test manifest write failures are contained."""
        manifest = MagicMock()
        manifest.exists.return_value = True
        manifest.read.return_value = {"scripts": {}}
        manifest.write.side_effect = ManifestError("read-only file system")
        applicator = FixApplicator(installer, manifest)

        outcome = await applicator.apply(AddBuildScriptFix(command="vite build", framework="Vite"))

        assert outcome.success is False
        assert "read-only" in (outcome.error or "")


class TestOtherFixes:
    """Test memory and manual fixes."""

    async def test_increase_memory_always_succeeds(
        self, installer: AsyncMock, react_manifest: Any
    ) -> None:
        """Test the memory fix has no side effects here."""
        applicator = FixApplicator(installer, react_manifest)

        outcome = await applicator.apply(IncreaseMemoryFix())

        assert outcome.success is True
        installer.install.assert_not_awaited()
        assert react_manifest.writes == 0

    async def test_manual_fix_is_never_applied(
        self, installer: AsyncMock, react_manifest: Any
    ) -> None:
        """Test manual fixes report failure without touching anything."""
        applicator = FixApplicator(installer, react_manifest)
        fix = ManualFix(kind=FixKind.FIX_SYNTAX, description="Fix syntax errors in source code")

        outcome = await applicator.apply(fix)

        assert outcome.success is False
        installer.install.assert_not_awaited()
        assert react_manifest.writes == 0
