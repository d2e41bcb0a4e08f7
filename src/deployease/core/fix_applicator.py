"""Applies suggested fixes to the project.

Failures are contained per fix: any install or manifest error is caught,
logged and returned in the FixOutcome so the caller can keep going with
the remaining fixes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from deployease.models.analysis import (
    AddBuildScriptFix,
    IncreaseMemoryFix,
    InstallDependenciesFix,
    InstallPackageFix,
    ManualFix,
    SuggestedFix,
)
from deployease.models.build import FixOutcome
from deployease.utils.errors import DeployEaseError, ManifestError

if TYPE_CHECKING:
    from deployease.interfaces.process import PackageInstaller
    from deployease.interfaces.storage import ManifestStore

log = structlog.get_logger()


class FixApplicator:
    """Performs the concrete remediation for a suggested fix.

    - install_package / install_dependencies: run the install action
    - add_build_script: merge the script fragment into the manifest
    - increase_memory: nothing to do here; the orchestrator swaps the
      build command for the retry
    - manual fixes: never applied

    Example:
        applicator = FixApplicator(installer, manifest)
        outcome = await applicator.apply(fix)
    """

    def __init__(self, installer: PackageInstaller, manifest: ManifestStore) -> None:
        """Initialize the FixApplicator.

        Args:
            installer: Package manager collaborator
            manifest: Project manifest store
        """
        self._installer = installer
        self._manifest = manifest

    async def apply(self, fix: SuggestedFix) -> FixOutcome:
        """Apply a single fix.

        Args:
            fix: Fix to apply

        Returns:
            FixOutcome with success flag and, on failure, the error message
        """
        log.info("applying_fix", kind=fix.kind.value, action=fix.action)

        try:
            if isinstance(fix, (InstallPackageFix, InstallDependenciesFix)):
                success = await self._installer.install(fix.action)
                if not success:
                    return self._failed(fix, f"Install failed: {fix.action}")
            elif isinstance(fix, AddBuildScriptFix):
                self._add_script(fix)
            elif isinstance(fix, IncreaseMemoryFix):
                pass
            elif isinstance(fix, ManualFix):
                return self._failed(fix, "Manual fixes cannot be applied automatically")
            else:
                return self._failed(fix, f"Unsupported fix kind: {fix.kind}")
        except (DeployEaseError, OSError) as e:
            return self._failed(fix, str(e))

        log.info("fix_applied", kind=fix.kind.value)
        return FixOutcome(fix=fix, success=True)

    def _add_script(self, fix: AddBuildScriptFix) -> None:
        """Merge the fix's script fragment into the manifest.

        Raises:
            ManifestError: If the manifest is missing, malformed or unwritable
        """
        if not self._manifest.exists():
            raise ManifestError("package.json not found")

        data = self._manifest.read()
        scripts = data.get("scripts")
        if not isinstance(scripts, dict):
            scripts = {}
        data["scripts"] = {**scripts, **fix.script}
        self._manifest.write(data)

    def _failed(self, fix: SuggestedFix, error: str) -> FixOutcome:
        log.warning("fix_failed", kind=fix.kind.value, error=error)
        return FixOutcome(fix=fix, success=False, error=error)
