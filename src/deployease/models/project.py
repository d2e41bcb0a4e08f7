"""Data model for the project being built and deployed."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from deployease.utils.commands import DEFAULT_BUILD_COMMAND


@dataclass(frozen=True)
class ProjectContext:
    """Facts about the project, detected once per session.

    Built by ``deployease.core.project.detect_project`` and passed to every
    component that needs it instead of being rediscovered on demand.
    """

    root: Path
    name: str | None = None
    version: str | None = None
    dependencies: dict[str, str] = field(default_factory=dict)  # dependencies + devDependencies
    scripts: dict[str, str] = field(default_factory=dict)
    project_type: str | None = None  # "react", "nextjs", "vite", "vue", "angular"
    framework: str | None = None  # Human-readable framework name
    build_dir: str | None = None
    has_routing: bool = False
    routing_type: str | None = None
    has_manifest: bool = False
    has_index_html: bool = False

    # Deployment target, from configuration
    owner: str | None = None
    repo: str | None = None
    branch: str = "gh-pages"
    deploy_dir: str | None = None

    @property
    def build_command(self) -> str | None:
        """Command producing the deploy artifacts, or None for a static site."""
        if "build" in self.scripts:
            return DEFAULT_BUILD_COMMAND
        return None

    @property
    def is_static(self) -> bool:
        """True for a plain HTML site that needs no build step."""
        return self.build_command is None and self.has_index_html

    @property
    def has_node_modules(self) -> bool:
        return (self.root / "node_modules").is_dir()

    @property
    def is_deploy_configured(self) -> bool:
        return bool(self.owner and self.repo)

    @property
    def pages_url(self) -> str | None:
        """GitHub Pages URL for the configured repository."""
        if not self.is_deploy_configured:
            return None
        return f"https://{self.owner}.github.io/{self.repo}/"
