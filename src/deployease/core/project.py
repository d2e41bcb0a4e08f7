"""Project detection.

Inspects the project root once and produces a ProjectContext that is
threaded through the session.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from deployease.models.project import ProjectContext
from deployease.utils.errors import ManifestError

if TYPE_CHECKING:
    from deployease.config.schema import DeployConfig
    from deployease.interfaces.storage import ManifestStore

log = structlog.get_logger()

# (dependency, project type, framework name, build dir); first match wins
FRAMEWORKS: tuple[tuple[str, str, str, str], ...] = (
    ("react-scripts", "react", "Create React App", "build"),
    ("next", "nextjs", "Next.js", "out"),
    ("vite", "vite", "Vite", "dist"),
    ("vue", "vue", "Vue.js", "dist"),
    ("@vue/cli-service", "vue", "Vue.js", "dist"),
    ("@angular/core", "angular", "Angular", "dist"),
)

ROUTERS: tuple[tuple[str, str], ...] = (
    ("react-router-dom", "react-router"),
    ("react-router", "react-router"),
    ("next", "next-router"),
    ("vue-router", "vue-router"),
)

BUILD_DIR_CANDIDATES = ("build", "dist", "out")
APP_ENTRY_FILES = ("src/App.jsx", "src/App.js")


def _read_manifest(manifest: ManifestStore | None) -> dict[str, Any]:
    if manifest is None or not manifest.exists():
        return {}
    try:
        return manifest.read()
    except ManifestError as e:
        log.warning("manifest_unreadable", error=str(e))
        return {}


def _mapping(value: Any) -> dict[str, str]:
    return dict(value) if isinstance(value, dict) else {}


def _app_uses_router(root: Path) -> bool:
    for relative in APP_ENTRY_FILES:
        path = root / relative
        if not path.is_file():
            continue
        try:
            content = path.read_text(encoding="utf-8", errors="replace")
        except OSError:
            continue
        return "BrowserRouter" in content or "Route" in content
    return False


def detect_project(
    root: Path,
    manifest: ManifestStore | None = None,
    deploy: DeployConfig | None = None,
) -> ProjectContext:
    """Detect framework, build output and routing for a project.

    Args:
        root: Project root directory
        manifest: package.json store for the project
        deploy: Deployment target from configuration

    Returns:
        ProjectContext for this session
    """
    data = _read_manifest(manifest)
    dependencies = {**_mapping(data.get("dependencies")), **_mapping(data.get("devDependencies"))}
    scripts = _mapping(data.get("scripts"))

    project_type = framework = build_dir = None
    for dependency, kind, name, output_dir in FRAMEWORKS:
        if dependency in dependencies:
            project_type, framework, build_dir = kind, name, output_dir
            break

    routing_type = next((router for dep, router in ROUTERS if dep in dependencies), None)
    if routing_type is None and _app_uses_router(root):
        routing_type = "react-router"

    # An existing output directory beats the framework default
    for candidate in BUILD_DIR_CANDIDATES:
        if (root / candidate).is_dir():
            build_dir = candidate
            break

    context = ProjectContext(
        root=root,
        name=data.get("name"),
        version=data.get("version"),
        dependencies=dependencies,
        scripts=scripts,
        project_type=project_type,
        framework=framework,
        build_dir=build_dir,
        has_routing=routing_type is not None,
        routing_type=routing_type,
        has_manifest=bool(data),
        has_index_html=(root / "index.html").is_file(),
        owner=deploy.owner if deploy else None,
        repo=deploy.repo if deploy else None,
        branch=deploy.branch if deploy else "gh-pages",
        deploy_dir=(deploy.deploy_dir if deploy and deploy.deploy_dir else build_dir),
    )

    log.debug(
        "project_detected",
        project_type=context.project_type,
        framework=context.framework,
        build_dir=context.build_dir,
        routing=context.routing_type,
    )

    return context
