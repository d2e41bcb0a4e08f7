"""Rule-based developer assistant.

Answers common questions about build failures, routing and deployment
using the project context and the same ErrorClassifier the build
orchestrator uses, so the answer to "why did my build fail?" always matches
what the build reported.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog

from deployease.core.reporting import render_analysis
from deployease.models.analysis import AnalysisResult

if TYPE_CHECKING:
    from collections.abc import Callable

    from deployease.core.classifier import ErrorClassifier
    from deployease.interfaces.storage import ErrorLogStore
    from deployease.models.project import ProjectContext

log = structlog.get_logger()

LOG_FILES = ("npm-debug.log", "yarn-error.log", ".deployease-error.log")
LOG_TAIL_LINES = 50
MAX_RECENT_ERRORS = 5
ERROR_LINE = re.compile(r"error|fail", re.IGNORECASE)

EXAMPLE_QUESTIONS = (
    "Why did my build fail?",
    "What's the issue with my routing?",
    "How do I fix the 404 after deployment?",
    "I have a build error",
    "I have a deployment problem",
    "Module not found",
)


class DeveloperAssistant:
    """Answers canned developer questions.

    Example:
        assistant = DeveloperAssistant(context, classifier, error_log)
        print(assistant.answer("Why did my build fail?"))
    """

    def __init__(
        self,
        context: ProjectContext,
        classifier: ErrorClassifier,
        error_log: ErrorLogStore | None = None,
    ) -> None:
        """Initialize the DeveloperAssistant.

        Args:
            context: Detected project context
            classifier: Shared error classifier
            error_log: Store holding the last captured build error
        """
        self._context = context
        self._classifier = classifier
        self._error_log = error_log

    def answer(self, question: str) -> str:
        """Answer a question about the project.

        Args:
            question: Free-form question

        Returns:
            Markdown-formatted answer
        """
        handler = self._route(question.lower())
        log.debug("assistant_question_routed", handler=handler.__name__)
        return handler()

    def _route(self, q: str) -> Callable[[], str]:
        if "build fail" in q or ("why did" in q and "fail" in q):
            return self.answer_build_failure
        if "routing" in q or ("route" in q and "issue" in q):
            return self.answer_routing
        if "404" in q or ("not found" in q and "deploy" in q):
            return self.answer_404
        if "build error" in q or "build issue" in q:
            return self.answer_build_error
        if "deploy" in q and ("issue" in q or "problem" in q):
            return self.answer_deployment
        if "missing" in q or "module not found" in q or "cannot find" in q:
            return self.answer_missing_dependency
        return self.answer_generic

    def stored_analysis(self) -> AnalysisResult:
        """Classify the stored build error, if any."""
        if self._error_log is None:
            return AnalysisResult()
        text = self._error_log.load()
        if not text:
            return AnalysisResult()
        return self._classifier.analyze(text)

    def recent_errors(self) -> list[str]:
        """Error-looking lines from the tail of known package manager logs."""
        errors: list[str] = []
        for name in LOG_FILES:
            path = self._context.root / name
            if not path.is_file():
                continue
            try:
                lines = path.read_text(encoding="utf-8", errors="replace").splitlines()
            except OSError as e:
                log.debug("log_file_unreadable", path=str(path), error=str(e))
                continue
            errors.extend(
                line.strip() for line in lines[-LOG_TAIL_LINES:] if ERROR_LINE.search(line)
            )
        return errors

    def answer_build_failure(self) -> str:
        ctx = self._context
        analysis = self.stored_analysis()
        parts = ["## Build failure analysis", ""]

        if not analysis.is_empty:
            parts += [render_analysis(analysis), ""]

        recent = self.recent_errors()[:MAX_RECENT_ERRORS]
        if recent:
            parts.append("Recent error logs:")
            parts += [f"  {i}. {self._summarize_error(line)}" for i, line in enumerate(recent, 1)]
            parts.append("")

        if analysis.is_empty:
            parts.append("Common build issues:")
            if ctx.project_type == "react" and "react-scripts" not in ctx.dependencies:
                parts.append("- Missing react-scripts: run `npm install react-scripts`")
            if ctx.has_manifest and "build" not in ctx.scripts:
                parts.append("- Missing build script in package.json")
                if ctx.project_type == "react":
                    parts.append('  Add `"build": "react-scripts build"` to scripts')
                elif ctx.project_type == "vite":
                    parts.append('  Add `"build": "vite build"` to scripts')
            if ctx.has_manifest and not ctx.has_node_modules:
                parts.append("- node_modules not found: run `npm install`")
            parts.append("- Syntax errors: look for missing brackets or typos in the build output")
            parts.append("")

        parts += [
            "Quick fix steps:",
            "1. Run `npm install` to make sure all dependencies are installed",
            "2. Clear the cache: `npm cache clean --force`",
            "3. Delete node_modules and package-lock.json, then `npm install` again",
            "4. Make sure `npm run build` works locally",
            "5. Run `deployease build` to detect and fix common issues automatically",
        ]

        fixable = len(analysis.auto_fixable_fixes)
        if fixable:
            parts += ["", f"Tip: `deployease build` can apply {fixable} fix(es) automatically."]

        return "\n".join(parts)

    def answer_build_error(self) -> str:
        analysis = self.stored_analysis()
        parts = ["## Build error analysis", ""]

        if analysis.is_empty:
            parts.append("No stored build error. Run `deployease build` to capture one.")
        else:
            parts.append(render_analysis(analysis))
        parts.append("")

        for i, line in enumerate(self.recent_errors()[:MAX_RECENT_ERRORS], 1):
            parts.append(f"  {i}. {line[:120]}{'...' if len(line) > 120 else ''}")

        return "\n".join(parts).rstrip()

    def answer_routing(self) -> str:
        ctx = self._context
        parts = ["## Routing issue analysis", ""]

        if not ctx.has_routing:
            parts.append("Your project doesn't seem to have routing configured.")
            if ctx.project_type == "react":
                parts += [
                    "",
                    "To add routing to React:",
                    "1. Install: `npm install react-router-dom`",
                    "2. Wrap your app with a router in index.js",
                    "3. Add Routes and Route components in App.js",
                ]
            elif ctx.project_type == "nextjs":
                parts.append("Next.js uses file-based routing: add pages under `pages/`.")
            return "\n".join(parts)

        parts += [f"Your project uses {ctx.routing_type} for routing.", ""]

        if ctx.routing_type == "react-router":
            repo = ctx.repo or "your-repo"
            homepage = ctx.pages_url or "https://<owner>.github.io/<repo>/"
            parts += [
                "Common React Router issues on GitHub Pages:",
                "- 404 on refresh: GitHub Pages has no server-side routing.",
                "  Use HashRouter instead of BrowserRouter.",
                f'- Base path: use `<BrowserRouter basename="/{repo}">` for project pages.',
                f'- Homepage: set `"homepage": "{homepage}"` in package.json',
                "",
            ]

        if self._uses_browser_router():
            parts.append(
                "Found BrowserRouter without HashRouter; this causes 404s on GitHub Pages."
            )
        else:
            parts += [
                "Troubleshooting steps:",
                "1. Check the routing configuration in App.js or index.js",
                "2. Verify all routes are defined",
                "3. Test routes locally before deploying",
            ]

        return "\n".join(parts)

    def answer_404(self) -> str:
        ctx = self._context
        parts = ["## 404 after deployment", "", "Root causes:", ""]

        if ctx.routing_type == "react-router":
            parts += [
                "- BrowserRouter expects server-side routing, which GitHub Pages lacks.",
                "  Switch to HashRouter, or copy index.html to 404.html in the build output:",
                f"  `cp {ctx.build_dir or 'build'}/index.html {ctx.build_dir or 'build'}/404.html`",
            ]
        if ctx.project_type == "nextjs":
            parts += [
                "- Next.js needs a static export: set `output: 'export'` and",
                "  `trailingSlash: true` in next.config.js",
            ]

        parts += [
            f"- Missing index.html: build directory is `{ctx.build_dir or 'not detected'}`",
            "- Wrong base path: set `homepage` in package.json"
            + (f" to `{ctx.pages_url}`" if ctx.pages_url else ""),
            "",
            "Checklist:",
            "- Use HashRouter for React apps",
            "- Add the homepage field to package.json",
            "- Verify index.html exists in the build directory",
            "- Clear the browser cache after deploying",
        ]
        return "\n".join(parts)

    def answer_deployment(self) -> str:
        ctx = self._context
        parts = ["## Deployment issue analysis", ""]

        if not ctx.is_deploy_configured:
            parts.append("No deployment target configured. Set `deploy.owner` and `deploy.repo`.")
            return "\n".join(parts)

        deploy_dir = ctx.deploy_dir or "."
        parts += [
            f"Repository: {ctx.owner}/{ctx.repo}",
            f"Branch: {ctx.branch}",
            f"Deploy directory: {deploy_dir}",
            "",
        ]

        deploy_path = ctx.root / deploy_dir
        if not deploy_path.is_dir():
            parts.append(f"Deploy directory `{deploy_dir}` doesn't exist. Run the build first.")
        elif not (deploy_path / "index.html").is_file():
            parts.append("No index.html in the deploy directory; GitHub Pages requires one.")

        parts += [
            "",
            "Common deployment issues:",
            "1. Authentication: make sure GITHUB_TOKEN is set",
            "2. Build first: the project must build successfully",
            "3. Permissions: the token needs repo access",
            f"4. The {ctx.branch} branch is created automatically on first deploy",
        ]
        return "\n".join(parts)

    def answer_missing_dependency(self) -> str:
        parts = [
            "## Missing dependency analysis",
            "",
            "1. Install all dependencies: `npm install`",
            "2. Check that the package is listed in dependencies or devDependencies",
            "3. Clear and reinstall: `rm -rf node_modules package-lock.json && npm install`",
        ]
        if self._context.project_type == "react":
            parts.append("4. Make sure react-scripts is installed: `npm install react-scripts`")
        parts += ["", "`deployease build` can install missing packages automatically."]
        return "\n".join(parts)

    def answer_generic(self) -> str:
        ctx = self._context
        routing = f"Yes ({ctx.routing_type})" if ctx.has_routing else "No"
        parts = [
            "## Developer assistant",
            "",
            f"Type: {ctx.project_type or 'unknown'}",
            f"Framework: {ctx.framework or 'none detected'}",
            f"Routing: {routing}",
            "",
            "I can help with:",
        ]
        parts += [f'- "{question}"' for question in EXAMPLE_QUESTIONS]
        return "\n".join(parts)

    def _summarize_error(self, line: str) -> str:
        analysis = self._classifier.analyze(line)
        if not analysis.is_empty:
            return analysis.summary
        return line[:80] + ("..." if len(line) > 80 else "")

    def _uses_browser_router(self) -> bool:
        for relative in ("src/App.js", "src/App.jsx", "src/index.js"):
            path = self._context.root / relative
            if not path.is_file():
                continue
            try:
                content = path.read_text(encoding="utf-8", errors="replace")
            except OSError:
                continue
            if "BrowserRouter" in content and "HashRouter" not in content:
                return True
        return False
