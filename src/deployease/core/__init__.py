"""Core business logic components.

This module exports the main business logic classes:
- ErrorClassifier: Classifies build output into issues and suggested fixes
- FixApplicator: Applies auto-fixable fixes
- BuildOrchestrator: Runs a build with one classify-fix-retry cycle
- DeveloperAssistant: Answers developer questions with the same classifier
- ProjectChecker: Pre-deploy check of the manifest, git hygiene and sources
- detect_project: Builds the per-session ProjectContext
"""

from deployease.core.assistant import DeveloperAssistant
from deployease.core.checks import ProjectChecker
from deployease.core.classifier import ErrorClassifier
from deployease.core.fix_applicator import FixApplicator
from deployease.core.orchestrator import BuildOrchestrator
from deployease.core.project import detect_project

__all__ = [
    "BuildOrchestrator",
    "DeveloperAssistant",
    "ErrorClassifier",
    "FixApplicator",
    "ProjectChecker",
    "detect_project",
]
