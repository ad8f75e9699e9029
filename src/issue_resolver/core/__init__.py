"""Core business logic components.

This module exports the scan engine:
- classify: Pure rule evaluation for one issue
- ActionExecutor: Applies close decisions to the tracker
- ScanOrchestrator: Drives organization/repository/issue traversal
"""

from issue_resolver.core.classifier import classify
from issue_resolver.core.executor import ActionExecutor
from issue_resolver.core.orchestrator import ScanOrchestrator, run_scan

__all__ = [
    "ActionExecutor",
    "ScanOrchestrator",
    "classify",
    "run_scan",
]
