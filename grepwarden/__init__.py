"""
grepwarden

Runs an OpenGrep-compatible scanner over a project, keeps its findings,
renders them as diagnostics and reports, and writes suppression comments
back into source files.
"""

__version__ = "0.1.0"
__author__ = "grepwarden developers"

from grepwarden.core.coordinator import ScanCoordinator
from grepwarden.core.findings import Finding, Severity, ScanRun
from grepwarden.core.invoker import ScanInvoker
from grepwarden.core.store import FindingStore
from grepwarden.suppression import SuppressionEditor, SuppressionResult
from grepwarden.config import GrepwardenConfig

__all__ = [
    "ScanCoordinator",
    "Finding",
    "Severity",
    "ScanRun",
    "ScanInvoker",
    "FindingStore",
    "SuppressionEditor",
    "SuppressionResult",
    "GrepwardenConfig",
]
