"""Core scanning components and data structures."""

from grepwarden.core.findings import Finding, ScanRun, ScanReport, Severity
from grepwarden.core.invoker import ScanInvoker, parse_scan_output
from grepwarden.core.store import FindingStore
from grepwarden.core.rules import RuleCatalog, RuleInfo
from grepwarden.core.coordinator import ScanCoordinator

__all__ = [
    "Finding",
    "ScanRun",
    "ScanReport",
    "Severity",
    "ScanInvoker",
    "parse_scan_output",
    "FindingStore",
    "RuleCatalog",
    "RuleInfo",
    "ScanCoordinator",
]
