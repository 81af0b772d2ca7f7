"""
JSON output formatter for machine-readable results.
"""

import json

from grepwarden.core.findings import Finding, ScanReport


class JSONFormatter:
    """
    Formats reports as JSON for machine consumption.
    """

    def __init__(self, indent: int = 2):
        self.indent = indent

    def format_result(self, report: ScanReport) -> str:
        """Format a complete report as JSON."""
        return json.dumps(report.to_dict(), indent=self.indent, default=str)

    def format_finding(self, finding: Finding) -> str:
        """Format a single finding as JSON."""
        return json.dumps(finding.to_dict(), indent=self.indent, default=str)

    def format_findings(self, findings: list) -> str:
        """Format a list of findings as JSON."""
        return json.dumps([f.to_dict() for f in findings], indent=self.indent, default=str)
