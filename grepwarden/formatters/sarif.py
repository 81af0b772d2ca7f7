"""
SARIF output formatter.

SARIF (Static Analysis Results Interchange Format) lets the store's
findings be loaded into code scanning dashboards and SARIF viewers.
"""

import json
from typing import Dict, Any, List

from grepwarden.core.findings import Finding, ScanReport, Severity


SARIF_LEVEL = {
    Severity.ERROR: "error",
    Severity.WARNING: "warning",
    Severity.INFO: "note",
}


class SARIFFormatter:
    """
    Formats reports in SARIF 2.1.0.
    """

    SARIF_VERSION = "2.1.0"
    SCHEMA_URI = "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/master/Schemata/sarif-schema-2.1.0.json"

    def format_result(self, report: ScanReport) -> str:
        """Format a complete report in SARIF format."""
        sarif = {
            "$schema": self.SCHEMA_URI,
            "version": self.SARIF_VERSION,
            "runs": [self._create_run(report)],
        }

        return json.dumps(sarif, indent=2)

    def _create_run(self, report: ScanReport) -> Dict[str, Any]:
        run = {
            "tool": {
                "driver": {
                    "name": "OpenGrep",
                    "version": report.version or "unknown",
                    "informationUri": "https://github.com/opengrep/opengrep",
                    "rules": self._collect_rules(report.findings),
                }
            },
            "results": [self._create_result(f) for f in report.findings],
        }

        if report.errors:
            run["invocations"] = [{
                "executionSuccessful": False,
                "toolExecutionNotifications": [
                    {"level": "warning", "message": {"text": error}}
                    for error in report.errors
                ],
            }]

        return run

    def _collect_rules(self, findings: List[Finding]) -> List[Dict[str, Any]]:
        """Collect unique rules from findings."""
        rules_seen = set()
        rules = []

        for finding in findings:
            if finding.rule_id in rules_seen:
                continue
            rules_seen.add(finding.rule_id)

            rule: Dict[str, Any] = {
                "id": finding.rule_id,
                "shortDescription": {"text": finding.message or finding.rule_id},
                "defaultConfiguration": {"level": SARIF_LEVEL[finding.severity]},
            }
            if finding.references:
                rule["helpUri"] = finding.references[0]
            rules.append(rule)

        return rules

    def _create_result(self, finding: Finding) -> Dict[str, Any]:
        region: Dict[str, Any] = {
            "startLine": max(1, finding.start_line),
            "startColumn": max(1, finding.start_col),
            "endLine": max(1, finding.end_line),
            "endColumn": max(1, finding.end_col),
        }
        if finding.lines:
            region["snippet"] = {"text": finding.lines}

        return {
            "ruleId": finding.rule_id,
            "level": SARIF_LEVEL[finding.severity],
            "message": {"text": finding.message or finding.rule_id},
            "locations": [{
                "physicalLocation": {
                    "artifactLocation": {"uri": finding.file_path.replace("\\", "/")},
                    "region": region,
                }
            }],
        }
