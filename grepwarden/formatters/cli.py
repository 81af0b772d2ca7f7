"""
CLI output formatter for human-readable results.
"""

import io
import sys
from typing import Dict, List

from rich.console import Console
from rich.table import Table
from rich.text import Text

from grepwarden.core.findings import Finding, ScanReport, Severity
from grepwarden.utils import truncate_string


SEVERITY_STYLES: Dict[Severity, str] = {
    Severity.ERROR: "bold red",
    Severity.WARNING: "yellow",
    Severity.INFO: "blue",
}


def supports_color() -> bool:
    """Check if the terminal supports color output."""
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


class CLIFormatter:
    """
    Formats a report for the terminal.

    Findings come grouped by file in the order the store returns them,
    followed by any scanner errors.
    """

    def __init__(self, use_color: bool = True, verbose: bool = False, width: int = 100):
        self.use_color = use_color and supports_color()
        self.verbose = verbose
        self.width = width

    def _console(self, buffer: io.StringIO) -> Console:
        return Console(
            file=buffer,
            width=self.width,
            force_terminal=self.use_color,
            no_color=not self.use_color,
            highlight=False,
        )

    def _severity_label(self, severity: Severity) -> Text:
        return Text(f"[{severity.value}]", style=SEVERITY_STYLES[severity])

    def format_result(self, report: ScanReport) -> str:
        """Format a complete report."""
        buffer = io.StringIO()
        console = self._console(buffer)

        console.rule(Text(" OPENGREP FINDINGS ", style="bold"))

        summary = Table.grid(padding=(0, 2))
        summary.add_column(style="dim")
        summary.add_column()
        if report.version:
            summary.add_row("Scanner version:", report.version)
        summary.add_row("Minimum severity:", report.min_severity.value)
        summary.add_row("Files with findings:", str(len(report.files)))
        console.print(summary)
        console.print()

        if report.total_findings == 0:
            console.print(Text("  No issues found!", style="green"))
        else:
            for severity in (Severity.ERROR, Severity.WARNING, Severity.INFO):
                line = self._severity_label(severity)
                line.append(f" {report.count(severity)}")
                console.print(Text("  ").append(line))
            console.print()

            for file_path, findings in self._group_by_file(report.findings).items():
                console.print(Text(file_path, style="cyan"))
                console.print(self._findings_table(findings))

        if report.errors:
            console.rule(Text(" ERRORS ", style="red"))
            for error in report.errors:
                console.print(Text(f"  - {error}"))

        return buffer.getvalue()

    def _group_by_file(self, findings: List[Finding]) -> Dict[str, List[Finding]]:
        grouped: Dict[str, List[Finding]] = {}
        for finding in findings:
            grouped.setdefault(finding.file_path, []).append(finding)
        return grouped

    def _findings_table(self, findings: List[Finding]) -> Table:
        table = Table(show_header=True, header_style="dim", box=None, padding=(0, 1))
        table.add_column("Line", justify="right", no_wrap=True)
        table.add_column("Severity", no_wrap=True)
        table.add_column("Rule", no_wrap=True, overflow="fold")
        table.add_column("Message")

        for finding in findings:
            message = finding.message or finding.rule_id
            if not self.verbose:
                message = truncate_string(message.strip(), 120)
            table.add_row(
                f"{finding.start_line}:{finding.start_col}",
                self._severity_label(finding.severity),
                finding.rule_id,
                message,
            )
            if self.verbose:
                if finding.lines:
                    table.add_row("", "", "", Text(finding.lines.strip(), style="dim"))
                for ref in finding.references[:3]:
                    table.add_row("", "", "", Text(ref, style="dim underline"))

        return table

    def format_finding(self, finding: Finding) -> str:
        """Format a single finding as one line."""
        return f"{finding.file_path}:{finding.start_line}:{finding.start_col} [{finding.severity.value}] {finding.rule_id} {finding.message}"
