"""
Output formatters for findings.

Provides multiple output formats including:
- Human-readable CLI output
- JSON for machine processing
- SARIF for code scanning tools
- Editor diagnostics
"""

from grepwarden.formatters.cli import CLIFormatter
from grepwarden.formatters.json_formatter import JSONFormatter
from grepwarden.formatters.sarif import SARIFFormatter
from grepwarden.formatters.diagnostics import Diagnostic, to_diagnostic, diagnostics_for

__all__ = [
    "CLIFormatter",
    "JSONFormatter",
    "SARIFFormatter",
    "Diagnostic",
    "to_diagnostic",
    "diagnostics_for",
    "get_formatter",
]


def get_formatter(format_name: str):
    """Get a formatter by name."""
    formatters = {
        "text": CLIFormatter,
        "cli": CLIFormatter,
        "json": JSONFormatter,
        "sarif": SARIFFormatter,
    }

    formatter_class = formatters.get(format_name.lower())
    if formatter_class:
        return formatter_class()

    raise ValueError(f"Unknown format: {format_name}")
