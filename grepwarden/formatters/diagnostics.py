"""
Editor diagnostics.

Converts findings into the 0-based ranges and severity levels editors
and language servers use.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Tuple

from grepwarden.core.findings import Finding, Severity
from grepwarden.core.store import FindingStore


DIAGNOSTIC_SOURCE = "OpenGrep"


class DiagnosticSeverity(IntEnum):
    """LSP diagnostic severity values."""
    ERROR = 1
    WARNING = 2
    INFORMATION = 3
    HINT = 4


DIAGNOSTIC_SEVERITY = {
    Severity.ERROR: DiagnosticSeverity.ERROR,
    Severity.WARNING: DiagnosticSeverity.WARNING,
    Severity.INFO: DiagnosticSeverity.INFORMATION,
}


@dataclass(frozen=True)
class Position:
    line: int
    character: int


@dataclass(frozen=True)
class Range:
    start: Position
    end: Position


@dataclass
class Diagnostic:
    """One diagnostic, positions 0-based."""
    range: Range
    message: str
    severity: DiagnosticSeverity
    code: str
    source: str = DIAGNOSTIC_SOURCE
    related: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """LSP-shaped dictionary."""
        data = {
            "range": {
                "start": {"line": self.range.start.line, "character": self.range.start.character},
                "end": {"line": self.range.end.line, "character": self.range.end.character},
            },
            "message": self.message,
            "severity": int(self.severity),
            "code": self.code,
            "source": self.source,
        }
        if self.related:
            data["relatedInformation"] = [{"message": ref} for ref in self.related]
        return data


def to_diagnostic(finding: Finding) -> Diagnostic:
    start_line, start_col, end_line, end_col = finding.editor_range()
    return Diagnostic(
        range=Range(Position(start_line, start_col), Position(end_line, end_col)),
        message=finding.message or finding.rule_id,
        severity=DIAGNOSTIC_SEVERITY[finding.severity],
        code=finding.rule_id,
        related=finding.references,
    )


def diagnostics_for(
    store: FindingStore,
    path: str,
    min_severity: Severity = Severity.INFO,
) -> List[Diagnostic]:
    """Diagnostics for one file, at or above ``min_severity``, in scan order."""
    return [to_diagnostic(f) for f in store.get(path) if f.severity >= min_severity]


def all_diagnostics(
    store: FindingStore,
    min_severity: Severity = Severity.INFO,
) -> List[Tuple[str, List[Diagnostic]]]:
    """Diagnostics for every file in the store, sorted by path."""
    result = []
    for path in store.paths():
        diagnostics = diagnostics_for(store, path, min_severity)
        if diagnostics:
            result.append((path, diagnostics))
    return result
