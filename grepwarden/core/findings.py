"""
Finding data structures.

This module defines the data structures used to represent scanner
findings, a single scanner invocation, and the report handed to the
output formatters.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Any, Tuple
import json
import os

from grepwarden.errors import UnknownSeverity


class Severity(Enum):
    """Severity levels reported by the scanner, ordered INFO < WARNING < ERROR."""
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def __lt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    @classmethod
    def parse(cls, value: Any) -> "Severity":
        """
        Parse a severity name (case-insensitive).

        Raises UnknownSeverity for anything that is not INFO, WARNING or
        ERROR; there is no silent fallback.
        """
        if isinstance(value, Severity):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise UnknownSeverity(value)


_SEVERITY_RANK: Dict[Severity, int] = {
    Severity.INFO: 0,
    Severity.WARNING: 1,
    Severity.ERROR: 2,
}


def normalize_report_path(path: str) -> str:
    """Normalize a scanner-reported path for comparison (separators, dots)."""
    return os.path.normpath(path.replace("\\", "/"))


@dataclass(frozen=True)
class Finding:
    """
    One reported rule violation.

    Positions are 1-based as reported by the scanner. A finding is never
    patched after a scan; the store replaces whole per-file lists.
    """
    rule_id: str
    file_path: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int
    message: str
    severity: Severity
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False)
    lines: Optional[str] = field(default=None, compare=False)

    def editor_range(self) -> Tuple[int, int, int, int]:
        """Return 0-based (start_line, start_col, end_line, end_col), clamped at zero."""
        return (
            max(0, self.start_line - 1),
            max(0, self.start_col - 1),
            max(0, self.end_line - 1),
            max(0, self.end_col - 1),
        )

    @property
    def references(self) -> List[str]:
        refs = self.metadata.get("references")
        if isinstance(refs, list):
            return [str(r) for r in refs]
        return []

    def __str__(self) -> str:
        return f"{self.file_path}:{self.start_line} [{self.severity.value}] {self.rule_id}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert finding to a dictionary."""
        result = {
            "rule_id": self.rule_id,
            "file_path": self.file_path,
            "start": {"line": self.start_line, "col": self.start_col},
            "end": {"line": self.end_line, "col": self.end_col},
            "message": self.message,
            "severity": self.severity.value,
            "metadata": dict(self.metadata),
        }
        if self.lines is not None:
            result["lines"] = self.lines
        return result

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    @classmethod
    def from_scanner_dict(cls, data: Dict[str, Any]) -> "Finding":
        """
        Create a Finding from one entry of the scanner's ``results`` array.

        Expected shape::

            {"check_id": "...", "path": "...",
             "start": {"line": 1, "col": 1}, "end": {"line": 1, "col": 5},
             "extra": {"message": "...", "severity": "ERROR",
                       "metadata": {...}, "lines": "..."}}

        Raises UnknownSeverity when ``extra.severity`` is missing or not recognized and
        KeyError/TypeError/ValueError when required fields are missing.
        """
        start = data.get("start") or {}
        end = data.get("end") or start
        extra = data.get("extra") or {}
        metadata = extra.get("metadata")

        return cls(
            rule_id=str(data["check_id"]),
            file_path=str(data["path"]),
            start_line=int(start.get("line", 1)),
            start_col=int(start.get("col", 1)),
            end_line=int(end.get("line", start.get("line", 1))),
            end_col=int(end.get("col", start.get("col", 1))),
            message=str(extra.get("message") or ""),
            severity=Severity.parse(extra.get("severity")),
            metadata=dict(metadata) if isinstance(metadata, dict) else {},
            lines=extra.get("lines"),
        )


@dataclass
class ScanRun:
    """The result of one scanner invocation."""
    findings: List[Finding] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    version: str = ""

    @classmethod
    def empty(cls, note: Optional[str] = None) -> "ScanRun":
        """An empty run, optionally carrying a single error note."""
        return cls(findings=[], errors=[note] if note else [], version="")

    @property
    def ok(self) -> bool:
        return not self.errors

    def for_file(self, relative_path: str) -> "ScanRun":
        """Keep only findings whose reported path matches ``relative_path``."""
        target = normalize_report_path(relative_path)
        return ScanRun(
            findings=[
                f for f in self.findings
                if normalize_report_path(f.file_path) == target
            ],
            errors=list(self.errors),
            version=self.version,
        )

    def group_by_file(self, project_root: str) -> Dict[str, List[Finding]]:
        """Group findings by resolved absolute path, preserving scan order."""
        grouped: Dict[str, List[Finding]] = {}
        for finding in self.findings:
            file_path = os.path.normpath(
                os.path.join(project_root, normalize_report_path(finding.file_path))
            )
            grouped.setdefault(file_path, []).append(finding)
        return grouped


@dataclass
class ScanReport:
    """Findings selected from the store, ready for an output formatter."""
    findings: List[Finding]
    errors: List[str] = field(default_factory=list)
    version: str = ""
    min_severity: Severity = Severity.INFO

    def count(self, severity: Severity) -> int:
        return sum(1 for f in self.findings if f.severity == severity)

    @property
    def error_count(self) -> int:
        return self.count(Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return self.count(Severity.WARNING)

    @property
    def info_count(self) -> int:
        return self.count(Severity.INFO)

    @property
    def total_findings(self) -> int:
        return len(self.findings)

    @property
    def files(self) -> List[str]:
        seen: Dict[str, None] = {}
        for finding in self.findings:
            seen.setdefault(finding.file_path, None)
        return list(seen)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": {
                "scanner_version": self.version,
                "min_severity": self.min_severity.value,
                "total_findings": self.total_findings,
                "files_with_findings": len(self.files),
                "by_severity": {
                    "ERROR": self.error_count,
                    "WARNING": self.warning_count,
                    "INFO": self.info_count,
                },
            },
            "findings": [f.to_dict() for f in self.findings],
            "errors": self.errors,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)
