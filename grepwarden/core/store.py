"""
In-memory finding store.

Maps absolute file paths to the findings of the latest scan of that file.
It is the single source of truth for diagnostics and report rendering.
"""

from threading import RLock
from typing import Dict, Iterable, List, Optional, Tuple

from grepwarden.core.findings import Finding, Severity


class FindingStore:
    """
    Thread-safe mapping of file path -> ordered findings.

    Only ``replace`` and ``clear`` mutate the store. Readers get copies, so
    a list handed out is never changed underneath them by a later scan.
    """

    def __init__(self) -> None:
        self._findings: Dict[str, List[Finding]] = {}
        self._lock = RLock()

    def replace(self, path: str, findings: Iterable[Finding]) -> None:
        """Overwrite the findings for ``path``; an empty list drops the entry."""
        items = list(findings)
        with self._lock:
            if items:
                self._findings[path] = items
            else:
                self._findings.pop(path, None)

    def clear(self) -> None:
        with self._lock:
            self._findings.clear()

    def get(self, path: str) -> List[Finding]:
        with self._lock:
            return list(self._findings.get(path, []))

    def paths(self) -> List[str]:
        with self._lock:
            return sorted(self._findings)

    def entries(self, min_severity: Severity = Severity.INFO) -> List[Tuple[str, Finding]]:
        """
        Return (path, finding) pairs with severity >= ``min_severity``.

        Ordered by severity descending, then path ascending; findings of
        the same file and severity keep their scan order.
        """
        with self._lock:
            snapshot = [
                (path, finding)
                for path, findings in self._findings.items()
                for finding in findings
                if finding.severity >= min_severity
            ]
        # sort() is stable, so insertion order breaks the remaining ties
        snapshot.sort(key=lambda item: (-item[1].severity.rank, item[0]))
        return snapshot

    def list(self, min_severity: Severity = Severity.INFO) -> List[Finding]:
        return [finding for _, finding in self.entries(min_severity)]

    def count(self, min_severity: Optional[Severity] = None) -> int:
        with self._lock:
            if min_severity is None:
                return sum(len(findings) for findings in self._findings.values())
            return sum(
                1
                for findings in self._findings.values()
                for finding in findings
                if finding.severity >= min_severity
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._findings)

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._findings
