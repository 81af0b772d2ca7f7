"""
Scan coordination.

The coordinator is the single entry point for scan and suppression
requests. It keeps the store consistent with the latest scan of each
file and makes sure two scans of the same file never overlap, so results
cannot arrive out of order.
"""

import asyncio
import logging
import os
from typing import Any, List, Optional, Set

from grepwarden.core.findings import Finding, ScanReport, Severity
from grepwarden.core.invoker import ScanInvoker
from grepwarden.core.store import FindingStore
from grepwarden.errors import RulesNotFound
from grepwarden.suppression.editor import SourceDocument, SuppressionEditor, SuppressionResult

logger = logging.getLogger(__name__)


WORKSPACE = "."


class ScanCoordinator:
    """
    Processes scan, save and suppression requests against one project.

    A file scan waits while the same file or a workspace scan is in
    flight; a workspace scan waits until nothing else is in flight.
    Scans are never cancelled once started.
    """

    def __init__(
        self,
        invoker: ScanInvoker,
        store: Optional[FindingStore] = None,
        editor: Optional[SuppressionEditor] = None,
        scan_on_save: bool = True,
        min_severity: Severity = Severity.INFO,
    ):
        self.invoker = invoker
        self.store = store if store is not None else FindingStore()
        self.editor = editor if editor is not None else SuppressionEditor()
        self.scan_on_save = scan_on_save
        self.min_severity = min_severity
        self._in_flight: Set[str] = set()
        self._condition: Optional[asyncio.Condition] = None
        self._condition_loop: Optional[asyncio.AbstractEventLoop] = None

    @classmethod
    def from_config(cls, config: Any, project_root: str) -> "ScanCoordinator":
        """Build a coordinator and its collaborators from a GrepwardenConfig."""
        invoker = ScanInvoker(
            project_root,
            binary_path=config.binary_path or None,
            rules_path=config.rules_path,
        )
        return cls(
            invoker,
            editor=SuppressionEditor(config.exclusion_config),
            scan_on_save=config.scan_on_save,
            min_severity=config.min_severity,
        )

    @property
    def project_root(self) -> str:
        return self.invoker.project_root

    @property
    def in_flight(self) -> Set[str]:
        return set(self._in_flight)

    def _get_condition(self) -> asyncio.Condition:
        # One condition per event loop; each asyncio.run() gets a fresh one.
        loop = asyncio.get_running_loop()
        if self._condition is None or self._condition_loop is not loop:
            self._condition = asyncio.Condition()
            self._condition_loop = loop
        return self._condition

    def _absolute(self, path: str) -> str:
        if os.path.isabs(path):
            return os.path.normpath(path)
        return os.path.normpath(os.path.join(self.project_root, path))

    async def _acquire(self, key: str) -> None:
        condition = self._get_condition()
        async with condition:
            if key == WORKSPACE:
                await condition.wait_for(lambda: not self._in_flight)
            else:
                await condition.wait_for(
                    lambda: key not in self._in_flight and WORKSPACE not in self._in_flight
                )
            self._in_flight.add(key)

    async def _release(self, key: str) -> None:
        condition = self._get_condition()
        async with condition:
            self._in_flight.discard(key)
            condition.notify_all()

    async def scan_file(self, path: str) -> List[Finding]:
        """Scan one file and replace its store entry. Returns the new findings."""
        file_path = self._absolute(path)
        await self._acquire(file_path)
        try:
            try:
                run = await self.invoker.scan_file(file_path)
            except RulesNotFound as e:
                logger.warning(str(e))
                return []
            self.store.replace(file_path, run.findings)
            return list(run.findings)
        finally:
            await self._release(file_path)

    async def scan_workspace(self) -> int:
        """
        Scan the whole project.

        The store is cleared and repopulated from this scan alone, so
        findings of files that are now clean do not linger. Returns the
        number of findings stored.
        """
        await self._acquire(WORKSPACE)
        try:
            try:
                findings_by_file = await self.invoker.scan_project()
            except RulesNotFound as e:
                logger.warning(str(e))
                return 0

            self.store.clear()
            for file_path, findings in findings_by_file.items():
                self.store.replace(file_path, findings)

            total = self.store.count()
            logger.info(f"Scan complete: {total} findings in {len(findings_by_file)} files")
            return total
        finally:
            await self._release(WORKSPACE)

    async def handle_save(self, path: str) -> bool:
        """React to a saved file. Returns True if a scan was run."""
        if not self.scan_on_save:
            return False
        await self.scan_file(path)
        return True

    async def suppress_line(
        self,
        path: str,
        line_index: int,
        rule_id: str,
        language: Optional[str] = None,
        rescan: bool = True,
    ) -> SuppressionResult:
        """Suppress ``rule_id`` on a 0-based line, then refresh that file."""
        doc = SourceDocument.open(self._absolute(path), language)
        result = self.editor.suppress_at_line(doc, line_index, rule_id)
        if rescan and result is SuppressionResult.APPLIED:
            await self.scan_file(doc.path)
        return result

    async def suppress_file(
        self,
        path: str,
        rule_id: str,
        language: Optional[str] = None,
        rescan: bool = True,
    ) -> SuppressionResult:
        """Suppress ``rule_id`` for a whole file, then refresh that file."""
        doc = SourceDocument.open(self._absolute(path), language)
        result = self.editor.suppress_file_wide(doc, rule_id)
        if rescan:
            await self.scan_file(doc.path)
        return result

    async def suppress_globally(self, rule_id: str, rescan: bool = True) -> SuppressionResult:
        """Exclude ``rule_id`` project-wide, then rescan the workspace."""
        result = self.editor.suppress_globally(self.project_root, rule_id)
        if rescan and result is SuppressionResult.APPLIED:
            await self.scan_workspace()
        return result

    def clear(self) -> None:
        self.store.clear()

    def report(self, min_severity: Optional[Severity] = None) -> ScanReport:
        """Snapshot of the store for the output formatters."""
        threshold = min_severity or self.min_severity
        last_run = self.invoker.last_run
        return ScanReport(
            findings=self.store.list(threshold),
            errors=list(last_run.errors) if last_run else [],
            version=last_run.version if last_run else "",
            min_severity=threshold,
        )
