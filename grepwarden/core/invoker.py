"""
Scanner invocation.

Builds and runs the external OpenGrep command for one file or the whole
project, and turns whatever it printed into a ScanRun. Failures of the
scanner process never escape from here except RulesNotFound, which the
caller decides how to report.
"""

import asyncio
import json
import logging
import os
import platform
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from grepwarden.core.findings import Finding, ScanRun, normalize_report_path
from grepwarden.errors import (
    BinaryNotFound, ProcessFailure, RulesNotFound, ScanParseError, UnknownSeverity,
)

logger = logging.getLogger(__name__)


DEFAULT_BINARY_NAME = "opengrep"
DEFAULT_RULES_PATH = ".opengrep/rules"

# The scanner prints its "Ran N rules on M files" summary on stderr.
_STDERR_SUMMARY_MARKER = "Ran "


def default_data_dir() -> Path:
    """Per-user directory where an installed scanner binary is looked up."""
    if platform.system() == "Windows":
        base = os.environ.get("LOCALAPPDATA") or os.path.expanduser("~")
        return Path(base) / "grepwarden"
    base = os.environ.get("XDG_DATA_HOME") or os.path.join(os.path.expanduser("~"), ".local", "share")
    return Path(base) / "grepwarden"


def installed_binary_path(data_dir: Optional[Path] = None) -> Path:
    binary_name = DEFAULT_BINARY_NAME + (".exe" if platform.system() == "Windows" else "")
    return (data_dir or default_data_dir()) / "bin" / binary_name


def _error_text(error: Any) -> str:
    """Scanner ``errors`` entries are objects; keep them as readable strings."""
    if isinstance(error, str):
        return error
    if isinstance(error, dict):
        message = error.get("message") or error.get("long_msg") or error.get("short_msg")
        if message:
            level = error.get("level")
            return f"{level}: {message}" if level else str(message)
    return json.dumps(error, default=str)


def parse_scan_output(output: str) -> ScanRun:
    """
    Parse scanner stdout into a ScanRun.

    Accepts a single JSON document, or log/banner text followed by a line
    starting with ``{``. Raises ScanParseError when neither works.
    """
    try:
        data = json.loads(output)
    except ValueError:
        json_line = next(
            (line for line in output.strip().splitlines() if line.strip().startswith("{")),
            None,
        )
        if json_line is None:
            raise ScanParseError("No JSON found in scanner output")
        try:
            data = json.loads(json_line)
        except ValueError as e:
            raise ScanParseError(f"Failed to parse scanner output: {e}") from e

    if not isinstance(data, dict):
        raise ScanParseError(f"Expected a JSON object, got {type(data).__name__}")

    return scan_run_from_dict(data)


def scan_run_from_dict(data: Dict[str, Any]) -> ScanRun:
    """Convert the scanner's ``{results, errors, version}`` object."""
    findings: List[Finding] = []
    errors = [_error_text(e) for e in data.get("errors") or []]

    for index, raw in enumerate(data.get("results") or []):
        try:
            findings.append(Finding.from_scanner_dict(raw))
        except UnknownSeverity as e:
            rule_id = raw.get("check_id", f"#{index}") if isinstance(raw, dict) else f"#{index}"
            errors.append(f"Skipped finding {rule_id}: {e}")
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            errors.append(f"Skipped malformed finding #{index}: {e}")

    return ScanRun(findings=findings, errors=errors, version=str(data.get("version") or ""))


class ScanInvoker:
    """
    Runs the scanner binary against a project.

    The resolved binary path is cached on the instance; ``reconfigure``
    drops the cache so the next scan probes again.
    """

    def __init__(
        self,
        project_root: str,
        binary_path: Optional[str] = None,
        rules_path: str = DEFAULT_RULES_PATH,
        data_dir: Optional[Path] = None,
    ):
        self.project_root = os.path.abspath(project_root)
        self.binary_override = binary_path or None
        self.rules_path = rules_path
        self.data_dir = data_dir
        self._binary_path: Optional[str] = None
        self.last_run: Optional[ScanRun] = None

    def reconfigure(
        self,
        binary_path: Optional[str] = None,
        rules_path: Optional[str] = None,
    ) -> None:
        """Apply new settings and force the binary to be probed again."""
        self.binary_override = binary_path or None
        if rules_path is not None:
            self.rules_path = rules_path
        self._binary_path = None
        logger.debug("Scanner configuration changed; binary will be re-probed")

    def resolve_binary(self) -> str:
        """
        Locate the scanner binary.

        Order: configured override, ``opengrep`` on PATH, then the
        per-user install location. Raises BinaryNotFound.
        """
        if self._binary_path:
            return self._binary_path

        if self.binary_override and os.path.exists(self.binary_override):
            self._binary_path = self.binary_override
        else:
            if self.binary_override:
                logger.warning(f"Configured binary not found: {self.binary_override}")
            on_path = shutil.which(DEFAULT_BINARY_NAME)
            installed = installed_binary_path(self.data_dir)
            if on_path:
                self._binary_path = on_path
            elif installed.exists():
                self._binary_path = str(installed)

        if not self._binary_path:
            raise BinaryNotFound("OpenGrep binary not found")

        logger.debug(f"Binary path: {self._binary_path}")
        return self._binary_path

    def resolve_rules_path(self, rules_path: Optional[str] = None) -> str:
        path = rules_path or self.rules_path
        if os.path.isabs(path):
            return path
        return os.path.join(self.project_root, path)

    def relative_target(self, file_path: str) -> str:
        """Path of ``file_path`` relative to the project root."""
        absolute = file_path if os.path.isabs(file_path) else os.path.join(self.project_root, file_path)
        return os.path.relpath(os.path.normpath(absolute), self.project_root)

    def build_command(self, binary: str, rules_path: str, target: str) -> List[str]:
        return [binary, "scan", "--json", "-f", rules_path, target]

    async def _execute(self, command: List[str]) -> Tuple[int, str, str]:
        """Run ``command`` in the project root and return (returncode, stdout, stderr)."""
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=self.project_root,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ProcessFailure(f"Failed to start {command[0]}: {e}") from e

        stdout, stderr = await process.communicate()
        return (
            process.returncode,
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )

    async def scan(self, target_path: str, rules_path: Optional[str] = None) -> ScanRun:
        """
        Scan ``target_path`` (a project-relative file, or ``.``).

        Raises RulesNotFound when the rules directory is missing. Every
        other failure yields an empty ScanRun carrying one error note.
        """
        resolved_rules = self.resolve_rules_path(rules_path)
        if not os.path.exists(resolved_rules):
            logger.info(f"No rules found at {resolved_rules}")
            raise RulesNotFound(resolved_rules)

        self.last_run = await self._run_scanner(resolved_rules, target_path)
        return self.last_run

    async def _run_scanner(self, resolved_rules: str, target_path: str) -> ScanRun:
        try:
            binary = self.resolve_binary()
        except BinaryNotFound as e:
            logger.warning(f"Scan skipped: {e}")
            return ScanRun.empty(str(e))

        command = self.build_command(binary, resolved_rules, target_path)
        logger.info(f"Running: {' '.join(command)}")

        try:
            returncode, stdout, stderr = await self._execute(command)
        except ProcessFailure as e:
            logger.warning(f"Scan error: {e}")
            return ScanRun.empty(str(e))

        if stderr and _STDERR_SUMMARY_MARKER not in stderr:
            logger.debug(f"Stderr output: {stderr.strip()}")

        if not stdout.strip():
            note = f"Scanner exited with code {returncode} and produced no output"
            logger.warning(note)
            return ScanRun.empty(note)

        try:
            run = parse_scan_output(stdout)
        except ScanParseError as e:
            logger.warning(f"Failed to parse results: {e}")
            logger.debug(f"Full output: {stdout}")
            return ScanRun.empty(str(e))

        if returncode != 0:
            note = f"Scanner exited with code {returncode}; using partial output"
            logger.info(note)
            run.errors.append(note)

        for error in run.errors:
            logger.debug(f"Scanner error: {error}")
        logger.info(f"Parsed {len(run.findings)} total findings")
        return run

    async def scan_file(self, file_path: str, rules_path: Optional[str] = None) -> ScanRun:
        """Scan one file and keep only the findings reported for that file."""
        relative = self.relative_target(file_path)
        logger.info(f"Scanning file: {relative}")
        run = await self.scan(relative, rules_path)
        scoped = run.for_file(relative)
        logger.info(f"Found {len(scoped.findings)} findings for {normalize_report_path(relative)}")
        return scoped

    async def scan_project(self, rules_path: Optional[str] = None) -> Dict[str, List[Finding]]:
        """Scan the whole project and group findings by absolute file path."""
        run = await self.scan(".", rules_path)
        grouped = run.group_by_file(self.project_root)
        logger.info(
            f"Workspace scan found {len(run.findings)} findings in {len(grouped)} files"
        )
        return grouped

    async def version(self) -> Optional[str]:
        """Return the scanner's ``--version`` output, or None if it cannot run."""
        try:
            binary = self.resolve_binary()
            returncode, stdout, _ = await self._execute([binary, "--version"])
        except (BinaryNotFound, ProcessFailure) as e:
            logger.warning(f"Version check failed: {e}")
            return None
        if returncode != 0:
            return None
        version = stdout.strip()
        logger.info(f"OpenGrep version: {version}")
        return version
