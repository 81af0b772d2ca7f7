"""
Shared fixtures for the grepwarden tests.
"""

import json
import os
import sys
from typing import Any, Dict, List, Optional, Tuple

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from grepwarden.core.invoker import ScanInvoker


def make_result(
    check_id: str,
    path: str,
    line: int = 1,
    severity: str = "WARNING",
    message: str = "m",
    col: int = 1,
    end_col: int = 10,
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """One entry of the scanner's ``results`` array."""
    extra: Dict[str, Any] = {"message": message, "severity": severity}
    if metadata is not None:
        extra["metadata"] = metadata
    return {
        "check_id": check_id,
        "path": path,
        "start": {"line": line, "col": col},
        "end": {"line": line, "col": end_col},
        "extra": extra,
    }


def scanner_output(results: List[Dict[str, Any]], errors=None, version: str = "1.0") -> str:
    return json.dumps({"results": results, "errors": errors or [], "version": version})


class FakeScanner:
    """
    Stands in for the scanner process.

    Each call pops the next (returncode, stdout, stderr) response; the last
    one is repeated. Commands are recorded.
    """

    def __init__(self, *responses: Tuple[int, str, str]):
        self.responses = list(responses) or [(0, scanner_output([]), "")]
        self.commands: List[List[str]] = []

    def respond(self, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.responses = [(returncode, stdout, stderr)]

    async def __call__(self, command: List[str]) -> Tuple[int, str, str]:
        self.commands.append(list(command))
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


@pytest.fixture
def project(tmp_path) -> str:
    """A project root with one rule file under .opengrep/rules/python."""
    rules_dir = tmp_path / ".opengrep" / "rules" / "python"
    rules_dir.mkdir(parents=True)
    (rules_dir / "eval.yaml").write_text(
        "rules:\n"
        "  - id: python.eval\n"
        "    pattern: eval(...)\n"
        "    message: Avoid eval\n"
        "    languages: [python]\n"
        "    severity: ERROR\n",
        encoding="utf-8",
    )
    return str(tmp_path)


@pytest.fixture
def fake_scanner() -> FakeScanner:
    return FakeScanner()


@pytest.fixture
def invoker(project, fake_scanner, monkeypatch) -> ScanInvoker:
    """An invoker for ``project`` whose process runs are served by ``fake_scanner``."""
    inv = ScanInvoker(project)
    monkeypatch.setattr(inv, "resolve_binary", lambda: "opengrep")
    monkeypatch.setattr(inv, "_execute", fake_scanner)
    return inv
