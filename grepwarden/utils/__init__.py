"""
Utility functions for grepwarden.
"""

import os
import shutil
import tempfile
from typing import Optional


def read_text(path: str) -> str:
    """Read a UTF-8 text file without translating line endings."""
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def atomic_write(path: str, content: str) -> None:
    """
    Replace ``path`` with ``content`` in one step.

    The data goes to a temporary file in the same directory which is then
    renamed over the target, so readers see either the old or the new
    file and a failed write leaves the original untouched.
    """
    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(prefix=".grepwarden-", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if os.path.exists(path):
            shutil.copymode(path, tmp_path)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def find_project_root(start: str = ".", markers: Optional[tuple] = None) -> str:
    """Find the closest directory holding one of ``markers``; default is ``start``."""
    markers = markers or (".git", ".grepwarden.yaml", ".grepwarden.yml", ".semgrep.yml")
    current = os.path.abspath(start)
    if os.path.isfile(current):
        current = os.path.dirname(current)
    origin = current

    while current != os.path.dirname(current):
        if any(os.path.exists(os.path.join(current, m)) for m in markers):
            return current
        current = os.path.dirname(current)

    return origin


def truncate_string(s: str, max_length: int = 100, suffix: str = "...") -> str:
    """Truncate a string to a maximum length."""
    if len(s) <= max_length:
        return s
    return s[:max_length - len(suffix)] + suffix
