"""
Tests for utility helpers and logging setup.
"""

import io
import logging
import os

import pytest
from rich.console import Console

from grepwarden.utils import atomic_write, find_project_root, read_text, truncate_string
from grepwarden.utils.logger import setup_logging


class TestAtomicWrite:
    """Tests for atomic file replacement."""

    def test_replaces_content_and_keeps_mode(self, tmp_path):
        path = tmp_path / "app.py"
        path.write_text("old\n", encoding="utf-8")
        os.chmod(path, 0o640)

        atomic_write(str(path), "new\r\n")

        assert read_text(str(path)) == "new\r\n"
        assert (os.stat(path).st_mode & 0o777) == 0o640
        assert os.listdir(tmp_path) == ["app.py"]

    def test_failure_leaves_file_untouched(self, tmp_path, monkeypatch):
        path = tmp_path / "app.py"
        path.write_text("old\n", encoding="utf-8")

        def broken_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", broken_replace)

        with pytest.raises(OSError):
            atomic_write(str(path), "new\n")

        assert path.read_text(encoding="utf-8") == "old\n"
        assert os.listdir(tmp_path) == ["app.py"]


class TestFindProjectRoot:
    """Tests for project root discovery."""

    def test_marker_in_parent(self, tmp_path):
        (tmp_path / ".semgrep.yml").write_text("", encoding="utf-8")
        nested = tmp_path / "src" / "pkg"
        nested.mkdir(parents=True)

        assert find_project_root(str(nested)) == str(tmp_path)

    def test_no_marker_returns_start(self, tmp_path):
        nested = tmp_path / "src"
        nested.mkdir()

        assert find_project_root(str(nested), markers=("no-such-marker",)) == str(nested)


class TestTruncateString:
    """Tests for truncate_string."""

    def test_truncate(self):
        assert truncate_string("short") == "short"
        assert truncate_string("a" * 20, max_length=10) == "aaaaaaa..."


class TestLogging:
    """Tests for logging setup."""

    def test_console_and_file(self, tmp_path):
        buffer = io.StringIO()
        log_file = tmp_path / "logs" / "grepwarden.log"

        logger = setup_logging("debug", str(log_file), console=Console(file=buffer, width=200))
        logging.getLogger("grepwarden.core.invoker").debug("Running: opengrep scan")
        for handler in logger.handlers:
            handler.flush()

        assert logger.level == logging.DEBUG
        assert "Running: opengrep scan" in buffer.getvalue()
        assert "DEBUG" in log_file.read_text(encoding="utf-8")

    def test_setup_is_repeatable(self):
        setup_logging("INFO")
        logger = setup_logging("WARNING")

        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING
