"""
Tests for suppression comments and the exclusion config.
"""

import os

import pytest
import yaml

from grepwarden.errors import ConfigParseError, LineOutOfRange, UnsupportedLanguage
from grepwarden.suppression.editor import (
    SourceDocument, SuppressionEditor, SuppressionResult, split_lines,
)
from grepwarden.suppression.languages import (
    COMMENT_TOKENS, LANGUAGE_EXTENSIONS, comment_token, detect_language,
)


def _read_bytes(path):
    with open(path, "rb") as f:
        return f.read()


def _write_bytes(path, data):
    with open(path, "wb") as f:
        f.write(data)


class TestLanguages:
    """Tests for language detection and comment tokens."""

    @pytest.mark.parametrize("file_name,language", [
        ("app.py", "python"),
        ("index.js", "javascript"),
        ("view.tsx", "typescript"),
        ("Main.java", "java"),
        ("main.go", "go"),
        ("lib.rs", "rust"),
        ("task.rb", "ruby"),
        ("header.h", "cpp"),
    ])
    def test_detect_language(self, file_name, language):
        assert detect_language(file_name) == language

    def test_unknown_extension(self):
        assert detect_language("notes.txt") is None
        assert detect_language("Makefile") is None

    def test_comment_tokens(self):
        assert comment_token("python") == "#"
        assert comment_token("ruby") == "#"
        assert comment_token("go") == "//"
        assert comment_token("JavaScript") == "//"

    def test_unsupported_language(self):
        with pytest.raises(UnsupportedLanguage) as exc_info:
            comment_token("plaintext")
        assert str(exc_info.value) == "Suppression not supported for plaintext"

    def test_every_detectable_language_has_a_token(self):
        assert set(LANGUAGE_EXTENSIONS) <= set(COMMENT_TOKENS)


class TestSplitLines:
    """Tests for line splitting."""

    def test_terminators_are_kept(self):
        assert split_lines("a\r\nb\nc\rd") == ["a\r\n", "b\n", "c\r", "d"]

    def test_trailing_newline_adds_empty_line(self):
        assert split_lines("a\n") == ["a\n", ""]
        assert split_lines("") == [""]

    def test_join_restores_text(self):
        text = "x = 1\r\n\r\ny = 2\n"
        assert "".join(split_lines(text)) == text


class TestLineSuppression:
    """Tests for line-scoped suppression."""

    def test_appends_marker(self, tmp_path):
        path = tmp_path / "app.py"
        path.write_text("import os\nx = eval(s)\nprint(x)\n", encoding="utf-8")

        result = SuppressionEditor().suppress_at_line(SourceDocument.open(str(path)), 1, "python.eval")

        assert result is SuppressionResult.APPLIED
        assert path.read_text(encoding="utf-8") == (
            "import os\nx = eval(s) # nosemgrep: python.eval\nprint(x)\n"
        )

    def test_is_idempotent(self, tmp_path):
        path = tmp_path / "app.py"
        path.write_text("x = eval(s)\n", encoding="utf-8")
        editor = SuppressionEditor()
        doc = SourceDocument.open(str(path))

        editor.suppress_at_line(doc, 0, "python.eval")
        after_first = _read_bytes(str(path))
        result = editor.suppress_at_line(doc, 0, "python.eval")

        assert result is SuppressionResult.ALREADY_SUPPRESSED
        assert _read_bytes(str(path)) == after_first

    def test_any_recognized_marker_counts(self, tmp_path):
        path = tmp_path / "app.js"
        path.write_text("eval(s) // nogrep\n", encoding="utf-8")

        result = SuppressionEditor().suppress_at_line(SourceDocument.open(str(path)), 0, "js.eval")

        assert result is SuppressionResult.ALREADY_SUPPRESSED

    def test_crlf_is_preserved(self, tmp_path):
        path = str(tmp_path / "Main.java")
        original = b"class A {\r\n  eval();\r\n}\r\n"
        _write_bytes(path, original)

        SuppressionEditor().suppress_at_line(SourceDocument.open(path), 1, "java.eval")

        inserted = b" // nosemgrep: java.eval"
        offset = original.index(b"\r\n", original.index(b"eval"))
        assert _read_bytes(path) == original[:offset] + inserted + original[offset:]

    def test_last_line_without_newline(self, tmp_path):
        path = tmp_path / "main.go"
        path.write_text("package main\nexec(cmd)", encoding="utf-8")

        SuppressionEditor().suppress_at_line(SourceDocument.open(str(path)), 1, "go.exec")

        assert path.read_text(encoding="utf-8") == "package main\nexec(cmd) // nosemgrep: go.exec"

    def test_out_of_range(self, tmp_path):
        path = tmp_path / "app.py"
        path.write_text("a = 1\n", encoding="utf-8")
        doc = SourceDocument.open(str(path))

        with pytest.raises(LineOutOfRange):
            SuppressionEditor().suppress_at_line(doc, 5, "r1")
        with pytest.raises(LineOutOfRange):
            SuppressionEditor().suppress_at_line(doc, -1, "r1")
        assert path.read_text(encoding="utf-8") == "a = 1\n"

    def test_unsupported_language_leaves_file_alone(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("eval here\n", encoding="utf-8")

        with pytest.raises(UnsupportedLanguage):
            SuppressionEditor().suppress_at_line(SourceDocument.open(str(path)), 0, "r1")

        assert path.read_text(encoding="utf-8") == "eval here\n"
        assert os.listdir(tmp_path) == ["notes.txt"]

    def test_language_override(self, tmp_path):
        path = tmp_path / "script"
        path.write_text("eval(x)\n", encoding="utf-8")

        SuppressionEditor().suppress_at_line(SourceDocument.open(str(path), "python"), 0, "r1")

        assert path.read_text(encoding="utf-8") == "eval(x) # nosemgrep: r1\n"


class TestFileSuppression:
    """Tests for file-scoped suppression."""

    def test_inserts_first_line(self, tmp_path):
        path = tmp_path / "app.py"
        path.write_text("import os\n", encoding="utf-8")

        result = SuppressionEditor().suppress_file_wide(SourceDocument.open(str(path)), "python.eval")

        assert result is SuppressionResult.APPLIED
        assert path.read_text(encoding="utf-8") == "# nosemgrep: python.eval\nimport os\n"

    def test_twice_adds_two_lines(self, tmp_path):
        path = tmp_path / "app.py"
        path.write_text("import os\n", encoding="utf-8")
        editor = SuppressionEditor()
        doc = SourceDocument.open(str(path))

        editor.suppress_file_wide(doc, "r1")
        editor.suppress_file_wide(doc, "r1")

        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines[:2] == ["# nosemgrep: r1", "# nosemgrep: r1"]
        assert lines[2] == "import os"

    def test_marker_goes_after_byte_order_mark(self, tmp_path):
        path = str(tmp_path / "app.py")
        _write_bytes(path, b"\xef\xbb\xbfimport os\n")

        SuppressionEditor().suppress_file_wide(SourceDocument.open(path), "r1")

        assert _read_bytes(path) == b"\xef\xbb\xbf# nosemgrep: r1\nimport os\n"

    def test_uses_file_line_ending(self, tmp_path):
        path = str(tmp_path / "app.ts")
        _write_bytes(path, b"let a = 1;\r\n")

        SuppressionEditor().suppress_file_wide(SourceDocument.open(path), "ts.rule")

        assert _read_bytes(path) == b"// nosemgrep: ts.rule\r\nlet a = 1;\r\n"


class TestGlobalSuppression:
    """Tests for the project exclusion config."""

    def test_creates_config(self, tmp_path):
        editor = SuppressionEditor()

        result = editor.suppress_globally(str(tmp_path), "r1")

        assert result is SuppressionResult.APPLIED
        data = yaml.safe_load((tmp_path / ".semgrep.yml").read_text(encoding="utf-8"))
        assert data == {"rules": {"exclude": ["r1"]}}

    def test_is_idempotent_and_keeps_other_keys(self, tmp_path):
        config = tmp_path / ".semgrep.yml"
        config.write_text(
            "paths:\n  exclude:\n    - vendor/\nrules:\n  exclude:\n    - old.rule\n  severity: ERROR\n",
            encoding="utf-8",
        )
        editor = SuppressionEditor()

        assert editor.suppress_globally(str(tmp_path), "r1") is SuppressionResult.APPLIED
        after_first = config.read_text(encoding="utf-8")
        assert editor.suppress_globally(str(tmp_path), "r1") is SuppressionResult.ALREADY_SUPPRESSED

        assert config.read_text(encoding="utf-8") == after_first
        data = yaml.safe_load(after_first)
        assert data["paths"] == {"exclude": ["vendor/"]}
        assert data["rules"]["severity"] == "ERROR"
        assert data["rules"]["exclude"] == ["old.rule", "r1"]
        assert editor.excluded_rules(str(tmp_path)) == ["old.rule", "r1"]

    def test_empty_file(self, tmp_path):
        (tmp_path / ".semgrep.yml").write_text("", encoding="utf-8")

        SuppressionEditor().suppress_globally(str(tmp_path), "r1")

        assert SuppressionEditor().excluded_rules(str(tmp_path)) == ["r1"]

    @pytest.mark.parametrize("content", [
        "rules: [unclosed\n",
        "- just\n- a list\n",
        "rules:\n  - id: r1\n",
        "rules:\n  exclude: r1\n",
    ])
    def test_unusable_config_is_left_unchanged(self, tmp_path, content):
        config = tmp_path / ".semgrep.yml"
        config.write_text(content, encoding="utf-8")

        with pytest.raises(ConfigParseError) as exc_info:
            SuppressionEditor().suppress_globally(str(tmp_path), "r1")

        assert str(exc_info.value).startswith(f"Failed to parse {config}")
        assert config.read_text(encoding="utf-8") == content

    def test_custom_config_name(self, tmp_path):
        editor = SuppressionEditor(exclusion_config="opengrep.yml")

        editor.suppress_globally(str(tmp_path), "r1")

        assert (tmp_path / "opengrep.yml").exists()
        assert not (tmp_path / ".semgrep.yml").exists()
