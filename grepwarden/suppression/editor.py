"""
Suppression editor.

Writes scanner suppression markers into source files (line and file
scope) and into the project exclusion config (global scope). Every edit
is a pure insertion into the existing text and is written atomically;
on any error the file on disk is left exactly as it was.
"""

import logging
import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from grepwarden.errors import ConfigParseError, LineOutOfRange, SuppressionError
from grepwarden.suppression.languages import comment_token, detect_language
from grepwarden.utils import atomic_write, read_text

logger = logging.getLogger(__name__)


SUPPRESSION_MARKER = "nosemgrep"
# Markers the scanner honors; a line carrying any of them is already suppressed.
RECOGNIZED_MARKERS = ("nosemgrep", "nogrep")

DEFAULT_EXCLUSION_CONFIG = ".semgrep.yml"

_LINE_RE = re.compile(r"[^\r\n]*(?:\r\n|\n|\r)|[^\r\n]+\Z")
_ENDING_RE = re.compile(r"(\r\n|\n|\r)\Z")
_BOM = "\ufeff"


class SuppressionResult(Enum):
    """Outcome of a suppression request."""
    APPLIED = "applied"
    ALREADY_SUPPRESSED = "already_suppressed"


@dataclass(frozen=True)
class SourceDocument:
    """A source file plus the language it is annotated as."""
    path: str
    language: str

    @classmethod
    def open(cls, path: str, language: Optional[str] = None) -> "SourceDocument":
        """Describe ``path``, detecting the language from its extension if not given."""
        if language is None:
            language = detect_language(path) or (Path(path).suffix.lstrip(".") or "plaintext")
        return cls(path=os.path.abspath(path), language=language)

    @property
    def file_name(self) -> str:
        return os.path.basename(self.path)


def split_lines(text: str) -> List[str]:
    """
    Split ``text`` into lines, keeping terminators.

    Only ``\\r\\n``, ``\\n`` and ``\\r`` end a line. A text that is empty
    or ends with a terminator has a trailing empty line, as in an editor.
    """
    lines = _LINE_RE.findall(text)
    if not lines or _ENDING_RE.search(lines[-1]):
        lines.append("")
    return lines


def _split_ending(line: str) -> Tuple[str, str]:
    match = _ENDING_RE.search(line)
    if match:
        return line[:match.start()], match.group(1)
    return line, ""


def _line_ending_of(text: str) -> str:
    match = re.search(r"\r\n|\n|\r", text)
    return match.group(0) if match else "\n"


def build_marker(language: str, rule_id: str) -> str:
    """``<comment-token> nosemgrep: <rule_id>`` for ``language``."""
    return f"{comment_token(language)} {SUPPRESSION_MARKER}: {rule_id}"


def has_marker(line: str) -> bool:
    return any(marker in line for marker in RECOGNIZED_MARKERS)


def _read_document(doc: SourceDocument) -> str:
    try:
        return read_text(doc.path)
    except (OSError, UnicodeDecodeError) as e:
        raise SuppressionError(f"Cannot read {doc.path}: {e}") from e


def _write(path: str, content: str) -> None:
    try:
        atomic_write(path, content)
    except OSError as e:
        raise SuppressionError(f"Cannot write {path}: {e}") from e


class SuppressionEditor:
    """
    Inserts suppression markers.

    Line scope:   ``x = eval(s)  # nosemgrep: python.eval``
    File scope:   ``# nosemgrep: python.eval`` as the first line
    Global scope: ``rules.exclude`` list in ``.semgrep.yml``
    """

    def __init__(self, exclusion_config: str = DEFAULT_EXCLUSION_CONFIG):
        self.exclusion_config = exclusion_config

    def suppress_at_line(self, doc: SourceDocument, line_index: int, rule_id: str) -> SuppressionResult:
        """
        Append a marker for ``rule_id`` to the 0-based line ``line_index``.

        Returns ALREADY_SUPPRESSED without touching the file when the line
        already carries a recognized marker.
        """
        # Resolve the token first so an unsupported language never reads or writes.
        marker = build_marker(doc.language, rule_id)
        text = _read_document(doc)
        lines = split_lines(text)

        if not 0 <= line_index < len(lines):
            raise LineOutOfRange(line_index, len(lines))

        body, ending = _split_ending(lines[line_index])
        if has_marker(body):
            logger.info(f"{doc.file_name}:{line_index + 1} already has a suppression comment")
            return SuppressionResult.ALREADY_SUPPRESSED

        lines[line_index] = f"{body} {marker}{ending}"
        _write(doc.path, "".join(lines))

        logger.info(f"Suppressed {rule_id} in {doc.path}:{line_index + 1}")
        return SuppressionResult.APPLIED

    def suppress_file_wide(self, doc: SourceDocument, rule_id: str) -> SuppressionResult:
        """
        Insert a marker line for ``rule_id`` at the top of the file.

        No duplicate check is made: calling this twice adds two lines.
        """
        marker = build_marker(doc.language, rule_id)
        text = _read_document(doc)

        # A byte order mark stays the first character of the file.
        bom = _BOM if text.startswith(_BOM) else ""
        _write(doc.path, bom + marker + _line_ending_of(text) + text[len(bom):])

        logger.info(f"Suppressed rule {rule_id} in entire file: {doc.path}")
        return SuppressionResult.APPLIED

    def exclusion_config_path(self, project_root: str) -> str:
        return os.path.join(project_root, self.exclusion_config)

    def read_exclusion_config(self, project_root: str) -> Dict[str, Any]:
        """
        Load the exclusion config, or ``{}`` when the file does not exist.

        Raises ConfigParseError when the file is not YAML or when
        ``rules`` / ``rules.exclude`` have an unusable shape.
        """
        path = self.exclusion_config_path(project_root)
        if not os.path.exists(path):
            return {}

        try:
            config = yaml.safe_load(read_text(path))
        except (yaml.YAMLError, UnicodeDecodeError, OSError) as e:
            raise ConfigParseError(path, str(e)) from e

        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ConfigParseError(path, "top level is not a mapping")

        rules = config.get("rules")
        if rules is not None and not isinstance(rules, dict):
            raise ConfigParseError(path, "'rules' is not a mapping")
        exclude = (rules or {}).get("exclude")
        if exclude is not None and not isinstance(exclude, list):
            raise ConfigParseError(path, "'rules.exclude' is not a list")

        return config

    def excluded_rules(self, project_root: str) -> List[str]:
        config = self.read_exclusion_config(project_root)
        return [str(r) for r in (config.get("rules") or {}).get("exclude") or []]

    def suppress_globally(self, project_root: str, rule_id: str) -> SuppressionResult:
        """Add ``rule_id`` to ``rules.exclude`` of the project exclusion config."""
        path = self.exclusion_config_path(project_root)
        config = self.read_exclusion_config(project_root)

        rules = config.get("rules")
        if rules is None:
            rules = config["rules"] = {}
        exclude = rules.get("exclude")
        if exclude is None:
            exclude = rules["exclude"] = []

        if rule_id in exclude:
            logger.info(f"Rule {rule_id} is already excluded in {path}")
            return SuppressionResult.ALREADY_SUPPRESSED

        exclude.append(rule_id)
        content = yaml.safe_dump(config, default_flow_style=False, sort_keys=False, allow_unicode=True)
        _write(path, content)

        logger.info(f"Globally suppressed rule {rule_id} in {path}")
        return SuppressionResult.APPLIED
