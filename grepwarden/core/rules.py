"""
Rule catalog.

Reads the YAML rule files the scanner consumes so they can be listed.
Rules are never interpreted here; only ``id``, ``message``, ``severity``
and ``languages`` are picked up. The first directory under the rules root
is the rule's category (usually the language the rules were fetched for).
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from grepwarden.core.findings import Severity
from grepwarden.errors import UnknownSeverity

logger = logging.getLogger(__name__)


RULE_FILE_SUFFIXES = (".yaml", ".yml")
ROOT_CATEGORY = "."


@dataclass
class RuleInfo:
    """Summary of one rule definition."""
    rule_id: str
    message: str
    severity: Severity
    languages: List[str] = field(default_factory=list)
    path: str = ""
    category: str = ROOT_CATEGORY

    def __str__(self) -> str:
        return f"{self.rule_id} [{self.severity.value}]"


class RuleCatalog:
    """Rules found under a rules directory, grouped by category."""

    def __init__(self, rules_root: str):
        self.rules_root = rules_root
        self._by_category: Dict[str, List[RuleInfo]] = {}

    @staticmethod
    def has_rules(rules_root: str) -> bool:
        """True if the rules directory exists and is not empty."""
        return os.path.isdir(rules_root) and bool(os.listdir(rules_root))

    @classmethod
    def load(cls, rules_root: str) -> "RuleCatalog":
        catalog = cls(rules_root)
        catalog.reload()
        return catalog

    def reload(self) -> None:
        """Re-read every rule file under the root."""
        self._by_category.clear()
        root = Path(self.rules_root)
        if not root.is_dir():
            logger.debug(f"Rules directory does not exist: {root}")
            return

        for file_path in sorted(p for p in root.rglob("*") if p.suffix in RULE_FILE_SUFFIXES and p.is_file()):
            for rule in self._load_file(root, file_path):
                self._by_category.setdefault(rule.category, []).append(rule)

        logger.debug(f"Loaded {self.count} rules in {len(self._by_category)} categories")

    def _load_file(self, root: Path, file_path: Path) -> List[RuleInfo]:
        try:
            parsed = yaml.safe_load(file_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            logger.warning(f"Skipping unreadable rule file {file_path}: {e}")
            return []

        if not isinstance(parsed, dict) or not isinstance(parsed.get("rules"), list):
            return []

        parts = file_path.relative_to(root).parts
        category = parts[0] if len(parts) > 1 else ROOT_CATEGORY

        rules = []
        for entry in parsed["rules"]:
            if not isinstance(entry, dict) or not entry.get("id"):
                continue
            try:
                severity = Severity.parse(entry.get("severity", "INFO"))
            except UnknownSeverity as e:
                logger.warning(f"Skipping rule {entry['id']} in {file_path}: {e}")
                continue
            languages = entry.get("languages") or []
            rules.append(RuleInfo(
                rule_id=str(entry["id"]),
                message=str(entry.get("message") or "No description").strip(),
                severity=severity,
                languages=[str(lang) for lang in languages] if isinstance(languages, list) else [str(languages)],
                path=str(file_path),
                category=category,
            ))
        return rules

    def categories(self) -> List[str]:
        return sorted(self._by_category)

    def rules_in(self, category: str) -> List[RuleInfo]:
        return list(self._by_category.get(category, []))

    def all_rules(self) -> List[RuleInfo]:
        return [rule for category in self.categories() for rule in self._by_category[category]]

    def get(self, rule_id: str) -> Optional[RuleInfo]:
        for rule in self.all_rules():
            if rule.rule_id == rule_id:
                return rule
        return None

    @property
    def count(self) -> int:
        return sum(len(rules) for rules in self._by_category.values())
