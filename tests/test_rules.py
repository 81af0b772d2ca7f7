"""
Tests for the rule catalog.
"""

from pathlib import Path

from grepwarden.core.findings import Severity
from grepwarden.core.rules import RuleCatalog


def _write(path, content):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


class TestRuleCatalog:
    """Tests for RuleCatalog."""

    def test_groups_by_category(self, project):
        root = Path(project) / ".opengrep" / "rules"
        rules_root = str(root)
        _write(root / "javascript" / "xss.yml", (
            "rules:\n"
            "  - id: js.xss\n"
            "    message: Possible XSS\n"
            "    languages: [javascript, typescript]\n"
            "    severity: WARNING\n"
        ))
        _write(root / "shared.yaml", (
            "rules:\n"
            "  - id: generic.secret\n"
            "    message: Hardcoded secret\n"
            "    languages: generic\n"
            "    severity: info\n"
        ))

        catalog = RuleCatalog.load(rules_root)

        assert catalog.categories() == [".", "javascript", "python"]
        assert catalog.count == 3
        xss = catalog.get("js.xss")
        assert xss.severity == Severity.WARNING
        assert xss.languages == ["javascript", "typescript"]
        assert catalog.get("generic.secret").languages == ["generic"]
        assert catalog.get("generic.secret").category == "."
        assert [r.rule_id for r in catalog.rules_in("python")] == ["python.eval"]

    def test_bad_files_and_rules_are_skipped(self, tmp_path):
        _write(tmp_path / "go" / "broken.yaml", "rules: [unclosed\n")
        _write(tmp_path / "go" / "notes.yaml", "just: a mapping\n")
        _write(tmp_path / "go" / "mixed.yaml", (
            "rules:\n"
            "  - id: go.loud\n"
            "    severity: CRITICAL\n"
            "  - id: go.exec\n"
            "    severity: ERROR\n"
            "  - message: no id\n"
        ))

        catalog = RuleCatalog.load(str(tmp_path))

        assert [r.rule_id for r in catalog.all_rules()] == ["go.exec"]
        assert catalog.get("go.exec").message == "No description"

    def test_has_rules(self, tmp_path):
        assert not RuleCatalog.has_rules(str(tmp_path / "missing"))
        assert not RuleCatalog.has_rules(str(tmp_path))
        _write(tmp_path / "python" / "a.yaml", "rules: []\n")
        assert RuleCatalog.has_rules(str(tmp_path))

    def test_reload_picks_up_new_files(self, tmp_path):
        catalog = RuleCatalog.load(str(tmp_path))
        assert catalog.count == 0

        _write(tmp_path / "python" / "a.yaml", "rules:\n  - id: r1\n    severity: INFO\n")
        catalog.reload()

        assert catalog.count == 1
