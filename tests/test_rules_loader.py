from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import pytest

from ublinvoice import rules_loader
from ublinvoice.exceptions import RulesLoaderError


def _write_index(path: Path) -> None:
    payload = {
        "generated_at": "2026-09-30T00:00:00+00:00",
        "schema_version": "1.0",
        "documents": [
            {
                "filename": "doc.pdf",
                "title": "Doc",
                "version": "v1",
                "doc_date": "2026-01-01",
                "abstract": "",
            }
        ],
        "rules": [
            {
                "rule_id": "BE-LATE",
                "scope": "ublbe",
                "semantics": "Second rule by precedence",
                "constraints": {"min_attachments": 1},
                "applies_since": "2026-01-01",
                "applies_until": None,
                "precedence": 20,
                "source_doc_refs": [{"filename": "doc.pdf", "sections": ["2"]}],
            },
            {
                "rule_id": "BE-EARLY",
                "scope": "ublbe",
                "semantics": "First rule by precedence",
                "constraints": {},
                "applies_since": None,
                "applies_until": "2026-06-30",
                "precedence": 5,
                "source_doc_refs": [{"filename": "doc.pdf"}],
            },
            {
                "rule_id": "BR-CO-17",
                "scope": "en16931",
                "semantics": "Tolerance",
                "constraints": {"tolerance": "0.05"},
                "applies_since": None,
                "applies_until": None,
                "precedence": 10,
                "source_doc_refs": [],
            },
        ],
    }
    path.write_text(json.dumps(payload), encoding="utf-8")


def test_default_index_is_bundled(monkeypatch) -> None:
    monkeypatch.delenv("UBLINVOICE_RULES_INDEX_PATH", raising=False)

    index = rules_loader.load_rules_index()

    assert rules_loader.resolve_index_path().name == "rules_index.json"
    assert index.find_rule("BR-CO-17") is not None
    assert {rule.scope for rule in index.rules} == {"en16931", "peppol", "ublbe"}


def test_env_override_and_precedence(tmp_path, monkeypatch) -> None:
    index_path = tmp_path / "rules_index.json"
    _write_index(index_path)
    monkeypatch.setenv("UBLINVOICE_RULES_INDEX_PATH", str(index_path))

    rules = list(rules_loader.iter_rules("ublbe"))

    assert [rule.rule_id for rule in rules] == ["BE-EARLY", "BE-LATE"]
    assert rules[1].source_doc_refs[0].sections == ("2",)
    assert rules[0].source_doc_refs[0].sections is None
    assert rules_loader.get_rule("BR-CO-17").constraints == {"tolerance": "0.05"}
    assert rules_loader.get_rule("missing") is None


def test_rule_activity_window(tmp_path, monkeypatch) -> None:
    index_path = tmp_path / "rules_index.json"
    _write_index(index_path)
    monkeypatch.setenv("UBLINVOICE_RULES_INDEX_PATH", str(index_path))

    early = rules_loader.get_rule("BE-EARLY")
    late = rules_loader.get_rule("BE-LATE")

    assert early.is_active(date(2026, 3, 1))
    assert not early.is_active(date(2026, 7, 1))
    assert not late.is_active(date(2025, 12, 31))
    assert late.is_active(date(2026, 1, 1))


def test_cache_is_reused_until_cleared(tmp_path, monkeypatch) -> None:
    index_path = tmp_path / "rules_index.json"
    _write_index(index_path)
    monkeypatch.setenv("UBLINVOICE_RULES_INDEX_PATH", str(index_path))

    first = rules_loader.load_rules_index()
    assert rules_loader.load_rules_index() is first
    assert rules_loader.load_rules_index(force_reload=True) is not first

    rules_loader.clear_cache()
    assert rules_loader.load_rules_index() is not first


def test_missing_index_raises_not_found(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("UBLINVOICE_RULES_INDEX_PATH", str(tmp_path / "absent.json"))

    with pytest.raises(rules_loader.RulesIndexNotFound):
        rules_loader.load_rules_index()


@pytest.mark.parametrize(
    "content",
    ["{not json", json.dumps({"schema_version": "1.0"}), json.dumps(
        {"generated_at": "x", "schema_version": "1.0", "rules": [{"scope": "en16931"}]}
    )],
)
def test_corrupt_index_raises(tmp_path, monkeypatch, content: str) -> None:
    index_path = tmp_path / "rules_index.json"
    index_path.write_text(content, encoding="utf-8")
    monkeypatch.setenv("UBLINVOICE_RULES_INDEX_PATH", str(index_path))

    with pytest.raises(RulesLoaderError):
        rules_loader.load_rules_index()
