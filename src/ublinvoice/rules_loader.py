"""Runtime loader for the business-rule parameters shipped in ``rules_index.json``."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Iterable

from .exceptions import RulesLoaderError

_INDEX_ENV_VAR = "UBLINVOICE_RULES_INDEX_PATH"
_DEFAULT_INDEX_PATH = Path(__file__).resolve().parent / "data" / "rules_index.json"


class RulesIndexNotFound(RulesLoaderError):
    """Raised when the rules index file does not exist."""


@dataclass(frozen=True)
class DocumentReference:
    """Pointer to the published source that defines a rule."""

    filename: str
    sections: tuple[str, ...] | None = None


@dataclass(frozen=True)
class Rule:
    """Machine-usable business rule loaded from ``rules_index.json``."""

    rule_id: str
    scope: str
    semantics: str
    constraints: dict[str, Any]
    applies_since: str | None
    applies_until: str | None
    precedence: int | None
    source_doc_refs: tuple[DocumentReference, ...]

    def is_active(self, on: date | None = None) -> bool:
        """Return whether ``on`` (today by default) falls inside the rule window."""

        day = (on or date.today()).isoformat()
        if self.applies_since and day < self.applies_since:
            return False
        if self.applies_until and day > self.applies_until:
            return False
        return True


@dataclass(frozen=True)
class Document:
    """Metadata describing a published standard or profile document."""

    filename: str
    title: str
    version: str | None
    doc_date: str | None
    abstract: str


@dataclass(frozen=True)
class RulesIndex:
    """Structured representation of ``rules_index.json``."""

    generated_at: str
    schema_version: str
    documents: tuple[Document, ...]
    rules: tuple[Rule, ...]

    def find_rule(self, rule_id: str) -> Rule | None:
        """Return the rule with ``rule_id`` if present."""

        return next((rule for rule in self.rules if rule.rule_id == rule_id), None)

    def iter_scope(self, scope: str) -> Iterable[Rule]:
        """Yield every rule whose ``scope`` matches the provided value."""

        matching = [rule for rule in self.rules if rule.scope == scope]
        return sorted(matching, key=lambda rule: rule.precedence or 0)


_CACHED_INDEX: tuple[Path, float, RulesIndex] | None = None


def resolve_index_path() -> Path:
    candidate = os.getenv(_INDEX_ENV_VAR)
    if candidate:
        return Path(candidate)
    return _DEFAULT_INDEX_PATH


def _load_index_from_disk(path: Path) -> RulesIndex:
    if not path.exists():
        msg = f"Rules index '{path}' not found"
        raise RulesIndexNotFound(msg)

    with path.open("r", encoding="utf-8") as handle:
        try:
            payload = json.load(handle)
        except json.JSONDecodeError as exc:
            msg = f"Rules index '{path}' is not valid JSON"
            raise RulesLoaderError(msg) from exc

    try:
        generated_at = payload["generated_at"]
        schema_version = payload["schema_version"]
        raw_documents = payload.get("documents", [])
        raw_rules = payload["rules"]
    except (KeyError, TypeError) as exc:
        msg = "Rules index is missing required keys"
        raise RulesLoaderError(msg) from exc

    documents = []
    for item in raw_documents:
        documents.append(
            Document(
                filename=item["filename"],
                title=item.get("title", ""),
                version=item.get("version"),
                doc_date=item.get("doc_date"),
                abstract=item.get("abstract", ""),
            )
        )

    rules = []
    for item in raw_rules:
        try:
            references = tuple(
                DocumentReference(
                    filename=ref["filename"],
                    sections=tuple(ref.get("sections", [])) or None,
                )
                for ref in item.get("source_doc_refs", [])
            )
            rules.append(
                Rule(
                    rule_id=item["rule_id"],
                    scope=item["scope"],
                    semantics=item.get("semantics", ""),
                    constraints=dict(item.get("constraints", {})),
                    applies_since=item.get("applies_since"),
                    applies_until=item.get("applies_until"),
                    precedence=item.get("precedence"),
                    source_doc_refs=references,
                )
            )
        except KeyError as exc:
            msg = f"Rule entry in '{path}' is missing {exc}"
            raise RulesLoaderError(msg) from exc

    return RulesIndex(
        generated_at=generated_at,
        schema_version=schema_version,
        documents=tuple(documents),
        rules=tuple(rules),
    )


def load_rules_index(force_reload: bool = False) -> RulesIndex:
    """Load ``rules_index.json`` with caching keyed on path and mtime."""

    global _CACHED_INDEX

    index_path = resolve_index_path()
    mtime = index_path.stat().st_mtime if index_path.exists() else 0.0

    if not force_reload and _CACHED_INDEX:
        cached_path, cached_mtime, cached_index = _CACHED_INDEX
        if cached_path == index_path and cached_mtime == mtime:
            return cached_index

    index = _load_index_from_disk(index_path)
    _CACHED_INDEX = (index_path, mtime, index)
    return index


def clear_cache() -> None:
    global _CACHED_INDEX
    _CACHED_INDEX = None


def get_rule(rule_id: str) -> Rule | None:
    """Return the rule with ``rule_id`` from the cached index."""

    index = load_rules_index()
    return index.find_rule(rule_id)


def iter_rules(scope: str | None = None) -> Iterable[Rule]:
    """Iterate over rules optionally filtered by ``scope``."""

    index = load_rules_index()
    if scope is None:
        return index.rules
    return index.iter_scope(scope)


__all__ = [
    "Document",
    "DocumentReference",
    "Rule",
    "RulesIndex",
    "RulesIndexNotFound",
    "RulesLoaderError",
    "clear_cache",
    "get_rule",
    "iter_rules",
    "load_rules_index",
    "resolve_index_path",
]
