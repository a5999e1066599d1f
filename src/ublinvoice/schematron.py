"""Interface to an external rule-file (Schematron) validator.

Compiling rule files and running them is left to a collaborator that
implements :class:`RuleFileValidator`. This module defines the report it
returns and reads SVRL output into that report.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Protocol, Sequence

from lxml import etree

from .exceptions import InvoiceError

if TYPE_CHECKING:
    from .invoice import Invoice

NS_SVRL = "http://purl.oclc.org/dsdl/svrl"

LEVEL_EN16931 = "en16931"
LEVEL_PEPPOL = "peppol"
LEVEL_UBL_BE = "ublbe"

_ERROR_ROLES = frozenset({"error", "fatal"})


@dataclass(frozen=True)
class RuleViolation:
    """One assertion reported by a rule file."""

    level: str
    role: str
    message: str
    location: str = ""
    test: str = ""
    rule_id: str | None = None

    def as_cells(self) -> list[str]:
        return [self.level, self.role, self.rule_id or "", self.message, self.location]


@dataclass(frozen=True)
class RuleReport:
    """Outcome of running one or more rule files against a document."""

    errors: tuple[RuleViolation, ...] = ()
    warnings: tuple[RuleViolation, ...] = ()
    infos: tuple[RuleViolation, ...] = field(default_factory=tuple)

    @property
    def valid(self) -> bool:
        return not self.errors

    def merge(self, other: "RuleReport") -> "RuleReport":
        return RuleReport(
            errors=self.errors + other.errors,
            warnings=self.warnings + other.warnings,
            infos=self.infos + other.infos,
        )

    def all(self) -> tuple[RuleViolation, ...]:
        return self.errors + self.warnings + self.infos

    def by_level(self, level: str) -> tuple[RuleViolation, ...]:
        return tuple(item for item in self.all() if item.level == level)

    def by_role(self, role: str) -> tuple[RuleViolation, ...]:
        return tuple(item for item in self.all() if item.role == role)

    def summary(self) -> str:
        state = "valid" if self.valid else "invalid"
        return (
            f"{state}: {len(self.errors)} error(s), {len(self.warnings)} warning(s), "
            f"{len(self.infos)} info(s)"
        )


class RuleFileValidator(Protocol):
    """Runs compiled rule files against a serialised invoice."""

    def validate(self, document: bytes, levels: Sequence[str]) -> RuleReport:
        """Return the combined report for ``levels``."""


def _collapse(text: str | None) -> str:
    return " ".join((text or "").split())


def parse_svrl(svrl: bytes, level: str) -> RuleReport:
    """Read an SVRL document produced for ``level``.

    ``failed-assert`` entries become errors (role ``error``/``fatal``),
    warnings (role ``warning``) or infos (anything else);
    ``successful-report`` entries are always infos.
    """

    try:
        root = etree.fromstring(svrl, parser=etree.XMLParser(resolve_entities=False, no_network=True))
    except etree.XMLSyntaxError as exc:
        raise InvoiceError(f"invalid SVRL output for level {level}: {exc}") from exc

    ns = {"svrl": NS_SVRL}
    errors: list[RuleViolation] = []
    warnings: list[RuleViolation] = []
    infos: list[RuleViolation] = []

    for node in root.iterfind(".//svrl:failed-assert", namespaces=ns):
        role = (node.get("role") or node.get("flag") or "error").lower()
        violation = RuleViolation(
            level=level,
            role=role,
            message=_collapse(node.findtext("svrl:text", namespaces=ns)),
            location=node.get("location", ""),
            test=node.get("test", ""),
            rule_id=node.get("id"),
        )
        if role in _ERROR_ROLES:
            errors.append(violation)
        elif role == "warning":
            warnings.append(violation)
        else:
            infos.append(violation)

    for node in root.iterfind(".//svrl:successful-report", namespaces=ns):
        infos.append(
            RuleViolation(
                level=level,
                role=(node.get("role") or "info").lower(),
                message=_collapse(node.findtext("svrl:text", namespaces=ns)),
                location=node.get("location", ""),
                test=node.get("test", ""),
                rule_id=node.get("id"),
            )
        )

    return RuleReport(errors=tuple(errors), warnings=tuple(warnings), infos=tuple(infos))


def merge_reports(reports: Iterable[RuleReport]) -> RuleReport:
    merged = RuleReport()
    for report in reports:
        merged = merged.merge(report)
    return merged


def default_levels(profile: str) -> tuple[str, ...]:
    if profile == LEVEL_EN16931:
        return (LEVEL_EN16931,)
    return (LEVEL_EN16931, profile)


def validate_with_rule_files(
    invoice: "Invoice",
    validator: RuleFileValidator,
    levels: Sequence[str] | None = None,
) -> RuleReport:
    """Export ``invoice`` and hand the document to ``validator``."""

    from .codec.exporter import export_invoice

    document = export_invoice(invoice)
    return validator.validate(document, tuple(levels or default_levels(invoice.profile)))


__all__ = [
    "LEVEL_EN16931",
    "LEVEL_PEPPOL",
    "LEVEL_UBL_BE",
    "NS_SVRL",
    "RuleFileValidator",
    "RuleReport",
    "RuleViolation",
    "default_levels",
    "merge_reports",
    "parse_svrl",
    "validate_with_rule_files",
]
