"""Exception hierarchy shared by the invoice model, the codec and the rule layers."""

from __future__ import annotations


class InvoiceError(Exception):
    """Base class for every error raised by :mod:`ublinvoice`."""


class ConstructionError(InvoiceError, ValueError):
    """An entity field failed its format or range check."""


class ExportError(InvoiceError):
    """The aggregate lacks the data required to produce a document."""


class ImportStructuralError(InvoiceError):
    """Strict import aborted on missing or malformed data."""

    def __init__(self, message: str, *, anomalies: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.anomalies = tuple(anomalies)


class RulesLoaderError(InvoiceError, RuntimeError):
    """Raised when the rules index cannot be parsed."""


class UnknownProfileError(InvoiceError, KeyError):
    """The requested validation profile is not registered."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "unknown profile"


__all__ = [
    "ConstructionError",
    "ExportError",
    "ImportStructuralError",
    "InvoiceError",
    "RulesLoaderError",
    "UnknownProfileError",
]
