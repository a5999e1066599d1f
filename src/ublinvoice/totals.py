"""Derive line amounts, VAT buckets and document totals from invoice entities."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Iterable, Mapping

from .models import AllowanceCharge, InvoiceLine, VatBreakdown, VatKey
from .utils import ZERO, q2

LOGGER = logging.getLogger("ublinvoice.totals")

ExemptionReason = tuple[str | None, str | None]


@dataclass
class InvoiceTotals:
    """Document level amounts (BG-22)."""

    line_extension_amount: Decimal = ZERO
    allowance_total: Decimal = ZERO
    charge_total: Decimal = ZERO
    tax_exclusive_amount: Decimal = ZERO
    total_vat_amount: Decimal = ZERO
    tax_inclusive_amount: Decimal = ZERO
    prepaid_amount: Decimal = ZERO
    payable_amount: Decimal = ZERO

    def as_dict(self) -> dict[str, Decimal]:
        return asdict(self)


def build_vat_breakdown(
    lines: Iterable[InvoiceLine],
    allowance_charges: Iterable[AllowanceCharge],
) -> list[VatBreakdown]:
    """Group amounts into buckets keyed by ``(category, rate)``.

    Buckets keep first-seen order. Each accumulation is rounded to two
    decimals as it happens, not only once at the end, so the taxable amounts
    match documents produced by other EN16931 tools.
    """

    buckets: dict[VatKey, VatBreakdown] = {}

    def bucket_for(key: VatKey) -> VatBreakdown:
        bucket = buckets.get(key)
        if bucket is None:
            bucket = VatBreakdown(key[0], key[1], checked=False)
            buckets[key] = bucket
        return bucket

    for line in lines:
        bucket_for(line.vat_key).accumulate(line.line_amount)

    for item in allowance_charges:
        bucket_for(item.vat_key).accumulate(item.signed_amount)

    for bucket in buckets.values():
        bucket.tax_amount = bucket.expected_tax_amount()

    return list(buckets.values())


def compute_totals(
    lines: Iterable[InvoiceLine],
    allowance_charges: Iterable[AllowanceCharge],
    *,
    prepaid_amount: Decimal = ZERO,
    exemption_reasons: Mapping[VatKey, ExemptionReason] | None = None,
) -> tuple[InvoiceTotals, list[VatBreakdown]]:
    """Return the totals and the VAT buckets for the given entities.

    ``exemption_reasons`` maps a bucket key to ``(text, code)``; matching
    buckets receive it. Nothing here raises: the inputs are validated
    entities.
    """

    lines = list(lines)
    allowance_charges = list(allowance_charges)
    buckets = build_vat_breakdown(lines, allowance_charges)

    totals = InvoiceTotals(prepaid_amount=q2(prepaid_amount))
    for line in lines:
        totals.line_extension_amount = q2(totals.line_extension_amount + line.line_amount)
    for item in allowance_charges:
        if item.charge_indicator:
            totals.charge_total = q2(totals.charge_total + item.amount)
        else:
            totals.allowance_total = q2(totals.allowance_total + item.amount)

    for bucket in buckets:
        if exemption_reasons and bucket.key in exemption_reasons:
            bucket.set_exemption_reason(*exemption_reasons[bucket.key])
        totals.total_vat_amount = q2(totals.total_vat_amount + bucket.tax_amount)

    totals.tax_exclusive_amount = q2(
        totals.line_extension_amount - totals.allowance_total + totals.charge_total
    )
    totals.tax_inclusive_amount = q2(totals.tax_exclusive_amount + totals.total_vat_amount)
    totals.payable_amount = q2(totals.tax_inclusive_amount - totals.prepaid_amount)

    LOGGER.debug(
        "Recomputed %d VAT bucket(s) from %d line(s): payable %s",
        len(buckets),
        len(lines),
        totals.payable_amount,
    )
    return totals, buckets


__all__ = ["ExemptionReason", "InvoiceTotals", "build_vat_breakdown", "compute_totals"]
