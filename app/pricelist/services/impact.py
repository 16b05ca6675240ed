"""
Financial impact and margin calculations for classified records.
"""

from __future__ import annotations

from pricelist.models import PriceRecord, RecordStatus

# Prices are treated as a monthly run rate
ANNUALIZATION_FACTOR = 12


def calculate_impact(old_price: float, new_price: float, status: RecordStatus) -> float:
    """Signed annualized impact; cost increases come out negative."""
    if status is RecordStatus.DISCONTINUED:
        return -(old_price * ANNUALIZATION_FACTOR)
    return (new_price - old_price) * -ANNUALIZATION_FACTOR


def margin_pct(retail_price: float, cost: float) -> float:
    return ((retail_price - cost) / retail_price) * 100


def calculate_margins(
    retail_price: float | None, old_price: float, new_price: float
) -> tuple[float, float, float] | None:
    """Return ``(old_margin, new_margin, margin_change)`` or None.

    Margins only exist against a positive retail price.
    """
    if retail_price is None or retail_price <= 0:
        return None
    old_margin = margin_pct(retail_price, old_price)
    new_margin = margin_pct(retail_price, new_price)
    return old_margin, new_margin, new_margin - old_margin


def apply_impact(record: PriceRecord) -> PriceRecord:
    """Fill impact and margin fields; run after classification."""
    record.potential_impact = calculate_impact(
        record.old_price, record.new_price, record.status
    )
    margins = calculate_margins(record.retail_price, record.old_price, record.new_price)
    if margins is None:
        record.old_margin = record.new_margin = record.margin_change = None
    else:
        record.old_margin, record.new_margin, record.margin_change = margins
    return record
