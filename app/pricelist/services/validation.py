"""
Pre-sync data-integrity checks.

Groups records by problem so the caller can decide whether a price list is
safe to push to the commerce platform.  Never raises and never blocks an
export; it only reports.
"""

from __future__ import annotations

from collections import defaultdict

from pricelist.models import PriceRecord, ValidationIssue, ValidationResult
from pricelist.utils.config import LARGE_INCREASE_THRESHOLD_PCT


def validate_for_sync(
    records: list[PriceRecord],
    large_increase_pct: float = LARGE_INCREASE_THRESHOLD_PCT,
) -> ValidationResult:
    """Check records for missing SKUs, bad prices, duplicates and big jumps.

    Errors (``MISSING_SKU``, ``INVALID_PRICE``, ``DUPLICATE_SKU``) make the
    result invalid; ``LARGE_PRICE_INCREASE`` is only a warning.
    """
    missing_skus: list[str] = []
    invalid_prices: list[str] = []
    large_increases: list[str] = []
    rows_by_sku: dict[str, int] = defaultdict(int)

    for position, record in enumerate(records, start=1):
        item_id = record.sku or f"row {position}"

        if not record.sku:
            missing_skus.append(item_id)
        else:
            rows_by_sku[record.sku] += 1

        if record.new_price <= 0:
            invalid_prices.append(item_id)

        if (
            record.old_price > 0
            and record.new_price > record.old_price
            and (record.new_price / record.old_price - 1) * 100 > large_increase_pct
        ):
            large_increases.append(item_id)

    duplicates = [sku for sku, n in rows_by_sku.items() if n > 1]

    errors: list[ValidationIssue] = []
    if missing_skus:
        errors.append(
            ValidationIssue(
                code="MISSING_SKU",
                message="Some items are missing SKUs",
                items=missing_skus,
            )
        )
    if invalid_prices:
        errors.append(
            ValidationIssue(
                code="INVALID_PRICE",
                message="Some items have invalid prices (must be greater than 0)",
                items=invalid_prices,
            )
        )
    if duplicates:
        errors.append(
            ValidationIssue(
                code="DUPLICATE_SKU",
                message="Duplicate SKUs found",
                items=duplicates,
            )
        )

    warnings: list[ValidationIssue] = []
    if large_increases:
        warnings.append(
            ValidationIssue(
                code="LARGE_PRICE_INCREASE",
                message=f"Some items have price increases greater than {large_increase_pct:g}%",
                items=large_increases,
            )
        )

    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)
