"""
Catalog reconciliation.

Left-merges a freshly parsed price list against a catalog snapshot (records
carrying platform identifiers).  The snapshot may come from a cache and be
stale; only the fields present at call time are used.

Matching, per price-list record:
1. First catalog record with the same non-empty SKU
2. Otherwise, first catalog record with the same non-empty old barcode

When the catalog holds the same SKU more than once the first occurrence wins.
Such duplicates are logged and listed on the result rather than resolved.
"""

from __future__ import annotations

import copy
import logging
from collections import Counter

from pricelist.models import CATALOG_FIELDS, PriceRecord, ReconciliationResult

logger = logging.getLogger(__name__)


def _first_index(catalog: list[PriceRecord], key) -> dict[str, PriceRecord]:
    """Map key -> first catalog record carrying it (empty keys skipped)."""
    lookup: dict[str, PriceRecord] = {}
    for entry in catalog:
        value = key(entry)
        if value and value not in lookup:
            lookup[value] = entry
    return lookup


def find_duplicate_skus(catalog: list[PriceRecord]) -> list[str]:
    counts = Counter(entry.sku for entry in catalog if entry.sku)
    return sorted(sku for sku, n in counts.items() if n > 1)


def enrich(record: PriceRecord, entry: PriceRecord) -> None:
    """Copy the catalog-owned fields of *entry* onto *record*."""
    for field_name in CATALOG_FIELDS:
        value = getattr(entry, field_name)
        if value is not None:
            setattr(record, field_name, copy.deepcopy(value))
    record.is_matched = True


def reconcile_with_catalog(
    records: list[PriceRecord], catalog: list[PriceRecord]
) -> ReconciliationResult:
    """Enrich *records* in place from *catalog* and report the outcome.

    Price, status and anomaly fields on *records* are never touched, and
    *catalog* is not modified.  Records without a counterpart are marked
    ``is_matched=False``.  Running this twice with the same catalog changes
    nothing the second time.
    """
    by_sku = _first_index(catalog, lambda e: e.sku)
    by_barcode = _first_index(catalog, lambda e: e.old_identity.barcode)

    duplicates = find_duplicate_skus(catalog)
    if duplicates:
        logger.warning(
            "Catalog contains %d duplicate SKU(s); first occurrence wins: %s",
            len(duplicates),
            ", ".join(duplicates[:10]),
        )

    result = ReconciliationResult(
        total_records=len(records), duplicate_catalog_skus=duplicates
    )
    for record in records:
        entry = by_sku.get(record.sku) if record.sku else None
        if entry is not None:
            enrich(record, entry)
            result.matched_by_sku += 1
            continue

        barcode = record.old_identity.barcode
        entry = by_barcode.get(barcode) if barcode else None
        if entry is not None:
            enrich(record, entry)
            result.matched_by_barcode += 1
            continue

        record.is_matched = False
        result.unmatched += 1

    logger.info(
        "Reconciled %d records against %d catalog entries: %d matched (%.1f%%)",
        result.total_records,
        len(catalog),
        result.matched,
        result.match_rate * 100,
    )
    return result
