"""
Reporting reductions over a classified record set.

Computes:
- Anomaly counts per identity category
- Per-status counts with savings / loss totals
- Supplier-level price-change profile
"""

from __future__ import annotations

from typing import Iterable

import pandas as pd

from pricelist.models import (
    AnalysisSummary,
    AnomalyStats,
    AnomalyType,
    PriceRecord,
    RecordStatus,
    SupplierBreakdown,
)

_ANOMALY_COUNTERS: dict[AnomalyType, str] = {
    AnomalyType.NAME_CHANGE: "name_changes",
    AnomalyType.SUPPLIER_CODE_CHANGE: "supplier_code_changes",
    AnomalyType.BARCODE_CHANGE: "barcode_changes",
    AnomalyType.PACK_SIZE_CHANGE: "pack_size_changes",
}


def aggregate_anomalies(records: Iterable[PriceRecord]) -> AnomalyStats:
    """Count anomalous records, their categories, and unmatched records."""
    stats = AnomalyStats()
    for record in records:
        if not record.is_matched:
            stats.unmatched += 1
        if record.status is not RecordStatus.ANOMALY:
            continue
        stats.total_anomalies += 1
        for anomaly in record.anomaly_type or []:
            counter = _ANOMALY_COUNTERS[anomaly]
            setattr(stats, counter, getattr(stats, counter) + 1)
    return stats


def summarize(records: list[PriceRecord]) -> AnalysisSummary:
    """Per-status counts plus potential savings and loss.

    Savings are the magnitude of the impact of decreased items; loss the
    magnitude of the impact of increased items.
    """
    if not records:
        return AnalysisSummary()

    counts = {status: 0 for status in RecordStatus}
    impact = {status: 0.0 for status in RecordStatus}
    for record in records:
        counts[record.status] += 1
        impact[record.status] += record.potential_impact

    return AnalysisSummary(
        total_items=len(records),
        increased_items=counts[RecordStatus.INCREASED],
        decreased_items=counts[RecordStatus.DECREASED],
        discontinued_items=counts[RecordStatus.DISCONTINUED],
        new_items=counts[RecordStatus.NEW],
        anomaly_items=counts[RecordStatus.ANOMALY],
        unchanged_items=counts[RecordStatus.UNCHANGED],
        potential_savings=abs(impact[RecordStatus.DECREASED]),
        potential_loss=abs(impact[RecordStatus.INCREASED]),
        total_impact=sum(impact.values()),
    )


def _supplier_of(record: PriceRecord) -> str:
    return record.new_identity.supplier_code or record.vendor or "Unknown"


def summarize_by_supplier(records: list[PriceRecord]) -> list[SupplierBreakdown]:
    """Group records by supplier and profile their price changes.

    Sorted by share of increased items, highest first.
    """
    if not records:
        return []

    df = pd.DataFrame(
        {
            "supplier": [_supplier_of(r) for r in records],
            "status": [r.status.value for r in records],
            "difference": [r.difference for r in records],
        }
    )
    df["is_increased"] = df["status"] == RecordStatus.INCREASED.value
    df["is_decreased"] = df["status"] == RecordStatus.DECREASED.value
    df["is_discontinued"] = df["status"] == RecordStatus.DISCONTINUED.value
    df["increase_pct"] = df["difference"].where(df["is_increased"])

    grouped = (
        df.groupby("supplier")
        .agg(
            total_items=("status", "count"),
            increased=("is_increased", "sum"),
            decreased=("is_decreased", "sum"),
            discontinued=("is_discontinued", "sum"),
            average_increase=("increase_pct", "mean"),
        )
        .reset_index()
    )
    grouped["average_increase"] = grouped["average_increase"].fillna(0.0)
    grouped["percentage_increased"] = (
        grouped["increased"] / grouped["total_items"] * 100
    )
    grouped = grouped.sort_values(
        ["percentage_increased", "supplier"], ascending=[False, True]
    )

    return [
        SupplierBreakdown(
            supplier=str(r["supplier"]),
            total_items=int(r["total_items"]),
            increased=int(r["increased"]),
            decreased=int(r["decreased"]),
            discontinued=int(r["discontinued"]),
            average_increase=float(r["average_increase"]),
            percentage_increased=float(r["percentage_increased"]),
        )
        for r in grouped.to_dict(orient="records")
    ]
