"""
Change classification and anomaly detection.

Status is computed by one pure function of the two prices and the anomaly
flags, so the stages can run in any order without one silently undoing
another.
"""

from __future__ import annotations

from pricelist.models import AnomalyType, PriceRecord, ProductIdentity, RecordStatus

# Identity attribute -> anomaly it raises when it drifts
IDENTITY_CHECKS: tuple[tuple[str, AnomalyType], ...] = (
    ("title", AnomalyType.NAME_CHANGE),
    ("supplier_code", AnomalyType.SUPPLIER_CODE_CHANGE),
    ("barcode", AnomalyType.BARCODE_CHANGE),
    ("pack_size", AnomalyType.PACK_SIZE_CHANGE),
)


def classify_price_change(old_price: float, new_price: float) -> RecordStatus:
    """Classify a price change by direction; the first matching rule wins."""
    if new_price == 0 and old_price > 0:
        return RecordStatus.DISCONTINUED
    if old_price == 0 and new_price > 0:
        return RecordStatus.NEW
    if new_price > old_price:
        return RecordStatus.INCREASED
    if new_price < old_price:
        return RecordStatus.DECREASED
    return RecordStatus.UNCHANGED


def percent_difference(old_price: float, new_price: float) -> float:
    """Percentage change from *old_price* to *new_price*, 0 when undefined."""
    if old_price <= 0 or new_price <= 0:
        return 0.0
    return ((new_price - old_price) / old_price) * 100


def detect_anomalies(
    old_identity: ProductIdentity, new_identity: ProductIdentity
) -> list[AnomalyType]:
    """Flag identity fields populated on both sides with different values.

    A field going from empty to populated is not drift: that is what a new
    item looks like.
    """
    flags: list[AnomalyType] = []
    for attr, anomaly in IDENTITY_CHECKS:
        old_value = (getattr(old_identity, attr) or "").strip()
        new_value = (getattr(new_identity, attr) or "").strip()
        if old_value and new_value and old_value != new_value:
            flags.append(anomaly)
    return flags


def resolve_status(
    old_price: float, new_price: float, anomalies: list[AnomalyType] | None
) -> RecordStatus:
    """Final status: anomalies override everything except a new item."""
    status = classify_price_change(old_price, new_price)
    if anomalies and status is not RecordStatus.NEW:
        return RecordStatus.ANOMALY
    return status


def classify_record(record: PriceRecord) -> PriceRecord:
    """Set ``difference``, ``anomaly_type`` and ``status`` on *record*."""
    anomalies = detect_anomalies(record.old_identity, record.new_identity)
    record.difference = percent_difference(record.old_price, record.new_price)
    record.anomaly_type = anomalies or None
    record.status = resolve_status(record.old_price, record.new_price, anomalies)
    return record
