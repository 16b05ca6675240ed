"""
Tests for the reporting reductions (anomaly stats, summary, supplier profile),
pre-sync validation and the TTL cache.
"""

from __future__ import annotations

import os
import sys

import pytest

# Ensure the app package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "app"))

from pricelist.models import AnomalyType, PriceRecord, RecordStatus  # noqa: E402
from pricelist.services.anomalies import (  # noqa: E402
    aggregate_anomalies,
    summarize,
    summarize_by_supplier,
)
from pricelist.services.pipeline import process_rows  # noqa: E402
from pricelist.services.validation import validate_for_sync  # noqa: E402
from pricelist.utils.cache import TTLCache  # noqa: E402


@pytest.fixture()
def records() -> list[PriceRecord]:
    _, parsed = process_rows(
        [
            {"SKU": "A1", "OldPrice": 10, "NewPrice": 12, "NewSupplierCode": "SUP-A"},
            {"SKU": "A2", "OldPrice": 10, "NewPrice": 8, "NewSupplierCode": "SUP-A"},
            {"SKU": "A3", "OldPrice": 10, "NewPrice": 0, "NewSupplierCode": "SUP-B"},
            {"SKU": "A4", "OldPrice": 0, "NewPrice": 15},
            {
                "SKU": "A5",
                "OldPrice": 10,
                "NewPrice": 10,
                "OldBarcode": "111",
                "NewBarcode": "222",
                "OldName": "Widget",
                "NewName": "Widget XL",
            },
            {"SKU": "", "OldPrice": 4, "NewPrice": 4, "OldPackSize": "6", "NewPackSize": "12"},
        ]
    )
    return parsed


# ---------------------------------------------------------------------------
# Anomaly aggregator
# ---------------------------------------------------------------------------
class TestAggregateAnomalies:
    """Tests for aggregate_anomalies."""

    def test_counts(self, records):
        stats = aggregate_anomalies(records)
        assert stats.total_anomalies == 2
        assert stats.barcode_changes == 1
        assert stats.name_changes == 1
        assert stats.pack_size_changes == 1
        assert stats.supplier_code_changes == 0
        assert stats.unmatched == 1

    def test_flags_on_non_anomalous_records_ignored(self):
        """A new item keeps its flags but is not counted as an anomaly."""
        record = PriceRecord(
            sku="N1",
            status=RecordStatus.NEW,
            anomaly_type=[AnomalyType.BARCODE_CHANGE],
            is_matched=True,
        )
        stats = aggregate_anomalies([record])
        assert stats.total_anomalies == 0
        assert stats.barcode_changes == 0

    def test_unmatched_independent_of_status(self):
        records = [
            PriceRecord(status=RecordStatus.INCREASED, is_matched=False),
            PriceRecord(status=RecordStatus.ANOMALY, is_matched=False),
        ]
        assert aggregate_anomalies(records).unmatched == 2

    def test_empty(self):
        assert aggregate_anomalies([]).model_dump() == {
            "total_anomalies": 0,
            "name_changes": 0,
            "supplier_code_changes": 0,
            "barcode_changes": 0,
            "pack_size_changes": 0,
            "unmatched": 0,
        }


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------
class TestSummarize:
    """Tests for summarize."""

    def test_counts_and_totals(self, records):
        summary = summarize(records)
        assert summary.total_items == 6
        assert summary.increased_items == 1
        assert summary.decreased_items == 1
        assert summary.discontinued_items == 1
        assert summary.new_items == 1
        assert summary.anomaly_items == 2
        assert summary.unchanged_items == 0
        assert summary.potential_loss == pytest.approx(24.0)
        assert summary.potential_savings == pytest.approx(24.0)
        # -24 + 24 - 120 - 180 + 0 + 0
        assert summary.total_impact == pytest.approx(-300.0)

    def test_empty(self):
        assert summarize([]).total_items == 0


# ---------------------------------------------------------------------------
# Supplier breakdown
# ---------------------------------------------------------------------------
class TestSummarizeBySupplier:
    """Tests for summarize_by_supplier."""

    def test_grouping_and_order(self, records):
        breakdown = summarize_by_supplier(records)
        by_name = {b.supplier: b for b in breakdown}

        assert set(by_name) == {"SUP-A", "SUP-B", "Unknown"}
        assert breakdown[0].supplier == "SUP-A"

        sup_a = by_name["SUP-A"]
        assert sup_a.total_items == 2
        assert sup_a.increased == 1
        assert sup_a.decreased == 1
        assert sup_a.average_increase == pytest.approx(20.0)
        assert sup_a.percentage_increased == pytest.approx(50.0)

        assert by_name["SUP-B"].discontinued == 1
        assert by_name["SUP-B"].average_increase == 0.0

    def test_vendor_fallback(self):
        record = PriceRecord(sku="X", vendor="Acme")
        assert summarize_by_supplier([record])[0].supplier == "Acme"

    def test_empty(self):
        assert summarize_by_supplier([]) == []


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------
class TestValidateForSync:
    """Tests for validate_for_sync."""

    def test_clean_data_is_valid(self):
        records = [PriceRecord(sku="A1", old_price=10, new_price=11)]
        result = validate_for_sync(records)
        assert result.is_valid is True
        assert result.errors == []
        assert result.warnings == []

    def test_error_codes(self, records):
        result = validate_for_sync(records)
        codes = {e.code: e.items for e in result.errors}

        assert result.is_valid is False
        assert codes["MISSING_SKU"] == ["row 6"]
        assert codes["INVALID_PRICE"] == ["A3"]
        assert "DUPLICATE_SKU" not in codes

    def test_duplicates(self):
        records = [
            PriceRecord(sku="A1", new_price=1),
            PriceRecord(sku="A1", new_price=2),
        ]
        errors = validate_for_sync(records).errors
        assert errors[0].code == "DUPLICATE_SKU"
        assert errors[0].items == ["A1"]

    def test_large_increase_is_warning_only(self):
        records = [PriceRecord(sku="A1", old_price=10, new_price=16)]
        result = validate_for_sync(records)
        assert result.is_valid is True
        assert result.warnings[0].code == "LARGE_PRICE_INCREASE"
        assert result.warnings[0].items == ["A1"]

    def test_threshold_is_configurable(self):
        records = [PriceRecord(sku="A1", old_price=10, new_price=12)]
        assert validate_for_sync(records, large_increase_pct=10).warnings
        assert not validate_for_sync(records, large_increase_pct=50).warnings


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------
class TestTTLCache:
    """Tests for TTLCache."""

    def test_get_set_and_staleness(self):
        now = [1000.0]
        cache = TTLCache(ttl=60, clock=lambda: now[0])

        assert cache.get("k") is None
        assert cache.is_stale("k") is True

        cache.set("k", [1, 2])
        assert cache.get("k") == [1, 2]
        assert cache.is_stale("k") is False

        now[0] += 61
        assert cache.is_stale("k") is True
        assert cache.get("k") == [1, 2]  # stale values are still served

    def test_invalidate_prefix(self):
        cache = TTLCache(ttl=60)
        cache.set("catalog:a", 1)
        cache.set("catalog:b", 2)
        cache.set("other", 3)

        cache.invalidate("catalog:")
        assert cache.get("catalog:a") is None
        assert cache.get("other") == 3

        cache.invalidate()
        assert cache.get("other") is None
