"""
Spreadsheet exports.

Two projections of the record set:
- the commerce-platform product import sheet used to push price updates
- the analysis report sheet used for review

Both are order-preserving and unvalidated: a malformed record still produces
a row.
"""

from __future__ import annotations

import io
import logging
import re
from typing import Any

import pandas as pd

from pricelist.models import PriceRecord, RecordStatus

logger = logging.getLogger(__name__)

EXPORT_COLUMNS: list[str] = [
    "Handle",
    "Title",
    "Variant Price",
    "Variant Compare At Price",
    "Variant SKU",
    "Variant Barcode",
    "Vendor",
    "Tags",
    "Published",
    "Variant Inventory Qty",
]

REPORT_COLUMNS: list[str] = [
    "SKU",
    "Name",
    "Old Price",
    "New Price",
    "Status",
    "Difference (%)",
    "Supplier Code",
    "Pack Size",
    "Margin (%)",
    "Potential Impact ($)",
]

PRICE_UPDATED_TAG = "price_updated"
NEW_ITEM_TAG = "new"

_WHITESPACE = re.compile(r"\s+")


def make_handle(sku: str) -> str:
    """URL handle for a SKU: lower-cased, whitespace runs become hyphens."""
    return _WHITESPACE.sub("-", sku.strip().lower())


def build_tags(record: PriceRecord) -> str:
    tags = list(record.tags or [])
    tags.append(PRICE_UPDATED_TAG)
    if record.status is RecordStatus.NEW:
        tags.append(NEW_ITEM_TAG)
    return ", ".join(dict.fromkeys(tags))


def to_export_row(record: PriceRecord) -> dict[str, Any]:
    compare_at = (
        f"{record.old_price:.2f}" if record.old_price > record.new_price else ""
    )
    return {
        "Handle": make_handle(record.sku),
        "Title": record.name,
        "Variant Price": f"{record.new_price:.2f}",
        "Variant Compare At Price": compare_at,
        "Variant SKU": record.sku,
        "Variant Barcode": record.new_identity.barcode or record.old_identity.barcode or "",
        "Vendor": record.vendor or "",
        "Tags": build_tags(record),
        "Published": "TRUE",
        "Variant Inventory Qty": "" if record.inventory_level is None else record.inventory_level,
    }


def to_export_rows(records: list[PriceRecord]) -> list[dict[str, Any]]:
    """Project records onto the commerce import columns, one row each."""
    return [to_export_row(r) for r in records]


def to_report_row(record: PriceRecord) -> dict[str, Any]:
    return {
        "SKU": record.sku,
        "Name": record.name,
        "Old Price": f"{record.old_price:.2f}",
        "New Price": f"{record.new_price:.2f}",
        "Status": record.status.value,
        "Difference (%)": f"{record.difference:.2f}",
        "Supplier Code": record.new_identity.supplier_code or record.old_identity.supplier_code or "",
        "Pack Size": record.new_identity.pack_size or record.old_identity.pack_size or "",
        "Margin (%)": "" if record.new_margin is None else f"{record.new_margin:.1f}",
        "Potential Impact ($)": f"{record.potential_impact:,.2f}",
    }


def to_report_rows(records: list[PriceRecord]) -> list[dict[str, Any]]:
    return [to_report_row(r) for r in records]


def _write_workbook(
    rows: list[dict[str, Any]], columns: list[str], sheet_name: str
) -> bytes:
    df = pd.DataFrame(rows, columns=columns)
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)
    logger.info("Wrote %d rows to '%s' workbook", len(df), sheet_name)
    return buffer.getvalue()


def write_export_workbook(records: list[PriceRecord]) -> bytes:
    """Return ``.xlsx`` bytes of the commerce import sheet."""
    return _write_workbook(to_export_rows(records), EXPORT_COLUMNS, "Products")


def write_report_workbook(records: list[PriceRecord]) -> bytes:
    """Return ``.xlsx`` bytes of the analysis report sheet."""
    return _write_workbook(to_report_rows(records), REPORT_COLUMNS, "Price Data")
