"""
Tests for upload ingestion.

Builds workbooks and CSVs in memory so tests need no fixture files on disk.
"""

from __future__ import annotations

import asyncio
import io
import os
import sys

import pandas as pd
import pytest
from fastapi import UploadFile

# Ensure the app package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "app"))

from pricelist.models import PriceRecord, ProductIdentity, RecordStatus  # noqa: E402
from pricelist.services.export import to_export_rows  # noqa: E402
from pricelist.services.file_ingestion import IngestionError, ingest_file, parse_rows  # noqa: E402
from pricelist.services.pipeline import process_rows, process_upload  # noqa: E402
from pricelist.services.reconciliation import reconcile_with_catalog  # noqa: E402


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _xlsx_bytes(df: pd.DataFrame) -> bytes:
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, index=False)
    return buffer.getvalue()


def _upload(contents: bytes, filename: str) -> UploadFile:
    return UploadFile(file=io.BytesIO(contents), filename=filename)


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------
class TestParseCsv:
    """Tests for CSV parsing."""

    def test_rows_keyed_by_header(self):
        contents = b"SKU,OldPrice,NewPrice\nA1,10,12\nA2,5,\n"
        rows, columns = parse_rows(contents, "prices.csv")

        assert columns == ["SKU", "OldPrice", "NewPrice"]
        assert rows == [
            {"SKU": "A1", "OldPrice": "10", "NewPrice": "12"},
            {"SKU": "A2", "OldPrice": "5", "NewPrice": None},
        ]

    def test_leading_zero_barcodes_preserved(self):
        rows, _ = parse_rows(b"SKU,Barcode,Price\nA1,0012345,3\n", "prices.csv")
        assert rows[0]["Barcode"] == "0012345"

    def test_bom_and_blank_rows(self):
        contents = "\ufeffSKU,Price\nA1,3\n,\n".encode("utf-8")
        rows, columns = parse_rows(contents, "prices.CSV")
        assert columns == ["SKU", "Price"]
        assert rows == [{"SKU": "A1", "Price": "3"}]

    def test_header_only_is_fatal(self):
        with pytest.raises(IngestionError, match="No rows"):
            parse_rows(b"SKU,OldPrice,NewPrice\n", "prices.csv")

    def test_non_utf8_is_fatal(self):
        with pytest.raises(IngestionError):
            parse_rows("SKU,Price\nCafé,3\n".encode("utf-16"), "prices.csv")


# ---------------------------------------------------------------------------
# Excel
# ---------------------------------------------------------------------------
class TestParseExcel:
    """Tests for workbook parsing."""

    def test_first_sheet_rows(self):
        df = pd.DataFrame(
            {
                "SKU": ["A1", "A2"],
                "OldPrice": [10, 5],
                "NewPrice": [12, 5],
                "NewBarcode": [None, "222"],
            }
        )
        rows, columns = parse_rows(_xlsx_bytes(df), "prices.xlsx")

        assert columns == ["SKU", "OldPrice", "NewPrice", "NewBarcode"]
        assert len(rows) == 2
        assert rows[0]["SKU"] == "A1"
        assert rows[0]["NewBarcode"] is None
        assert rows[1]["NewBarcode"] == "222"

    def test_text_cells_keep_leading_zeros(self):
        df = pd.DataFrame(
            {
                "SKU": ["A1"],
                "OldPrice": [10],
                "NewPrice": [12.5],
                "OldBarcode": ["0012345"],
                "NewBarcode": ["0012345"],
            }
        )
        rows, _ = parse_rows(_xlsx_bytes(df), "prices.xlsx")

        assert rows[0]["OldBarcode"] == "0012345"
        assert rows[0]["NewBarcode"] == "0012345"

    def test_leading_zero_barcode_survives_to_reconcile_and_export(self):
        df = pd.DataFrame(
            {
                "SKU": ["NOT-IN-CATALOG"],
                "OldPrice": [10],
                "NewPrice": [12.5],
                "OldBarcode": ["0012345"],
                "NewBarcode": ["0012345"],
            }
        )
        rows, _ = parse_rows(_xlsx_bytes(df), "prices.xlsx")
        _, records = process_rows(rows)

        assert records[0].old_price == 10
        assert records[0].new_price == pytest.approx(12.5)
        assert records[0].status is RecordStatus.INCREASED

        catalog = [
            PriceRecord(
                sku="CAT-1",
                old_identity=ProductIdentity(barcode="0012345"),
                product_id="gid://1",
            )
        ]
        result = reconcile_with_catalog(records, catalog)

        assert result.matched_by_barcode == 1
        assert records[0].is_matched is True
        assert records[0].product_id == "gid://1"
        assert to_export_rows(records)[0]["Variant Barcode"] == "0012345"

    def test_header_only_sheet_is_fatal(self):
        df = pd.DataFrame(columns=["SKU", "OldPrice", "NewPrice"])
        with pytest.raises(IngestionError, match="No rows"):
            parse_rows(_xlsx_bytes(df), "prices.xlsx")

    def test_corrupt_workbook_is_fatal(self):
        with pytest.raises(IngestionError, match="Could not read workbook"):
            parse_rows(b"definitely not a workbook", "prices.xlsx")

    def test_unsupported_extension(self):
        with pytest.raises(IngestionError, match="Unsupported file type"):
            parse_rows(b"%PDF-1.4", "prices.pdf")

    def test_ingestion_error_is_value_error(self):
        assert issubclass(IngestionError, ValueError)


# ---------------------------------------------------------------------------
# Async ingestion
# ---------------------------------------------------------------------------
class TestIngestFile:
    """Tests for the async ingest_file / process_upload entry points."""

    def test_ingest_file(self):
        upload = _upload(b"SKU,Price\nA1,3\nA2,4\n", "prices.csv")
        result = asyncio.run(ingest_file(upload))

        assert result["filename"] == "prices.csv"
        assert result["row_count"] == 2
        assert result["columns"] == ["SKU", "Price"]

    def test_ingest_file_propagates_fatal_error(self):
        upload = _upload(b"SKU,Price\n", "prices.csv")
        with pytest.raises(IngestionError):
            asyncio.run(ingest_file(upload))

    def test_process_upload(self):
        df = pd.DataFrame(
            {"Item_Code": ["B1", "B2"], "Current_Price": [10, 10], "Updated_Price": [12, 0]}
        )
        upload = _upload(_xlsx_bytes(df), "supplier.xlsx")
        result = asyncio.run(process_upload(upload))

        assert result["schema"].value == "current_updated"
        statuses = [r.status for r in result["records"]]
        assert statuses == [RecordStatus.INCREASED, RecordStatus.DISCONTINUED]
