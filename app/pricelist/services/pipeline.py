"""
Price-list pipeline.

Wires the stages together:
raw rows -> normalize -> classify + detect anomalies -> impact & margins.
Reconciliation, aggregation and export run separately on the result.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import UploadFile

from pricelist.models import PriceRecord
from pricelist.services.classification import classify_record
from pricelist.services.file_ingestion import ingest_file
from pricelist.services.impact import apply_impact
from pricelist.services.normalizer import RawRow, SchemaVariant, normalize_rows

logger = logging.getLogger(__name__)


def evaluate_record(record: PriceRecord) -> PriceRecord:
    """(Re)compute every derived field of *record* from its inputs.

    Call again whenever a price or identity field changes.
    """
    classify_record(record)
    apply_impact(record)
    return record


def process_rows(rows: list[RawRow]) -> tuple[SchemaVariant, list[PriceRecord]]:
    """Normalize and evaluate raw sheet rows, preserving input order."""
    schema, records = normalize_rows(rows)
    for record in records:
        evaluate_record(record)
    return schema, records


async def process_upload(file: UploadFile) -> dict[str, Any]:
    """Ingest an uploaded sheet and run it through the pipeline.

    Raises
    ------
    IngestionError
        If the file cannot be parsed into at least one row.
    """
    parsed = await ingest_file(file)
    schema, records = process_rows(parsed["rows"])
    logger.info(
        "Processed %s: %d records (%s schema)",
        parsed["filename"],
        len(records),
        schema.value,
    )
    return {
        "filename": parsed["filename"],
        "schema": schema,
        "records": records,
    }
