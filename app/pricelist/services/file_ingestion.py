"""
File ingestion for supplier price-list uploads.

Accepts Excel (.xlsx, .xls) and CSV files and parses the first sheet into a
list of dictionaries, one per row, keyed by the header row.  Cells are read
as text (blank cells as None) so identifiers such as barcodes keep their
leading zeros; prices are coerced later by the normalizer.  Parsing is
all-or-nothing: a file either yields at least one row or the whole upload
fails with :class:`IngestionError`.
"""

from __future__ import annotations

import csv
import io
import logging
import os
from typing import Any

import pandas as pd
from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from pricelist.utils.config import ALLOWED_EXTENSIONS, MAX_UPLOAD_MB

logger = logging.getLogger(__name__)


class IngestionError(ValueError):
    """Fatal problem with an uploaded file; no rows are produced."""


async def ingest_file(file: UploadFile) -> dict[str, Any]:
    """Read an uploaded file and return its parsed rows.

    Parameters
    ----------
    file:
        The uploaded file (must be .xlsx, .xls, or .csv).

    Returns
    -------
    dict
        Keys: ``filename``, ``row_count``, ``columns``, ``rows``.
        ``rows`` is a ``list[dict]`` where each dict maps column name to value.

    Raises
    ------
    IngestionError
        If the file type is unsupported, the file is too large or unreadable,
        or it contains no sheets or no rows.
    """
    filename = file.filename or "unknown"
    contents = await file.read()

    if len(contents) > MAX_UPLOAD_MB * 1024 * 1024:
        raise IngestionError(
            f"File '{filename}' exceeds the {MAX_UPLOAD_MB} MB upload limit"
        )

    # pandas parsing is blocking; keep it off the event loop
    rows, columns = await run_in_threadpool(parse_rows, contents, filename)

    logger.info(
        "Ingested file %s: %d rows, %d columns", filename, len(rows), len(columns)
    )

    return {
        "filename": filename,
        "row_count": len(rows),
        "columns": columns,
        "rows": rows,
    }


def parse_rows(
    contents: bytes, filename: str
) -> tuple[list[dict[str, Any]], list[str]]:
    """Parse raw file bytes into rows and column names.

    Raises :class:`IngestionError` when nothing usable can be read.
    """
    ext = os.path.splitext(filename)[1].lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise IngestionError(
            f"Unsupported file type '{ext}'. Accepted: {', '.join(ALLOWED_EXTENSIONS)}"
        )

    if ext == ".csv":
        rows, columns = _parse_csv(contents, filename)
    else:
        rows, columns = _parse_excel(contents, filename)

    if not rows:
        logger.warning("No rows parsed from %s", filename)
        raise IngestionError(f"No rows found in the first sheet of '{filename}'")
    return rows, columns


def _parse_excel(
    contents: bytes,
    filename: str,
) -> tuple[list[dict[str, Any]], list[str]]:
    """Parse the first sheet of a workbook; header row gives the keys."""
    try:
        workbook = pd.ExcelFile(io.BytesIO(contents))
    except Exception as exc:
        raise IngestionError(f"Could not read workbook '{filename}': {exc}") from exc

    if not workbook.sheet_names:
        logger.warning("Workbook %s contains no sheets", filename)
        raise IngestionError(f"Workbook '{filename}' contains no sheets")

    df = workbook.parse(workbook.sheet_names[0], dtype=str)
    df = df.dropna(how="all")
    df.columns = [str(col).strip() for col in df.columns]

    rows = df.astype(object).where(df.notna(), None).to_dict(orient="records")
    return rows, list(df.columns)


def _parse_csv(
    contents: bytes,
    filename: str,
) -> tuple[list[dict[str, Any]], list[str]]:
    """Parse CSV bytes into rows; values stay as text for the normalizer."""
    try:
        text = contents.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise IngestionError(f"'{filename}' is not UTF-8 encoded CSV") from exc

    reader = csv.DictReader(io.StringIO(text))
    rows: list[dict[str, Any]] = []

    for row in reader:
        parsed_row: dict[str, Any] = {}
        for key, value in row.items():
            parsed_row[(key or "unnamed").strip()] = _clean_value(value)
        if any(v is not None for v in parsed_row.values()):
            rows.append(parsed_row)

    columns = [c.strip() for c in reader.fieldnames or []]
    return rows, columns


def _clean_value(value: str | list | None) -> str | None:
    """Strip a CSV cell; blanks become None."""
    # DictReader collects surplus cells into a list under the None key
    if isinstance(value, list):
        value = ",".join(value)
    if value is None or value.strip() == "":
        return None
    return value.strip()
