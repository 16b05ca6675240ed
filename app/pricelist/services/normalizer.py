"""
Supplier price-list normalization.

Supplier sheets arrive in several column-naming conventions.  The schema
detector inspects the first row to pick a convention, and the row normalizer
resolves every canonical field through an ordered tuple of candidate column
names.  To support a new supplier, add its column names to the alias tuples
below.

Nothing in here raises for a single bad row: missing or malformed values
resolve to ``""`` / ``0.0`` and the row is carried through.
"""

from __future__ import annotations

import logging
import math
import re
from enum import Enum
from typing import Any, Iterable, Mapping

from pricelist.models import PriceRecord, ProductIdentity

logger = logging.getLogger(__name__)

RawRow = Mapping[str, Any]


class SchemaVariant(str, Enum):
    """Known supplier column-naming conventions."""

    OLD_NEW = "old_new"  # OldPrice / NewPrice
    CURRENT_UPDATED = "current_updated"  # Current_Price / Updated_Price
    SINGLE_PRICE = "single_price"  # Price only


# ---------------------------------------------------------------------------
# Column aliases, highest priority first
# ---------------------------------------------------------------------------
SKU_ALIASES = ("SKU", "Item_Code", "ProductCode", "sku", "product_id")
NAME_ALIASES = ("Name", "Product_Name", "Title", "Description", "name")
CATEGORY_ALIASES = ("Category", "Product_Category", "category")
RETAIL_PRICE_ALIASES = ("RetailPrice", "Retail_Price", "RRP", "SellPrice", "retail_price")

OLD_NEW_PRICE_ALIASES = (("OldPrice", "Old_Price"), ("NewPrice", "New_Price"))
CURRENT_UPDATED_PRICE_ALIASES = (("Current_Price", "CurrentPrice"), ("Updated_Price", "UpdatedPrice"))
SINGLE_PRICE_ALIASES = ("Price", "Cost", "Unit_Price", "price")

# Any one column of a price pair is enough to select its schema
_OLD_NEW_PRICE_KEYS = frozenset(OLD_NEW_PRICE_ALIASES[0] + OLD_NEW_PRICE_ALIASES[1])
_CURRENT_UPDATED_PRICE_KEYS = frozenset(
    CURRENT_UPDATED_PRICE_ALIASES[0] + CURRENT_UPDATED_PRICE_ALIASES[1]
)

OLD_TITLE_ALIASES = ("OldTitle", "Old_Title", "OldName", "Old_Name", "Current_Name")
NEW_TITLE_ALIASES = ("NewTitle", "New_Title", "NewName", "New_Name", "Updated_Name")
OLD_SUPPLIER_CODE_ALIASES = ("OldSupplierCode", "Old_Supplier_Code", "Current_Supplier_Code")
NEW_SUPPLIER_CODE_ALIASES = ("NewSupplierCode", "New_Supplier_Code", "Updated_Supplier_Code")
OLD_BARCODE_ALIASES = ("OldBarcode", "Old_Barcode", "Old_EAN", "Current_Barcode")
NEW_BARCODE_ALIASES = ("NewBarcode", "New_Barcode", "New_EAN", "Updated_Barcode")
OLD_PACK_SIZE_ALIASES = ("OldPackSize", "Old_Pack_Size", "Current_Pack_Size")
NEW_PACK_SIZE_ALIASES = ("NewPackSize", "New_Pack_Size", "Updated_Pack_Size")

# Single-sided identity columns apply to both old and new, but only when the
# row has neither of the paired columns for that field
SUPPLIER_CODE_ALIASES = ("SupplierCode", "Supplier_Code")
BARCODE_ALIASES = ("Barcode", "EAN", "UPC")
PACK_SIZE_ALIASES = ("PackSize", "Pack_Size")

_NUMBER_TOKEN = re.compile(r"[-+]?(?:\d[\d,]*(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")


# ---------------------------------------------------------------------------
# Value coercion
# ---------------------------------------------------------------------------
def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def to_number(value: Any) -> float:
    """Coerce a cell to a float, treating anything unparseable as ``0.0``.

    The first numeric token in the cell is used, so currency symbols, codes
    and unit labels are ignored (``"£1,234.50"``, ``"EUR 12.50"``,
    ``"9.99 each"``).
    """
    if _is_missing(value) or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        result = float(value)
    else:
        match = _NUMBER_TOKEN.search(str(value))
        if match is None:
            return 0.0
        try:
            result = float(match.group().replace(",", ""))
        except ValueError:
            return 0.0
    if math.isnan(result) or math.isinf(result):
        return 0.0
    return result


def to_text(value: Any) -> str:
    """Coerce a cell to a stripped string; missing values become ``""``.

    Integral floats render without a trailing ``.0`` so that numeric barcodes
    read back by spreadsheet parsers compare equal to their text form.
    """
    if _is_missing(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def resolve(row: RawRow, aliases: Iterable[str]) -> Any:
    """Return the first non-missing value among *aliases*, or None."""
    for key in aliases:
        value = row.get(key)
        if not _is_missing(value):
            return value
    return None


def resolve_text(row: RawRow, aliases: Iterable[str]) -> str:
    return to_text(resolve(row, aliases))


def _optional(text: str) -> str | None:
    return text or None


def _paired_text(
    row: RawRow,
    old_aliases: Iterable[str],
    new_aliases: Iterable[str],
    shared_aliases: Iterable[str],
) -> tuple[str, str]:
    """Resolve an old/new identity pair.

    A single-sided column fills both sides only when neither paired column
    has a value, so it can never introduce drift on its own.
    """
    old = resolve_text(row, old_aliases)
    new = resolve_text(row, new_aliases)
    if old or new:
        return old, new
    shared = resolve_text(row, shared_aliases)
    return shared, shared


# ---------------------------------------------------------------------------
# Schema detection
# ---------------------------------------------------------------------------
def detect_schema(first_row: RawRow | None) -> SchemaVariant:
    """Pick the column-naming convention used by a sheet.

    Unknown layouts fall back to :attr:`SchemaVariant.SINGLE_PRICE` rather
    than failing the upload.
    """
    keys = set(first_row or {})
    if keys & _OLD_NEW_PRICE_KEYS:
        return SchemaVariant.OLD_NEW
    if keys & _CURRENT_UPDATED_PRICE_KEYS:
        return SchemaVariant.CURRENT_UPDATED
    return SchemaVariant.SINGLE_PRICE


def _prices(row: RawRow, schema: SchemaVariant) -> tuple[float, float]:
    if schema is SchemaVariant.OLD_NEW:
        old_aliases, new_aliases = OLD_NEW_PRICE_ALIASES
    elif schema is SchemaVariant.CURRENT_UPDATED:
        old_aliases, new_aliases = CURRENT_UPDATED_PRICE_ALIASES
    else:
        price = to_number(resolve(row, SINGLE_PRICE_ALIASES))
        return price, price
    return to_number(resolve(row, old_aliases)), to_number(resolve(row, new_aliases))


# ---------------------------------------------------------------------------
# Row normalization
# ---------------------------------------------------------------------------
def normalize_row(row: RawRow, schema: SchemaVariant) -> PriceRecord:
    """Map one raw sheet row onto a :class:`PriceRecord`.

    Only the normalized input fields are set here; status, difference and
    impact are filled in by the later pipeline stages.
    """
    old_price, new_price = _prices(row, schema)

    old_code, new_code = _paired_text(
        row, OLD_SUPPLIER_CODE_ALIASES, NEW_SUPPLIER_CODE_ALIASES, SUPPLIER_CODE_ALIASES
    )
    old_barcode, new_barcode = _paired_text(
        row, OLD_BARCODE_ALIASES, NEW_BARCODE_ALIASES, BARCODE_ALIASES
    )
    old_pack, new_pack = _paired_text(
        row, OLD_PACK_SIZE_ALIASES, NEW_PACK_SIZE_ALIASES, PACK_SIZE_ALIASES
    )

    old_identity = ProductIdentity(
        supplier_code=_optional(old_code),
        barcode=_optional(old_barcode),
        pack_size=_optional(old_pack),
        title=_optional(resolve_text(row, OLD_TITLE_ALIASES)),
    )
    new_identity = ProductIdentity(
        supplier_code=_optional(new_code),
        barcode=_optional(new_barcode),
        pack_size=_optional(new_pack),
        title=_optional(resolve_text(row, NEW_TITLE_ALIASES)),
    )

    sku = resolve_text(row, SKU_ALIASES)
    name = (
        new_identity.title
        or old_identity.title
        or resolve_text(row, NAME_ALIASES)
    )

    retail_value = resolve(row, RETAIL_PRICE_ALIASES)

    return PriceRecord(
        sku=sku,
        name=name,
        old_price=old_price,
        new_price=new_price,
        old_identity=old_identity,
        new_identity=new_identity,
        retail_price=None if retail_value is None else to_number(retail_value),
        category=_optional(resolve_text(row, CATEGORY_ALIASES)),
        is_matched=bool(sku),
    )


def normalize_rows(
    rows: list[RawRow],
) -> tuple[SchemaVariant, list[PriceRecord]]:
    """Detect the schema from the first row and normalize every row."""
    schema = detect_schema(rows[0] if rows else None)
    records = [normalize_row(row, schema) for row in rows]
    logger.info(
        "Normalized %d rows using the %s schema", len(records), schema.value
    )
    return schema, records
