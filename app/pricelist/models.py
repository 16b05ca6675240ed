"""
Pydantic data models for the Price-List Reconciliation API.

All record, summary and response schemas are defined here so they can be
shared across routers, services, and tests.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------
class RecordStatus(str, Enum):
    """Change status of a price-list row."""

    UNCHANGED = "unchanged"
    INCREASED = "increased"
    DECREASED = "decreased"
    NEW = "new"
    DISCONTINUED = "discontinued"
    ANOMALY = "anomaly"


class AnomalyType(str, Enum):
    """Identity-field drift between the old and new version of an item."""

    NAME_CHANGE = "name_change"
    SUPPLIER_CODE_CHANGE = "supplier_code_change"
    BARCODE_CHANGE = "barcode_change"
    PACK_SIZE_CHANGE = "pack_size_change"


# ---------------------------------------------------------------------------
# Canonical record
# ---------------------------------------------------------------------------
class ProductIdentity(BaseModel):
    """Descriptive fields identifying one side (old or new) of an item."""

    supplier_code: str | None = None
    barcode: str | None = None
    pack_size: str | None = None
    title: str | None = None


class PriceRecord(BaseModel):
    """Normalized representation of one priced item.

    Created once per input row by the normalizer and updated in place by the
    classification, impact and reconciliation stages.
    """

    sku: str = ""
    name: str = ""
    old_price: float = 0.0
    new_price: float = 0.0
    old_identity: ProductIdentity = Field(default_factory=ProductIdentity)
    new_identity: ProductIdentity = Field(default_factory=ProductIdentity)
    retail_price: float | None = None
    category: str | None = None

    status: RecordStatus = RecordStatus.UNCHANGED
    difference: float = Field(0.0, description="Percentage price change")
    potential_impact: float = Field(
        0.0, description="Signed annualized financial delta"
    )
    old_margin: float | None = None
    new_margin: float | None = None
    margin_change: float | None = None
    anomaly_type: list[AnomalyType] | None = None
    is_matched: bool = False

    # Catalog-sourced fields, populated by reconciliation
    product_id: str | None = None
    variant_id: str | None = None
    inventory_item_id: str | None = None
    inventory_level: int | None = None
    compare_at_price: float | None = None
    tags: list[str] | None = None
    historical_sales: float | None = None
    last_order_date: str | None = None
    vendor: str | None = None
    metafields: dict[str, Any] | None = None


# Fields owned by the catalog; everything else belongs to the price list
CATALOG_FIELDS: tuple[str, ...] = (
    "product_id",
    "variant_id",
    "inventory_item_id",
    "inventory_level",
    "compare_at_price",
    "tags",
    "historical_sales",
    "last_order_date",
    "vendor",
    "metafields",
)


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------
class AnomalyStats(BaseModel):
    """Counts of anomalous and unmatched records."""

    total_anomalies: int = 0
    name_changes: int = 0
    supplier_code_changes: int = 0
    barcode_changes: int = 0
    pack_size_changes: int = 0
    unmatched: int = 0


class AnalysisSummary(BaseModel):
    """Per-status counts and headline financial figures."""

    total_items: int = 0
    increased_items: int = 0
    decreased_items: int = 0
    discontinued_items: int = 0
    new_items: int = 0
    anomaly_items: int = 0
    unchanged_items: int = 0
    potential_savings: float = 0.0
    potential_loss: float = 0.0
    total_impact: float = 0.0


class SupplierBreakdown(BaseModel):
    """Price-change profile of one supplier."""

    supplier: str
    total_items: int
    increased: int
    decreased: int
    discontinued: int
    average_increase: float
    percentage_increased: float


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------
class ValidationIssue(BaseModel):
    """A group of records sharing one validation problem."""

    code: str
    message: str
    items: list[str] = Field(default_factory=list)


class ValidationResult(BaseModel):
    is_valid: bool
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------
class ReconciliationResult(BaseModel):
    """Outcome of merging a price list against a catalog snapshot."""

    total_records: int
    matched_by_sku: int = 0
    matched_by_barcode: int = 0
    unmatched: int = 0
    duplicate_catalog_skus: list[str] = Field(default_factory=list)

    @property
    def matched(self) -> int:
        return self.matched_by_sku + self.matched_by_barcode

    @property
    def match_rate(self) -> float:
        if self.total_records == 0:
            return 0.0
        return self.matched / self.total_records


# ---------------------------------------------------------------------------
# API responses
# ---------------------------------------------------------------------------
class UploadResponse(BaseModel):
    """Result of ingesting and analysing an uploaded price list."""

    filename: str
    schema_variant: str
    row_count: int
    summary: AnalysisSummary
    anomalies: AnomalyStats
    preview: list[PriceRecord]


class ReconcileResponse(BaseModel):
    total_records: int
    matched: int
    matched_by_sku: int
    matched_by_barcode: int
    unmatched: int
    match_rate: float
    duplicate_catalog_skus: list[str]
    catalog_size: int
