"""
Holder for the single active price list.

One dataset is active at a time; a new upload replaces it.  The holder is
attached to the FastAPI app state and handed to routes by dependency, so
tests can build their own.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pricelist.models import PriceRecord
from pricelist.utils.cache import TTLCache

CATALOG_CACHE_KEY = "catalog:snapshot"


@dataclass
class ActiveDataset:
    filename: str | None = None
    schema_variant: str | None = None
    records: list[PriceRecord] = field(default_factory=list)
    catalog_cache: TTLCache = field(default_factory=TTLCache)

    @property
    def is_loaded(self) -> bool:
        return self.filename is not None

    def replace(self, filename: str, schema_variant: str, records: list[PriceRecord]) -> None:
        self.filename = filename
        self.schema_variant = schema_variant
        self.records = records

    def clear(self) -> None:
        self.filename = None
        self.schema_variant = None
        self.records = []
        self.catalog_cache.invalidate()
