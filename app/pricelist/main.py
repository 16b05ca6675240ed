"""
Price-List Reconciliation -- FastAPI application.

Provides REST endpoints to upload supplier price lists, inspect the
classified changes, anomaly counts and supplier profile, validate the data
before syncing, reconcile against a catalog snapshot, and download
commerce-platform import and analysis workbooks.

Run locally with ``uvicorn pricelist.main:app --reload`` from the ``app``
directory (or after ``pip install -e .``).
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pricelist.routers.price_lists import router as price_lists_router
from pricelist.utils.cache import TTLCache
from pricelist.utils.config import APP_TITLE, APP_VERSION, CACHE_TTL, LOG_LEVEL
from pricelist.utils.dataset import ActiveDataset

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan (startup / shutdown)
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup and shutdown hooks."""
    logger.info("Starting %s v%s", APP_TITLE, APP_VERSION)
    yield
    app.state.dataset.clear()
    logger.info("Shutting down %s", APP_TITLE)


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------
app = FastAPI(
    title=APP_TITLE,
    version=APP_VERSION,
    lifespan=lifespan,
)
app.state.dataset = ActiveDataset(catalog_cache=TTLCache(ttl=CACHE_TTL))

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(price_lists_router)


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------
@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Return a simple health-check response."""
    return {"status": "healthy", "version": APP_VERSION}
