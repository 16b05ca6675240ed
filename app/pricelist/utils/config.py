"""
Configuration module for the Price-List Reconciliation backend.

All settings are configurable via environment variables with sensible defaults
for local development.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------
MAX_UPLOAD_MB: int = int(os.getenv("MAX_UPLOAD_MB", "25"))
ALLOWED_EXTENSIONS: tuple[str, ...] = (".xlsx", ".xls", ".csv")

# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------
# Price increases above this percentage raise a pre-sync warning
LARGE_INCREASE_THRESHOLD_PCT: float = float(
    os.getenv("LARGE_INCREASE_THRESHOLD_PCT", "50")
)

# ---------------------------------------------------------------------------
# Exports
# ---------------------------------------------------------------------------
EXPORT_FILENAME: str = os.getenv("EXPORT_FILENAME", "shopify_price_update.xlsx")
REPORT_FILENAME: str = os.getenv("REPORT_FILENAME", "filtered-price-data.xlsx")

# ---------------------------------------------------------------------------
# Caching
# ---------------------------------------------------------------------------
CACHE_TTL: int = int(os.getenv("CACHE_TTL", "300"))  # seconds

# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------
APP_TITLE: str = "Price-List Reconciliation"
APP_VERSION: str = "1.0.0"
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
