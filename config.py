"""Configuration management for the Best Price Planner."""
from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    return float(raw) if raw else None


class Settings:
    """Application settings loaded from environment variables."""

    # Engine
    # Width of the vendor bit set. 0 disables the check (Python ints are unbounded).
    MAX_VENDORS: int = int(os.getenv("BEST_PRICE_MAX_VENDORS", "64"))
    TIME_LIMIT_SEC: Optional[float] = _optional_float("BEST_PRICE_TIME_LIMIT_SEC")
    RECONSTRUCTION: str = os.getenv("BEST_PRICE_RECONSTRUCTION", "replay")

    # Requests
    CATALOG_PATH: str = os.getenv("BEST_PRICE_CATALOG_PATH", "shops.json")
    DEFAULT_ITEMS: int = int(os.getenv("BEST_PRICE_DEFAULT_ITEMS", "5"))

    # Storage
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///best_price.db")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def max_vendors(self) -> Optional[int]:
        """Vendor capacity passed to the catalog index (None = unbounded)."""
        return self.MAX_VENDORS if self.MAX_VENDORS > 0 else None


settings = Settings()
