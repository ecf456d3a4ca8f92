# src/config/settings.py

"""Central configuration for the price_tracker client."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the price_tracker client."""

    # --- Backend ---
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "").rstrip("/")
    SUPABASE_ANON_KEY: str = os.getenv("SUPABASE_ANON_KEY", "")
    REQUEST_TIMEOUT: int = int(
        os.getenv("PRICE_TRACKER_REQUEST_TIMEOUT", "15")
    )                                   # Seconds before a request times out

    # --- Tables ---
    PRODUCTS_TABLE: str = "products"
    SUPPLIERS_TABLE: str = "suppliers"
    PRICES_TABLE: str = "prices"
    USERS_TABLE: str = "users"

    # --- Query cache keys ---
    PRODUCTS_KEY: str = "products"
    SUPPLIERS_KEY: str = "suppliers"
    PRICE_TRENDS_KEY: str = "price-trends"
    QUERY_CACHE_TTL: float = 300.0      # Seconds before an entry is refetched

    # --- Presentation ---
    RECENT_RECORDS_LIMIT: int = 10
    CURRENCY_SYMBOL: str = "$"
    MARKET_SECTORS: list[str] = [
        "Technology",
        "Healthcare",
        "Finance",
        "Real Estate",
        "Education",
        "Retail",
        "Manufacturing",
        "Energy",
        "Transportation",
        "Entertainment",
    ]

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    LOGS_DIR: Path = BASE_DIR / "logs"
    CHARTS_DIR: Path = DATA_DIR / "charts"
    SESSION_PATH: Path = DATA_DIR / "session.json"
