from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")


@dataclass(frozen=True)
class Settings:
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./tablescout.db")
    session_secret: str = os.getenv("SESSION_SECRET", "tablescout-secret-change-in-production")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    min_interactions: int = 5
    history_limit: int = 100
    cache_scan_limit: int = 100
    place_cache_ttl: timedelta = timedelta(days=7)
    search_cache_ttl: timedelta = timedelta(hours=1)

    resolver_workers: int = 3
    coalesce_linger_seconds: float = 1.0
    default_list_name: str = "Favorites"


DEFAULT_SETTINGS = Settings()
