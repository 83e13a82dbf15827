"""
Service configuration.

All values come from environment variables (a local ``.env`` is loaded first
via python-dotenv). Anything unset or unparseable keeps its default.

Variables:
    CONSTELLATION_PRIMARY_URL   index page of the primary source (go-astronomy)
    CONSTELLATION_BACKUP_URL    index page of the backup source (NOIRLab)
    FETCH_TIMEOUT_S             per-attempt HTTP timeout            (15)
    FETCH_RETRIES               attempts per URL                    (3)
    FETCH_BACKOFF_S             delay step between attempts         (1.0)
    HARVEST_BATCH_SIZE          detail pages fetched per batch      (10)
    HARVEST_BATCH_PAUSE_S       pause between batches               (0.3)
    HARVEST_MAX_ENTRIES         listing cap, 88 = full IAU set      (88)
    CATALOGUE_CACHE_TTL_S       full catalogue lifetime             (30 days)
    RECORD_CACHE_TTL_S          single record lifetime              (24 h)
    LOG_LEVEL                   root logging level                  (INFO)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

PRIMARY_INDEX_URL = "https://www.go-astronomy.com/constellations.htm"
BACKUP_INDEX_URL = "https://noirlab.edu/public/education/constellations/"

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"

# 88 IAU constellations; listings are capped here
MAX_CATALOGUE_SIZE = 88

CATALOGUE_CACHE_TTL = 30 * 24 * 3600  # 30 days
RECORD_CACHE_TTL = 24 * 3600          # 24 hours


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r (not a number), using %s", name, raw, default)
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r (not an integer), using %s", name, raw, default)
        return default


@dataclass(frozen=True)
class Settings:
    primary_url: str = PRIMARY_INDEX_URL
    backup_url: str = BACKUP_INDEX_URL
    fetch_timeout_s: float = 15.0
    fetch_retries: int = 3
    fetch_backoff_s: float = 1.0
    batch_size: int = 10
    batch_pause_s: float = 0.3
    max_entries: int = MAX_CATALOGUE_SIZE
    catalogue_ttl_s: float = CATALOGUE_CACHE_TTL
    record_ttl_s: float = RECORD_CACHE_TTL
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        load_dotenv()
        return cls(
            primary_url=os.getenv("CONSTELLATION_PRIMARY_URL", PRIMARY_INDEX_URL),
            backup_url=os.getenv("CONSTELLATION_BACKUP_URL", BACKUP_INDEX_URL),
            fetch_timeout_s=_env_float("FETCH_TIMEOUT_S", 15.0),
            fetch_retries=max(1, _env_int("FETCH_RETRIES", 3)),
            fetch_backoff_s=max(0.0, _env_float("FETCH_BACKOFF_S", 1.0)),
            batch_size=max(1, _env_int("HARVEST_BATCH_SIZE", 10)),
            batch_pause_s=max(0.0, _env_float("HARVEST_BATCH_PAUSE_S", 0.3)),
            max_entries=max(1, _env_int("HARVEST_MAX_ENTRIES", MAX_CATALOGUE_SIZE)),
            catalogue_ttl_s=_env_float("CATALOGUE_CACHE_TTL_S", CATALOGUE_CACHE_TTL),
            record_ttl_s=_env_float("RECORD_CACHE_TTL_S", RECORD_CACHE_TTL),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


# Singleton
_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings
