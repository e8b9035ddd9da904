"""Runtime settings for the catalog crawler.

Values come from the process environment, optionally seeded by a ``.env`` file
at the project root. Only variables that aren't already set are taken from the
file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_MONGO_URI = "mongodb://localhost:27017"
DEFAULT_MONGO_DB = "stremio_scraper"
DEFAULT_MONGO_COLLECTION = "scraped_entries"
DEFAULT_FETCH_TIMEOUT = 60.0
DEFAULT_REFRESH_INTERVAL = 2 * 60 * 60


@dataclass
class Settings:
    """Top-level settings that control crawling, storage and serving."""

    mongo_uri: str = DEFAULT_MONGO_URI
    mongo_db: str = DEFAULT_MONGO_DB
    mongo_collection: str = DEFAULT_MONGO_COLLECTION
    store_backend: str = "mongo"
    port: int = 7000
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    refresh_on_startup: bool = True
    max_pages_per_site: Optional[int] = None
    max_depth: Optional[int] = None
    headless: bool = True
    log_level: str = "INFO"


def _load_env_from_file(env_path: Optional[str] = None) -> None:
    """Load environment variables from a .env file if present.

    Blank lines and ``#`` comments are ignored; surrounding quotes are stripped.
    """
    if env_path is None:
        root_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
        env_path = os.path.join(root_dir, ".env")
    if not os.path.isfile(env_path):
        return
    with open(env_path, "r", encoding="utf-8") as f:
        for line in f:
            s = line.strip()
            if not s or s.startswith("#") or "=" not in s:
                continue
            key, val = s.split("=", 1)
            key = key.strip()
            val = val.strip().strip('"').strip("'")
            if key and not os.environ.get(key):
                os.environ[key] = val


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _env_bool(name: str, default: bool) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


def load_settings(env_path: Optional[str] = None) -> Settings:
    """Build Settings from the environment (and .env), applying defaults."""
    _load_env_from_file(env_path)
    return Settings(
        mongo_uri=os.getenv("MONGO_URI") or DEFAULT_MONGO_URI,
        mongo_db=os.getenv("MONGO_DB") or DEFAULT_MONGO_DB,
        mongo_collection=os.getenv("MONGO_COLLECTION") or DEFAULT_MONGO_COLLECTION,
        store_backend=(os.getenv("STORE_BACKEND") or "mongo").strip().lower(),
        port=_env_int("PORT", 7000),
        fetch_timeout=_env_float("FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT),
        refresh_interval=_env_float("REFRESH_INTERVAL", DEFAULT_REFRESH_INTERVAL),
        refresh_on_startup=_env_bool("REFRESH_ON_STARTUP", True),
        max_pages_per_site=_env_int("CRAWL_MAX_PAGES", None),
        max_depth=_env_int("CRAWL_MAX_DEPTH", None),
        headless=_env_bool("BROWSER_HEADLESS", True),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )
