"""Catalog query surface over the entry store.

Shapes follow the Stremio addon protocol: catalogs return ``metas``, meta
lookups return a single ``meta`` and stream lookups return ``streams``.
"""

from __future__ import annotations

import urllib.parse
from typing import Any, Dict, List, Optional

from media_catalog.services.crawl.base import Entry

ADDON_ID = "org.auto.multi-scraper"
ADDON_VERSION = "1.0.0"
ADDON_NAME = "Multi-Site Scraper"
ADDON_DESCRIPTION = "Auto-updating multi-site scraper for Stremio."
CONTENT_TYPE = "movie"


def parse_extra(extra: Optional[str]) -> Dict[str, str]:
    """Parse the ``key=value&key2=value2`` extra path segment of a catalog request."""
    if not extra:
        return {}
    return {k: v for k, v in urllib.parse.parse_qsl(extra, keep_blank_values=True)}


def _meta_preview(entry: Entry) -> Dict[str, Any]:
    return {
        "id": entry.entry_id,
        "type": CONTENT_TYPE,
        "name": entry.name,
        "poster": entry.poster,
        "description": entry.description,
    }


def build_manifest(sites) -> Dict[str, Any]:
    catalogs = [
        {
            "type": CONTENT_TYPE,
            "id": site.catalog_id,
            "name": f"Movies from {urllib.parse.urlparse(site.url).hostname}",
            "extra": [{"name": "search", "isRequired": False}],
        }
        for site in sites
    ]
    return {
        "id": ADDON_ID,
        "version": ADDON_VERSION,
        "name": ADDON_NAME,
        "description": ADDON_DESCRIPTION,
        "resources": ["catalog", "stream", "meta"],
        "types": [CONTENT_TYPE],
        "catalogs": catalogs,
    }


def list_catalog(store, catalog_id: str, search: Optional[str] = None) -> List[Dict[str, Any]]:
    """Entries of one catalog, optionally filtered by case-insensitive name substring."""
    entries = store.find_by_catalog(catalog_id)
    query = (search or "").strip().lower()
    if query:
        entries = [e for e in entries if query in (e.name or "").lower()]
    return [_meta_preview(e) for e in entries]


def get_meta(store, entry_id: str) -> Optional[Dict[str, Any]]:
    entry = store.find_by_id(entry_id)
    return _meta_preview(entry) if entry else None


def get_streams(store, entry_id: str) -> List[Dict[str, Any]]:
    entry = store.find_by_id(entry_id)
    if not entry or not entry.media_url:
        return []
    return [{"url": entry.media_url}]
