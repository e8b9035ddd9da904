from __future__ import annotations

import logging
import re
import threading
from typing import Dict, List, Optional
from urllib.parse import urlparse

from media_catalog.services.crawl.base import RegistrationInputError, SiteRegistration

logger = logging.getLogger(__name__)

_ID_UNSAFE = re.compile(r"[^a-z0-9-]")


def _parse_site_url(url: Optional[str]):
    url = (url or "").strip()
    if not url:
        raise RegistrationInputError("Missing URL")
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise RegistrationInputError(f"URL must use http or https: {url!r}")
    if not parsed.hostname:
        raise RegistrationInputError(f"URL has no host: {url!r}")
    return url, parsed


def derive_catalog_id(url: str) -> str:
    """``https://www.Example.com/x`` -> ``catalog-www-example-com``."""
    _, parsed = _parse_site_url(url)
    return "catalog-" + _ID_UNSAFE.sub("-", parsed.hostname.lower())


class SiteRegistry:
    """In-memory catalog id -> seed URL mapping for the lifetime of the process."""

    def __init__(self) -> None:
        self._sites: Dict[str, SiteRegistration] = {}
        self._lock = threading.Lock()

    def register(self, url: Optional[str]) -> SiteRegistration:
        url, parsed = _parse_site_url(url)
        catalog_id = derive_catalog_id(url)
        with self._lock:
            existing = self._sites.get(catalog_id)
            if existing is not None:
                if urlparse(existing.url).hostname != parsed.hostname:
                    raise RegistrationInputError(
                        f"Catalog id {catalog_id} is already used by {existing.url}"
                    )
                logger.info("Site %s already registered as %s (%s)", url, catalog_id, existing.url)
                return existing
            site = SiteRegistration(catalog_id=catalog_id, url=url)
            self._sites[catalog_id] = site
        logger.info("Added new site: %s (Catalog ID: %s)", url, catalog_id)
        return site

    def get(self, catalog_id: str) -> Optional[SiteRegistration]:
        with self._lock:
            return self._sites.get(catalog_id)

    def list_all(self) -> List[SiteRegistration]:
        with self._lock:
            return list(self._sites.values())

    def __len__(self) -> int:
        return len(self._sites)
