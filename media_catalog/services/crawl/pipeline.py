from __future__ import annotations

import base64
from typing import Optional

from .base import NO_DATA, NO_TITLE, Entry


def derive_entry_id(media_url: str) -> str:
    """Encode a media URL as its entry id.

    URL-safe base64 of the UTF-8 bytes: the same URL always gives the same id,
    distinct URLs never collide, and the id is safe inside a URL path segment.
    """
    return base64.urlsafe_b64encode(media_url.encode("utf-8")).decode("ascii")


def decode_entry_id(entry_id: str) -> str:
    return base64.urlsafe_b64decode(entry_id.encode("ascii")).decode("utf-8")


def build_entry(
    catalog_id: str,
    media_url: str,
    title: Optional[str],
    description: Optional[str],
    image_url: Optional[str],
) -> Entry:
    return Entry(
        entry_id=derive_entry_id(media_url),
        catalog_id=catalog_id,
        name=title if title is not None else NO_TITLE,
        description=description if description is not None else NO_DATA,
        poster=image_url if image_url is not None else NO_DATA,
        media_url=media_url,
    )


class StoreWriter:
    """Idempotent upsert of discovered media into the entry store.

    Entries are keyed by (entry_id, catalog_id); a later crawl overwrites every
    field of an existing entry. Store errors surface as StoreFailure.
    """

    def __init__(self, store) -> None:
        self.store = store

    def upsert(
        self,
        catalog_id: str,
        media_url: str,
        title: Optional[str],
        description: Optional[str],
        image_url: Optional[str],
    ) -> Entry:
        entry = build_entry(catalog_id, media_url, title, description, image_url)
        self.store.upsert_entry(entry)
        return entry
