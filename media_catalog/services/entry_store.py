"""Persistence for discovered catalog entries.

Two interchangeable backends share the same small surface
(``upsert_entry``/``find_by_catalog``/``find_by_id``):

- MongoEntryStore: the production store, one document per (id, catalogId).
- InMemoryEntryStore: process-local dict, used for tests and STORE_BACKEND=memory.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional, Protocol, Tuple

from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from media_catalog.config import Settings
from media_catalog.services.crawl.base import Entry, StoreFailure

logger = logging.getLogger(__name__)


class EntryStore(Protocol):
    def upsert_entry(self, entry: Entry) -> None: ...

    def find_by_catalog(self, catalog_id: str) -> List[Entry]: ...

    def find_by_id(self, entry_id: str) -> Optional[Entry]: ...


class MongoEntryStore:
    def __init__(self, collection) -> None:
        self.collection = collection

    def ensure_indexes(self) -> None:
        try:
            self.collection.create_index(
                [("id", ASCENDING), ("catalogId", ASCENDING)],
                unique=True,
                name="entry_catalog_unique",
            )
            self.collection.create_index([("catalogId", ASCENDING)], name="catalog_lookup")
        except PyMongoError as exc:
            raise StoreFailure(f"Could not create entry indexes: {exc}") from exc

    def upsert_entry(self, entry: Entry) -> None:
        doc = entry.to_document()
        try:
            self.collection.update_one(
                {"id": entry.entry_id, "catalogId": entry.catalog_id},
                {"$set": doc},
                upsert=True,
            )
        except PyMongoError as exc:
            raise StoreFailure(f"Upsert of {entry.entry_id} in {entry.catalog_id} failed: {exc}") from exc

    def find_by_catalog(self, catalog_id: str) -> List[Entry]:
        try:
            docs = list(self.collection.find({"catalogId": catalog_id}, {"_id": 0}))
        except PyMongoError as exc:
            raise StoreFailure(f"Lookup of catalog {catalog_id} failed: {exc}") from exc
        return [Entry.from_document(d) for d in docs]

    def find_by_id(self, entry_id: str) -> Optional[Entry]:
        try:
            doc = self.collection.find_one({"id": entry_id}, {"_id": 0})
        except PyMongoError as exc:
            raise StoreFailure(f"Lookup of entry {entry_id} failed: {exc}") from exc
        return Entry.from_document(doc) if doc else None


class InMemoryEntryStore:
    def __init__(self) -> None:
        self._entries: Dict[Tuple[str, str], Entry] = {}
        self._lock = threading.Lock()

    def upsert_entry(self, entry: Entry) -> None:
        with self._lock:
            self._entries[(entry.entry_id, entry.catalog_id)] = entry

    def find_by_catalog(self, catalog_id: str) -> List[Entry]:
        with self._lock:
            return [e for e in self._entries.values() if e.catalog_id == catalog_id]

    def find_by_id(self, entry_id: str) -> Optional[Entry]:
        with self._lock:
            for (eid, _), entry in self._entries.items():
                if eid == entry_id:
                    return entry
        return None

    def __len__(self) -> int:
        return len(self._entries)


def build_entry_store(settings: Settings):
    """Create the store selected by ``settings.store_backend``."""
    backend = settings.store_backend
    if backend == "memory":
        logger.info("Using in-memory entry store; entries will not survive a restart")
        return InMemoryEntryStore()
    if backend == "mongo":
        from media_catalog.db.mongo_connector import get_collection

        return MongoEntryStore(get_collection(settings))
    raise ValueError(f"Unknown STORE_BACKEND {backend!r}; expected 'mongo' or 'memory'")
