from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Stored in place of metadata the page didn't provide.
NO_TITLE = "No Title"
NO_DATA = "No Data"


class StoreFailure(RuntimeError):
    """Raised when the entry store is unavailable or rejects a write."""


class RegistrationInputError(ValueError):
    """Raised when a site registration carries a missing or malformed URL."""


@dataclass(frozen=True)
class SiteRegistration:
    catalog_id: str
    url: str


@dataclass
class PageData:
    """What one rendered page yields for the crawl.

    ``None`` for title/description/image_url means the page didn't carry it.
    """

    url: str
    title: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    media_links: List[str] = field(default_factory=list)
    same_origin_links: List[str] = field(default_factory=list)


@dataclass
class FetchFailure:
    url: str
    cause: BaseException

    def __str__(self) -> str:
        return f"{self.url}: {self.cause}"


@dataclass
class Entry:
    entry_id: str
    catalog_id: str
    name: str
    description: str
    poster: str
    media_url: str

    def to_document(self) -> Dict[str, Any]:
        # Field names match the documents already written by earlier deployments.
        return {
            "id": self.entry_id,
            "catalogId": self.catalog_id,
            "name": self.name,
            "description": self.description,
            "poster": self.poster,
            "videoUrl": self.media_url,
        }

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Entry":
        return cls(
            entry_id=doc["id"],
            catalog_id=doc["catalogId"],
            name=doc.get("name") or NO_TITLE,
            description=doc.get("description") or NO_DATA,
            poster=doc.get("poster") or NO_DATA,
            media_url=doc.get("videoUrl") or "",
        )
