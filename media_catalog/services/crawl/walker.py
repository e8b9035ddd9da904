from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from .base import FetchFailure, SiteRegistration, StoreFailure

logger = logging.getLogger(__name__)


class VisitedSet:
    """URLs already processed during one site walk."""

    def __init__(self) -> None:
        self._urls: Set[str] = set()

    def add(self, url: str) -> bool:
        """Mark ``url`` visited; return False if it already was."""
        if url in self._urls:
            return False
        self._urls.add(url)
        return True

    def __contains__(self, url: object) -> bool:
        return url in self._urls

    def __len__(self) -> int:
        return len(self._urls)

    def __iter__(self) -> Iterator[str]:
        return iter(self._urls)


@dataclass
class WalkStats:
    pages_fetched: int = 0
    fetch_failures: int = 0
    entries_upserted: int = 0
    failed_upserts: int = 0
    skipped_by_limit: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class CrawlWalker:
    """Depth-first, sequential walk over a site's same-origin pages.

    Pages are visited in the same pre-order a recursive walk would produce; an
    explicit stack keeps large sites clear of the interpreter's recursion limit.
    Every discovered media link is upserted under the seed's catalog id.

    ``max_pages`` caps fetches per walk and ``max_depth`` caps link hops from the
    seed (seed is depth 0). Both default to unbounded.
    """

    def __init__(
        self,
        fetcher: Any,
        writer: Any,
        *,
        max_pages: Optional[int] = None,
        max_depth: Optional[int] = None,
    ) -> None:
        self.fetcher = fetcher
        self.writer = writer
        self.max_pages = max_pages
        self.max_depth = max_depth

    async def walk(self, site: SiteRegistration, visited: Optional[VisitedSet] = None) -> WalkStats:
        if visited is None:
            visited = VisitedSet()
        stats = WalkStats()
        stack: List[Tuple[str, int]] = [(site.url, 0)]

        while stack:
            url, depth = stack.pop()
            if url in visited:
                continue
            if self.max_pages is not None and stats.pages_fetched + stats.fetch_failures >= self.max_pages:
                pending = {u for u, _ in stack if u not in visited}
                pending.add(url)
                stats.skipped_by_limit = len(pending)
                logger.info("Page cap of %d reached for %s", self.max_pages, site.catalog_id)
                break
            visited.add(url)

            logger.info("Scraping: %s", url)
            result = await self.fetcher.fetch(url)
            if isinstance(result, FetchFailure):
                stats.fetch_failures += 1
                continue
            stats.pages_fetched += 1

            for media_url in result.media_links:
                try:
                    # Store writes block; keep them off the event loop.
                    await asyncio.to_thread(
                        self.writer.upsert,
                        site.catalog_id,
                        media_url,
                        result.title,
                        result.description,
                        result.image_url,
                    )
                except StoreFailure as exc:
                    stats.failed_upserts += 1
                    logger.error("Failed to store %s for %s: %s", media_url, site.catalog_id, exc)
                else:
                    stats.entries_upserted += 1

            if self.max_depth is not None and depth >= self.max_depth:
                continue
            # Reversed so the first link on the page is walked first.
            for link in reversed(result.same_origin_links):
                if link not in visited:
                    stack.append((link, depth + 1))

        return stats
