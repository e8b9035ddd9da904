from __future__ import annotations

import argparse
import asyncio
import json
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from playwright.async_api import async_playwright

from media_catalog.config import load_settings
from media_catalog.services.crawl.base import RegistrationInputError
from media_catalog.services.crawl.fetcher import PageFetcher
from media_catalog.services.crawl.pipeline import StoreWriter
from media_catalog.services.crawl.walker import CrawlWalker, VisitedSet, WalkStats

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _now_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


@asynccontextmanager
async def launch_browser(*, headless: bool = True):
    """Launch one Chromium instance and close it when the block exits."""
    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(headless=headless)
        try:
            yield browser
        finally:
            await browser.close()


@dataclass
class RefreshSummary:
    started_at: str
    finished_at: Optional[str] = None
    sites: Dict[str, WalkStats] = field(default_factory=dict)
    failed_sites: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "sites": {cid: stats.to_dict() for cid, stats in self.sites.items()},
            "failed_sites": list(self.failed_sites),
        }


class RefreshOrchestrator:
    """Run one walk per registered site under a single browser instance.

    Only one cycle runs at a time. A refresh requested while a cycle is in
    flight is coalesced into a single follow-up cycle that starts once the
    current one finishes; the caller gets ``None`` back.
    """

    def __init__(
        self,
        registry,
        writer: StoreWriter,
        *,
        browser_factory: Optional[Callable[[], Any]] = None,
        fetcher_factory: Optional[Callable[[Any], Any]] = None,
        fetch_timeout: float = 60.0,
        headless: bool = True,
        max_pages: Optional[int] = None,
        max_depth: Optional[int] = None,
    ) -> None:
        self.registry = registry
        self.writer = writer
        self.browser_factory = browser_factory or (lambda: launch_browser(headless=headless))
        self.fetcher_factory = fetcher_factory or (lambda browser: PageFetcher(browser, timeout=fetch_timeout))
        self.max_pages = max_pages
        self.max_depth = max_depth
        self.last_summary: Optional[RefreshSummary] = None
        self._running = False
        self._pending = False

    @property
    def running(self) -> bool:
        return self._running

    async def refresh(self) -> Optional[RefreshSummary]:
        if self._running:
            self._pending = True
            logger.info("Refresh already in progress; queued one follow-up cycle")
            return None
        self._running = True
        try:
            while True:
                self._pending = False
                try:
                    summary = await self._run_cycle()
                except Exception:  # pylint: disable=broad-except
                    if not self._pending:
                        raise
                    logger.exception("Refresh cycle failed; running the queued follow-up")
                    continue
                if not self._pending:
                    return summary
        finally:
            self._running = False

    async def _run_cycle(self) -> RefreshSummary:
        sites = self.registry.list_all()
        summary = RefreshSummary(started_at=_now_iso())
        logger.info("Starting scraping process for %d site(s)", len(sites))
        if sites:
            async with self.browser_factory() as browser:
                fetcher = self.fetcher_factory(browser)
                for site in sites:
                    walker = CrawlWalker(
                        fetcher,
                        self.writer,
                        max_pages=self.max_pages,
                        max_depth=self.max_depth,
                    )
                    try:
                        stats = await walker.walk(site, VisitedSet())
                    except Exception:  # pylint: disable=broad-except
                        logger.exception("Crawl of %s (%s) failed", site.catalog_id, site.url)
                        summary.failed_sites.append(site.catalog_id)
                        continue
                    summary.sites[site.catalog_id] = stats
                    logger.info(
                        "Finished %s: %d page(s), %d failure(s), %d entr(ies), %d failed upsert(s)",
                        site.catalog_id,
                        stats.pages_fetched,
                        stats.fetch_failures,
                        stats.entries_upserted,
                        stats.failed_upserts,
                    )
        summary.finished_at = _now_iso()
        self.last_summary = summary
        logger.info("Scraping process completed at %s", summary.finished_at)
        return summary


def _run_crawl(args: argparse.Namespace) -> int:
    from media_catalog.db.mongo_connector import close_client
    from media_catalog.services.entry_store import MongoEntryStore, build_entry_store
    from media_catalog.services.registry import SiteRegistry

    settings = load_settings()
    if args.store:
        settings.store_backend = args.store
    registry = SiteRegistry()
    for url in args.urls:
        try:
            registry.register(url)
        except RegistrationInputError as exc:
            logger.error("Skipping %s: %s", url, exc)
    if not len(registry):
        logger.error("No valid URLs to crawl")
        return 2

    store = build_entry_store(settings)
    try:
        if isinstance(store, MongoEntryStore):
            store.ensure_indexes()
        orchestrator = RefreshOrchestrator(
            registry,
            StoreWriter(store),
            fetch_timeout=args.timeout if args.timeout is not None else settings.fetch_timeout,
            headless=settings.headless,
            max_pages=args.max_pages if args.max_pages is not None else settings.max_pages_per_site,
            max_depth=args.max_depth if args.max_depth is not None else settings.max_depth,
        )
        summary = asyncio.run(orchestrator.refresh())
    finally:
        close_client()

    print(json.dumps(summary.to_dict(), indent=2))
    return 1 if summary.failed_sites else 0


def _run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = load_settings()
    uvicorn.run("media_catalog.main:app", host=args.host, port=args.port or settings.port)
    return 0


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Crawl registered sites and serve the media catalog")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="cmd", required=True)

    crawl = sub.add_parser("crawl", help="Crawl one or more sites once and print a summary")
    crawl.add_argument("urls", nargs="+", help="Seed URLs; each becomes its own catalog")
    crawl.add_argument("--store", choices=["mongo", "memory"], help="Override STORE_BACKEND")
    crawl.add_argument("--timeout", type=float, default=None, help="Navigation timeout in seconds")
    crawl.add_argument("--max-pages", type=int, default=None, help="Stop each site after this many pages")
    crawl.add_argument("--max-depth", type=int, default=None, help="Follow links at most this many hops from the seed")

    serve = sub.add_parser("serve", help="Run the catalog HTTP server")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=None, help="Defaults to PORT (7000)")

    args = parser.parse_args(argv)
    settings = load_settings()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    if args.cmd == "crawl":
        return _run_crawl(args)
    if args.cmd == "serve":
        return _run_serve(args)

    parser.error("unknown command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
