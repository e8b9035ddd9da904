import logging
from contextlib import asynccontextmanager
from typing import Any, Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from media_catalog.config import Settings, load_settings
from media_catalog.db.mongo_connector import close_client, get_collection
from media_catalog.services.crawl.pipeline import StoreWriter
from media_catalog.services.crawl.runner import RefreshOrchestrator
from media_catalog.services.entry_store import MongoEntryStore, build_entry_store
from media_catalog.services.registry import SiteRegistry
from media_catalog.services.scheduler import RefreshScheduler

# Routers
from media_catalog.api.routers.addon import router as addon_router
from media_catalog.api.routers.sites import router as sites_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the refresh schedule and release the store client on shutdown."""
    store = app.state.store
    if isinstance(store, MongoEntryStore):
        if app.state.owns_store:
            # close_client() on a previous shutdown left the old collection unusable.
            store.collection = get_collection(app.state.settings)
        try:
            store.ensure_indexes()
        except Exception:  # pylint: disable=broad-except
            logger.exception("Could not ensure entry indexes; continuing without them")
    scheduler: RefreshScheduler = app.state.scheduler
    scheduler.start()
    try:
        yield
    finally:
        await scheduler.stop()
        close_client()


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Any = None,
    browser_factory: Optional[Callable[[], Any]] = None,
    fetcher_factory: Optional[Callable[[Any], Any]] = None,
) -> FastAPI:
    settings = settings or load_settings()
    owns_store = store is None
    if owns_store:
        store = build_entry_store(settings)
    registry = SiteRegistry()
    orchestrator = RefreshOrchestrator(
        registry,
        StoreWriter(store),
        browser_factory=browser_factory,
        fetcher_factory=fetcher_factory,
        fetch_timeout=settings.fetch_timeout,
        headless=settings.headless,
        max_pages=settings.max_pages_per_site,
        max_depth=settings.max_depth,
    )
    scheduler = RefreshScheduler(
        orchestrator,
        interval=settings.refresh_interval,
        run_on_start=settings.refresh_on_startup,
    )

    app = FastAPI(title="Multi-Site Scraper", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.owns_store = owns_store
    app.state.registry = registry
    app.state.orchestrator = orchestrator
    app.state.scheduler = scheduler

    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    app.include_router(addon_router)
    app.include_router(sites_router)
    return app


app = create_app()
