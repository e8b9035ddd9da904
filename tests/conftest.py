import os
from contextlib import asynccontextmanager

import pytest

# Keep the module-level app in media_catalog.main off MongoDB and the timer.
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("REFRESH_ON_STARTUP", "false")
os.environ.setdefault("REFRESH_INTERVAL", "0")

from media_catalog.services.crawl.base import FetchFailure, PageData  # noqa: E402


class FakeFetcher:
    """Serves PageData from a dict; unknown or failing URLs yield FetchFailure."""

    def __init__(self, pages, failing=()):
        self.pages = pages
        self.failing = set(failing)
        self.calls = []

    async def fetch(self, url):
        self.calls.append(url)
        if url in self.failing or url not in self.pages:
            return FetchFailure(url=url, cause=RuntimeError(f"cannot load {url}"))
        return self.pages[url]


class FakeBrowserFactory:
    """Counts browser acquire/release around each refresh cycle."""

    def __init__(self):
        self.acquired = 0
        self.released = 0
        self.open = 0
        self.max_open = 0

    @asynccontextmanager
    async def __call__(self):
        self.acquired += 1
        self.open += 1
        self.max_open = max(self.max_open, self.open)
        try:
            yield object()
        finally:
            self.open -= 1
            self.released += 1


def page(url, media=(), links=(), title="A Movie", description=None, image_url=None):
    return PageData(
        url=url,
        title=title,
        description=description,
        image_url=image_url,
        media_links=list(media),
        same_origin_links=list(links),
    )


@pytest.fixture
def browser_factory():
    return FakeBrowserFactory()
