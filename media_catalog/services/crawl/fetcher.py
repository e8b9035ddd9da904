from __future__ import annotations

import logging
import random
import re
from typing import Any, List, Optional, Sequence, Union
from urllib.parse import urldefrag, urljoin, urlparse

from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from selectolax.lexbor import LexborHTMLParser

from .base import FetchFailure, PageData

logger = logging.getLogger(__name__)

USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.4 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 14_0 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/14.0 Mobile/15E148 Safari/604.1",
]

MEDIA_EXTENSIONS = ("mp4", "m3u8", "avi", "mov")
STREAMING_HOSTS = ("vidstream", "dood", "streamsb", "streamtape")

_MEDIA_EXT_RE = re.compile(r"\.(%s)$" % "|".join(MEDIA_EXTENSIONS), re.IGNORECASE)
_STREAM_HOST_RE = re.compile("|".join(STREAMING_HOSTS), re.IGNORECASE)
_WEB_SCHEMES = ("http", "https")
_DEFAULT_PORTS = {"http": 80, "https": 443}

FetchResult = Union[PageData, FetchFailure]


def url_origin(url: str) -> Optional[str]:
    """Return scheme://host:port for an http(s) URL, or None."""
    try:
        parsed = urlparse(url)
        if parsed.scheme not in _WEB_SCHEMES or not parsed.hostname:
            return None
        port = parsed.port or _DEFAULT_PORTS[parsed.scheme]
    except ValueError:
        return None
    return f"{parsed.scheme}://{parsed.hostname}:{port}"


def is_media_link(url: str) -> bool:
    """A link is media if its path has a known video extension or it points at a streaming host."""
    path = urlparse(url).path
    return bool(_MEDIA_EXT_RE.search(path) or _MEDIA_EXT_RE.search(url) or _STREAM_HOST_RE.search(url))


def _meta_content(doc: LexborHTMLParser, selector: str) -> Optional[str]:
    node = doc.css_first(selector)
    if node is None:
        return None
    value = (node.attributes.get("content") or "").strip()
    return value or None


def _resolve(base_url: str, raw: Optional[str]) -> Optional[str]:
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        absolute = urljoin(base_url, raw)
        scheme = urlparse(absolute).scheme
    except ValueError:
        # e.g. an unbalanced IPv6 bracket in the href
        return None
    if scheme not in _WEB_SCHEMES:
        return None
    return absolute


def _unique(items: Sequence[str]) -> List[str]:
    seen = set()
    out: List[str] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        out.append(item)
    return out


def parse_page(html: str, page_url: str) -> PageData:
    """Extract title, description, poster image and links from rendered HTML.

    Links are resolved against ``page_url`` (the post-redirect URL). Media links come
    from both anchors and iframes; same-origin links come from anchors only and are
    stripped of their fragment so ``/a`` and ``/a#top`` are one page.
    """
    doc = LexborHTMLParser(html)

    title_node = doc.css_first("title")
    title = title_node.text(strip=True) if title_node is not None else ""

    media: List[str] = []
    for selector, attr in (("a[href]", "href"), ("iframe[src]", "src")):
        for node in doc.css(selector):
            link = _resolve(page_url, node.attributes.get(attr))
            if link and is_media_link(link):
                media.append(link)

    origin = url_origin(page_url)
    same_origin: List[str] = []
    for node in doc.css("a[href]"):
        link = _resolve(page_url, node.attributes.get("href"))
        if not link or origin is None:
            continue
        link = urldefrag(link)[0]
        if url_origin(link) == origin:
            same_origin.append(link)

    return PageData(
        url=page_url,
        title=title or None,
        description=_meta_content(doc, 'meta[name="description"]'),
        image_url=_meta_content(doc, 'meta[property="og:image"]'),
        media_links=_unique(media),
        same_origin_links=_unique(same_origin),
    )


class PageFetcher:
    """Render a URL in a fresh browser context and extract its page data.

    ``fetch`` never raises: navigation or extraction errors come back as a
    FetchFailure. The context is closed on every path.
    """

    def __init__(
        self,
        browser: Any,
        *,
        timeout: float = 60.0,
        user_agents: Sequence[str] = USER_AGENTS,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.browser = browser
        self.timeout = float(timeout)
        self.user_agents = list(user_agents)
        self._rng = rng or random.Random()

    def pick_user_agent(self) -> str:
        return self._rng.choice(self.user_agents)

    async def fetch(self, url: str) -> FetchResult:
        try:
            context = await self.browser.new_context(user_agent=self.pick_user_agent())
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Could not open a browser context for %s: %s", url, exc)
            return FetchFailure(url=url, cause=exc)

        try:
            page = await context.new_page()
            await page.goto(url, wait_until="domcontentloaded", timeout=self.timeout * 1000)
            html = await page.content()
            final_url = page.url or url
            return parse_page(html, final_url)
        except PlaywrightTimeoutError as exc:
            logger.warning("Timeout while loading %s: %s", url, exc)
            return FetchFailure(url=url, cause=exc)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Error scraping %s: %s", url, exc)
            return FetchFailure(url=url, cause=exc)
        finally:
            try:
                await context.close()
            except Exception as exc:  # pylint: disable=broad-except
                logger.debug("Failed to close browser context for %s: %s", url, exc)
