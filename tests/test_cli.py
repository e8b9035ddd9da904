import json
import logging

import pytest

from conftest import FakeBrowserFactory, FakeFetcher, page
from media_catalog.services.crawl import runner


@pytest.fixture
def fake_crawl(monkeypatch):
    """Route the crawl command through fake browser and fetcher objects."""
    factory = FakeBrowserFactory()
    fetcher = FakeFetcher(
        {"https://example.com": page("https://example.com", media=["https://example.com/movie.mp4"])}
    )
    seen = {}

    def launch(*, headless=True):
        seen["headless"] = headless
        return factory()

    def make_fetcher(browser, timeout):
        seen["timeout"] = timeout
        return fetcher

    monkeypatch.setattr(runner, "launch_browser", launch)
    monkeypatch.setattr(runner, "PageFetcher", make_fetcher)
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield factory, fetcher, seen
    # main() reconfigures the root logger with force=True.
    root.handlers[:] = handlers
    root.setLevel(level)


def test_crawl_prints_summary_and_succeeds(fake_crawl, capsys):
    factory, fetcher, seen = fake_crawl

    code = runner.main(["crawl", "https://example.com", "--store", "memory", "--timeout", "5"])

    assert code == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["sites"]["catalog-example-com"]["entries_upserted"] == 1
    assert summary["failed_sites"] == []
    assert fetcher.calls == ["https://example.com"]
    assert factory.acquired == factory.released == 1
    assert seen["timeout"] == 5.0


def test_crawl_skips_invalid_urls(fake_crawl, capsys):
    _, fetcher, _ = fake_crawl

    code = runner.main(["crawl", "ftp://nope", "https://example.com", "--store", "memory"])

    assert code == 0
    summary = json.loads(capsys.readouterr().out)
    assert list(summary["sites"]) == ["catalog-example-com"]
    assert fetcher.calls == ["https://example.com"]


def test_crawl_exits_1_when_a_site_fails(fake_crawl, monkeypatch, capsys):
    class _CrashingFetcher(FakeFetcher):
        async def fetch(self, url):
            raise RuntimeError("renderer crashed")

    monkeypatch.setattr(runner, "PageFetcher", lambda browser, timeout: _CrashingFetcher({}))

    code = runner.main(["crawl", "https://example.com", "--store", "memory"])

    assert code == 1
    assert json.loads(capsys.readouterr().out)["failed_sites"] == ["catalog-example-com"]


def test_crawl_exits_2_when_no_url_is_valid(fake_crawl, capsys):
    factory, fetcher, _ = fake_crawl

    code = runner.main(["crawl", "ftp://nope", "not a url", "--store", "memory"])

    assert code == 2
    assert capsys.readouterr().out == ""
    assert factory.acquired == 0
    assert fetcher.calls == []
