from selectolax.lexbor import LexborHTMLParser

from media_catalog.services.crawl import fetcher
from media_catalog.services.crawl.fetcher import is_media_link, parse_page, url_origin


SAMPLE_HTML = """
<html>
  <head>
    <title>Big Buck Bunny</title>
    <meta name="description" content="An open movie.">
    <meta property="og:image" content="https://example.com/poster.jpg">
  </head>
  <body>
    <a href="/movie.mp4">Download</a>
    <a href="https://cdn.other.net/trailer.M3U8">Trailer</a>
    <iframe src="https://dood.example/e/abc123"></iframe>
    <a href="/page2">Next</a>
    <a href="/page2#comments">Comments</a>
    <a href="https://example.com:443/about">About</a>
    <a href="https://elsewhere.org/page">Partner</a>
    <a href="http://example.com/insecure">Plain http</a>
    <a href="mailto:hi@example.com">Mail</a>
    <a href="javascript:void(0)">Noop</a>
    <a href="/movie.mp4">Download again</a>
  </body>
</html>
"""


def test_parse_page_extracts_metadata():
    data = parse_page(SAMPLE_HTML, "https://example.com/")
    assert data.title == "Big Buck Bunny"
    assert data.description == "An open movie."
    assert data.image_url == "https://example.com/poster.jpg"


def test_parse_page_finds_media_links_in_anchors_and_iframes():
    data = parse_page(SAMPLE_HTML, "https://example.com/")
    assert data.media_links == [
        "https://example.com/movie.mp4",
        "https://cdn.other.net/trailer.M3U8",
        "https://dood.example/e/abc123",
    ]


def test_parse_page_follows_only_same_origin_links():
    data = parse_page(SAMPLE_HTML, "https://example.com/")
    assert data.same_origin_links == [
        "https://example.com/movie.mp4",
        "https://example.com/page2",
        "https://example.com:443/about",
    ]
    assert not any("elsewhere.org" in link for link in data.same_origin_links)
    assert "http://example.com/insecure" not in data.same_origin_links


def test_missing_metadata_is_none_not_empty():
    data = parse_page("<html><body><a href='/x'>x</a></body></html>", "https://example.com/")
    assert data.title is None
    assert data.description is None
    assert data.image_url is None
    assert data.media_links == []
    assert data.same_origin_links == ["https://example.com/x"]


def test_is_media_link_rules():
    assert is_media_link("https://a.com/v/clip.MOV")
    assert is_media_link("https://a.com/v/clip.mp4?token=abc")
    assert is_media_link("https://streamtape.com/v/xyz")
    assert not is_media_link("https://a.com/v/clip.mp4.html")
    assert not is_media_link("https://a.com/about")


def test_url_origin_normalises_default_ports():
    assert url_origin("https://Example.com/a") == url_origin("https://example.com:443/b")
    assert url_origin("http://example.com/") != url_origin("https://example.com/")
    assert url_origin("ftp://example.com/") is None


def test_parser_uses_lexbor_backend():
    # The Modest-backed selectolax.parser module is gone in selectolax 1.x.
    assert fetcher.LexborHTMLParser is LexborHTMLParser
    data = parse_page("<title> Spaced </title><a href='https://x.com/a.MOV'>v</a>", "https://x.com/")
    assert data.title == "Spaced"
    assert data.media_links == ["https://x.com/a.MOV"]
