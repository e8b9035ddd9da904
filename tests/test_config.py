import pytest

from media_catalog.config import load_settings


def _clear(monkeypatch):
    for name in (
        "MONGO_URI",
        "MONGO_DB",
        "MONGO_COLLECTION",
        "PORT",
        "STORE_BACKEND",
        "FETCH_TIMEOUT",
        "REFRESH_INTERVAL",
        "REFRESH_ON_STARTUP",
        "CRAWL_MAX_PAGES",
        "CRAWL_MAX_DEPTH",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults(monkeypatch, tmp_path):
    _clear(monkeypatch)
    s = load_settings(env_path=str(tmp_path / "missing.env"))
    assert s.mongo_db == "stremio_scraper"
    assert s.mongo_collection == "scraped_entries"
    assert s.fetch_timeout == 60.0
    assert s.refresh_interval == 7200
    assert s.max_pages_per_site is None
    assert s.port == 7000


def test_env_file_fills_only_missing_values(monkeypatch, tmp_path):
    _clear(monkeypatch)
    env = tmp_path / ".env"
    env.write_text('# local\nMONGO_DB="catalogs"\nCRAWL_MAX_PAGES = 50\nSTORE_BACKEND=memory\n', encoding="utf-8")
    monkeypatch.setenv("STORE_BACKEND", "mongo")
    # Empty counts as unset; monkeypatch restores both after the test.
    monkeypatch.setenv("MONGO_DB", "")
    monkeypatch.setenv("CRAWL_MAX_PAGES", "")
    s = load_settings(env_path=str(env))
    assert s.mongo_db == "catalogs"
    assert s.max_pages_per_site == 50
    assert s.store_backend == "mongo"


def test_bad_number_names_the_variable(monkeypatch, tmp_path):
    _clear(monkeypatch)
    monkeypatch.setenv("FETCH_TIMEOUT", "soon")
    with pytest.raises(ValueError, match="FETCH_TIMEOUT"):
        load_settings(env_path=str(tmp_path / "missing.env"))
