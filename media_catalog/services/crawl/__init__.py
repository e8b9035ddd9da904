"""Crawl-and-ingest subsystem.

Structure:
- base.py: shared types, sentinels and error classes
- fetcher.py: renders one page with Playwright and extracts links/metadata
- walker.py: depth-first, cycle-safe walk of one site's same-origin pages
- pipeline.py: entry id derivation and idempotent upsert into the entry store
- runner.py: refresh orchestration over all registered sites, plus a CLI
"""
