"""Fetching and answer extraction.

Sub-modules:
- ``config``             — thresholds, rule tables and selector lists
- ``models``             — snapshots, candidates and validation verdicts
- ``sanitizer``          — noise stripping (``clean``)
- ``validator``          — answer/placeholder classification (``check``)
- ``strategies``         — ordered extraction strategy chain
- ``http_fetcher``       — async httpx-based page fetcher
- ``playwright_fetcher`` — shared headless Chromium session and fetcher
- ``targets``            — query to endpoint resolution
"""
