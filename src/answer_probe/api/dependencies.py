"""FastAPI dependency providers shared by the route modules."""

from __future__ import annotations

from fastapi import Request

from answer_probe.config.settings import Settings, get_settings
from answer_probe.polling.controller import Fetcher
from answer_probe.scraper.http_fetcher import HttpFetcher
from answer_probe.scraper.playwright_fetcher import BrowserFetcher, BrowserSession


def build_fetcher(settings: Settings) -> HttpFetcher | BrowserFetcher:
    """Create the transport selected by ``settings.fetcher``.

    The browser variant owns one :class:`BrowserSession` shared by every
    request the application serves.
    """
    if settings.fetcher == "browser":
        session = BrowserSession(
            headless=settings.browser_headless, user_agent=settings.user_agent
        )
        return BrowserFetcher(
            session,
            timeout=settings.per_call_timeout_seconds,
            settle_ms=settings.browser_settle_ms,
        )
    return HttpFetcher(
        timeout=settings.per_call_timeout_seconds, user_agent=settings.user_agent
    )


def get_fetcher(request: Request) -> Fetcher:
    """Return the application-wide fetcher created at startup."""
    return request.app.state.fetcher


def get_app_settings() -> Settings:
    return get_settings()
