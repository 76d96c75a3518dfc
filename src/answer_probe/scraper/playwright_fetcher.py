"""Playwright-backed fetcher for answer pages that render client-side.

The browser is expensive to launch, so one Chromium instance is kept alive
across queries inside a :class:`BrowserSession`.  The session is a shared
mutable resource with a single owner:

- Only one fetch uses it at a time (``asyncio.Lock``).
- Its lifecycle is explicit::

      uninitialized -> ready -> failed -> reinitializing -> ready
                          \\-> closed

- A fetch failure that suggests the browser is broken marks the session
  ``failed``; the next :meth:`BrowserSession.acquire` tears it down and
  relaunches it while still holding the lock, so no other query can observe
  the half-restarted browser.

Playwright is an optional dependency.  Install it and the Chromium binary::

    pip install "answer-probe[browser]"
    playwright install chromium
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any

from answer_probe.core.exceptions import BrowserSessionError, FetchError
from answer_probe.scraper.config import DEFAULT_PER_CALL_TIMEOUT_SECONDS, USER_AGENT
from answer_probe.scraper.models import DocumentSnapshot

logger = logging.getLogger(__name__)

# Guard import: playwright is an optional dependency
try:
    from playwright.async_api import Error as _PlaywrightError
    from playwright.async_api import TimeoutError as _PlaywrightTimeoutError
    from playwright.async_api import async_playwright as _async_playwright

    _PLAYWRIGHT_AVAILABLE = True
except ImportError:
    _PLAYWRIGHT_AVAILABLE = False


def _require_playwright() -> None:
    if not _PLAYWRIGHT_AVAILABLE:
        raise ImportError(
            "Playwright is not installed. "
            "Install it with: pip install 'answer-probe[browser]' && playwright install chromium"
        )


class BrowserState(str, Enum):
    """Lifecycle states of the shared browser session."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FAILED = "failed"
    REINITIALIZING = "reinitializing"
    CLOSED = "closed"


class BrowserSession:
    """Single-owner Chromium session shared across queries.

    Args:
        headless: Launch Chromium without a window.
        user_agent: ``User-Agent`` for the browser context.
        launcher: Zero-argument callable returning a started Playwright
            driver.  Defaults to ``async_playwright().start``.
    """

    def __init__(
        self,
        *,
        headless: bool = True,
        user_agent: str = USER_AGENT,
        launcher: Any = None,
    ) -> None:
        self._headless = headless
        self._user_agent = user_agent
        self._launcher = launcher
        self._lock = asyncio.Lock()
        self._playwright: Any = None
        self._browser: Any = None
        self._context: Any = None
        self.state = BrowserState.UNINITIALIZED
        self.restarts = 0

    async def _start(self) -> None:
        if self._launcher is None:
            _require_playwright()
            self._launcher = _async_playwright().start
        try:
            self._playwright = await self._launcher()
            self._browser = await self._playwright.chromium.launch(headless=self._headless)
            self._context = await self._browser.new_context(user_agent=self._user_agent)
        except Exception as exc:
            self.state = BrowserState.FAILED
            await self._teardown()
            raise BrowserSessionError(f"browser launch failed: {exc}") from exc
        self.state = BrowserState.READY
        logger.info("scraper: browser session ready")

    async def _teardown(self) -> None:
        # Best effort: a crashed browser may refuse to close cleanly.
        for closer in (self._context, self._browser):
            if closer is None:
                continue
            try:
                await closer.close()
            except Exception as exc:  # noqa: BLE001
                logger.debug("scraper: ignoring close error: %s", exc)
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as exc:  # noqa: BLE001
                logger.debug("scraper: ignoring playwright stop error: %s", exc)
        self._playwright = self._browser = self._context = None

    def mark_failed(self) -> None:
        """Flag the session for restart before its next use."""
        if self.state is BrowserState.READY:
            logger.warning("scraper: browser session marked failed")
            self.state = BrowserState.FAILED

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[Any]:
        """Hold the session exclusively and yield its browser context.

        Starts the browser on first use and restarts it if a previous user
        marked it failed.  Any exception other than :class:`FetchError`
        escaping the block marks the session failed.

        Raises:
            BrowserSessionError: If the session is closed or cannot start.
        """
        async with self._lock:
            if self.state is BrowserState.CLOSED:
                raise BrowserSessionError("browser session is closed")
            if self.state is BrowserState.UNINITIALIZED:
                await self._start()
            elif self.state is BrowserState.FAILED:
                self.state = BrowserState.REINITIALIZING
                logger.info("scraper: restarting browser session")
                await self._teardown()
                self.restarts += 1
                await self._start()
            try:
                yield self._context
            except FetchError:
                raise
            except Exception:
                self.mark_failed()
                raise

    async def close(self) -> None:
        async with self._lock:
            await self._teardown()
            self.state = BrowserState.CLOSED


class BrowserFetcher:
    """Fetch documents by navigating a page in the shared browser session.

    Args:
        session: The shared :class:`BrowserSession`.  A private one is
            created when omitted.
        timeout: Navigation timeout in seconds.
        settle_ms: Extra wait after navigation so late-rendering content
            has a chance to appear in the captured source.
    """

    def __init__(
        self,
        session: BrowserSession | None = None,
        *,
        timeout: float = DEFAULT_PER_CALL_TIMEOUT_SECONDS,
        settle_ms: int = 0,
    ) -> None:
        self.session = session or BrowserSession()
        self._timeout_ms = int(timeout * 1000)
        self._settle_ms = settle_ms

    async def fetch(self, url: str) -> DocumentSnapshot:
        """Navigate to ``url`` and return the rendered page source.

        Raises:
            FetchError: ``kind="transport"`` on navigation failures, timeouts
                and browser start-up errors; ``kind="status"`` on non-2xx
                responses.
        """
        try:
            async with self.session.acquire() as context:
                return await self._render(context, url)
        except FetchError:
            raise
        except BrowserSessionError as exc:
            raise FetchError(str(exc), kind="transport", url=url) from exc
        except Exception as exc:
            # acquire() has already flagged the session for restart.
            logger.warning("scraper: playwright fetch failed for %s: %s", url, exc)
            raise FetchError(f"playwright error: {exc}", kind="transport", url=url) from exc

    async def _render(self, context: Any, url: str) -> DocumentSnapshot:
        page = await context.new_page()
        try:
            try:
                response = await page.goto(
                    url, timeout=self._timeout_ms, wait_until="domcontentloaded"
                )
            except Exception as exc:
                if _PLAYWRIGHT_AVAILABLE and isinstance(exc, _PlaywrightTimeoutError):
                    raise FetchError("timeout", kind="transport", url=url) from exc
                if _PLAYWRIGHT_AVAILABLE and isinstance(exc, _PlaywrightError):
                    # Navigation errors such as net::ERR_* leave the browser usable.
                    raise FetchError(f"navigation error: {exc}", kind="transport", url=url) from exc
                raise

            status_code = response.status if response is not None else None
            if status_code is not None and status_code >= 400:
                raise FetchError(
                    f"HTTP {status_code}", kind="status", url=url, status_code=status_code
                )
            if self._settle_ms:
                await page.wait_for_timeout(self._settle_ms)
            html = await page.content()
            return DocumentSnapshot(
                url=url, html=html, status_code=status_code, final_url=page.url
            )
        finally:
            await page.close()

    async def aclose(self) -> None:
        await self.session.close()
