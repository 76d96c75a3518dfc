"""Async HTTP fetcher for answer pages.

Uses ``httpx`` for all requests.  Each call performs exactly one GET with a
bounded timeout and either returns a
:class:`~answer_probe.scraper.models.DocumentSnapshot` or raises
:class:`~answer_probe.core.exceptions.FetchError`.  Retrying is the polling
loop's business, never the fetcher's.
"""

from __future__ import annotations

import logging
from types import TracebackType

import httpx

from answer_probe.core.exceptions import FetchError
from answer_probe.scraper.config import (
    BINARY_CONTENT_TYPES,
    DEFAULT_PER_CALL_TIMEOUT_SECONDS,
    USER_AGENT,
)
from answer_probe.scraper.models import DocumentSnapshot

logger = logging.getLogger(__name__)


def _is_binary_content_type(content_type: str) -> bool:
    """Return ``True`` if the Content-Type indicates a non-text binary resource."""
    ct = content_type.lower().split(";")[0].strip()
    return any(ct.startswith(prefix) for prefix in BINARY_CONTENT_TYPES)


class HttpFetcher:
    """Fetch documents with a shared :class:`httpx.AsyncClient`.

    The fetcher is stateless apart from the connection pool, so one instance
    may serve any number of queries.  When no client is passed in, one is
    created and closed by :meth:`aclose`.

    Args:
        client: Optional externally owned client.
        timeout: Per-request timeout in seconds.
        user_agent: ``User-Agent`` header value.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float = DEFAULT_PER_CALL_TIMEOUT_SECONDS,
        user_agent: str = USER_AGENT,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(follow_redirects=True)
        self._timeout = timeout
        self._user_agent = user_agent

    async def fetch(self, url: str) -> DocumentSnapshot:
        """GET ``url`` once and return its body.

        Args:
            url: Absolute URL of the answer page.

        Returns:
            A snapshot of the response body.

        Raises:
            FetchError: ``kind="transport"`` on timeouts and network errors,
                ``kind="status"`` on non-2xx responses and binary bodies.
        """
        try:
            response = await self._client.get(
                url,
                timeout=self._timeout,
                follow_redirects=True,
                headers={"User-Agent": self._user_agent},
            )
        except httpx.TimeoutException as exc:
            logger.warning("scraper: timeout fetching %s", url)
            raise FetchError("timeout", kind="transport", url=url) from exc
        except httpx.TooManyRedirects as exc:
            logger.warning("scraper: too many redirects for %s", url)
            raise FetchError("too many redirects", kind="transport", url=url) from exc
        except httpx.RequestError as exc:
            logger.warning("scraper: request error for %s: %s", url, exc)
            raise FetchError(f"request error: {exc}", kind="transport", url=url) from exc

        if not response.is_success:
            logger.info("scraper: HTTP %d for %s", response.status_code, url)
            raise FetchError(
                f"HTTP {response.status_code}",
                kind="status",
                url=url,
                status_code=response.status_code,
            )

        content_type = response.headers.get("content-type", "")
        if _is_binary_content_type(content_type):
            logger.info("scraper: binary content-type '%s' for %s", content_type, url)
            raise FetchError(
                f"binary content-type: {content_type}",
                kind="status",
                url=url,
                status_code=response.status_code,
            )

        return DocumentSnapshot(
            url=url,
            html=response.text,
            status_code=response.status_code,
            final_url=str(response.url),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpFetcher:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
