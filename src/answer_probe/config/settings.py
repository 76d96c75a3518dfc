"""Application settings loaded from environment variables.

Uses Pydantic Settings v2 for validated, type-safe configuration.  Every
environment variable carries the ``ANSWER_PROBE_`` prefix, e.g.
``ANSWER_PROBE_MAX_ATTEMPTS=5``.

Usage::

    from answer_probe.config.settings import get_settings

    settings = get_settings()
    budget = settings.max_attempts
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from answer_probe.scraper.config import (
    DEFAULT_ENDPOINT_TEMPLATE,
    DEFAULT_INTERVAL_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_PER_CALL_TIMEOUT_SECONDS,
    USER_AGENT,
)


class Settings(BaseSettings):
    """Polling, transport and service configuration.

    The polling fields (``max_attempts``, ``interval_seconds`` and
    ``per_call_timeout_seconds``) are the only knobs the core consumes; the
    rest configure the fetch transport and the HTTP adapter.
    """

    model_config = SettingsConfigDict(
        env_prefix="ANSWER_PROBE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    max_attempts: int = Field(default=DEFAULT_MAX_ATTEMPTS, gt=0)
    """Hard cap on fetch-extract-validate attempts per query."""

    interval_seconds: float = Field(default=DEFAULT_INTERVAL_SECONDS, ge=0)
    """Fixed wait between two consecutive attempts.  ``0`` polls back-to-back."""

    per_call_timeout_seconds: float = Field(
        default=DEFAULT_PER_CALL_TIMEOUT_SECONDS, gt=0
    )
    """Upper bound on a single fetch.  Must be below ``interval_seconds``
    whenever the interval is non-zero."""

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    fetcher: Literal["http", "browser"] = "http"
    """Which fetch transport to use: plain httpx or a Playwright browser."""

    endpoint_templates: list[str] = [DEFAULT_ENDPOINT_TEMPLATE]
    """Candidate endpoint URL templates tried in order within one attempt.
    Each template must contain a ``{query}`` placeholder."""

    user_agent: str = USER_AGENT
    """User-Agent header sent by both fetchers."""

    browser_headless: bool = True
    """Run Chromium headless when ``fetcher == "browser"``."""

    browser_settle_ms: int = Field(default=500, ge=0)
    """Extra wait after navigation before the page source is captured."""

    # ------------------------------------------------------------------
    # Service
    # ------------------------------------------------------------------

    app_name: str = "Answer Probe"
    """Title shown in the OpenAPI docs."""

    log_level: str = "INFO"
    """Logging verbosity.  One of: DEBUG, INFO, WARNING, ERROR, CRITICAL."""

    allowed_origins: list[str] = ["*"]
    """Origins permitted by the CORS middleware."""

    @model_validator(mode="after")
    def _check_timing(self) -> "Settings":
        if self.interval_seconds > 0 and self.per_call_timeout_seconds >= self.interval_seconds:
            raise ValueError(
                "per_call_timeout_seconds must be lower than interval_seconds "
                f"({self.per_call_timeout_seconds} >= {self.interval_seconds})"
            )
        for template in self.endpoint_templates:
            if "{query}" not in template:
                raise ValueError(f"endpoint template lacks a {{query}} placeholder: {template}")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the cached application settings singleton.

    In tests, call ``get_settings.cache_clear()`` after patching environment
    variables.
    """
    return Settings()
