"""Value objects passed between the fetch, extraction and validation steps."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class StrategyId(str, Enum):
    """Extraction strategies, declared in priority order."""

    PRIMARY_CONTAINER = "primary_container"
    STRUCTURED_DATA = "structured_data"
    METADATA = "metadata"
    GENERIC_SCAN = "generic_scan"


class VerdictReason(str, Enum):
    """Why a candidate was accepted or rejected."""

    ACCEPTED = "accepted"
    LOADING = "loading"
    UI_NOISE = "ui_noise"
    TOO_SHORT = "too_short"


@dataclass(frozen=True)
class DocumentSnapshot:
    """Raw markup returned by one fetch.

    Attributes:
        url: URL that was requested.
        html: Page source at the moment of the fetch.
        status_code: HTTP status of the response, or ``None`` when the
            transport does not expose one.
        final_url: URL after redirects.
        fetched_at: UTC time the snapshot was taken.
    """

    url: str
    html: str
    status_code: int | None = None
    final_url: str | None = None
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class Candidate:
    """Sanitized text produced by one strategy from one snapshot.

    Attributes:
        text: Sanitized candidate text.
        strategy_id: Strategy that produced it.
        source_locator: Where in the document the text was found, e.g. the
            CSS selector and sub-region index.
    """

    text: str
    strategy_id: StrategyId
    source_locator: str


@dataclass(frozen=True)
class ValidationVerdict:
    """Outcome of :func:`answer_probe.scraper.validator.check`."""

    accepted: bool
    reason: VerdictReason

    @classmethod
    def accept(cls) -> ValidationVerdict:
        return cls(accepted=True, reason=VerdictReason.ACCEPTED)

    @classmethod
    def reject(cls, reason: VerdictReason) -> ValidationVerdict:
        return cls(accepted=False, reason=reason)
