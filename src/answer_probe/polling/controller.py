"""Polling loop: fetch, extract and validate until an answer appears.

One :class:`PollingController` call runs one session for one query::

    idle -> polling -> succeeded | exhausted | cancelled

Attempts are strictly sequential.  The loop suspends only while waiting the
fixed interval between attempts and inside the fetch itself, which is capped
by ``per_call_timeout``.  Fetch errors, extraction misses and rejected
candidates are all recorded and retried until the attempt budget runs out;
none of them escape as exceptions.

Cancellation is observed at the top of every attempt and during the
inter-attempt wait, via an optional :class:`asyncio.Event`, the session
deadline (``max_attempts * (interval + per_call_timeout * endpoints)``), or
an ``asyncio.CancelledError`` delivered to the running loop.  All three end the
session with a cancelled-variant failure record.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Protocol

import structlog

from answer_probe.config.settings import Settings
from answer_probe.core.exceptions import FetchError
from answer_probe.polling.models import (
    AttemptRecord,
    FetchOutcome,
    PollSession,
    SessionState,
)
from answer_probe.polling.result import (
    CANCELLED,
    DEADLINE_EXCEEDED,
    ResultRecord,
    assemble,
)
from answer_probe.scraper import validator
from answer_probe.scraper.models import DocumentSnapshot, ValidationVerdict
from answer_probe.scraper.strategies import ExtractionChain
from answer_probe.scraper.targets import TargetDescriptor, resolve_target

logger = structlog.get_logger(__name__)


class Fetcher(Protocol):
    """Anything that turns a URL into a snapshot or raises ``FetchError``."""

    async def fetch(self, url: str) -> DocumentSnapshot: ...


class PollingController:
    """Run bounded, sequential polling sessions against one fetcher.

    Args:
        fetcher: Transport used for every attempt.
        chain: Extraction strategy chain.
        check: Validator callable returning a :class:`ValidationVerdict`.
        max_attempts: Attempt budget per session (> 0).
        interval: Seconds to wait between attempts (>= 0).
        per_call_timeout: Seconds a single fetch may take (> 0).
        clock: Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        chain: ExtractionChain | None = None,
        check: Callable[[str], ValidationVerdict] = validator.check,
        *,
        max_attempts: int,
        interval: float,
        per_call_timeout: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        if interval < 0:
            raise ValueError("interval must not be negative")
        if per_call_timeout <= 0:
            raise ValueError("per_call_timeout must be positive")
        self._fetcher = fetcher
        self._chain = chain or ExtractionChain()
        self._check = check
        self.max_attempts = max_attempts
        self.interval = interval
        self.per_call_timeout = per_call_timeout
        self._clock = clock

    @classmethod
    def from_settings(cls, fetcher: Fetcher, settings: Settings) -> PollingController:
        return cls(
            fetcher,
            max_attempts=settings.max_attempts,
            interval=settings.interval_seconds,
            per_call_timeout=settings.per_call_timeout_seconds,
        )

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def _new_session(self, target: TargetDescriptor) -> PollSession:
        now = self._clock()
        # One attempt may time out once per endpoint before it gives up.
        attempt_budget = self.per_call_timeout * len(target.endpoints)
        budget = self.max_attempts * (self.interval + attempt_budget)
        return PollSession(
            target=target,
            max_attempts=self.max_attempts,
            interval=self.interval,
            per_call_timeout=self.per_call_timeout,
            started_at=now,
            deadline=now + budget,
        )

    async def run(
        self,
        query: str | TargetDescriptor,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> ResultRecord:
        """Poll until an answer is accepted, the budget runs out, or cancellation.

        Args:
            query: The query string, or an already resolved target.
            cancel_event: Optional event; once set, the session stops at the
                next attempt boundary or immediately if it is waiting.

        Returns:
            The session's single :class:`ResultRecord`.

        Raises:
            ValueError: If ``query`` is blank.
        """
        target = query if isinstance(query, TargetDescriptor) else resolve_target(query)
        session = self._new_session(target)
        log = logger.bind(query=target.query, max_attempts=self.max_attempts)
        session.state = SessionState.POLLING
        log.info("poll_started", endpoints=len(target.endpoints))

        try:
            final_state, cancel_reason = await self._loop(session, cancel_event, log)
        except asyncio.CancelledError:
            # The cancellation is answered with a record, so the task must not
            # stay flagged as cancelling.
            task = asyncio.current_task()
            if task is not None:
                task.uncancel()
            log.warning("poll_cancelled", attempts=session.attempts_made)
            final_state, cancel_reason = SessionState.CANCELLED, CANCELLED

        session.finish(final_state, self._clock(), cancel_reason)
        result = assemble(session)
        log.info(
            "poll_finished",
            state=final_state.value,
            attempts=session.attempts_made,
            elapsed_ms=result.elapsed_ms,
        )
        return result

    async def _loop(
        self,
        session: PollSession,
        cancel_event: asyncio.Event | None,
        log: structlog.stdlib.BoundLogger,
    ) -> tuple[SessionState, str | None]:
        for index in range(1, self.max_attempts + 1):
            if index > 1:
                await self._pause(cancel_event)

            if cancel_event is not None and cancel_event.is_set():
                log.info("poll_cancelled", attempts=session.attempts_made)
                return SessionState.CANCELLED, CANCELLED
            if self._clock() > session.deadline:
                log.warning("poll_deadline_exceeded", attempts=session.attempts_made)
                return SessionState.CANCELLED, DEADLINE_EXCEEDED

            record = await self._attempt(session.target, index)
            session.append(record)

            if record.accepted:
                log.info(
                    "attempt_accepted",
                    attempt=index,
                    strategy=record.candidate.strategy_id.value,
                    locator=record.candidate.source_locator,
                )
                return SessionState.SUCCEEDED, None
            log.info(
                "attempt_rejected",
                attempt=index,
                outcome=record.outcome_label,
                error=record.error,
            )

        return SessionState.EXHAUSTED, None

    async def _pause(self, cancel_event: asyncio.Event | None) -> None:
        if cancel_event is None:
            await asyncio.sleep(self.interval)
            return
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=self.interval)
        except asyncio.TimeoutError:
            pass

    # ------------------------------------------------------------------
    # Attempt
    # ------------------------------------------------------------------

    async def _fetch_first(self, target: TargetDescriptor) -> DocumentSnapshot:
        """Return the first endpoint's snapshot that fetches successfully."""
        last_error: FetchError | None = None
        for url in target.endpoints:
            try:
                return await asyncio.wait_for(
                    self._fetcher.fetch(url), timeout=self.per_call_timeout
                )
            except asyncio.TimeoutError:
                last_error = FetchError("per-call timeout", kind="transport", url=url)
            except FetchError as exc:
                last_error = exc
            except Exception as exc:  # noqa: BLE001
                logger.warning("fetcher_crashed", url=url, error=str(exc))
                last_error = FetchError(f"unexpected fetch error: {exc}", kind="transport", url=url)
        if last_error is None:
            raise FetchError("target has no endpoints", kind="transport")
        raise last_error

    async def _attempt(self, target: TargetDescriptor, index: int) -> AttemptRecord:
        timestamp = datetime.now(timezone.utc)
        try:
            snapshot = await self._fetch_first(target)
        except FetchError as exc:
            return AttemptRecord(
                index=index,
                timestamp=timestamp,
                fetch_outcome=FetchOutcome(exc.kind),
                error=str(exc),
                url=exc.url,
            )

        candidate = self._chain.extract(snapshot)
        verdict = self._check(candidate.text) if candidate is not None else None
        return AttemptRecord(
            index=index,
            timestamp=timestamp,
            fetch_outcome=FetchOutcome.OK,
            candidate=candidate,
            verdict=verdict,
            url=snapshot.url,
        )


async def probe(
    query: str,
    fetcher: Fetcher,
    settings: Settings,
    *,
    cancel_event: asyncio.Event | None = None,
) -> ResultRecord:
    """Resolve ``query`` with the configured endpoints and run one session."""
    target = resolve_target(query, settings.endpoint_templates)
    controller = PollingController.from_settings(fetcher, settings)
    return await controller.run(target, cancel_event=cancel_event)
