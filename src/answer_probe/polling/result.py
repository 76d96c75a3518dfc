"""Conversion of a finished poll session into its output record."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from answer_probe.core.exceptions import SessionStateError
from answer_probe.polling.models import PollSession, SessionState

BUDGET_EXHAUSTED = "budget_exhausted"
CANCELLED = "cancelled"
DEADLINE_EXCEEDED = "deadline_exceeded"


@dataclass(frozen=True)
class ResultRecord:
    """Final outcome of a poll session.

    Success records carry ``text``, ``attempt``, ``strategy`` and ``source``;
    failure records carry ``reason`` and ``attempts_exhausted``.
    """

    success: bool
    elapsed_ms: int
    text: str | None = None
    attempt: int | None = None
    strategy: str | None = None
    source: str | None = None
    reason: str | None = None
    attempts_exhausted: int | None = None
    last_rejection: str | None = None

    @property
    def cancelled(self) -> bool:
        return not self.success and self.reason in (CANCELLED, DEADLINE_EXCEEDED)

    def to_dict(self) -> dict[str, Any]:
        """Render the external camelCase shape."""
        if self.success:
            return {
                "success": True,
                "text": self.text,
                "attempt": self.attempt,
                "elapsedMs": self.elapsed_ms,
                "strategy": self.strategy,
                "source": self.source,
            }
        payload: dict[str, Any] = {
            "success": False,
            "reason": self.reason,
            "attemptsExhausted": self.attempts_exhausted,
            "elapsedMs": self.elapsed_ms,
        }
        if self.last_rejection is not None:
            payload["lastRejection"] = self.last_rejection
        return payload


def assemble(session: PollSession) -> ResultRecord:
    """Build the :class:`ResultRecord` for a finished ``session``.

    Raises:
        SessionStateError: If the session has not reached a terminal state.
    """
    elapsed_ms = int(round(session.elapsed_seconds * 1000))
    last = session.last

    if session.state is SessionState.SUCCEEDED:
        if last is None or last.candidate is None or not last.accepted:
            raise SessionStateError("succeeded session has no accepted attempt")
        return ResultRecord(
            success=True,
            elapsed_ms=elapsed_ms,
            text=last.candidate.text,
            attempt=last.index,
            strategy=last.candidate.strategy_id.value,
            source=last.url,
        )

    if session.state is SessionState.EXHAUSTED:
        reason = BUDGET_EXHAUSTED
    elif session.state is SessionState.CANCELLED:
        reason = session.cancel_reason or CANCELLED
    else:
        raise SessionStateError(f"session still {session.state.value}")

    return ResultRecord(
        success=False,
        elapsed_ms=elapsed_ms,
        reason=reason,
        attempts_exhausted=session.attempts_made,
        last_rejection=last.outcome_label if last is not None else None,
    )
