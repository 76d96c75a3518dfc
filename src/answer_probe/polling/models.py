"""Poll session state: attempt log entries and the session itself."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from answer_probe.core.exceptions import SessionStateError
from answer_probe.scraper.models import Candidate, ValidationVerdict
from answer_probe.scraper.targets import TargetDescriptor


class SessionState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"


class FetchOutcome(str, Enum):
    OK = "ok"
    TRANSPORT = "transport"
    STATUS = "status"


@dataclass(frozen=True)
class AttemptRecord:
    """Immutable log entry for one fetch-extract-validate attempt.

    ``candidate`` is ``None`` when the fetch failed or no strategy found a
    span (an extraction miss); ``verdict`` is ``None`` whenever there is no
    candidate.
    """

    index: int
    timestamp: datetime
    fetch_outcome: FetchOutcome
    candidate: Candidate | None = None
    verdict: ValidationVerdict | None = None
    error: str | None = None
    url: str | None = None

    @property
    def accepted(self) -> bool:
        return self.verdict is not None and self.verdict.accepted

    @property
    def outcome_label(self) -> str:
        """Short diagnostic: fetch error kind, ``no_candidate`` or verdict reason."""
        if self.fetch_outcome is not FetchOutcome.OK:
            return self.fetch_outcome.value
        if self.verdict is None:
            return "no_candidate"
        return self.verdict.reason.value


@dataclass
class PollSession:
    """Mutable state of one query's polling run.

    The history only grows, one record per attempt, with strictly increasing
    ``index`` values.
    """

    target: TargetDescriptor
    max_attempts: int
    interval: float
    per_call_timeout: float
    started_at: float
    deadline: float
    state: SessionState = SessionState.IDLE
    history: list[AttemptRecord] = field(default_factory=list)
    finished_at: float | None = None
    cancel_reason: str | None = None

    @property
    def query(self) -> str:
        return self.target.query

    @property
    def attempts_made(self) -> int:
        return len(self.history)

    @property
    def last(self) -> AttemptRecord | None:
        return self.history[-1] if self.history else None

    def append(self, record: AttemptRecord) -> None:
        if self.history and record.index <= self.history[-1].index:
            raise SessionStateError(
                f"attempt {record.index} does not follow attempt {self.history[-1].index}"
            )
        if record.index > self.max_attempts:
            raise SessionStateError(
                f"attempt {record.index} exceeds budget of {self.max_attempts}"
            )
        self.history.append(record)

    def finish(self, state: SessionState, now: float, cancel_reason: str | None = None) -> None:
        if self.finished_at is not None:
            raise SessionStateError("session already finished")
        self.state = state
        self.finished_at = now
        self.cancel_reason = cancel_reason

    @property
    def elapsed_seconds(self) -> float:
        end = self.finished_at if self.finished_at is not None else self.started_at
        return max(0.0, end - self.started_at)
