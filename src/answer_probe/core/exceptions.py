"""Application-wide exception hierarchy for Answer Probe.

All custom exceptions subclass ``AnswerProbeError`` so that callers can
catch the whole hierarchy with a single ``except`` clause.

Hierarchy::

    AnswerProbeError
    ├── FetchError            (kind: "transport" | "status")
    ├── BrowserSessionError
    └── SessionStateError

Budget exhaustion and cancellation are *not* exceptions: the polling loop
always returns them as a :class:`~answer_probe.polling.result.ResultRecord`.
"""

from __future__ import annotations

from typing import Literal

FetchErrorKind = Literal["transport", "status"]


class AnswerProbeError(Exception):
    """Base class for all Answer Probe exceptions."""


class FetchError(AnswerProbeError):
    """Raised by a fetcher when a document snapshot could not be obtained.

    Args:
        message: Human-readable description of the failure.
        kind: ``"transport"`` for network failures and timeouts,
            ``"status"`` for responses that cannot carry an answer
            (non-2xx status, binary content).
        url: The URL that was requested.
        status_code: HTTP status code when one was received.
    """

    def __init__(
        self,
        message: str,
        kind: FetchErrorKind = "transport",
        url: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind: FetchErrorKind = kind
        self.url = url
        self.status_code = status_code


class BrowserSessionError(AnswerProbeError):
    """Raised when the shared browser session cannot be started or restarted."""


class SessionStateError(AnswerProbeError):
    """Raised when a poll session's history would violate its ordering rules."""
