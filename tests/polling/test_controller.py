"""Unit tests for the polling controller.

All fetches go through the ``ScriptedFetcher`` from ``conftest.py`` so the
number of outbound calls can be asserted exactly.
"""

from __future__ import annotations

import asyncio

import pytest

from answer_probe.config.settings import Settings
from answer_probe.core.exceptions import FetchError
from answer_probe.polling.controller import PollingController, probe
from answer_probe.scraper.models import DocumentSnapshot
from answer_probe.scraper.targets import resolve_target


def _controller(fetcher, *, max_attempts: int, interval: float = 0.0, timeout: float = 1.0):
    return PollingController(
        fetcher, max_attempts=max_attempts, interval=interval, per_call_timeout=timeout
    )


@pytest.mark.asyncio
class TestTermination:
    async def test_success_on_third_attempt_stops_polling(
        self, scripted_fetcher, loading_html: str, answer_html: str
    ) -> None:
        fetcher = scripted_fetcher([loading_html, loading_html, answer_html, answer_html])
        result = await _controller(fetcher, max_attempts=5).run("capital of france")

        assert result.success is True
        assert result.attempt == 3
        assert result.text == "Paris is the capital and largest city of France."
        assert result.strategy == "primary_container"
        assert len(fetcher.calls) == 3

    async def test_loading_every_time_exhausts_budget(
        self, scripted_fetcher, loading_html: str
    ) -> None:
        fetcher = scripted_fetcher([loading_html])
        result = await _controller(fetcher, max_attempts=3, interval=0).run("capital of france")

        assert result.success is False
        assert result.reason == "budget_exhausted"
        assert result.attempts_exhausted == 3
        assert result.text is None
        assert len(fetcher.calls) == 3
        assert result.to_dict()["attemptsExhausted"] == 3

    async def test_fetch_errors_are_retried(
        self, scripted_fetcher, transport_error: FetchError, answer_html: str
    ) -> None:
        status_error = FetchError("HTTP 503", kind="status", status_code=503)
        fetcher = scripted_fetcher([transport_error, status_error, answer_html])
        result = await _controller(fetcher, max_attempts=3).run("q")

        assert result.success is True
        assert result.attempt == 3

    async def test_rejected_candidate_reason_retained(self, scripted_fetcher) -> None:
        noise = "<div class='b_ans'>Home Images Videos Maps News Shopping</div>"
        fetcher = scripted_fetcher([noise])
        result = await _controller(fetcher, max_attempts=2).run("q")

        assert result.success is False
        assert result.last_rejection == "ui_noise"

    async def test_unexpected_fetcher_exception_is_recorded(self, scripted_fetcher) -> None:
        fetcher = scripted_fetcher([RuntimeError("driver exploded")])
        result = await _controller(fetcher, max_attempts=2).run("q")

        assert result.success is False
        assert result.reason == "budget_exhausted"
        assert result.last_rejection == "transport"


@pytest.mark.asyncio
class TestEndpoints:
    async def test_second_endpoint_used_when_first_fails(self, answer_html: str) -> None:
        class _Fetcher:
            def __init__(self) -> None:
                self.calls: list[str] = []

            async def fetch(self, url: str) -> DocumentSnapshot:
                self.calls.append(url)
                if "primary" in url:
                    raise FetchError("HTTP 500", kind="status", url=url, status_code=500)
                return DocumentSnapshot(url=url, html=answer_html)

        fetcher = _Fetcher()
        target = resolve_target(
            "q", ["https://primary.test/?q={query}", "https://backup.test/?q={query}"]
        )
        result = await _controller(fetcher, max_attempts=1).run(target)

        assert result.success is True
        assert result.source == "https://backup.test/?q=q"
        assert fetcher.calls == ["https://primary.test/?q=q", "https://backup.test/?q=q"]

    async def test_hanging_endpoints_use_full_attempt_budget(self) -> None:
        class _Fetcher:
            def __init__(self) -> None:
                self.calls: list[str] = []

            async def fetch(self, url: str) -> DocumentSnapshot:
                self.calls.append(url)
                await asyncio.sleep(10)
                raise AssertionError("fetch should have been cut off")

        fetcher = _Fetcher()
        target = resolve_target(
            "q", ["https://primary.test/?q={query}", "https://backup.test/?q={query}"]
        )
        result = await _controller(fetcher, max_attempts=3, timeout=0.1).run(target)

        assert result.reason == "budget_exhausted"
        assert result.attempts_exhausted == 3
        assert result.last_rejection == "transport"
        assert len(fetcher.calls) == 6


@pytest.mark.asyncio
class TestTimingAndCancellation:
    async def test_hung_fetch_is_cut_by_per_call_timeout(self, answer_html: str) -> None:
        class _Fetcher:
            def __init__(self) -> None:
                self.calls = 0

            async def fetch(self, url: str) -> DocumentSnapshot:
                self.calls += 1
                if self.calls == 1:
                    await asyncio.sleep(10)
                return DocumentSnapshot(url=url, html=answer_html)

        fetcher = _Fetcher()
        result = await _controller(fetcher, max_attempts=2, timeout=0.2).run("q")

        assert result.success is True
        assert result.attempt == 2

    async def test_interval_waited_between_attempts_only(
        self, scripted_fetcher, loading_html: str, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        waits: list[float] = []

        async def fake_sleep(delay: float) -> None:
            waits.append(delay)

        monkeypatch.setattr("answer_probe.polling.controller.asyncio.sleep", fake_sleep)
        fetcher = scripted_fetcher([loading_html])
        await _controller(fetcher, max_attempts=3, interval=2.0, timeout=1.0).run("q")

        assert waits == [2.0, 2.0]

    async def test_cancel_event_set_before_start(self, scripted_fetcher, answer_html: str) -> None:
        fetcher = scripted_fetcher([answer_html])
        event = asyncio.Event()
        event.set()
        result = await _controller(fetcher, max_attempts=3).run("q", cancel_event=event)

        assert result.success is False
        assert result.reason == "cancelled"
        assert result.cancelled is True
        assert fetcher.calls == []

    async def test_cancel_event_interrupts_wait(self, scripted_fetcher, loading_html: str) -> None:
        fetcher = scripted_fetcher([loading_html])
        event = asyncio.Event()
        controller = _controller(fetcher, max_attempts=5, interval=5.0, timeout=1.0)

        task = asyncio.create_task(controller.run("q", cancel_event=event))
        await asyncio.sleep(0.05)
        event.set()
        result = await asyncio.wait_for(task, timeout=1.0)

        assert result.reason == "cancelled"
        assert result.attempts_exhausted == 1
        assert len(fetcher.calls) == 1

    async def test_task_cancellation_yields_cancelled_record(
        self, scripted_fetcher, loading_html: str
    ) -> None:
        fetcher = scripted_fetcher([loading_html])
        controller = _controller(fetcher, max_attempts=5, interval=5.0, timeout=1.0)

        task = asyncio.create_task(controller.run("q"))
        await asyncio.sleep(0.05)
        task.cancel()
        result = await task

        assert result.success is False
        assert result.reason == "cancelled"
        assert task.cancelling() == 0

    async def test_deadline_exceeded_is_distinct(self, scripted_fetcher, loading_html: str) -> None:
        ticks = iter([0.0, 0.0, 100.0, 100.0, 100.0])
        fetcher = scripted_fetcher([loading_html])
        controller = PollingController(
            fetcher,
            max_attempts=3,
            interval=0.0,
            per_call_timeout=1.0,
            clock=lambda: next(ticks),
        )
        result = await controller.run("q")

        assert result.reason == "deadline_exceeded"
        assert result.cancelled is True
        assert result.attempts_exhausted == 1


class TestConstruction:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_attempts": 0, "interval": 0, "per_call_timeout": 1},
            {"max_attempts": 1, "interval": -1, "per_call_timeout": 1},
            {"max_attempts": 1, "interval": 0, "per_call_timeout": 0},
        ],
    )
    def test_invalid_configuration_rejected(self, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            PollingController(object(), **kwargs)  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_blank_query_rejected(self, scripted_fetcher) -> None:
        with pytest.raises(ValueError):
            await _controller(scripted_fetcher(["x"]), max_attempts=1).run("  ")


@pytest.mark.asyncio
async def test_probe_uses_settings(scripted_fetcher, answer_html: str) -> None:
    fetcher = scripted_fetcher([answer_html])
    settings = Settings(
        max_attempts=2,
        interval_seconds=0,
        per_call_timeout_seconds=1,
        endpoint_templates=["https://answers.test/?q={query}"],
    )
    result = await probe("capital of france", fetcher, settings)

    assert result.success is True
    assert fetcher.calls == ["https://answers.test/?q=capital+of+france"]
