"""Tests for the ``/api/answer`` routes.

The fetcher and settings dependencies are overridden, so requests run a
real poll session against scripted page snapshots without network access.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from answer_probe.api.dependencies import get_app_settings, get_fetcher
from answer_probe.api.main import create_app
from answer_probe.config.settings import Settings
from answer_probe.polling.result import DEADLINE_EXCEEDED, ResultRecord


def _settings() -> Settings:
    return Settings(
        max_attempts=2,
        interval_seconds=0,
        per_call_timeout_seconds=1,
        endpoint_templates=["https://answers.test/?q={query}"],
    )


@pytest.fixture
def make_client():
    def _make(fetcher) -> TestClient:
        app = create_app()
        app.dependency_overrides[get_fetcher] = lambda: fetcher
        app.dependency_overrides[get_app_settings] = _settings
        return TestClient(app)

    return _make


class TestGetAnswer:
    def test_answer_found(self, make_client, scripted_fetcher, answer_html: str) -> None:
        fetcher = scripted_fetcher([answer_html])
        response = make_client(fetcher).get("/api/answer", params={"q": "capital of france"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["text"] == "Paris is the capital and largest city of France."
        assert body["attempt"] == 1
        assert body["query"] == "capital of france"
        assert body["source"] == "https://answers.test/?q=capital+of+france"
        assert "timestamp" in body
        assert response.headers["X-Request-ID"]

    def test_missing_query_is_400(self, make_client, scripted_fetcher) -> None:
        fetcher = scripted_fetcher(["<p>unused</p>"])
        response = make_client(fetcher).get("/api/answer")

        assert response.status_code == 400
        assert response.json() == {"error": 'Missing query parameter "q"'}
        assert fetcher.calls == []

    def test_blank_query_is_400(self, make_client, scripted_fetcher) -> None:
        fetcher = scripted_fetcher(["<p>unused</p>"])
        response = make_client(fetcher).get("/api/answer", params={"q": "   "})

        assert response.status_code == 400
        assert fetcher.calls == []

    def test_no_answer_is_404(self, make_client, scripted_fetcher, loading_html: str) -> None:
        fetcher = scripted_fetcher([loading_html])
        response = make_client(fetcher).get("/api/answer", params={"q": "capital of france"})

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "No answer found"
        assert body["reason"] == "budget_exhausted"
        assert body["attemptsExhausted"] == 2
        assert len(fetcher.calls) == 2

    def test_unexpected_failure_is_500(
        self, make_client, scripted_fetcher, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        async def broken_probe(*args, **kwargs):
            raise RuntimeError("event loop on fire")

        monkeypatch.setattr("answer_probe.api.routes.answers.probe", broken_probe)
        response = make_client(scripted_fetcher(["x"])).get("/api/answer", params={"q": "x"})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Search failed"
        assert body["details"] == "event loop on fire"

    def test_deadline_is_504(
        self, make_client, scripted_fetcher, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        async def deadline_run(*args, **kwargs) -> ResultRecord:
            return ResultRecord(
                success=False,
                elapsed_ms=4000,
                reason=DEADLINE_EXCEEDED,
                attempts_exhausted=2,
                last_rejection="transport",
            )

        monkeypatch.setattr("answer_probe.api.routes.answers.probe", deadline_run)
        response = make_client(scripted_fetcher(["x"])).get("/api/answer", params={"q": "x"})

        assert response.status_code == 504
        body = response.json()
        assert body["reason"] == "deadline_exceeded"
        assert body["attemptsExhausted"] == 2
        assert body["query"] == "x"
        assert "error" not in body


class TestPostAnswer:
    def test_json_body_accepted(self, make_client, scripted_fetcher, answer_html: str) -> None:
        fetcher = scripted_fetcher([answer_html])
        response = make_client(fetcher).post("/api/answer", json={"q": "capital of france"})

        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_empty_body_is_400(self, make_client, scripted_fetcher) -> None:
        response = make_client(scripted_fetcher(["x"])).post("/api/answer", json={})
        assert response.status_code == 400


class TestApplication:
    def test_health(self, make_client, scripted_fetcher) -> None:
        response = make_client(scripted_fetcher(["x"])).get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_cors_preflight(self, make_client, scripted_fetcher) -> None:
        response = make_client(scripted_fetcher(["x"])).options(
            "/api/answer",
            headers={
                "Origin": "https://client.test",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"

    def test_cors_header_on_simple_request(
        self, make_client, scripted_fetcher, answer_html: str
    ) -> None:
        response = make_client(scripted_fetcher([answer_html])).get(
            "/api/answer",
            params={"q": "capital of france"},
            headers={"Origin": "https://client.test"},
        )
        assert response.headers["access-control-allow-origin"] == "*"
