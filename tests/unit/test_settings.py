"""Unit tests for the pydantic-settings configuration."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from answer_probe.config.settings import Settings, get_settings


class TestSettings:
    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ANSWER_PROBE_MAX_ATTEMPTS", "7")
        monkeypatch.setenv("ANSWER_PROBE_INTERVAL_SECONDS", "3")
        monkeypatch.setenv("ANSWER_PROBE_PER_CALL_TIMEOUT_SECONDS", "2")
        settings = Settings()
        assert settings.max_attempts == 7
        assert settings.interval_seconds == 3.0
        assert settings.per_call_timeout_seconds == 2.0

    def test_timeout_must_be_below_interval(self) -> None:
        with pytest.raises(ValidationError):
            Settings(interval_seconds=1.0, per_call_timeout_seconds=1.0)

    def test_zero_interval_allows_any_timeout(self) -> None:
        settings = Settings(interval_seconds=0, per_call_timeout_seconds=5)
        assert settings.per_call_timeout_seconds == 5

    def test_max_attempts_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            Settings(max_attempts=0)

    def test_endpoint_template_needs_placeholder(self) -> None:
        with pytest.raises(ValidationError):
            Settings(endpoint_templates=["https://a.test/search"])

    def test_get_settings_is_cached(self) -> None:
        get_settings.cache_clear()
        assert get_settings() is get_settings()
