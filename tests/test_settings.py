"""Tests for PipelineSettings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from request_pipeline.settings import PipelineSettings, get_settings


class TestDefaults:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("REQUEST_PIPELINE_CORS_ALLOW_ORIGIN", raising=False)
        settings = PipelineSettings()

        assert settings.cors_enabled is True
        assert settings.cors_allow_origin == "*"
        assert settings.internal_error_message == "Internal server error"
        assert settings.log_json is False

    def test_frozen(self) -> None:
        settings = PipelineSettings()

        with pytest.raises(ValidationError):
            settings.verbose = True  # type: ignore[misc]


class TestEnvironment:
    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REQUEST_PIPELINE_CORS_ALLOW_ORIGIN", "https://boats.example")
        monkeypatch.setenv("REQUEST_PIPELINE_LOG_JSON", "true")

        settings = PipelineSettings()

        assert settings.cors_allow_origin == "https://boats.example"
        assert settings.log_json is True

    def test_init_kwargs_beat_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REQUEST_PIPELINE_VERBOSE", "true")

        assert PipelineSettings(verbose=False).verbose is False

    def test_unprefixed_env_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CORS_ALLOW_ORIGIN", "https://other.example")
        monkeypatch.delenv("REQUEST_PIPELINE_CORS_ALLOW_ORIGIN", raising=False)

        assert PipelineSettings().cors_allow_origin == "*"


class TestResponseHeaders:
    def test_cors_headers(self) -> None:
        headers = PipelineSettings(cors_allow_origin="https://a.example").response_headers()

        assert headers == {
            "Content-Type": "application/json",
            "Access-Control-Allow-Origin": "https://a.example",
            "Access-Control-Allow-Headers": "Content-Type,Authorization,X-Api-Key,X-Request-Id",
            "Access-Control-Allow-Methods": "GET,POST,PUT,DELETE,OPTIONS",
        }

    def test_credentials(self) -> None:
        headers = PipelineSettings(cors_allow_credentials=True).response_headers()

        assert headers["Access-Control-Allow-Credentials"] == "true"

    def test_disabled(self) -> None:
        assert PipelineSettings(cors_enabled=False).response_headers() == {
            "Content-Type": "application/json"
        }


class TestGetSettings:
    def test_cached(self) -> None:
        assert get_settings() is get_settings()

    def test_cache_clear_rereads_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        get_settings.cache_clear()
        monkeypatch.setenv("REQUEST_PIPELINE_INTERNAL_ERROR_MESSAGE", "Try again later")
        try:
            assert get_settings().internal_error_message == "Try again later"
        finally:
            get_settings.cache_clear()
