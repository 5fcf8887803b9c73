"""
Name: Settings and Structured Logging Tests

Responsibilities:
  - Validate Settings validators (runtime, interval, DB, production secrets)
  - Validate JSON formatter enrichment (request context) and redaction
"""

import json
import logging

import pytest
from pydantic import ValidationError

from hideout_api.context import clear_context, legacy_route_var, set_request_context
from hideout_api.crosscutting.config import Settings
from hideout_api.crosscutting.logger import JSONFormatter

pytestmark = pytest.mark.unit


class TestSettings:
    def test_defaults_in_test_env(self, monkeypatch):
        monkeypatch.delenv("ENABLE_REPLENISHMENT_JOB", raising=False)
        monkeypatch.delenv("APP_RUNTIME", raising=False)
        monkeypatch.delenv("REPLENISHMENT_INTERVAL_SECONDS", raising=False)

        settings = Settings(app_env="test")

        assert settings.is_test()
        assert settings.app_runtime == "server"
        assert settings.enable_replenishment_job is True
        assert settings.replenishment_interval_seconds == 300
        assert settings.legacy_api_sunset.endswith("GMT")

    def test_runtime_is_normalized(self):
        assert Settings(app_env="test", app_runtime=" EDGE ").app_runtime == "edge"

    def test_unknown_runtime_rejected(self):
        with pytest.raises(ValidationError):
            Settings(app_env="test", app_runtime="lambda")

    def test_interval_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(app_env="test", replenishment_interval_seconds=0)

    def test_database_url_required_outside_tests(self):
        with pytest.raises(ValidationError, match="DATABASE_URL"):
            Settings(app_env="development", database_url="")

    def test_production_rejects_default_secret(self):
        with pytest.raises(ValidationError, match="JWT_SECRET"):
            Settings(
                app_env="production",
                database_url="postgresql://db/hideout",
                jwt_secret="dev-secret",
            )

    def test_production_accepts_strong_secret(self):
        settings = Settings(
            app_env="production",
            database_url="postgresql://db/hideout",
            jwt_secret="x" * 40,
        )

        assert settings.is_production()

    def test_env_flag_parsing(self, monkeypatch):
        monkeypatch.setenv("ENABLE_REPLENISHMENT_JOB", "false")
        monkeypatch.setenv("APP_RUNTIME", "edge")

        settings = Settings(app_env="test")

        assert settings.enable_replenishment_job is False
        assert settings.app_runtime == "edge"

    def test_fake_ai_without_api_key(self):
        assert Settings(app_env="test", google_api_key="", fake_llm=False).use_fake_ai()
        assert not Settings(app_env="test", google_api_key="key", fake_llm=False).use_fake_ai()


class TestJSONFormatter:
    def _record(self, **extra) -> logging.LogRecord:
        record = logging.LogRecord(
            name="hideout-api",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="Legacy API request",
            args=(),
            exc_info=None,
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_includes_request_context(self):
        set_request_context(request_id="req-1", method="GET", path="/api/pantry")
        legacy_route_var.set("/api/pantry")
        try:
            payload = json.loads(JSONFormatter().format(self._record(route="/api/pantry")))
        finally:
            clear_context()

        assert payload["message"] == "Legacy API request"
        assert payload["request_id"] == "req-1"
        assert payload["legacy_route"] == "/api/pantry"
        assert payload["route"] == "/api/pantry"

    def test_redacts_sensitive_keys(self):
        payload = json.loads(
            JSONFormatter().format(
                self._record(auth_token="eyJ...", extra_info={"jwt_secret": "s", "ok": 1})
            )
        )

        assert payload["auth_token"] == "***REDACTED***"
        assert payload["extra_info"] == {"jwt_secret": "***REDACTED***", "ok": 1}

    def test_context_is_empty_after_clear(self):
        set_request_context(request_id="req-2")
        clear_context()

        payload = json.loads(JSONFormatter().format(self._record()))

        assert "request_id" not in payload
