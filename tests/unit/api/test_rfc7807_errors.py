"""
Name: RFC7807 Error Rendering Tests

Responsibilities:
  - Typed service errors map to stable status codes and error codes
  - Retry-After is propagated for quota errors
  - Unhandled errors become 500 without leaking details in production
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from hideout_api.api.exception_handlers import register_exception_handlers
from hideout_api.crosscutting.error_responses import not_found
from hideout_api.crosscutting.exceptions import (
    CraftDomainMismatchError,
    CraftQuotaExceededError,
    DatabaseError,
    TranslationError,
)
from hideout_api.crosscutting.middleware import RequestContextMiddleware

pytestmark = pytest.mark.unit


def _app_raising(exc: Exception) -> TestClient:
    app = FastAPI()
    app.add_middleware(RequestContextMiddleware)
    register_exception_handlers(app)

    @app.get("/boom")
    def boom():
        raise exc

    return TestClient(app, raise_server_exceptions=False)


@pytest.mark.parametrize(
    "exc, status, code",
    [
        (not_found("Build", "b-1"), 404, "NOT_FOUND"),
        (DatabaseError("pool exhausted"), 503, "DATABASE_ERROR"),
        (TranslationError("gemini failed"), 502, "AI_SERVICE_ERROR"),
        (CraftDomainMismatchError("Not a build", details=["cooking"]), 422, "AI_DOMAIN_MISMATCH"),
    ],
)
def test_typed_errors(exc, status, code):
    response = _app_raising(exc).get("/boom", headers={"X-Request-Id": "req-9"})

    assert response.status_code == status
    body = response.json()
    assert body["code"] == code
    assert body["status"] == status
    assert body["instance"] == "/boom"
    assert {"request_id": "req-9"} in body["errors"]
    assert response.headers["content-type"].startswith("application/problem+json")


def test_domain_mismatch_details():
    response = _app_raising(
        CraftDomainMismatchError("Not a build", details=["cooking"])
    ).get("/boom")

    assert response.json()["errors"][0] == {
        "code": "gemini.domain_mismatch",
        "details": ["cooking"],
    }


def test_quota_error_sets_retry_after():
    response = _app_raising(CraftQuotaExceededError("quota", retry_after=30)).get("/boom")

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "30"
    assert response.json()["errors"][0]["retryAfterSeconds"] == 30


def test_service_error_exposes_error_id():
    exc = DatabaseError("pool exhausted")

    response = _app_raising(exc).get("/boom")

    assert {"error_id": exc.error_id} in response.json()["errors"]


def test_unhandled_error_hides_detail_in_production(monkeypatch):
    from hideout_api.crosscutting.config import get_settings

    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("DATABASE_URL", "postgresql://db/hideout")
    monkeypatch.setenv("JWT_SECRET", "s" * 40)
    get_settings.cache_clear()

    response = _app_raising(RuntimeError("secret internals")).get("/boom")

    assert response.status_code == 500
    assert response.json()["code"] == "INTERNAL_ERROR"
    assert "secret internals" not in response.text


def test_unknown_route_is_problem_json():
    response = _app_raising(RuntimeError()).get("/nope")

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"
