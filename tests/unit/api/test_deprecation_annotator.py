"""
Name: Deprecation Annotator Tests

Responsibilities:
  - Validate the deprecation headers added to legacy responses
  - Validate the daily usage tracker (per route + method, pruned by day)
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.responses import JSONResponse, Response

from hideout_api.api.deprecation import (
    DEFAULT_SUNSET,
    DeprecationPolicy,
    LegacyUsageTracker,
    annotate_deprecated,
)
from hideout_api.crosscutting.metrics import get_legacy_request_count

pytestmark = pytest.mark.unit


class TestAnnotateDeprecated:
    def test_adds_all_deprecation_headers(self):
        response = JSONResponse({"ok": True})

        annotated = annotate_deprecated(
            response,
            "/api/recipes/{id}/translate",
            "post",
            sunset_route="/api/builds/{id}/translate",
        )

        assert annotated.headers["Deprecation"] == "true"
        assert annotated.headers["Sunset"] == DEFAULT_SUNSET
        assert annotated.headers["X-Legacy-Endpoint"] == "/api/recipes/{id}/translate"
        assert annotated.headers["X-Sunset-Route"] == "/api/builds/{id}/translate"
        assert annotated.headers["X-Deprecated-Method"] == "POST"
        link = annotated.headers["Link"]
        assert '</MIGRATION.md>; rel="deprecation"' in link
        assert '</api/builds/{id}/translate>; rel="successor-version"' in link

    def test_returns_same_object_and_keeps_status_and_body(self):
        response = JSONResponse({"detail": "missing"}, status_code=404)

        annotated = annotate_deprecated(response, "/api/pantry", "GET")

        assert annotated is response
        assert annotated.status_code == 404
        assert annotated.body == response.body

    def test_empty_route_is_annotated_verbatim(self):
        annotated = annotate_deprecated(Response(), "", "")

        assert annotated.headers["X-Legacy-Endpoint"] == ""
        assert annotated.headers["X-Deprecated-Method"] == ""
        assert annotated.headers["Deprecation"] == "true"

    def test_without_sunset_route_link_has_only_deprecation(self):
        annotated = annotate_deprecated(Response(), "/api/pantry", "GET")

        assert "successor-version" not in annotated.headers["Link"]
        assert annotated.headers["X-Sunset-Route"] == ""

    def test_policy_overrides_sunset_and_migration_link(self):
        policy = DeprecationPolicy(
            sunset="Thu, 31 Dec 2026 23:59:59 GMT", migration_link="/docs/legacy"
        )

        annotated = annotate_deprecated(Response(), "/api/pantry", "GET", policy=policy)

        assert annotated.headers["Sunset"] == "Thu, 31 Dec 2026 23:59:59 GMT"
        assert annotated.headers["Link"].startswith("</docs/legacy>")

    def test_usage_count_header_only_when_given(self):
        plain = annotate_deprecated(Response(), "/api/pantry", "GET")
        counted = annotate_deprecated(Response(), "/api/pantry", "GET", usage_count=3)

        assert "X-Legacy-Usage-Day-Count" not in plain.headers
        assert counted.headers["X-Legacy-Usage-Day-Count"] == "3"

    @pytest.mark.parametrize("bad", [None, {"ok": True}, "text"])
    def test_non_response_raises_type_error(self, bad):
        with pytest.raises(TypeError):
            annotate_deprecated(bad, "/api/pantry", "GET")


class TestLegacyUsageTracker:
    def test_counts_per_route_and_method(self):
        tracker = LegacyUsageTracker()

        assert tracker.record("/api/pantry", "get") == 1
        assert tracker.record("/api/pantry", "GET") == 2
        assert tracker.record("/api/pantry", "POST") == 1

        assert tracker.count("/api/pantry", "GET") == 2
        assert tracker.count("/api/recipes", "GET") == 0

    def test_new_day_prunes_previous_counts(self):
        now = [datetime(2026, 3, 1, 23, 59, tzinfo=timezone.utc)]
        tracker = LegacyUsageTracker(clock=lambda: now[0])

        tracker.record("/api/pantry", "GET")
        tracker.record("/api/pantry", "GET")
        now[0] = now[0] + timedelta(minutes=2)

        assert tracker.count("/api/pantry", "GET") == 0
        assert tracker.record("/api/pantry", "GET") == 1

    def test_increments_prometheus_counter(self):
        before = get_legacy_request_count("/api/kitchens", "GET")

        LegacyUsageTracker().record("/api/kitchens", "get")

        assert get_legacy_request_count("/api/kitchens", "GET") == before + 1

    def test_logs_each_request(self, caplog):
        caplog.set_level("INFO", logger="hideout-api")

        LegacyUsageTracker().record("/api/recipes", "POST")

        records = [r for r in caplog.records if r.getMessage() == "Legacy API request"]
        assert len(records) == 1
        assert records[0].route == "/api/recipes"
        assert records[0].method == "POST"
        assert records[0].daily_count == 1
