"""
Name: Legacy Routes HTTP Tests

Responsibilities:
  - Legacy aliases answer exactly like their canonical routes (status + body)
  - Every legacy response is annotated, including 4xx and 5xx errors
  - Recipe-era translate scenario and kitchens path param renaming
  - Canonical responses never carry deprecation headers

Notes:
  - Uses FastAPI TestClient with in-memory repositories (APP_ENV=test)
  - Requests send a fixed X-Request-Id so error bodies are comparable
"""

import pytest
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient

from hideout_api.api.routing import build_endpoint
from hideout_api.application import ResponseMode
from hideout_api.container import get_party_member_repository
from hideout_api.crosscutting.metrics import get_legacy_request_count
from hideout_api.domain.entities import PartyMember

pytestmark = pytest.mark.unit

REQUEST_ID = {"X-Request-Id": "req-fixed-1"}
DEPRECATION_HEADERS = (
    "Deprecation",
    "Sunset",
    "Link",
    "X-Legacy-Endpoint",
    "X-Sunset-Route",
    "X-Deprecated-Method",
)


def _assert_deprecated(response, route: str, method: str, sunset_route: str) -> None:
    assert response.headers["Deprecation"] == "true"
    assert response.headers["X-Legacy-Endpoint"] == route
    assert response.headers["X-Deprecated-Method"] == method
    assert response.headers["X-Sunset-Route"] == sunset_route
    assert "Sunset" in response.headers


def _assert_not_deprecated(response) -> None:
    for header in DEPRECATION_HEADERS:
        assert header not in response.headers


def _save_build(client, **overrides) -> dict:
    body = {
        "build_title": "Cyclone Slayer",
        "build_reasoning": "Fast clear",
        "build_items": [{"name": "Tabula Rasa", "quantity": "1", "unit": ""}],
        "build_steps": ["Level with Sunder", "Swap to Cyclone"],
        "build_archetype": "mapper",
        "build_cost_tier": "cheap",
        **overrides,
    }
    response = client.post("/api/builds", json=body)
    assert response.status_code == 200
    return response.json()


class TestEquivalence:
    @pytest.mark.parametrize(
        "legacy, canonical",
        [
            ("/api/pantry", "/api/stash"),
            ("/api/build-items", "/api/checklist"),
            ("/api/shopping-list", "/api/checklist"),
        ],
    )
    def test_non_dual_get_bodies_are_identical(self, client, admin_cookies, legacy, canonical):
        client.cookies.update(admin_cookies)
        client.post("/api/stash", json={"name": "Chaos Orb"})
        client.post("/api/checklist", json={"name": "Exalted Orb"})

        canonical_response = client.get(canonical, headers=REQUEST_ID)
        legacy_response = client.get(legacy, headers=REQUEST_ID)

        assert legacy_response.status_code == canonical_response.status_code == 200
        assert legacy_response.json() == canonical_response.json()
        _assert_not_deprecated(canonical_response)
        _assert_deprecated(legacy_response, legacy, "GET", canonical)

    @pytest.mark.parametrize("legacy", ["/api/hideout-members", "/api/kitchen-members"])
    def test_member_list_legacy_is_canonical_plus_kitchen_id(self, client, admin_cookies, hideout, legacy):
        client.cookies.update(admin_cookies)

        canonical = client.get("/api/party-members").json()
        legacy_body = client.get(legacy).json()

        assert len(canonical) == len(legacy_body) == 1
        assert "kitchenId" not in canonical[0]
        assert legacy_body[0]["kitchenId"] == hideout.id
        assert {k: v for k, v in legacy_body[0].items() if k != "kitchenId"} == canonical[0]

    def test_builds_canonical_omits_recipe_aliases(self, client, admin_cookies):
        client.cookies.update(admin_cookies)
        _save_build(client)

        canonical = client.get("/api/builds").json()[0]
        legacy = client.get("/api/recipes").json()[0]

        assert "recipe_title" not in canonical
        assert legacy["recipe_title"] == canonical["build_title"] == "Cyclone Slayer"
        assert legacy["meal_type"] == "appetizer"
        assert legacy["difficulty"] == "easy"
        assert legacy["shopping_list"] == canonical["build_items"]
        for key, value in canonical.items():
            assert legacy[key] == value

    def test_legacy_write_reaches_canonical_state(self, client, admin_cookies):
        client.cookies.update(admin_cookies)

        response = client.post("/api/pantry", json={"name": "Divine Orb", "inStock": False})

        assert response.status_code == 200
        names = [i["name"] for i in client.get("/api/stash").json()]
        assert "Divine Orb" in names

    def test_usage_day_count_header_increments(self, client, admin_cookies):
        client.cookies.update(admin_cookies)

        first = client.get("/api/pantry")
        second = client.get("/api/pantry")

        assert first.headers["X-Legacy-Usage-Day-Count"] == "1"
        assert second.headers["X-Legacy-Usage-Day-Count"] == "2"


class TestLegacyErrors:
    def test_unauthorized_is_annotated_and_matches_canonical(self, client):
        canonical = client.get("/api/stash", headers=REQUEST_ID)
        legacy = client.get("/api/pantry", headers=REQUEST_ID)

        assert canonical.status_code == legacy.status_code == 401
        assert legacy.json() == canonical.json()
        assert legacy.json()["instance"] == "/api/stash"
        assert legacy.headers["content-type"].startswith("application/problem+json")
        _assert_deprecated(legacy, "/api/pantry", "GET", "/api/stash")

    def test_not_found_is_annotated(self, client, admin_cookies):
        client.cookies.update(admin_cookies)

        canonical = client.get("/api/builds/missing", headers=REQUEST_ID)
        legacy = client.get("/api/recipes/missing", headers=REQUEST_ID)

        assert canonical.status_code == legacy.status_code == 404
        assert legacy.json() == canonical.json()
        assert legacy.json()["code"] == "NOT_FOUND"
        _assert_deprecated(legacy, "/api/recipes/{id}", "GET", "/api/builds/{id}")

    def test_validation_error_is_annotated(self, client, admin_cookies):
        client.cookies.update(admin_cookies)

        response = client.post("/api/shopping-list", json={"name": "  "})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
        _assert_deprecated(response, "/api/shopping-list", "POST", "/api/checklist")

    def test_unhandled_error_is_annotated_with_500(self):
        def exploding_handler(request, params):
            raise RuntimeError("boom")

        app = FastAPI()
        app.add_api_route(
            "/legacy/boom",
            build_endpoint(
                handler=exploding_handler,
                mode=None,
                method="get",
                canonical_path="/api/boom",
                legacy_path="/legacy/boom",
            ),
            methods=["GET"],
        )

        response = TestClient(app).get("/legacy/boom")

        assert response.status_code == 500
        assert response.json()["code"] == "INTERNAL_ERROR"
        assert response.json()["instance"] == "/api/boom"
        _assert_deprecated(response, "/legacy/boom", "GET", "/api/boom")

    def test_handler_receives_mode_and_renamed_params(self):
        seen = {}

        def recording_handler(request, params, mode):
            seen.update(params=dict(params), mode=mode, method=request.method)
            return JSONResponse({"ok": True}, status_code=201)

        app = FastAPI()
        app.add_api_route(
            "/legacy/{kitchenId}",
            build_endpoint(
                handler=recording_handler,
                mode=ResponseMode.LEGACY,
                method="put",
                canonical_path="/api/hideouts/{hideoutId}",
                legacy_path="/legacy/{kitchenId}",
                param_map={"kitchenId": "hideoutId"},
            ),
            methods=["PUT"],
        )

        response = TestClient(app).put("/legacy/k-1")

        assert response.status_code == 201
        assert seen == {"params": {"hideoutId": "k-1"}, "mode": ResponseMode.LEGACY, "method": "PUT"}
        assert response.headers["X-Deprecated-Method"] == "PUT"


class TestScenarios:
    def test_recipe_translate_alias(self, client, admin_cookies):
        client.cookies.update(admin_cookies)
        build = _save_build(client)

        response = client.post(
            f"/api/recipes/{build['id']}/translate", json={"targetLanguage": "es"}
        )

        assert response.status_code == 200
        _assert_deprecated(
            response,
            "/api/recipes/{id}/translate",
            "POST",
            "/api/builds/{id}/translate",
        )
        body = response.json()
        assert body["language"] == "es"
        assert body["build_title"] == "[es] Cyclone Slayer"
        assert body["recipe_title"] == body["build_title"]
        assert body["originalRecipeId"] == build["id"]
        assert body["shopping_list"] == build["build_items"]

    def test_translate_twice_returns_existing_translation(self, client, admin_cookies):
        client.cookies.update(admin_cookies)
        build = _save_build(client)

        first = client.post(f"/api/builds/{build['id']}/translate", json={"targetLanguage": "pt"})
        second = client.post(f"/api/recipes/{build['id']}/translate", json={"targetLanguage": "pt"})

        assert first.json()["id"] == second.json()["id"]

    def test_hideout_members_delete_happens_once(self, client, admin_cookies, hideout):
        client.cookies.update(admin_cookies)
        guest = get_party_member_repository().create_member(
            PartyMember(id="m-guest", hideout_id=hideout.id, name="Guest")
        )

        first = client.delete(f"/api/hideout-members/{guest.id}")
        second = client.delete(f"/api/hideout-members/{guest.id}")

        assert first.status_code == 200
        assert first.json() == {"success": True}
        assert second.status_code == 404
        _assert_deprecated(second, "/api/hideout-members/{id}", "DELETE", "/api/party-members/{id}")
        assert get_party_member_repository().get_member(guest.id) is None

    def test_kitchens_put_maps_kitchen_id(self, client, admin_cookies, hideout):
        client.cookies.update(admin_cookies)

        legacy = client.put(f"/api/kitchens/{hideout.id}", json={"name": "Oriath Docks"})
        canonical = client.get("/api/hideouts")

        assert legacy.status_code == 200
        assert legacy.json()["kitchenId"] == hideout.id
        assert legacy.json()["name"] == "Oriath Docks"
        assert canonical.json()["name"] == "Oriath Docks"
        assert "kitchenId" not in canonical.json()
        _assert_deprecated(legacy, "/api/kitchens/{kitchenId}", "PUT", "/api/hideouts/{hideoutId}")

    def test_legacy_craft_alias(self, client, admin_cookies):
        client.cookies.update(admin_cookies)

        response = client.post(
            "/api/recipe",
            json={
                "members": [{"name": "Exile"}],
                "context": {"requested_type": "dessert", "pantry_ingredients": ["Ruby"]},
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["build_archetype"] == "bossing"
        assert body["meal_type"] == "dessert"
        assert body["ingredients_from_pantry"] == [{"name": "Ruby", "quantity": "1", "unit": ""}]
        _assert_deprecated(response, "/api/recipe", "POST", "/api/build")

    def test_health_and_metrics(self, client, admin_cookies):
        client.cookies.update(admin_cookies)
        before = get_legacy_request_count("/api/pantry", "GET")
        client.get("/api/pantry")

        health = client.get("/healthz")
        metrics = client.get("/metrics")

        assert health.json()["ok"] is True
        assert get_legacy_request_count("/api/pantry", "GET") == before + 1
        line = next(
            row for row in metrics.text.splitlines()
            if row.startswith("hideout_legacy_requests_total{") and 'route="/api/pantry"' in row
        )
        assert 'method="GET"' in line
