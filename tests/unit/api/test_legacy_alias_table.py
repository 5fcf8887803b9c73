"""
Name: Legacy Alias Table Tests

Responsibilities:
  - Validate the static alias table against the canonical route table
  - Validate that inconsistent tables fail fast
  - Validate router construction (deprecated in OpenAPI, legacy tag)
"""

import pytest

from hideout_api.api.aliases import (
    LEGACY_ALIASES,
    LegacyAlias,
    build_legacy_router,
    validate_alias_table,
)
from hideout_api.application import ResponseMode
from hideout_api.interfaces.api.http import handlers
from hideout_api.interfaces.api.http.routes import CANONICAL_ROUTES, find_canonical

pytestmark = pytest.mark.unit


def test_shipped_table_is_valid():
    validate_alias_table(LEGACY_ALIASES)


def test_every_alias_targets_registered_canonical_route_with_same_handler():
    for alias in LEGACY_ALIASES:
        binding = find_canonical(alias.canonical_path, alias.method)
        assert binding is not None, alias.legacy_path
        assert binding.handler is alias.handler


def test_no_duplicate_legacy_keys():
    keys = [(a.legacy_path, a.method.upper()) for a in LEGACY_ALIASES]
    assert len(keys) == len(set(keys))


def test_legacy_families_are_all_declared():
    prefixes = {a.legacy_path.split("/")[2] for a in LEGACY_ALIASES}
    assert prefixes == {
        "hideout-members",
        "kitchen-members",
        "kitchens",
        "recipes",
        "recipe",
        "pantry",
        "build-items",
        "shopping-list",
    }


def test_dual_handlers_use_legacy_mode():
    for alias in LEGACY_ALIASES:
        binding = find_canonical(alias.canonical_path, alias.method)
        if binding.dual:
            assert alias.mode is ResponseMode.LEGACY
        else:
            assert alias.mode is None


def test_kitchen_routes_rename_path_param():
    kitchen_routes = [a for a in LEGACY_ALIASES if "{kitchenId}" in a.legacy_path]
    assert {a.method for a in kitchen_routes} == {"PUT", "DELETE"}
    for alias in kitchen_routes:
        assert alias.param_map == {"kitchenId": "hideoutId"}


def test_canonical_table_has_no_duplicates():
    keys = [(b.path, b.method) for b in CANONICAL_ROUTES]
    assert len(keys) == len(set(keys))


class TestValidationFailures:
    def test_duplicate_alias(self):
        alias = LegacyAlias("/api/pantry", "GET", "/api/stash", handlers.get_stash, None)
        duplicate = LegacyAlias("/api/pantry", "get", "/api/stash", handlers.get_stash, None)

        with pytest.raises(ValueError, match="Duplicate"):
            validate_alias_table([alias, duplicate])

    def test_unregistered_target(self):
        alias = LegacyAlias("/api/fridge", "GET", "/api/fridge-v2", handlers.get_stash, None)

        with pytest.raises(ValueError, match="unregistered"):
            validate_alias_table([alias])

    def test_wrong_handler(self):
        def other_handler(request, params):
            return None

        alias = LegacyAlias("/api/pantry", "GET", "/api/stash", other_handler, None)

        with pytest.raises(ValueError, match="handler"):
            validate_alias_table([alias])

    def test_mode_on_non_dual_handler(self):
        alias = LegacyAlias(
            "/api/pantry", "GET", "/api/stash", handlers.get_stash, ResponseMode.LEGACY
        )

        with pytest.raises(ValueError, match="mode"):
            validate_alias_table([alias])

    def test_missing_mode_on_dual_handler(self):
        alias = LegacyAlias("/api/recipes", "GET", "/api/builds", handlers.get_builds, None)

        with pytest.raises(ValueError, match="mode"):
            validate_alias_table([alias])

    def test_unmapped_path_param(self):
        alias = LegacyAlias(
            "/api/kitchens/{kitchenId}", "PUT", "/api/hideouts/{hideoutId}",
            handlers.update_hideout,
        )

        with pytest.raises(ValueError, match="path params"):
            validate_alias_table([alias])


class TestLegacyRouter:
    def test_routes_are_deprecated_and_tagged(self):
        router = build_legacy_router()

        assert len(router.routes) == len(LEGACY_ALIASES)
        for route in router.routes:
            assert route.deprecated is True
            assert "legacy" in route.tags

    def test_invalid_table_fails_router_construction(self):
        bad = [LegacyAlias("/api/fridge", "GET", "/api/nowhere", handlers.get_stash, None)]

        with pytest.raises(ValueError):
            build_legacy_router(bad)

    def test_openapi_marks_legacy_paths_deprecated(self, client):
        schema = client.get("/openapi.json").json()

        assert schema["paths"]["/api/pantry"]["get"]["deprecated"] is True
        assert "deprecated" not in schema["paths"]["/api/stash"]["get"]
