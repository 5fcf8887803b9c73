"""
Name: Dual-Mode State Tests

Responsibilities:
  - A legacy write and its canonical twin leave the same stored state
  - Builds: repository entity, checklist links and favorites (save and update)
  - Party members: repository entity (create and update)
"""

from dataclasses import asdict

import pytest

from hideout_api.container import (
    get_build_repository,
    get_checklist_repository,
    get_party_member_repository,
)

pytestmark = pytest.mark.unit

BUILD = {
    "build_title": "Boneshatter Juggernaut",
    "build_reasoning": "Tanky melee",
    "gear_gems": [{"name": "Ruby Ring", "quantity": "2"}],
    "build_items": [
        {"name": "Quill Rain", "quantity": "1"},
        {"name": "Lifeforce", "quantity": "300", "unit": "x"},
    ],
    "build_steps": ["Level with Sunder", "Swap to Boneshatter"],
    "build_archetype": "bossing",
    "build_cost_tier": "cheap",
    "setup_time": "20 min",
    "setup_time_minutes": 20,
    "isFavorite": True,
}

UPDATE = {
    **BUILD,
    "build_title": "Boneshatter Chieftain",
    "build_items": [{"name": "Voltaxic Rift"}],
    "language": "pt",
}

MEMBER = {
    "id": "temp-1",
    "name": "Guest",
    "restrictions": ["No minions"],
    "likes": ["Cyclone"],
    "dislikes": ["Totems"],
}


@pytest.fixture
def authed(client, admin_cookies):
    client.cookies.update(admin_cookies)
    return client


def _stored_build(build_id: str) -> dict:
    stored = asdict(get_build_repository().get_build(build_id))
    for key in ("id", "created_at"):
        stored.pop(key)
    return stored


def _stored_member(member_id: str) -> dict:
    stored = asdict(get_party_member_repository().get_member(member_id))
    stored.pop("id")
    return stored


def _links(hideout_id: str, build_id: str) -> set[str]:
    return {
        item.name
        for item in get_checklist_repository().list_items(hideout_id, status="all")
        if build_id in item.build_ids
    }


def _favorites(member_id: str) -> set[str]:
    return get_party_member_repository().get_member(member_id).favorite_build_ids


class TestBuildWrites:
    def test_save_matches_across_dialects(self, authed, hideout, admin_member):
        canonical = authed.post("/api/builds", json=BUILD).json()["id"]
        legacy = authed.post("/api/recipes", json=BUILD).json()["id"]

        assert _stored_build(legacy) == _stored_build(canonical)
        assert _links(hideout.id, legacy) == _links(hideout.id, canonical) == {
            "Quill Rain",
            "Lifeforce",
        }
        assert {canonical, legacy} <= _favorites(admin_member.id)

    def test_recipe_vocabulary_save_matches(self, authed, hideout):
        recipe_era = {
            "recipe_title": BUILD["build_title"],
            "match_reasoning": BUILD["build_reasoning"],
            "ingredients_from_pantry": BUILD["gear_gems"],
            "shopping_list": BUILD["build_items"],
            "step_by_step": BUILD["build_steps"],
            "meal_type": "dessert",
            "difficulty": "easy",
            "prep_time": "20 min",
            "prep_time_minutes": 20,
        }
        canonical = authed.post("/api/builds", json={**BUILD, "isFavorite": False}).json()["id"]
        legacy = authed.post("/api/recipes", json=recipe_era).json()["id"]

        assert _stored_build(legacy) == _stored_build(canonical)
        assert _links(hideout.id, legacy) == _links(hideout.id, canonical)

    def test_update_matches_across_dialects(self, authed, hideout):
        canonical = authed.post("/api/builds", json=BUILD).json()["id"]
        legacy = authed.post("/api/builds", json=BUILD).json()["id"]

        first = authed.put(f"/api/builds/{canonical}", json=UPDATE)
        second = authed.put(f"/api/recipes/{legacy}", json=UPDATE)

        assert first.status_code == second.status_code == 200
        assert _stored_build(legacy) == _stored_build(canonical)
        assert _stored_build(canonical)["language"] == "pt"
        assert _links(hideout.id, legacy) == _links(hideout.id, canonical) == {"Voltaxic Rift"}


class TestPartyMemberWrites:
    @pytest.mark.parametrize("legacy_path", ["/api/hideout-members", "/api/kitchen-members"])
    def test_create_matches_across_dialects(self, authed, legacy_path):
        canonical = authed.post("/api/party-members", json=MEMBER).json()["id"]
        legacy = authed.post(legacy_path, json=MEMBER).json()["id"]

        assert canonical != legacy
        assert _stored_member(legacy) == _stored_member(canonical)

    @pytest.mark.parametrize("legacy_path", ["/api/hideout-members", "/api/kitchen-members"])
    def test_update_matches_across_dialects(self, authed, legacy_path):
        canonical = authed.post("/api/party-members", json=MEMBER).json()["id"]
        legacy = authed.post("/api/party-members", json=MEMBER).json()["id"]
        change = {"name": "Renamed", "likes": ["Totems"], "isGuest": True}

        authed.post("/api/party-members", json={**change, "id": canonical})
        authed.post(legacy_path, json={**change, "id": legacy})

        assert _stored_member(legacy) == _stored_member(canonical)
        assert _stored_member(canonical)["name"] == "Renamed"
        assert _stored_member(canonical)["restrictions"] == ["No minions"]
