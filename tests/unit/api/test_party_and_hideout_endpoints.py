"""
Name: Party Member and Hideout Endpoint Tests

Responsibilities:
  - Party member upsert rules (validation, placeholders, collisions, ownership)
  - Hideout lifecycle (create, join by invite code, rename, soft delete)
"""

from uuid import uuid4

import pytest

from hideout_api.container import (
    get_hideout_repository,
    get_party_member_repository,
    get_user_repository,
)
from hideout_api.domain.entities import Hideout, MemberRole, PartyMember, User
from hideout_api.interfaces.api.http.handlers.hideouts import generate_invite_code

pytestmark = pytest.mark.unit


@pytest.fixture
def other_user() -> User:
    return get_user_repository().add_user(
        User(id=str(uuid4()), email="ally@example.com", name="Ally")
    )


class TestPartyMembers:
    def test_requires_session(self, client):
        assert client.get("/api/party-members").status_code == 401

    @pytest.mark.parametrize("name", ["", "   ", "x" * 51])
    def test_name_validation(self, client, admin_cookies, name):
        client.cookies.update(admin_cookies)

        response = client.post("/api/party-members", json={"name": name})

        assert response.status_code == 400
        assert response.json()["detail"] == "Name is required and must be under 50 characters."

    def test_email_too_long(self, client, admin_cookies):
        client.cookies.update(admin_cookies)

        response = client.post(
            "/api/party-members", json={"name": "Guest", "email": "a" * 95 + "@x.com"}
        )

        assert response.status_code == 400

    def test_create_guest_with_placeholder_id(self, client, admin_cookies, hideout):
        client.cookies.update(admin_cookies)

        response = client.post(
            "/api/party-members",
            json={"id": "temp-123", "name": "Guest", "likes": ["Cyclone", " "]},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["id"] != "temp-123"
        assert body["isGuest"] is True
        assert body["role"] == "MEMBER"
        assert body["likes"] == ["Cyclone"]
        assert body["hideoutId"] == hideout.id

    def test_email_links_existing_user(self, client, admin_cookies, other_user):
        client.cookies.update(admin_cookies)

        body = client.post(
            "/api/party-members", json={"name": "Ally", "email": other_user.email}
        ).json()

        assert body["userId"] == other_user.id
        assert body["isGuest"] is False

    def test_email_collision_is_conflict(self, client, admin_cookies, user):
        client.cookies.update(admin_cookies)

        response = client.post(
            "/api/party-members", json={"name": "Twin", "email": user.email}
        )

        assert response.status_code == 409

    def test_update_keeps_tags_not_sent(self, client, admin_cookies, hideout):
        client.cookies.update(admin_cookies)
        member = get_party_member_repository().create_member(
            PartyMember(id="m-1", hideout_id=hideout.id, name="Old", dislikes=["Totems"])
        )

        body = client.post(
            "/api/party-members", json={"id": member.id, "name": "New", "isGuest": False}
        ).json()

        assert body["name"] == "New"
        assert body["dislikes"] == ["Totems"]
        assert body["isGuest"] is False

    def test_update_unknown_id(self, client, admin_cookies):
        client.cookies.update(admin_cookies)

        response = client.post("/api/party-members", json={"id": "m-404", "name": "X"})

        assert response.status_code == 404

    def test_update_member_of_other_hideout(self, client, admin_cookies):
        client.cookies.update(admin_cookies)
        get_party_member_repository().create_member(
            PartyMember(id="m-other", hideout_id="h-other", name="Stranger")
        )

        response = client.post("/api/party-members", json={"id": "m-other", "name": "X"})

        assert response.status_code == 403

    def test_delete_requires_admin_or_self(
        self, client, session_cookie, hideout, admin_member, other_user
    ):
        members = get_party_member_repository()
        ally = members.create_member(
            PartyMember(
                id="m-ally", hideout_id=hideout.id, name="Ally", user_id=other_user.id
            )
        )
        guest = members.create_member(
            PartyMember(id="m-guest", hideout_id=hideout.id, name="Guest")
        )
        client.cookies.update(session_cookie(other_user.id, hideout.id))

        assert client.delete(f"/api/party-members/{guest.id}").status_code == 403
        assert client.delete(f"/api/party-members/{ally.id}").json() == {"success": True}


class TestHideouts:
    def test_invite_code_shape(self):
        code = generate_invite_code()

        assert len(code) == 6
        assert code.isalnum() and code.upper() == code

    def test_create_makes_creator_admin(self, client, session_cookie, user):
        client.cookies.update(session_cookie(user.id))

        response = client.post("/api/hideouts", json={"name": "  Highgate "})

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Highgate"
        assert len(body["inviteCode"]) == 6
        admin = get_party_member_repository().get_member_by_user(body["id"], user.id)
        assert admin.role is MemberRole.ADMIN
        assert admin.is_guest is False

    def test_create_requires_name(self, client, session_cookie, user):
        client.cookies.update(session_cookie(user.id))

        response = client.post("/api/kitchens", json={})

        assert response.status_code == 400
        assert response.json()["detail"] == "Hideout name is required"

    def test_join_flow(self, client, session_cookie, hideout, other_user):
        client.cookies.update(session_cookie(other_user.id))

        first = client.post("/api/hideouts/join", json={"code": hideout.invite_code})
        second = client.post("/api/kitchens/join", json={"code": hideout.invite_code})

        assert first.json() == {
            "message": "api.joinSuccess",
            "hideoutId": hideout.id,
            "name": hideout.name,
        }
        assert second.json()["message"] == "api.alreadyMember"
        assert second.json()["kitchenId"] == hideout.id
        member = get_party_member_repository().get_member_by_user(hideout.id, other_user.id)
        assert member.is_guest is True

    @pytest.mark.parametrize(
        "body, status, detail",
        [
            ({}, 400, "api.inviteRequired"),
            ({"code": "ZZZZZZ"}, 404, "api.kitchenNotFound"),
        ],
    )
    def test_join_errors(self, client, session_cookie, other_user, body, status, detail):
        client.cookies.update(session_cookie(other_user.id))

        response = client.post("/api/hideouts/join", json=body)

        assert response.status_code == status
        assert response.json()["detail"] == detail

    def test_join_deleted_hideout_is_gone(self, client, session_cookie, other_user):
        hideouts = get_hideout_repository()
        hideouts.create_hideout(Hideout(id="h-dead", name="Ruins", invite_code="DEAD01"))
        hideouts.soft_delete_hideout("h-dead")
        client.cookies.update(session_cookie(other_user.id))

        response = client.post("/api/hideouts/join", json={"code": "DEAD01"})

        assert response.status_code == 410
        assert response.json()["detail"] == "api.kitchenDeleted"

    def test_rename_requires_admin(self, client, session_cookie, hideout, admin_member, other_user):
        client.cookies.update(session_cookie(other_user.id, hideout.id))

        response = client.put(f"/api/hideouts/{hideout.id}", json={"name": "Mine"})

        assert response.status_code == 403

    def test_soft_delete(self, client, admin_cookies, hideout):
        client.cookies.update(admin_cookies)

        response = client.delete(f"/api/kitchens/{hideout.id}")

        assert response.status_code == 200
        assert response.json()["deletedAt"] is not None
        assert get_hideout_repository().get_hideout(hideout.id).is_deleted
        assert client.get("/api/party-members").json() == []
