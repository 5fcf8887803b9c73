"""
===============================================================================
TARJETA CRC — handlers/common.py (helpers compartidos por los handlers)
===============================================================================

Responsibilities:
    - Resolver la sesión del request (cookie auth_token).
    - Serializar miembros y hideouts al dialecto pedido (hideoutId / kitchenId).
    - Lectura tolerante de campos del body (strings, listas, booleanos).

Collaborators:
    - hideout_api.identity.auth.require_session
    - hideout_api.application.ResponseMode
===============================================================================
"""

from __future__ import annotations

from typing import Any

from hideout_api.application import ResponseMode
from hideout_api.domain.entities import Hideout, PartyMember
from hideout_api.identity.auth import SessionPayload, require_session

from ..request import ApiRequest


def session_of(request: ApiRequest, *, require_hideout: bool = True) -> SessionPayload:
    return require_session(request.cookies, require_hideout=require_hideout)


def text_field(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ""


def tags_field(data: dict[str, Any], key: str) -> list[str] | None:
    """Lista de tags o None si el cliente no la mandó (no se toca)."""
    value = data.get(key)
    if not isinstance(value, list):
        return None
    return [str(tag).strip() for tag in value if str(tag).strip()]


def member_payload(member: PartyMember, mode: ResponseMode) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": member.id,
        "name": member.name,
        "email": member.email,
        "userId": member.user_id,
        "isGuest": member.is_guest,
        "role": member.role.value,
        "restrictions": list(member.restrictions),
        "likes": list(member.likes),
        "dislikes": list(member.dislikes),
        "hideoutId": member.hideout_id,
    }
    if mode.is_legacy:
        payload["kitchenId"] = member.hideout_id
    return payload


def hideout_payload(hideout: Hideout, mode: ResponseMode) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": hideout.id,
        "name": hideout.name,
        "inviteCode": hideout.invite_code,
        "createdAt": hideout.created_at.isoformat() if hideout.created_at else None,
        "deletedAt": hideout.deleted_at.isoformat() if hideout.deleted_at else None,
        "hideoutId": hideout.id,
    }
    if mode.is_legacy:
        payload["kitchenId"] = hideout.id
    return payload
