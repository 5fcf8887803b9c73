"""
===============================================================================
TARJETA CRC — handlers/party_members.py
===============================================================================

Responsibilities:
    - Listar, crear/actualizar y borrar miembros del hideout de la sesión.
    - Vincular un usuario existente cuando el email coincide.
    - Autorizar el borrado (el propio miembro o un ADMIN del hideout).

Collaborators:
    - container.get_party_member_repository / get_user_repository
    - common.member_payload (dialecto hideoutId / kitchenId)

Notes:
    - Ids con prefijo h-, g- o temp- son placeholders del cliente: se crea.
    - El modo solo cambia la forma de la respuesta.
===============================================================================
"""

from __future__ import annotations

from typing import Mapping
from uuid import uuid4

from fastapi.responses import JSONResponse

from hideout_api.application import ResponseMode
from hideout_api.container import get_party_member_repository, get_user_repository
from hideout_api.crosscutting.error_responses import (
    conflict,
    forbidden,
    not_found,
    validation_error,
)
from hideout_api.crosscutting.logger import logger
from hideout_api.domain.entities import PartyMember

from ..request import ApiRequest, json_response
from .common import member_payload, session_of, tags_field, text_field

_PLACEHOLDER_PREFIXES = ("h-", "g-", "temp-")
_MAX_NAME = 50
_MAX_EMAIL = 100
_COLLISION_MESSAGE = "A member with this email address already exists in this hideout."


def _is_persisted_id(member_id: object) -> bool:
    return isinstance(member_id, str) and bool(member_id) and not member_id.startswith(
        _PLACEHOLDER_PREFIXES
    )


def get_party_members(
    request: ApiRequest,
    params: Mapping[str, str],
    mode: ResponseMode = ResponseMode.CANONICAL,
) -> JSONResponse:
    session = session_of(request)
    members = get_party_member_repository().list_members(session.hideout_id)
    return json_response([member_payload(m, mode) for m in members])


def save_party_member(
    request: ApiRequest,
    params: Mapping[str, str],
    mode: ResponseMode = ResponseMode.CANONICAL,
) -> JSONResponse:
    """
    Upsert de miembro.

    Errores:
        400 nombre vacío / > 50 o email > 100
        404 id desconocido, 403 id de otro hideout
        409 el usuario vinculado ya es otro miembro del hideout
    """
    session = session_of(request)
    hideout_id = session.hideout_id
    data = request.json()

    name = text_field(data, "name")
    if not name or len(name) > _MAX_NAME:
        raise validation_error("Name is required and must be under 50 characters.")
    email = text_field(data, "email") or None
    if email and len(email) > _MAX_EMAIL:
        raise validation_error("Email must be under 100 characters.")

    members = get_party_member_repository()
    linked_user = get_user_repository().get_user_by_email(email) if email else None
    user_id = linked_user.id if linked_user else None
    is_guest = data.get("isGuest")

    member_id = data.get("id")
    if _is_persisted_id(member_id):
        existing = members.get_member(member_id)
        if existing is None:
            raise not_found("Member", member_id)
        if existing.hideout_id != hideout_id:
            raise forbidden()
        if user_id:
            collision = members.get_member_by_user(hideout_id, user_id)
            if collision is not None and collision.id != member_id:
                raise conflict(_COLLISION_MESSAGE)

        existing.name = name
        existing.email = email
        for field_name in ("restrictions", "likes", "dislikes"):
            tags = tags_field(data, field_name)
            if tags is not None:
                setattr(existing, field_name, tags)
        if isinstance(is_guest, bool):
            existing.is_guest = is_guest
        if user_id:
            existing.user_id = user_id
        member = members.update_member(existing)
    else:
        if user_id and members.get_member_by_user(hideout_id, user_id) is not None:
            raise conflict(_COLLISION_MESSAGE)
        member = members.create_member(
            PartyMember(
                id=str(uuid4()),
                hideout_id=hideout_id,
                name=name,
                email=email,
                user_id=user_id,
                is_guest=is_guest if isinstance(is_guest, bool) else user_id is None,
                restrictions=tags_field(data, "restrictions") or [],
                likes=tags_field(data, "likes") or [],
                dislikes=tags_field(data, "dislikes") or [],
            )
        )

    logger.info(
        "Party member saved",
        extra={"member_id": member.id, "hideout_id": hideout_id, "linked": bool(user_id)},
    )
    return json_response(member_payload(member, mode))


def delete_party_member(request: ApiRequest, params: Mapping[str, str]) -> JSONResponse:
    session = session_of(request)
    member_id = params["id"]
    members = get_party_member_repository()

    member = members.get_member(member_id)
    if member is None:
        raise not_found("Member", member_id)

    authorized = member.user_id == session.user_id
    if not authorized:
        requester = members.get_member_by_user(member.hideout_id, session.user_id)
        authorized = requester is not None and requester.is_admin
    if not authorized:
        raise forbidden()

    members.delete_member(member_id)
    logger.info(
        "Party member deleted",
        extra={"member_id": member_id, "hideout_id": member.hideout_id},
    )
    return json_response({"success": True})
