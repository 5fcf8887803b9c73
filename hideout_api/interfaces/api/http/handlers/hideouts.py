"""
===============================================================================
TARJETA CRC — handlers/hideouts.py
===============================================================================

Responsibilities:
    - Crear un hideout (el creador queda como ADMIN).
    - Leer el hideout de la sesión.
    - Unirse por código de invitación.
    - Renombrar y dar de baja (soft delete) un hideout, solo ADMIN.

Collaborators:
    - container.get_hideout_repository / get_party_member_repository /
      get_user_repository
    - common.hideout_payload

Notes:
    - Los mensajes de join son claves i18n (api.*) que el frontend traduce.
===============================================================================
"""

from __future__ import annotations

import secrets
import string
from typing import Mapping
from uuid import uuid4

from fastapi.responses import JSONResponse

from hideout_api.application import ResponseMode
from hideout_api.container import (
    get_hideout_repository,
    get_party_member_repository,
    get_user_repository,
)
from hideout_api.crosscutting.error_responses import (
    AppHTTPException,
    ErrorCode,
    forbidden,
    gone,
    not_found,
    unauthorized,
    validation_error,
)
from hideout_api.crosscutting.logger import logger
from hideout_api.domain.entities import Hideout, MemberRole, PartyMember

from ..request import ApiRequest, json_response
from .common import hideout_payload, session_of, text_field

INVITE_CODE_LENGTH = 6
_INVITE_ALPHABET = string.ascii_uppercase + string.digits
_INVITE_CODE_ATTEMPTS = 5


def generate_invite_code() -> str:
    return "".join(secrets.choice(_INVITE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))


def _unique_invite_code() -> str:
    hideouts = get_hideout_repository()
    for _ in range(_INVITE_CODE_ATTEMPTS):
        code = generate_invite_code()
        if hideouts.get_hideout_by_invite_code(code) is None:
            return code
    raise AppHTTPException(500, ErrorCode.INTERNAL_ERROR, "Could not allocate an invite code")


def _require_admin(user_id: str, hideout_id: str) -> None:
    membership = get_party_member_repository().get_member_by_user(hideout_id, user_id)
    if membership is None or not membership.is_admin:
        raise forbidden("Forbidden")


def create_hideout(
    request: ApiRequest,
    params: Mapping[str, str],
    mode: ResponseMode = ResponseMode.CANONICAL,
) -> JSONResponse:
    name = text_field(request.json(), "name")
    if not name:
        raise validation_error("Hideout name is required")

    session = session_of(request, require_hideout=False)
    user = get_user_repository().get_user(session.user_id)
    if user is None:
        raise not_found("User", session.user_id)

    hideout = get_hideout_repository().create_hideout(
        Hideout(id=str(uuid4()), name=name, invite_code=_unique_invite_code())
    )
    get_party_member_repository().create_member(
        PartyMember(
            id=str(uuid4()),
            hideout_id=hideout.id,
            name=user.name or "Admin",
            email=user.email,
            user_id=user.id,
            is_guest=False,
            role=MemberRole.ADMIN,
        )
    )
    logger.info("Hideout created", extra={"hideout_id": hideout.id, "user_id": user.id})
    return json_response(hideout_payload(hideout, mode))


def get_current_hideout(
    request: ApiRequest,
    params: Mapping[str, str],
    mode: ResponseMode = ResponseMode.CANONICAL,
) -> JSONResponse:
    session = session_of(request)
    hideout = get_hideout_repository().get_hideout(session.hideout_id)
    if hideout is None:
        raise not_found("Hideout")
    return json_response(hideout_payload(hideout, mode))


def join_hideout(
    request: ApiRequest,
    params: Mapping[str, str],
    mode: ResponseMode = ResponseMode.CANONICAL,
) -> JSONResponse:
    """
    Unión por código.

    400 api.inviteRequired, 401 sin sesión, 404 api.kitchenNotFound,
    410 api.kitchenDeleted; si ya es miembro responde api.alreadyMember.
    """
    code = text_field(request.json(), "code")
    if not code:
        raise validation_error("api.inviteRequired")
    session = session_of(request, require_hideout=False)

    hideout = get_hideout_repository().get_hideout_by_invite_code(code)
    if hideout is None:
        raise AppHTTPException(404, ErrorCode.NOT_FOUND, "api.kitchenNotFound")
    if hideout.is_deleted:
        raise gone("api.kitchenDeleted")

    members = get_party_member_repository()
    if members.get_member_by_user(hideout.id, session.user_id) is not None:
        message = "api.alreadyMember"
    else:
        user = get_user_repository().get_user(session.user_id)
        if user is None:
            raise unauthorized("api.unauthorized")
        members.create_member(
            PartyMember(
                id=str(uuid4()),
                hideout_id=hideout.id,
                name=user.name or "New Member",
                email=user.email,
                user_id=user.id,
                is_guest=True,
                role=MemberRole.MEMBER,
            )
        )
        message = "api.joinSuccess"
        logger.info("Hideout joined", extra={"hideout_id": hideout.id, "user_id": user.id})

    payload = {"message": message, "hideoutId": hideout.id, "name": hideout.name}
    if mode.is_legacy:
        payload["kitchenId"] = hideout.id
    return json_response(payload)


def update_hideout(
    request: ApiRequest,
    params: Mapping[str, str],
    mode: ResponseMode = ResponseMode.CANONICAL,
) -> JSONResponse:
    name = text_field(request.json(), "name")
    if not name:
        raise validation_error("Name is required")
    session = session_of(request, require_hideout=False)
    hideout_id = params["hideoutId"]
    _require_admin(session.user_id, hideout_id)

    hideout = get_hideout_repository().rename_hideout(hideout_id, name)
    if hideout is None:
        raise not_found("Hideout", hideout_id)
    return json_response(hideout_payload(hideout, mode))


def delete_hideout(
    request: ApiRequest,
    params: Mapping[str, str],
    mode: ResponseMode = ResponseMode.CANONICAL,
) -> JSONResponse:
    session = session_of(request, require_hideout=False)
    hideout_id = params["hideoutId"]
    _require_admin(session.user_id, hideout_id)

    hideouts = get_hideout_repository()
    hideouts.soft_delete_hideout(hideout_id)
    hideout = hideouts.get_hideout(hideout_id)
    if hideout is None:
        raise not_found("Hideout", hideout_id)
    logger.info("Hideout soft-deleted", extra={"hideout_id": hideout_id})
    return json_response(hideout_payload(hideout, mode))
