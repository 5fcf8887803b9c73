"""
===============================================================================
TARJETA CRC — handlers/craft.py
===============================================================================

Responsibilities:
    - Generar un build para la party con el puerto BuildCrafter.
    - Aceptar miembros como `members` o `party_members` y el contexto
      anidado (`context`) o plano, en cualquier vocabulario.

Collaborators:
    - application.build_contract.normalize_session_context
    - container.get_build_crafter

Notes:
    - CraftDomainMismatchError (422) y CraftQuotaExceededError (429) se
      propagan; api/exception_handlers.py las traduce a RFC7807.
===============================================================================
"""

from __future__ import annotations

from typing import Mapping

from fastapi.responses import JSONResponse

from hideout_api.application import (
    ResponseMode,
    normalize_session_context,
    serialize_build_payload,
)
from hideout_api.container import get_build_crafter
from hideout_api.crosscutting.logger import logger

from ..request import ApiRequest, json_response
from .common import session_of


def craft_build(
    request: ApiRequest,
    params: Mapping[str, str],
    mode: ResponseMode = ResponseMode.CANONICAL,
) -> JSONResponse:
    session = session_of(request)
    body = request.json()

    members = body.get("members")
    if not isinstance(members, list):
        members = body.get("party_members")
    if not isinstance(members, list):
        members = []

    raw_context = body.get("context") if isinstance(body.get("context"), dict) else body
    context = normalize_session_context(
        {**raw_context, "language": body.get("language") or raw_context.get("language")}
    )

    logger.info(
        "Crafting build",
        extra={
            "hideout_id": session.hideout_id,
            "members": len(members),
            "requested_archetype": context["requested_archetype"],
        },
    )
    result = get_build_crafter().craft_build(members, context)
    return json_response(serialize_build_payload(result, mode))
