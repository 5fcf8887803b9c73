"""
===============================================================================
TARJETA CRC — identity/auth.py
===============================================================================

Módulo:
    Sesión de usuario (JWT en cookie)

Responsabilidades:
    - Emitir y decodificar el token de sesión (HS256, PyJWT).
    - Resolver la sesión desde las cookies del request (auth_token).
    - Aceptar el claim histórico kitchenId como alias de hideoutId.

Colaboradores:
    - crosscutting.config.get_settings: secreto y nombre de cookie.
    - crosscutting.error_responses.unauthorized: 401 estándar.
    - interfaces/api/http/handlers: llaman require_session().

Notas:
    - La emisión del token (login) vive fuera de este servicio; create_session_token
      existe para tooling y tests.
    - Nunca se loguea el token.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Mapping

import jwt

from ..crosscutting.config import get_settings
from ..crosscutting.error_responses import unauthorized

JWT_ALGORITHM = "HS256"

CLAIM_USER_ID = "userId"
CLAIM_HIDEOUT_ID = "hideoutId"
CLAIM_LEGACY_HIDEOUT_ID = "kitchenId"
CLAIM_NAME = "name"
CLAIM_EXP = "exp"


@dataclass(frozen=True, slots=True)
class SessionPayload:
    """Claims que usan los handlers."""

    user_id: str
    hideout_id: str | None
    name: str = ""


def create_session_token(
    user_id: str,
    hideout_id: str | None = None,
    *,
    name: str = "",
    ttl_minutes: int = 60 * 24 * 7,
    secret: str | None = None,
) -> str:
    now = datetime.now(timezone.utc)
    payload: dict[str, object] = {
        CLAIM_USER_ID: user_id,
        CLAIM_NAME: name,
        CLAIM_EXP: int((now + timedelta(minutes=ttl_minutes)).timestamp()),
    }
    if hideout_id:
        payload[CLAIM_HIDEOUT_ID] = hideout_id
    return jwt.encode(payload, secret or get_settings().jwt_secret, algorithm=JWT_ALGORITHM)


def decode_session_token(token: str, *, secret: str | None = None) -> SessionPayload:
    """
    Decodifica y valida el token de sesión.

    Errores:
        - 401 si expiró, la firma es inválida o falta userId.
    """
    try:
        payload = jwt.decode(
            token,
            secret or get_settings().jwt_secret,
            algorithms=[JWT_ALGORITHM],
        )
    except jwt.ExpiredSignatureError as exc:
        raise unauthorized("Session expired") from exc
    except jwt.InvalidTokenError as exc:
        raise unauthorized("Invalid session") from exc

    user_id = payload.get(CLAIM_USER_ID)
    if not user_id:
        raise unauthorized("Invalid session")

    hideout_id = payload.get(CLAIM_HIDEOUT_ID) or payload.get(CLAIM_LEGACY_HIDEOUT_ID)
    return SessionPayload(
        user_id=str(user_id),
        hideout_id=str(hideout_id) if hideout_id else None,
        name=str(payload.get(CLAIM_NAME) or ""),
    )


def require_session(
    cookies: Mapping[str, str], *, require_hideout: bool = True
) -> SessionPayload:
    """Sesión del request o 401. Por defecto exige un hideout activo en el token."""
    token = cookies.get(get_settings().auth_cookie_name)
    if not token:
        raise unauthorized()

    session = decode_session_token(token)
    if require_hideout and not session.hideout_id:
        raise unauthorized()
    return session
