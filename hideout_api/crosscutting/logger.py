"""
===============================================================================
TARJETA CRC — crosscutting/logger.py (Logging JSON del proceso)
===============================================================================

Responsabilidades:
  - Un evento = una línea JSON (timestamp, level, message, origen).
  - Adjuntar el contexto de la request en curso (request_id, method, path,
    legacy_route) leído de contextvars.
  - Ocultar secretos: cookie de sesión, JWT_SECRET, API keys, DATABASE_URL.

Colaboradores:
  - hideout_api/context.get_context_dict
  - crosscutting/config.get_settings (LOG_LEVEL / LOG_JSON)

Notas:
  - El logger "hideout-api" propaga al root: pytest (caplog) lo ve.
  - Los campos `extra={...}` viajan tal cual, salvo los redactados.
===============================================================================
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Any

LOGGER_NAME = "hideout-api"
REDACTED = "***REDACTED***"

# Atributos propios de cualquier LogRecord; lo demás vino por `extra`.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}

_SECRET_KEYS = frozenset(
    {
        "auth_token",
        "authorization",
        "cookie",
        "set-cookie",
        "password",
        "secret",
        "jwt_secret",
        "token",
        "api_key",
        "google_api_key",
        "database_url",
    }
)

_MAX_VALUE_CHARS = 4_000
_MAX_DEPTH = 4


def _scrub(value: Any, depth: int = 0) -> Any:
    """Redacta claves sensibles en dicts anidados y acota strings largos."""
    if depth > _MAX_DEPTH:
        return "***TRUNCATED***"
    if isinstance(value, dict):
        return {
            str(k): REDACTED if str(k).lower() in _SECRET_KEYS else _scrub(v, depth + 1)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple, set)):
        return [_scrub(v, depth + 1) for v in value]
    if isinstance(value, (bytes, bytearray)):
        return f"<{len(value)} bytes>"
    if isinstance(value, str) and len(value) > _MAX_VALUE_CHARS:
        return value[:_MAX_VALUE_CHARS] + "…"
    return value


class JSONFormatter(logging.Formatter):
    """LogRecord -> JSON con contexto de request y extras redactados."""

    def format(self, record: logging.LogRecord) -> str:
        from ..context import get_context_dict

        event: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "pid": os.getpid(),
            **get_context_dict(),
        }

        extras = {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}
        event.update(_scrub(extras))

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, tb = record.exc_info
            event["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "stacktrace": traceback.format_exception(exc_type, exc, tb),
            }

        return json.dumps(event, ensure_ascii=False, default=str, separators=(",", ":"))


def setup_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """
    Configura el logger de la app (idempotente ante reimports).

    Si Settings no valida todavía, arranca en INFO/JSON: el error real se
    reporta cuando el lifespan pide la configuración.
    """
    from pydantic import ValidationError

    from .config import get_settings

    try:
        settings = get_settings()
        level, as_json = (settings.log_level or "INFO").upper(), settings.log_json
    except ValidationError:
        level, as_json = "INFO", True

    log = logging.getLogger(name)
    log.setLevel(getattr(logging, level, logging.INFO))

    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            JSONFormatter() if as_json else logging.Formatter("%(levelname)s %(name)s %(message)s")
        )
        log.addHandler(handler)

    return log


logger = setup_logger()
