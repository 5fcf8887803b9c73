"""
===============================================================================
TARJETA CRC — crosscutting/error_responses.py (Problem Details, RFC 7807)
===============================================================================

Responsabilidades:
  - Catálogo estable de códigos de error (ErrorCode) para el frontend.
  - AppHTTPException: el error HTTP tipado que lanzan los handlers.
  - Factories cortas para los casos frecuentes (400/401/403/404/409/410/429/5xx).
  - Renderizar el cuerpo application/problem+json con request_id.

Colaboradores:
  - crosscutting/middleware.py (request.state.request_id)
  - api/exception_handlers.py (traduce errores internos a AppHTTPException)
  - interfaces/api/http/handlers/* (lanzan las factories)

Notas:
  - `instance` es el path canónico del recurso: una ruta legacy y su
    canónica producen el mismo cuerpo de error.
===============================================================================
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

PROBLEM_JSON_MEDIA_TYPE = "application/problem+json"


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    GONE = "GONE"
    AI_DOMAIN_MISMATCH = "AI_DOMAIN_MISMATCH"
    RATE_LIMITED = "RATE_LIMITED"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    AI_SERVICE_ERROR = "AI_SERVICE_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


class ErrorDetail(BaseModel):
    """Cuerpo problem+json; `code` y `errors` son extensiones propias."""

    type: str = "about:blank"
    title: str
    status: int
    detail: str
    code: ErrorCode
    instance: str | None = None
    errors: list[dict[str, Any]] | None = None


class AppHTTPException(HTTPException):
    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        detail: str,
        errors: list[dict[str, Any]] | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.code = code
        self.errors = errors


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------
def validation_error(
    detail: str, errors: list[dict[str, Any]] | None = None
) -> AppHTTPException:
    return AppHTTPException(400, ErrorCode.VALIDATION_ERROR, detail, errors)


def unauthorized(detail: str = "Authentication required") -> AppHTTPException:
    return AppHTTPException(401, ErrorCode.UNAUTHORIZED, detail)


def forbidden(detail: str = "Access denied") -> AppHTTPException:
    return AppHTTPException(403, ErrorCode.FORBIDDEN, detail)


def not_found(resource: str, identifier: str = "") -> AppHTTPException:
    label = f"{resource} '{identifier}'" if identifier else resource
    return AppHTTPException(404, ErrorCode.NOT_FOUND, f"{label} not found")


def conflict(detail: str) -> AppHTTPException:
    return AppHTTPException(409, ErrorCode.CONFLICT, detail)


def gone(detail: str) -> AppHTTPException:
    return AppHTTPException(410, ErrorCode.GONE, detail)


def domain_mismatch(detail: str, details: list[str] | None = None) -> AppHTTPException:
    return AppHTTPException(
        422,
        ErrorCode.AI_DOMAIN_MISMATCH,
        detail,
        [{"code": "gemini.domain_mismatch", "details": list(details or [])}],
    )


def rate_limited(retry_after: int | None = None) -> AppHTTPException:
    if retry_after:
        detail, headers = f"Too many requests. Retry in {retry_after}s", {
            "Retry-After": str(retry_after)
        }
    else:
        detail, headers = "Too many requests", None
    return AppHTTPException(
        429,
        ErrorCode.RATE_LIMITED,
        detail,
        errors=[{"code": "gemini.quota_exceeded", "retryAfterSeconds": retry_after}],
        headers=headers,
    )


def internal_error(detail: str = "Unexpected error") -> AppHTTPException:
    return AppHTTPException(500, ErrorCode.INTERNAL_ERROR, detail)


def ai_service_error(detail: str) -> AppHTTPException:
    return AppHTTPException(502, ErrorCode.AI_SERVICE_ERROR, detail)


def database_error(detail: str = "Database operation failed") -> AppHTTPException:
    return AppHTTPException(503, ErrorCode.DATABASE_ERROR, detail)


# ---------------------------------------------------------------------------
# Render
# ---------------------------------------------------------------------------
async def app_exception_handler(
    request: Request, exc: AppHTTPException, *, instance: str | None = None
) -> JSONResponse:
    errors = list(exc.errors or [])
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        errors.append({"request_id": request_id})

    problem = ErrorDetail(
        type=f"about:blank/{exc.code.value.lower()}",
        title=exc.code.value.replace("_", " ").capitalize(),
        status=exc.status_code,
        detail=str(exc.detail),
        code=exc.code,
        instance=instance or request.url.path,
        errors=errors or None,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=problem.model_dump(mode="json", exclude_none=True),
        headers=exc.headers,
        media_type=PROBLEM_JSON_MEDIA_TYPE,
    )
