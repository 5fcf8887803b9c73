"""
===============================================================================
TARJETA CRC — api/exception_handlers.py (Manejo Centralizado de Excepciones)
===============================================================================

Responsabilidades:
  - Traducir excepciones de la aplicación a respuestas HTTP RFC7807.
  - Centralizar logging de errores con request_id + error_id.
  - Evitar filtrar detalles internos en errores no controlados.
  - Ser el ÚNICO renderer de errores: lo usan los exception handlers de
    FastAPI y el adaptador de rutas (api/routing.py), así una ruta legacy y
    su canónica devuelven el mismo error.

Colaboradores:
  - crosscutting.error_responses: AppHTTPException, ErrorCode, app_exception_handler
  - crosscutting.exceptions: HideoutError y derivadas
  - crosscutting.config.get_settings (para decidir nivel de detalle)
===============================================================================
"""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..crosscutting.config import get_settings
from ..crosscutting.error_responses import (
    AppHTTPException,
    ErrorCode,
    ai_service_error,
    app_exception_handler,
    database_error,
    domain_mismatch,
    internal_error,
    rate_limited,
)
from ..crosscutting.exceptions import (
    CraftDomainMismatchError,
    CraftError,
    CraftQuotaExceededError,
    DatabaseError,
    HideoutError,
    TranslationError,
)
from ..crosscutting.logger import logger

_STATUS_CODES: dict[int, ErrorCode] = {
    400: ErrorCode.VALIDATION_ERROR,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.CONFLICT,
    410: ErrorCode.GONE,
    429: ErrorCode.RATE_LIMITED,
}


def _request_id_from(request: Request) -> str | None:
    return getattr(getattr(request, "state", None), "request_id", None)


def _service_error(
    request: Request, exc: HideoutError, problem: AppHTTPException
) -> AppHTTPException:
    """Loguea el error tipado y adjunta su error_id al problem."""
    logger.error(
        "Error de servicio",
        extra={
            "code": problem.code.value,
            "error_id": exc.error_id,
            "error_message": exc.message,
            "request_id": _request_id_from(request),
        },
    )
    problem.errors = [{"error_id": exc.error_id}]
    return problem


def _to_app_exception(request: Request, exc: Exception) -> AppHTTPException:
    if isinstance(exc, AppHTTPException):
        return exc

    if isinstance(exc, StarletteHTTPException):
        code = _STATUS_CODES.get(exc.status_code)
        if code is None:
            code = (
                ErrorCode.INTERNAL_ERROR
                if exc.status_code >= 500
                else ErrorCode.VALIDATION_ERROR
            )
        return AppHTTPException(
            exc.status_code, code, str(exc.detail), headers=exc.headers
        )

    if isinstance(exc, CraftDomainMismatchError):
        logger.warning(
            "Craft request outside the build domain",
            extra={"error_id": exc.error_id, "details": exc.details},
        )
        return domain_mismatch(exc.message, exc.details)

    if isinstance(exc, CraftQuotaExceededError):
        logger.warning(
            "AI quota exceeded",
            extra={"error_id": exc.error_id, "retry_after": exc.retry_after},
        )
        return rate_limited(exc.retry_after)

    if isinstance(exc, DatabaseError):
        return _service_error(request, exc, database_error(exc.message))

    if isinstance(exc, (TranslationError, CraftError)):
        return _service_error(request, exc, ai_service_error(exc.message))

    if isinstance(exc, HideoutError):
        # R: Errores base: tratamos como INTERNAL_ERROR por defecto.
        return _service_error(request, exc, internal_error(exc.message))

    logger.error(
        "Excepción no controlada",
        exc_info=(type(exc), exc, exc.__traceback__),
        extra={"request_id": _request_id_from(request), "error": str(exc)},
    )
    # R: En desarrollo ayudamos un poco más; en producción evitamos filtrar detalles.
    detail = "Error interno." if get_settings().is_production() else str(exc)
    return internal_error(detail)


async def render_exception(
    request: Request, exc: Exception, *, instance: str | None = None
) -> JSONResponse:
    """
    Renderiza cualquier excepción como RFC7807.

    instance: path del recurso; el adaptador de rutas pasa el path canónico.
    """
    return await app_exception_handler(
        request, _to_app_exception(request, exc), instance=instance
    )


def register_exception_handlers(app) -> None:
    """
    Registra handlers en la app FastAPI.

    Importante:
      - AppHTTPException debe registrarse para respetar RFC7807.
      - Exception genérica se registra al final como fallback.
    """
    app.add_exception_handler(AppHTTPException, render_exception)
    app.add_exception_handler(StarletteHTTPException, render_exception)
    app.add_exception_handler(HideoutError, render_exception)
    app.add_exception_handler(Exception, render_exception)


__all__ = ["register_exception_handlers", "render_exception"]
