"""
===============================================================================
TARJETA CRC — crosscutting/middleware.py (RequestContextMiddleware)
===============================================================================

Responsabilidades:
  - Asignar un request_id por request: respeta X-Request-Id entrante si es
    razonable, si no genera un uuid4. Lo devuelve en la respuesta.
  - Abrir/cerrar el contexto de logging (hideout_api/context.py).
  - Registrar latencia y status en Prometheus con el template de ruta.

Colaboradores:
  - hideout_api/context.py
  - crosscutting/metrics.record_request_metrics
  - crosscutting/logger

Notas:
  - request.state.request_id lo usan los renderers RFC7807.
  - /healthz y /metrics no generan log por request (ruido de healthchecks).
===============================================================================
"""

from __future__ import annotations

import time
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from ..context import clear_context, set_request_context
from .logger import logger
from .metrics import record_request_metrics

REQUEST_ID_HEADER = "X-Request-Id"
_MAX_REQUEST_ID_LEN = 128
_UNLOGGED_PATHS = frozenset({"/healthz", "/metrics"})


def _pick_request_id(incoming: str | None) -> str:
    candidate = (incoming or "").strip()
    if candidate and len(candidate) <= _MAX_REQUEST_ID_LEN:
        return candidate
    return str(uuid4())


def _route_template(request: Request) -> str:
    # R: template ("/api/builds/{id}"), nunca el path concreto.
    return getattr(request.scope.get("route"), "path", None) or "unmatched"


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = _pick_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        set_request_context(
            request_id=request_id, method=request.method, path=request.url.path
        )

        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        except Exception:
            logger.exception("Request crashed outside the exception handlers")
            raise
        finally:
            elapsed = time.perf_counter() - started
            record_request_metrics(
                endpoint=_route_template(request),
                method=request.method,
                status_code=status_code,
                latency_seconds=elapsed,
            )
            if request.url.path not in _UNLOGGED_PATHS:
                logger.info(
                    "Request completed",
                    extra={
                        "status_code": status_code,
                        "latency_ms": round(elapsed * 1000, 2),
                    },
                )
            clear_context()
