"""
===============================================================================
TARJETA CRC — hideout_api/context.py (Contexto por request / tick del job)
===============================================================================

Responsabilidades:
  - Guardar request_id, method, path y la ruta legacy de entrada en
    ContextVars, para que cada línea de log salga correlacionada.

Colaboradores:
  - crosscutting.middleware: abre el contexto de cada request HTTP.
  - api.routing: marca legacy_route cuando entra por un alias deprecado.
  - worker.replenishment: un request_id sintético por tick.
  - crosscutting.logger: lee get_context_dict().

Restricciones:
  - Solo strings; "" significa "no disponible" y no se loguea.
===============================================================================
"""

from __future__ import annotations

from contextvars import ContextVar

request_id_var: ContextVar[str] = ContextVar("request_id", default="")
http_method_var: ContextVar[str] = ContextVar("http_method", default="")
http_path_var: ContextVar[str] = ContextVar("http_path", default="")
legacy_route_var: ContextVar[str] = ContextVar("legacy_route", default="")

# Clave en el log -> ContextVar.
_LOG_FIELDS: dict[str, ContextVar[str]] = {
    "request_id": request_id_var,
    "method": http_method_var,
    "path": http_path_var,
    "legacy_route": legacy_route_var,
}


def set_request_context(
    *, request_id: str = "", method: str = "", path: str = ""
) -> None:
    request_id_var.set(request_id or "")
    http_method_var.set(method or "")
    http_path_var.set(path or "")


def get_context_dict() -> dict[str, str]:
    return {key: value for key, var in _LOG_FIELDS.items() if (value := var.get())}


def clear_context() -> None:
    for var in _LOG_FIELDS.values():
        var.set("")
