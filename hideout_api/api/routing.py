"""
===============================================================================
TARJETA CRC — api/routing.py (Adaptador genérico de rutas)
===============================================================================

Responsabilidades:
  - Convertir un registro de ruta (canónica o alias legacy) en un endpoint
    FastAPI, sin duplicar lógica por ruta.
  - Resolver path params (renombrándolos vía param_map) y leer el body.
  - Invocar el handler canónico en el threadpool con el modo del registro.
  - Renderizar errores con el MISMO renderer de la app (render_exception).
  - En rutas legacy: contar el uso y anotar la respuesta (éxito o error).

Colaboradores:
  - interfaces/api/http/request.ApiRequest
  - interfaces/api/http/routes.CANONICAL_ROUTES
  - api/exception_handlers.render_exception
  - api/deprecation.annotate_deprecated + container (tracker / policy)

Reglas:
  - El status del handler nunca se modifica.
  - Ningún error se suprime ni se reclasifica en la ruta legacy.
===============================================================================
"""

from __future__ import annotations

import re
from typing import Callable, Mapping

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from ..application import ResponseMode
from ..container import get_deprecation_policy, get_legacy_usage_tracker
from ..context import legacy_route_var
from ..interfaces.api.http.request import ApiRequest
from ..interfaces.api.http.routes import CANONICAL_ROUTES
from .deprecation import annotate_deprecated
from .exception_handlers import render_exception

PATH_PARAM_PATTERN = re.compile(r"\{([^}:]+)(?::[^}]*)?\}")


def resolve_params(
    path_params: Mapping[str, str], param_map: Mapping[str, str] | None = None
) -> dict[str, str]:
    """Renombra params legacy a los nombres canónicos (kitchenId -> hideoutId)."""
    mapping = param_map or {}
    return {mapping.get(name, name): str(value) for name, value in path_params.items()}


def expand_path(template: str, params: Mapping[str, str]) -> str:
    """Path concreto a partir del template canónico ("/api/builds/{id}")."""
    return PATH_PARAM_PATTERN.sub(lambda m: params.get(m.group(1), m.group(0)), template)


def build_endpoint(
    *,
    handler: Callable[..., Response],
    mode: ResponseMode | None,
    method: str,
    canonical_path: str,
    legacy_path: str | None = None,
    param_map: Mapping[str, str] | None = None,
):
    """
    Crea el endpoint async para un registro de ruta.

    mode=None: el handler no es dual y se invoca sin modo.
    legacy_path: si está presente la respuesta se anota como deprecada.
    """
    verb = method.upper()

    async def endpoint(request: Request):
        params = resolve_params(request.path_params, param_map)
        if legacy_path:
            legacy_route_var.set(legacy_path)

        try:
            api_request = await ApiRequest.from_starlette(request)
            if mode is None:
                response = await run_in_threadpool(handler, api_request, params)
            else:
                response = await run_in_threadpool(handler, api_request, params, mode)
        except Exception as exc:
            response = await render_exception(
                request, exc, instance=expand_path(canonical_path, params)
            )

        if not legacy_path:
            return response

        usage_count = get_legacy_usage_tracker().record(legacy_path, verb)
        return annotate_deprecated(
            response,
            legacy_path,
            verb,
            sunset_route=canonical_path,
            usage_count=usage_count,
            policy=get_deprecation_policy(),
        )

    endpoint.__name__ = handler.__name__
    return endpoint


def build_canonical_router() -> APIRouter:
    """Router con todas las rutas canónicas de /api."""
    router = APIRouter()
    for binding in CANONICAL_ROUTES:
        router.add_api_route(
            binding.path,
            build_endpoint(
                handler=binding.handler,
                mode=ResponseMode.CANONICAL if binding.dual else None,
                method=binding.method,
                canonical_path=binding.path,
            ),
            methods=[binding.method],
            tags=[binding.tag],
            name=binding.handler.__name__,
        )
    return router
