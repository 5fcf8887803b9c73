"""
===============================================================================
TARJETA CRC — api/deprecation.py (Anotación de rutas legacy)
===============================================================================

Responsabilidades:
  - Escribir los headers de deprecación en una respuesta ya construida
    (annotate_deprecated), sin tocar body ni status.
  - Contar el uso diario de cada ruta legacy (LegacyUsageTracker): log +
    métrica Prometheus.

Colaboradores:
  - crosscutting.config (legacy_api_sunset / legacy_api_migration_link vía
    container.get_deprecation_policy)
  - crosscutting.metrics.record_legacy_request
  - api/routing.py (llama record() y luego annotate_deprecated())

Reglas:
  - annotate_deprecated no tiene efectos laterales.
  - Un argumento que no es Response es un bug del llamador: TypeError.
  - route/method vacíos se anotan tal cual.
===============================================================================
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timezone

from starlette.responses import Response

from ..crosscutting.logger import logger
from ..crosscutting.metrics import record_legacy_request

DEFAULT_SUNSET = "Wed, 30 Sep 2026 23:59:59 GMT"
DEFAULT_MIGRATION_LINK = "/MIGRATION.md"

HEADER_DEPRECATION = "Deprecation"
HEADER_SUNSET = "Sunset"
HEADER_LINK = "Link"
HEADER_LEGACY_ENDPOINT = "X-Legacy-Endpoint"
HEADER_SUNSET_ROUTE = "X-Sunset-Route"
HEADER_DEPRECATED_METHOD = "X-Deprecated-Method"
HEADER_USAGE_DAY_COUNT = "X-Legacy-Usage-Day-Count"


@dataclass(frozen=True)
class DeprecationPolicy:
    """Fecha de baja (HTTP date) y guía de migración anunciadas en los headers."""

    sunset: str = DEFAULT_SUNSET
    migration_link: str = DEFAULT_MIGRATION_LINK


def annotate_deprecated(
    response: Response,
    route: str,
    method: str,
    *,
    sunset_route: str = "",
    usage_count: int | None = None,
    policy: DeprecationPolicy | None = None,
) -> Response:
    """
    Agrega los headers de deprecación y devuelve el MISMO objeto.

    Args:
        response: respuesta ya renderizada (éxito o error)
        route: template de la ruta legacy ("/api/recipes/{id}")
        method: verbo HTTP (se normaliza a mayúsculas)
        sunset_route: ruta canónica que reemplaza a la legacy
        usage_count: conteo diario (header opcional)
        policy: sunset + link de migración (default: valores de fábrica)

    Raises:
        TypeError: si response no es una Response de Starlette
    """
    if not isinstance(response, Response):
        raise TypeError(
            f"annotate_deprecated expects a Response, got {type(response).__name__}"
        )

    policy = policy or DeprecationPolicy()
    links = [f'<{policy.migration_link}>; rel="deprecation"; type="text/markdown"']
    if sunset_route:
        links.append(f'<{sunset_route}>; rel="successor-version"')

    headers = response.headers
    headers[HEADER_DEPRECATION] = "true"
    headers[HEADER_SUNSET] = policy.sunset
    headers[HEADER_LINK] = ", ".join(links)
    headers[HEADER_LEGACY_ENDPOINT] = route
    headers[HEADER_SUNSET_ROUTE] = sunset_route
    headers[HEADER_DEPRECATED_METHOD] = method.upper()
    if usage_count is not None:
        headers[HEADER_USAGE_DAY_COUNT] = str(usage_count)
    return response


class LegacyUsageTracker:
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      LegacyUsageTracker

    Responsabilidades:
      - Contar requests legacy por (día UTC, METHOD, route)
      - Podar días anteriores (memoria acotada)
      - Emitir log INFO + contador Prometheus por request

    Colaboradores:
      - crosscutting.metrics / crosscutting.logger
    ----------------------------------------------------------------------------
    """

    def __init__(self, clock=None) -> None:
        self._lock = threading.Lock()
        self._counts: dict[tuple[str, str, str], int] = {}
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def record(self, route: str, method: str) -> int:
        """Registra un uso y devuelve el conteo del día para (route, method)."""
        day = self._clock().date().isoformat()
        verb = method.upper()
        key = (day, verb, route)

        with self._lock:
            stale = [k for k in self._counts if k[0] != day]
            for k in stale:
                del self._counts[k]
            count = self._counts.get(key, 0) + 1
            self._counts[key] = count

        record_legacy_request(route, verb)
        logger.info(
            "Legacy API request",
            extra={"route": route, "method": verb, "daily_count": count},
        )
        return count

    def count(self, route: str, method: str) -> int:
        day = self._clock().date().isoformat()
        with self._lock:
            return self._counts.get((day, method.upper(), route), 0)
