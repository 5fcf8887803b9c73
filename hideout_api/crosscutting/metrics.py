"""
===============================================================================
ARCHIVO: crosscutting/metrics.py
===============================================================================

CRC CARD (Módulo)
-------------------------------------------------------------------------------
Nombre:
    Métricas (Prometheus)

Responsabilidades:
    - Definir métricas Prometheus en un registry propio del proceso.
    - Proveer funciones pequeñas y estables para registrar eventos/duraciones.
    - Cuidar cardinalidad: los labels de ruta usan el template registrado
      ("/api/recipes/{id}"), nunca el path concreto.
    - Exponer helpers para generar la respuesta /metrics.

Colaboradores:
    - crosscutting.middleware: latencia y conteo HTTP.
    - api.deprecation: uso de rutas legacy.
    - worker.replenishment: ticks del job de reposición.
===============================================================================
"""

from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

_registry = CollectorRegistry()

_requests_total = Counter(
    "hideout_requests_total",
    "Total HTTP requests",
    ["endpoint", "method", "status"],
    registry=_registry,
)
_request_latency = Histogram(
    "hideout_request_latency_seconds",
    "HTTP request latency",
    ["endpoint", "method"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
    registry=_registry,
)

_legacy_requests_total = Counter(
    "hideout_legacy_requests_total",
    "Requests served through deprecated legacy aliases",
    ["route", "method"],
    registry=_registry,
)

_replenishment_runs_total = Counter(
    "hideout_replenishment_runs_total",
    "Replenishment job ticks",
    ["status"],
    registry=_registry,
)
_replenishment_linked_total = Counter(
    "hideout_replenishment_linked_total",
    "Stash items linked to a checklist item by the replenishment job",
    registry=_registry,
)


def record_request_metrics(
    *, endpoint: str, method: str, status_code: int, latency_seconds: float
) -> None:
    _requests_total.labels(
        endpoint=endpoint, method=method, status=str(status_code)
    ).inc()
    _request_latency.labels(endpoint=endpoint, method=method).observe(
        latency_seconds
    )


def record_legacy_request(route: str, method: str) -> None:
    _legacy_requests_total.labels(route=route, method=method.upper()).inc()


def record_replenishment_run(*, linked: int, failed: bool) -> None:
    _replenishment_runs_total.labels(status="failed" if failed else "ok").inc()
    if linked:
        _replenishment_linked_total.inc(linked)


def get_legacy_request_count(route: str, method: str) -> float:
    """Valor actual del contador legacy (tests / diagnóstico)."""
    value = _registry.get_sample_value(
        "hideout_legacy_requests_total",
        {"route": route, "method": method.upper()},
    )
    return value or 0.0


def get_metrics_response() -> tuple[bytes, str]:
    """Body y content-type para el endpoint /metrics."""
    return generate_latest(_registry), CONTENT_TYPE_LATEST
