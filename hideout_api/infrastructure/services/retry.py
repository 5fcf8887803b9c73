"""
===============================================================================
TARJETA CRC — infrastructure/services/retry.py (Reintentos hacia Gemini)
===============================================================================

Responsabilidades:
  - Clasificar fallas del proveedor de IA: reintentables o definitivas.
  - Armar el decorator `tenacity` (backoff exponencial + jitter) con los
    límites de Settings.

Colaboradores:
  - tenacity
  - crosscutting.config.get_settings (RETRY_MAX_ATTEMPTS / delays)
  - google_build_services (envuelve models.generate_content)

Reglas:
  - Se reintenta: 408, 5xx, timeouts y cortes de conexión.
  - NO se reintenta 429: la cuota agotada vuelve al cliente con Retry-After.
  - NO se reintentan 4xx de request (prompt inválido, key inválida).
===============================================================================
"""

from __future__ import annotations

from typing import Callable, TypeVar

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from ...crosscutting.config import get_settings
from ...crosscutting.logger import logger

T = TypeVar("T")

RETRYABLE_STATUS: frozenset[int] = frozenset({408, 500, 502, 503, 504})
QUOTA_STATUS = 429


def get_http_status_code(exception: BaseException) -> int | None:
    """Status HTTP de un error de google-genai (`code`) o de httpx (`response`)."""
    for candidate in (
        getattr(exception, "code", None),
        getattr(exception, "status_code", None),
        getattr(getattr(exception, "response", None), "status_code", None),
    ):
        if isinstance(candidate, int) and candidate >= 100:
            return candidate
    return None


def is_transient_error(exception: BaseException) -> bool:
    status = get_http_status_code(exception)
    if status is not None:
        return status in RETRYABLE_STATUS

    if isinstance(exception, (TimeoutError, ConnectionError)):
        return True

    # R: httpx/google-genai no siempre heredan de las builtins.
    name = type(exception).__name__.lower()
    return "timeout" in name or "connect" in name


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Retrying Gemini call",
        extra={
            "attempt": retry_state.attempt_number,
            "wait_seconds": round(retry_state.next_action.sleep, 2)
            if retry_state.next_action
            else 0,
            "error_type": type(exc).__name__ if exc else None,
            "status_code": get_http_status_code(exc) if exc else None,
        },
    )


def create_retry_decorator(
    max_attempts: int | None = None,
    base_delay: float | None = None,
    max_delay: float | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    settings = get_settings()
    attempts = settings.retry_max_attempts if max_attempts is None else max_attempts
    initial = settings.retry_base_delay_seconds if base_delay is None else base_delay
    ceiling = settings.retry_max_delay_seconds if max_delay is None else max_delay

    if attempts <= 0:
        raise ValueError("max_attempts must be > 0")
    if initial < 0 or ceiling <= 0:
        raise ValueError("retry delays must be non-negative with max_delay > 0")

    return retry(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential_jitter(initial=initial, max=ceiling, jitter=initial),
        retry=retry_if_exception(is_transient_error),
        before_sleep=_log_retry,
        reraise=True,
    )
