"""
===============================================================================
MÓDULO: Excepciones tipadas del backend (errores internos)
===============================================================================

Objetivo
--------
Excepciones internas coherentes, con:
- error_code estable
- error_id para correlación con logs
- message "humana" (sin filtrar secretos)

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  HideoutError + subclases

Responsabilidades:
  - Estandarizar errores internos que luego se mapean a HTTP
  - Transportar metadata del proveedor de IA (retry_after, details)

Colaboradores:
  - api/exception_handlers.py (mapea a AppHTTPException)
  - infrastructure/services (Gemini adapters)
===============================================================================
"""

from __future__ import annotations

from uuid import uuid4


class HideoutError(Exception):
    """Base para errores internos: error_code + error_id + message."""

    error_code: str = "HIDEOUT_ERROR"

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.error_id = error_id or str(uuid4())
        self.original_error = original_error
        super().__init__(message)


class DatabaseError(HideoutError):
    """Errores de DB (conexión, query, timeout, pool)."""

    error_code: str = "DATABASE_ERROR"


class TranslationError(HideoutError):
    """El proveedor de IA no pudo traducir un build."""

    error_code: str = "TRANSLATION_ERROR"


class CraftError(HideoutError):
    """Falla genérica al generar un build con IA."""

    error_code: str = "CRAFT_ERROR"


class CraftDomainMismatchError(CraftError):
    """El pedido no corresponde al dominio soportado (HTTP 422)."""

    error_code: str = "gemini.domain_mismatch"

    def __init__(self, message: str, details: list[str] | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.details = list(details or [])


class CraftQuotaExceededError(CraftError):
    """Cuota del proveedor agotada (HTTP 429, con Retry-After si se conoce)."""

    error_code: str = "gemini.quota_exceeded"

    def __init__(self, message: str, retry_after: int | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after
