"""
===============================================================================
TARJETA CRC — application/response_mode.py (Dialecto de respuesta)
===============================================================================

Responsabilidades:
  - Nombrar los dos dialectos que produce un handler dual:
      * CANONICAL: vocabulario actual (build_*, hideoutId)
      * LEGACY: vocabulario actual + alias recipe-era (recipe_title, kitchenId, ...)

Reglas:
  - El modo se fija al registrar la ruta; nunca se deriva del request.
  - El modo solo cambia la forma de la respuesta; lecturas, escrituras y
    validaciones son idénticas en ambos modos.
===============================================================================
"""

from __future__ import annotations

from enum import Enum


class ResponseMode(str, Enum):
    CANONICAL = "canonical"
    LEGACY = "legacy"

    @property
    def is_legacy(self) -> bool:
        return self is ResponseMode.LEGACY
