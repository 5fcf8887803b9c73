"""
===============================================================================
TARJETA CRC — domain/services.py (Puertos de servicios externos)
===============================================================================

Responsabilidades:
  - Definir los contratos de IA que usan los handlers de builds:
      * BuildTranslator: traduce un payload de build a otro idioma.
      * BuildCrafter: genera un build a partir de miembros + contexto.

Colaboradores:
  - infrastructure/services/google_build_services.py (Gemini)
  - infrastructure/services/fake_build_services.py (determinístico)

Reglas:
  - Los payloads viajan en vocabulario canónico (dict normalizado).
  - Los errores del proveedor se expresan con crosscutting.exceptions.
===============================================================================
"""

from __future__ import annotations

from typing import Any, Protocol


class BuildTranslator(Protocol):
    def translate_build(
        self, build: dict[str, Any], target_language: str
    ) -> dict[str, Any]: ...


class BuildCrafter(Protocol):
    def craft_build(
        self, members: list[dict[str, Any]], context: dict[str, Any]
    ) -> dict[str, Any]: ...
