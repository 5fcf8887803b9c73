"""
===============================================================================
APPLICATION LAYER (Public API / Exports)
===============================================================================

Expone:
  - ResponseMode: dialecto de respuesta de los handlers duales
  - build_contract: normalización / serialización de builds
===============================================================================
"""

from .build_contract import (
    normalize_build_payload,
    normalize_session_context,
    sanitize_narrative_fields,
    serialize_build_payload,
)
from .response_mode import ResponseMode

__all__ = [
    "ResponseMode",
    "normalize_build_payload",
    "normalize_session_context",
    "sanitize_narrative_fields",
    "serialize_build_payload",
]
