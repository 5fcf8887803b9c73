"""
===============================================================================
TARJETA CRC — domain/__init__.py
===============================================================================

Responsabilidades:
    - Centralizar exports del dominio (entidades + puertos).

Reglas:
    - No importar infraestructura aquí.
===============================================================================
"""

from .entities import (
    Build,
    BuildEntry,
    ChecklistItem,
    Hideout,
    MemberRole,
    PartyMember,
    ReplenishmentRule,
    StashItem,
    User,
)
from .repositories import (
    BuildRepository,
    ChecklistRepository,
    HideoutRepository,
    PartyMemberRepository,
    StashRepository,
    UserRepository,
)
from .services import BuildCrafter, BuildTranslator

__all__ = [
    "Build",
    "BuildEntry",
    "ChecklistItem",
    "Hideout",
    "MemberRole",
    "PartyMember",
    "ReplenishmentRule",
    "StashItem",
    "User",
    "BuildRepository",
    "ChecklistRepository",
    "HideoutRepository",
    "PartyMemberRepository",
    "StashRepository",
    "UserRepository",
    "BuildCrafter",
    "BuildTranslator",
]
