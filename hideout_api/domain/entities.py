"""
===============================================================================
TARJETA CRC — domain/entities.py (Entidades del dominio)
===============================================================================

Responsabilidades:
  - Modelar usuarios, hideouts (hogar/equipo), miembros de party, builds,
    ítems del stash y del checklist.
  - Mantener invariantes simples y helpers de lectura (is_deleted, is_admin).

Colaboradores:
  - domain/repositories.py (puertos de persistencia)
  - interfaces/api/http/handlers (serializan estas entidades)

Reglas:
  - Sin dependencias de infraestructura ni de FastAPI.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class MemberRole(str, Enum):
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


class ReplenishmentRule(str, Enum):
    """ALWAYS: el job de reposición agrega el ítem al checklist cuando se agota."""

    ALWAYS = "ALWAYS"
    NEVER = "NEVER"


@dataclass
class User:
    id: str
    email: str
    name: str = ""


@dataclass
class Hideout:
    """Espacio compartido (hogar). Soft delete vía deleted_at."""

    id: str
    name: str
    invite_code: str
    created_at: datetime | None = None
    deleted_at: datetime | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


@dataclass
class PartyMember:
    """Miembro de un hideout (usuario vinculado o invitado)."""

    id: str
    hideout_id: str
    name: str
    email: str | None = None
    user_id: str | None = None
    is_guest: bool = True
    role: MemberRole = MemberRole.MEMBER
    restrictions: list[str] = field(default_factory=list)
    likes: list[str] = field(default_factory=list)
    dislikes: list[str] = field(default_factory=list)
    favorite_build_ids: set[str] = field(default_factory=set)

    @property
    def is_admin(self) -> bool:
        return self.role == MemberRole.ADMIN


@dataclass
class BuildEntry:
    name: str
    quantity: str = ""
    unit: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "quantity": self.quantity, "unit": self.unit}


@dataclass
class Build:
    """
    Build persistido. Las traducciones forman una "familia" cuya raíz es
    original_build_id (o el propio id si es la raíz).
    """

    id: str
    hideout_id: str
    build_title: str
    analysis_log: str = "Manual Entry"
    build_reasoning: str = ""
    gear_gems: list[BuildEntry] = field(default_factory=list)
    build_items: list[BuildEntry] = field(default_factory=list)
    build_steps: list[str] = field(default_factory=list)
    compliance_badge: bool = True
    build_archetype: str = "league_starter"
    build_cost_tier: str = "medium"
    setup_time: str = ""
    setup_time_minutes: int | None = None
    build_image: str | None = None
    language: str = "en"
    original_build_id: str | None = None
    created_at: datetime | None = None

    @property
    def family_id(self) -> str:
        return self.original_build_id or self.id

    def to_payload(self) -> dict[str, Any]:
        """Vista plana (vocabulario canónico) para el contrato de respuesta."""
        return {
            "id": self.id,
            "analysis_log": self.analysis_log,
            "build_title": self.build_title,
            "build_reasoning": self.build_reasoning,
            "gear_gems": [e.to_dict() for e in self.gear_gems],
            "build_items": [e.to_dict() for e in self.build_items],
            "build_steps": list(self.build_steps),
            "compliance_badge": self.compliance_badge,
            "build_archetype": self.build_archetype,
            "build_cost_tier": self.build_cost_tier,
            "setup_time": self.setup_time,
            "setup_time_minutes": self.setup_time_minutes,
            "build_image": self.build_image,
            "language": self.language,
            "originalBuildId": self.original_build_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class StashItem:
    id: str
    hideout_id: str
    name: str
    in_stock: bool = True
    replenishment_rule: ReplenishmentRule = ReplenishmentRule.NEVER
    quantity: str | None = None
    unit: str | None = None
    unit_details: str | None = None
    checklist_item_id: str | None = None

    @property
    def needs_replenishment(self) -> bool:
        return (
            not self.in_stock
            and self.replenishment_rule == ReplenishmentRule.ALWAYS
            and self.checklist_item_id is None
        )


@dataclass
class ChecklistItem:
    id: str
    hideout_id: str
    name: str
    checked: bool = False
    quantity: str | None = None
    unit: str | None = None
    build_ids: set[str] = field(default_factory=set)
