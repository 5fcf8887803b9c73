"""
===============================================================================
TARJETA CRC — domain/repositories.py (Puertos de persistencia)
===============================================================================

Responsabilidades:
  - Definir contratos (Protocol) que los handlers usan para leer/escribir.
  - Mantener la semántica de negocio en un solo lugar (qué significa "upsert",
    "soft delete", "reponer"), independiente del motor.

Colaboradores:
  - infrastructure/repositories/in_memory (tests / dev)
  - infrastructure/repositories/postgres (runtime)

Reglas:
  - Sin SQL ni detalles de driver aquí.
  - Todas las búsquedas por nombre son por (hideout_id, name) exacto.
===============================================================================
"""

from __future__ import annotations

from typing import Iterable, Protocol

from .entities import (
    Build,
    BuildEntry,
    ChecklistItem,
    Hideout,
    PartyMember,
    StashItem,
    User,
)


class UserRepository(Protocol):
    def get_user(self, user_id: str) -> User | None: ...

    def get_user_by_email(self, email: str) -> User | None: ...


class HideoutRepository(Protocol):
    def get_hideout(self, hideout_id: str) -> Hideout | None: ...

    def get_hideout_by_invite_code(self, code: str) -> Hideout | None: ...

    def create_hideout(self, hideout: Hideout) -> Hideout: ...

    def rename_hideout(self, hideout_id: str, name: str) -> Hideout | None: ...

    def soft_delete_hideout(self, hideout_id: str) -> bool: ...

    def ping(self) -> bool: ...


class PartyMemberRepository(Protocol):
    def list_members(self, hideout_id: str) -> list[PartyMember]: ...

    def get_member(self, member_id: str) -> PartyMember | None: ...

    def get_member_by_user(
        self, hideout_id: str, user_id: str
    ) -> PartyMember | None: ...

    def create_member(self, member: PartyMember) -> PartyMember: ...

    def update_member(self, member: PartyMember) -> PartyMember: ...

    def delete_member(self, member_id: str) -> bool: ...

    def toggle_favorite(self, member_id: str, build_id: str) -> bool:
        """Devuelve el nuevo estado (True = favorito)."""
        ...


class BuildRepository(Protocol):
    def list_builds(self, hideout_id: str) -> list[Build]:
        """Builds del hideout, más recientes primero."""
        ...

    def get_build(self, build_id: str) -> Build | None: ...

    def list_family(self, family_id: str) -> list[Build]:
        """Raíz + traducciones de una familia."""
        ...

    def create_build(self, build: Build) -> Build: ...

    def update_build(self, build: Build) -> Build: ...

    def delete_build(self, build_id: str) -> bool: ...


class ChecklistRepository(Protocol):
    def list_items(self, hideout_id: str, *, status: str = "pending") -> list[ChecklistItem]:
        """status: pending | completed | all. Ordenado por nombre."""
        ...

    def get_item(self, item_id: str) -> ChecklistItem | None: ...

    def get_item_by_name(self, hideout_id: str, name: str) -> ChecklistItem | None: ...

    def create_item(self, item: ChecklistItem) -> ChecklistItem: ...

    def update_item(self, item: ChecklistItem) -> ChecklistItem: ...

    def delete_item(self, item_id: str) -> bool: ...

    def link_build(
        self, hideout_id: str, build_id: str, entries: Iterable[BuildEntry]
    ) -> None:
        """Crea (o reutiliza por nombre) ítems y los asocia al build."""
        ...

    def unlink_build(self, build_id: str) -> None: ...

    def clear(self, hideout_id: str) -> tuple[int, int]:
        """
        Borra ítems sin builds y archiva (checked) los pendientes con builds.
        Devuelve (deleted, archived).
        """
        ...


class StashRepository(Protocol):
    def list_items(self, hideout_id: str) -> list[StashItem]: ...

    def get_item_by_name(self, hideout_id: str, name: str) -> StashItem | None: ...

    def upsert_item(self, item: StashItem) -> StashItem:
        """Inserta o actualiza por (hideout_id, name)."""
        ...

    def update_item(self, item: StashItem, *, previous_name: str) -> StashItem: ...

    def delete_item(self, item_id: str) -> bool: ...

    def list_needing_replenishment(self) -> list[StashItem]:
        """ALWAYS + sin stock + sin ítem de checklist vinculado (todos los hideouts)."""
        ...

    def replenish(self, item: StashItem) -> ChecklistItem:
        """
        Upsert de un ítem de checklist pendiente con el mismo nombre y vínculo
        stash -> checklist, en una sola transacción.
        """
        ...
