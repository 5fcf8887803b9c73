"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/identity.py
============================================================
Classes: InMemoryUserRepository, InMemoryHideoutRepository,
         InMemoryPartyMemberRepository

Responsibilities:
  - Almacenar usuarios, hideouts y miembros en memoria (tests / dev).
  - Replicar la semántica de los repos Postgres: soft delete de hideouts,
    unicidad de invite_code, favoritos por miembro.

Constraints / Notes:
  - Thread-safe: cada repo protege su "tabla" con un Lock.
  - Copias defensivas: nunca se entrega la instancia almacenada.
============================================================
"""

from __future__ import annotations

from copy import deepcopy
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, List, Optional

from ....domain.entities import Hideout, PartyMember, User


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryUserRepository:
    """Usuarios en memoria. add_user() es el seed para tests/dev."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._users: Dict[str, User] = {}

    def add_user(self, user: User) -> User:
        with self._lock:
            self._users[user.id] = deepcopy(user)
            return deepcopy(user)

    def get_user(self, user_id: str) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            return deepcopy(user) if user else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        target = email.strip().lower()
        with self._lock:
            for user in self._users.values():
                if user.email.strip().lower() == target:
                    return deepcopy(user)
        return None


class InMemoryHideoutRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._hideouts: Dict[str, Hideout] = {}

    def get_hideout(self, hideout_id: str) -> Optional[Hideout]:
        with self._lock:
            hideout = self._hideouts.get(hideout_id)
            return deepcopy(hideout) if hideout else None

    def get_hideout_by_invite_code(self, code: str) -> Optional[Hideout]:
        with self._lock:
            for hideout in self._hideouts.values():
                if hideout.invite_code == code:
                    return deepcopy(hideout)
        return None

    def create_hideout(self, hideout: Hideout) -> Hideout:
        with self._lock:
            if any(h.invite_code == hideout.invite_code for h in self._hideouts.values()):
                raise ValueError(f"invite_code '{hideout.invite_code}' already in use")
            stored = deepcopy(hideout)
            stored.created_at = stored.created_at or _now()
            self._hideouts[stored.id] = stored
            return deepcopy(stored)

    def rename_hideout(self, hideout_id: str, name: str) -> Optional[Hideout]:
        with self._lock:
            hideout = self._hideouts.get(hideout_id)
            if hideout is None:
                return None
            hideout.name = name
            return deepcopy(hideout)

    def soft_delete_hideout(self, hideout_id: str) -> bool:
        with self._lock:
            hideout = self._hideouts.get(hideout_id)
            if hideout is None or hideout.is_deleted:
                return False
            hideout.deleted_at = _now()
            return True

    def ping(self) -> bool:
        return True


class InMemoryPartyMemberRepository:
    """
    Miembros en memoria.

    list_members() oculta los miembros de hideouts soft-deleted cuando se
    inyecta el repo de hideouts (igual que el JOIN del repo Postgres).
    """

    def __init__(self, hideouts: InMemoryHideoutRepository | None = None) -> None:
        self._lock = Lock()
        self._members: Dict[str, PartyMember] = {}
        self._hideouts = hideouts

    def _hideout_active(self, hideout_id: str) -> bool:
        if self._hideouts is None:
            return True
        hideout = self._hideouts.get_hideout(hideout_id)
        return hideout is not None and not hideout.is_deleted

    def list_members(self, hideout_id: str) -> List[PartyMember]:
        if not self._hideout_active(hideout_id):
            return []
        with self._lock:
            members = [
                deepcopy(m) for m in self._members.values() if m.hideout_id == hideout_id
            ]
        return sorted(members, key=lambda m: m.name.lower())

    def get_member(self, member_id: str) -> Optional[PartyMember]:
        with self._lock:
            member = self._members.get(member_id)
            return deepcopy(member) if member else None

    def get_member_by_user(self, hideout_id: str, user_id: str) -> Optional[PartyMember]:
        with self._lock:
            for member in self._members.values():
                if member.hideout_id == hideout_id and member.user_id == user_id:
                    return deepcopy(member)
        return None

    def create_member(self, member: PartyMember) -> PartyMember:
        with self._lock:
            self._members[member.id] = deepcopy(member)
            return deepcopy(member)

    def update_member(self, member: PartyMember) -> PartyMember:
        with self._lock:
            if member.id not in self._members:
                raise KeyError(member.id)
            self._members[member.id] = deepcopy(member)
            return deepcopy(member)

    def delete_member(self, member_id: str) -> bool:
        with self._lock:
            return self._members.pop(member_id, None) is not None

    def toggle_favorite(self, member_id: str, build_id: str) -> bool:
        with self._lock:
            member = self._members[member_id]
            if build_id in member.favorite_build_ids:
                member.favorite_build_ids.discard(build_id)
                return False
            member.favorite_build_ids.add(build_id)
            return True
