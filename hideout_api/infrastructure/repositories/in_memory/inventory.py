"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/inventory.py
============================================================
Classes: InMemoryChecklistRepository, InMemoryStashRepository

Responsibilities:
  - Checklist: ítems por hideout, vínculo N:M con builds, "clear" con
    semántica delete/archive.
  - Stash: upsert por (hideout, name), vínculo stash -> checklist y
    reposición atómica (replenish).

Collaborators:
  - InMemoryStashRepository usa el repo de checklist inyectado para
    emular la transacción de replenish y el ON DELETE SET NULL del vínculo.

Constraints / Notes:
  - Thread-safe: un Lock por repo; el stash toma su lock y luego el del
    checklist (orden fijo, sin ciclos).
============================================================
"""

from __future__ import annotations

from copy import deepcopy
from threading import Lock
from typing import Dict, Iterable, List, Optional
from uuid import uuid4

from ....domain.entities import BuildEntry, ChecklistItem, StashItem


class InMemoryChecklistRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._items: Dict[str, ChecklistItem] = {}

    def _find_by_name(self, hideout_id: str, name: str) -> Optional[ChecklistItem]:
        for item in self._items.values():
            if item.hideout_id == hideout_id and item.name == name:
                return item
        return None

    def list_items(self, hideout_id: str, *, status: str = "pending") -> List[ChecklistItem]:
        with self._lock:
            items = [deepcopy(i) for i in self._items.values() if i.hideout_id == hideout_id]
        if status == "pending":
            items = [i for i in items if not i.checked]
        elif status == "completed":
            items = [i for i in items if i.checked]
        return sorted(items, key=lambda i: i.name)

    def get_item(self, item_id: str) -> Optional[ChecklistItem]:
        with self._lock:
            item = self._items.get(item_id)
            return deepcopy(item) if item else None

    def get_item_by_name(self, hideout_id: str, name: str) -> Optional[ChecklistItem]:
        with self._lock:
            item = self._find_by_name(hideout_id, name)
            return deepcopy(item) if item else None

    def create_item(self, item: ChecklistItem) -> ChecklistItem:
        with self._lock:
            if self._find_by_name(item.hideout_id, item.name) is not None:
                raise ValueError(f"checklist item '{item.name}' already exists")
            self._items[item.id] = deepcopy(item)
            return deepcopy(item)

    def update_item(self, item: ChecklistItem) -> ChecklistItem:
        with self._lock:
            if item.id not in self._items:
                raise KeyError(item.id)
            self._items[item.id] = deepcopy(item)
            return deepcopy(item)

    def delete_item(self, item_id: str) -> bool:
        with self._lock:
            return self._items.pop(item_id, None) is not None

    def link_build(
        self, hideout_id: str, build_id: str, entries: Iterable[BuildEntry]
    ) -> None:
        with self._lock:
            for entry in entries:
                item = self._find_by_name(hideout_id, entry.name)
                if item is None:
                    item = ChecklistItem(
                        id=str(uuid4()),
                        hideout_id=hideout_id,
                        name=entry.name,
                        quantity=entry.quantity or None,
                        unit=entry.unit or None,
                    )
                    self._items[item.id] = item
                item.build_ids.add(build_id)

    def unlink_build(self, build_id: str) -> None:
        with self._lock:
            for item in self._items.values():
                item.build_ids.discard(build_id)

    def clear(self, hideout_id: str) -> tuple[int, int]:
        with self._lock:
            owned = [i for i in self._items.values() if i.hideout_id == hideout_id]
            to_delete = [i.id for i in owned if not i.build_ids]
            to_archive = [i for i in owned if i.build_ids and not i.checked]
            for item_id in to_delete:
                del self._items[item_id]
            for item in to_archive:
                item.checked = True
            return len(to_delete), len(to_archive)

    def upsert_pending(self, hideout_id: str, name: str) -> ChecklistItem:
        """Crea o reabre el ítem de nombre `name` (usado por replenish)."""
        with self._lock:
            item = self._find_by_name(hideout_id, name)
            if item is None:
                item = ChecklistItem(id=str(uuid4()), hideout_id=hideout_id, name=name)
                self._items[item.id] = item
            item.checked = False
            return deepcopy(item)


class InMemoryStashRepository:
    def __init__(self, checklist: InMemoryChecklistRepository) -> None:
        self._lock = Lock()
        self._items: Dict[str, StashItem] = {}
        self._checklist = checklist

    def _resolved(self, item: StashItem) -> StashItem:
        # ON DELETE SET NULL: un ítem de checklist borrado deja de estar vinculado.
        copy = deepcopy(item)
        if copy.checklist_item_id and self._checklist.get_item(copy.checklist_item_id) is None:
            copy.checklist_item_id = None
        return copy

    def _find_by_name(self, hideout_id: str, name: str) -> Optional[StashItem]:
        for item in self._items.values():
            if item.hideout_id == hideout_id and item.name == name:
                return item
        return None

    def list_items(self, hideout_id: str) -> List[StashItem]:
        with self._lock:
            items = [self._resolved(i) for i in self._items.values() if i.hideout_id == hideout_id]
        return sorted(items, key=lambda i: i.name)

    def get_item_by_name(self, hideout_id: str, name: str) -> Optional[StashItem]:
        with self._lock:
            item = self._find_by_name(hideout_id, name)
            return self._resolved(item) if item else None

    def upsert_item(self, item: StashItem) -> StashItem:
        with self._lock:
            existing = self._find_by_name(item.hideout_id, item.name)
            stored = deepcopy(item)
            if existing is not None:
                stored.id = existing.id
                stored.checklist_item_id = existing.checklist_item_id
            self._items[stored.id] = stored
            return self._resolved(stored)

    def update_item(self, item: StashItem, *, previous_name: str) -> StashItem:
        with self._lock:
            existing = self._find_by_name(item.hideout_id, previous_name)
            if existing is None or existing.id != item.id:
                raise KeyError(previous_name)
            clash = self._find_by_name(item.hideout_id, item.name)
            if clash is not None and clash.id != item.id:
                raise ValueError(f"stash item '{item.name}' already exists")
            self._items[item.id] = deepcopy(item)
            return self._resolved(item)

    def delete_item(self, item_id: str) -> bool:
        with self._lock:
            return self._items.pop(item_id, None) is not None

    def list_needing_replenishment(self) -> List[StashItem]:
        with self._lock:
            resolved = [self._resolved(i) for i in self._items.values()]
        return [i for i in resolved if i.needs_replenishment]

    def replenish(self, item: StashItem) -> ChecklistItem:
        with self._lock:
            stored = self._items.get(item.id)
            if stored is None:
                raise KeyError(item.id)
            checklist_item = self._checklist.upsert_pending(stored.hideout_id, stored.name)
            stored.checklist_item_id = checklist_item.id
            return checklist_item
