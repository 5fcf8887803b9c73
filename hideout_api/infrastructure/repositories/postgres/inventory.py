"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/inventory.py
============================================================
Classes: PostgresChecklistRepository, PostgresStashRepository

Responsibilities:
- Checklist: ítems + vínculo N:M con builds (checklist_item_builds),
  clear (delete / archive) en una transacción.
- Stash: upsert por (hideout_id, name) con ON CONFLICT, reposición
  atómica (upsert checklist pendiente + vínculo).

Collaborators:
- domain.entities (ChecklistItem, StashItem, BuildEntry, ReplenishmentRule)
- Tablas: checklist_items, checklist_item_builds, stash_items
  (stash_items.checklist_item_id ON DELETE SET NULL)
============================================================
"""

from __future__ import annotations

from typing import Iterable, Optional
from uuid import uuid4

from psycopg import Connection

from ....domain.entities import (
    BuildEntry,
    ChecklistItem,
    ReplenishmentRule,
    StashItem,
)
from .base import PostgresRepositoryBase

_CHECKLIST_COLUMNS = """
    c.id, c.hideout_id, c.name, c.checked, c.quantity, c.unit,
    COALESCE(
        (SELECT array_agg(l.build_id) FROM checklist_item_builds l
         WHERE l.checklist_item_id = c.id),
        ARRAY[]::text[]
    )
"""

_UPSERT_PENDING_SQL = """
    INSERT INTO checklist_items (id, hideout_id, name, checked)
    VALUES (%s, %s, %s, false)
    ON CONFLICT (hideout_id, name) DO UPDATE SET checked = false
    RETURNING id
"""


def _row_to_checklist_item(row: tuple) -> ChecklistItem:
    item_id, hideout_id, name, checked, quantity, unit, build_ids = row
    return ChecklistItem(
        id=item_id,
        hideout_id=hideout_id,
        name=name,
        checked=bool(checked),
        quantity=quantity,
        unit=unit,
        build_ids=set(build_ids or []),
    )


class PostgresChecklistRepository(PostgresRepositoryBase):
    def list_items(self, hideout_id: str, *, status: str = "pending") -> list[ChecklistItem]:
        where = "c.hideout_id = %s"
        if status == "pending":
            where += " AND c.checked = false"
        elif status == "completed":
            where += " AND c.checked = true"
        rows = self._fetchall(
            query=f"""
                SELECT {_CHECKLIST_COLUMNS} FROM checklist_items c
                WHERE {where}
                ORDER BY c.name ASC
            """,
            params=[hideout_id],
            context_msg="PostgresChecklistRepository: list_items failed",
            extra={"hideout_id": hideout_id, "status": status},
        )
        return [_row_to_checklist_item(r) for r in rows]

    def get_item(self, item_id: str) -> Optional[ChecklistItem]:
        row = self._fetchone(
            query=f"SELECT {_CHECKLIST_COLUMNS} FROM checklist_items c WHERE c.id = %s",
            params=[item_id],
            context_msg="PostgresChecklistRepository: get_item failed",
            extra={"item_id": item_id},
        )
        return _row_to_checklist_item(row) if row else None

    def get_item_by_name(self, hideout_id: str, name: str) -> Optional[ChecklistItem]:
        row = self._fetchone(
            query=f"""
                SELECT {_CHECKLIST_COLUMNS} FROM checklist_items c
                WHERE c.hideout_id = %s AND c.name = %s
            """,
            params=[hideout_id, name],
            context_msg="PostgresChecklistRepository: get_item_by_name failed",
            extra={"hideout_id": hideout_id},
        )
        return _row_to_checklist_item(row) if row else None

    def create_item(self, item: ChecklistItem) -> ChecklistItem:
        self._execute(
            query="""
                INSERT INTO checklist_items (id, hideout_id, name, checked, quantity, unit)
                VALUES (%s, %s, %s, %s, %s, %s)
            """,
            params=[item.id, item.hideout_id, item.name, item.checked, item.quantity, item.unit],
            context_msg="PostgresChecklistRepository: create_item failed",
            extra={"item_id": item.id},
        )
        return item

    def update_item(self, item: ChecklistItem) -> ChecklistItem:
        self._execute(
            query="""
                UPDATE checklist_items
                SET name = %s, checked = %s, quantity = %s, unit = %s
                WHERE id = %s
            """,
            params=[item.name, item.checked, item.quantity, item.unit, item.id],
            context_msg="PostgresChecklistRepository: update_item failed",
            extra={"item_id": item.id},
        )
        return item

    def delete_item(self, item_id: str) -> bool:
        count = self._execute(
            query="DELETE FROM checklist_items WHERE id = %s",
            params=[item_id],
            context_msg="PostgresChecklistRepository: delete_item failed",
            extra={"item_id": item_id},
        )
        return count > 0

    def link_build(
        self, hideout_id: str, build_id: str, entries: Iterable[BuildEntry]
    ) -> None:
        entries = list(entries)

        def _link(conn: Connection) -> None:
            for entry in entries:
                item_id = conn.execute(
                    """
                    INSERT INTO checklist_items (id, hideout_id, name, quantity, unit)
                    VALUES (%s, %s, %s, %s, %s)
                    ON CONFLICT (hideout_id, name) DO UPDATE SET name = EXCLUDED.name
                    RETURNING id
                    """,
                    (str(uuid4()), hideout_id, entry.name, entry.quantity or None, entry.unit or None),
                ).fetchone()[0]
                conn.execute(
                    """
                    INSERT INTO checklist_item_builds (checklist_item_id, build_id)
                    VALUES (%s, %s)
                    ON CONFLICT DO NOTHING
                    """,
                    (item_id, build_id),
                )

        self._in_transaction(
            _link,
            context_msg="PostgresChecklistRepository: link_build failed",
            extra={"build_id": build_id, "entries": len(entries)},
        )

    def unlink_build(self, build_id: str) -> None:
        self._execute(
            query="DELETE FROM checklist_item_builds WHERE build_id = %s",
            params=[build_id],
            context_msg="PostgresChecklistRepository: unlink_build failed",
            extra={"build_id": build_id},
        )

    def clear(self, hideout_id: str) -> tuple[int, int]:
        def _clear(conn: Connection) -> tuple[int, int]:
            deleted = conn.execute(
                """
                DELETE FROM checklist_items c
                WHERE c.hideout_id = %s
                  AND NOT EXISTS (
                      SELECT 1 FROM checklist_item_builds l
                      WHERE l.checklist_item_id = c.id
                  )
                """,
                (hideout_id,),
            ).rowcount
            archived = conn.execute(
                """
                UPDATE checklist_items c SET checked = true
                WHERE c.hideout_id = %s AND c.checked = false
                  AND EXISTS (
                      SELECT 1 FROM checklist_item_builds l
                      WHERE l.checklist_item_id = c.id
                  )
                """,
                (hideout_id,),
            ).rowcount
            return deleted, archived

        return self._in_transaction(
            _clear,
            context_msg="PostgresChecklistRepository: clear failed",
            extra={"hideout_id": hideout_id},
        )


class PostgresStashRepository(PostgresRepositoryBase):
    _SELECT_COLUMNS = """
        id, hideout_id, name, in_stock, replenishment_rule,
        quantity, unit, unit_details, checklist_item_id
    """

    @staticmethod
    def _row_to_item(row: tuple) -> StashItem:
        (
            item_id,
            hideout_id,
            name,
            in_stock,
            rule,
            quantity,
            unit,
            unit_details,
            checklist_item_id,
        ) = row
        return StashItem(
            id=item_id,
            hideout_id=hideout_id,
            name=name,
            in_stock=bool(in_stock),
            replenishment_rule=ReplenishmentRule(rule),
            quantity=quantity,
            unit=unit,
            unit_details=unit_details,
            checklist_item_id=checklist_item_id,
        )

    def list_items(self, hideout_id: str) -> list[StashItem]:
        rows = self._fetchall(
            query=f"""
                SELECT {self._SELECT_COLUMNS} FROM stash_items
                WHERE hideout_id = %s ORDER BY name ASC
            """,
            params=[hideout_id],
            context_msg="PostgresStashRepository: list_items failed",
            extra={"hideout_id": hideout_id},
        )
        return [self._row_to_item(r) for r in rows]

    def get_item_by_name(self, hideout_id: str, name: str) -> Optional[StashItem]:
        row = self._fetchone(
            query=f"""
                SELECT {self._SELECT_COLUMNS} FROM stash_items
                WHERE hideout_id = %s AND name = %s
            """,
            params=[hideout_id, name],
            context_msg="PostgresStashRepository: get_item_by_name failed",
            extra={"hideout_id": hideout_id},
        )
        return self._row_to_item(row) if row else None

    def upsert_item(self, item: StashItem) -> StashItem:
        row = self._fetchone(
            query=f"""
                INSERT INTO stash_items
                    (id, hideout_id, name, in_stock, replenishment_rule,
                     quantity, unit, unit_details)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (hideout_id, name) DO UPDATE SET
                    in_stock = EXCLUDED.in_stock,
                    replenishment_rule = EXCLUDED.replenishment_rule,
                    quantity = EXCLUDED.quantity,
                    unit = EXCLUDED.unit,
                    unit_details = EXCLUDED.unit_details
                RETURNING {self._SELECT_COLUMNS}
            """,
            params=[
                item.id,
                item.hideout_id,
                item.name,
                item.in_stock,
                item.replenishment_rule.value,
                item.quantity,
                item.unit,
                item.unit_details,
            ],
            context_msg="PostgresStashRepository: upsert_item failed",
            extra={"hideout_id": item.hideout_id},
        )
        return self._row_to_item(row)

    def update_item(self, item: StashItem, *, previous_name: str) -> StashItem:
        row = self._fetchone(
            query=f"""
                UPDATE stash_items SET
                    name = %s, in_stock = %s, replenishment_rule = %s,
                    quantity = %s, unit = %s, unit_details = %s
                WHERE hideout_id = %s AND name = %s
                RETURNING {self._SELECT_COLUMNS}
            """,
            params=[
                item.name,
                item.in_stock,
                item.replenishment_rule.value,
                item.quantity,
                item.unit,
                item.unit_details,
                item.hideout_id,
                previous_name,
            ],
            context_msg="PostgresStashRepository: update_item failed",
            extra={"hideout_id": item.hideout_id},
        )
        if row is None:
            raise KeyError(previous_name)
        return self._row_to_item(row)

    def delete_item(self, item_id: str) -> bool:
        count = self._execute(
            query="DELETE FROM stash_items WHERE id = %s",
            params=[item_id],
            context_msg="PostgresStashRepository: delete_item failed",
            extra={"item_id": item_id},
        )
        return count > 0

    def list_needing_replenishment(self) -> list[StashItem]:
        rows = self._fetchall(
            query=f"""
                SELECT {self._SELECT_COLUMNS} FROM stash_items
                WHERE in_stock = false
                  AND replenishment_rule = %s
                  AND checklist_item_id IS NULL
                ORDER BY hideout_id, name
            """,
            params=[ReplenishmentRule.ALWAYS.value],
            context_msg="PostgresStashRepository: list_needing_replenishment failed",
            extra={},
        )
        return [self._row_to_item(r) for r in rows]

    def replenish(self, item: StashItem) -> ChecklistItem:
        def _replenish(conn: Connection) -> ChecklistItem:
            checklist_id = conn.execute(
                _UPSERT_PENDING_SQL, (str(uuid4()), item.hideout_id, item.name)
            ).fetchone()[0]
            conn.execute(
                "UPDATE stash_items SET checklist_item_id = %s WHERE id = %s",
                (checklist_id, item.id),
            )
            row = conn.execute(
                f"SELECT {_CHECKLIST_COLUMNS} FROM checklist_items c WHERE c.id = %s",
                (checklist_id,),
            ).fetchone()
            return _row_to_checklist_item(row)

        return self._in_transaction(
            _replenish,
            context_msg="PostgresStashRepository: replenish failed",
            extra={"hideout_id": item.hideout_id, "stash_item_id": item.id},
        )
