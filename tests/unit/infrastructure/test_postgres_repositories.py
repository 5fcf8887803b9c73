"""
Name: Postgres Repository Tests (mocked pool)

Responsibilities:
  - Row mapping and parametrized queries
  - Driver errors surface as DatabaseError
  - Missing rows on update map to KeyError (handlers turn it into 404)
"""

from unittest.mock import MagicMock

import pytest

from hideout_api.crosscutting.exceptions import DatabaseError
from hideout_api.domain.entities import ReplenishmentRule, StashItem
from hideout_api.infrastructure.repositories import (
    PostgresHideoutRepository,
    PostgresStashRepository,
)

pytestmark = pytest.mark.unit

STASH_ROW = ("s-1", "h-1", "Chaos Orb", False, "ALWAYS", "10", None, None, None)


def _pool_returning(*, fetchone=None, fetchall=None, error: Exception | None = None):
    conn = MagicMock()
    cursor = conn.execute.return_value
    if error is not None:
        conn.execute.side_effect = error
    cursor.fetchone.return_value = fetchone
    cursor.fetchall.return_value = fetchall or []
    pool = MagicMock()
    pool.connection.return_value.__enter__.return_value = conn
    return pool, conn


def test_list_needing_replenishment_maps_rows():
    pool, conn = _pool_returning(fetchall=[STASH_ROW])

    items = PostgresStashRepository(pool=pool).list_needing_replenishment()

    assert items == [
        StashItem(
            id="s-1",
            hideout_id="h-1",
            name="Chaos Orb",
            in_stock=False,
            replenishment_rule=ReplenishmentRule.ALWAYS,
            quantity="10",
        )
    ]
    query, params = conn.execute.call_args.args
    assert "checklist_item_id IS NULL" in query
    assert params == ("ALWAYS",)


def test_update_missing_row_raises_key_error():
    pool, _ = _pool_returning(fetchone=None)
    item = StashItem(id="s-1", hideout_id="h-1", name="Chaos Orb")

    with pytest.raises(KeyError):
        PostgresStashRepository(pool=pool).update_item(item, previous_name="Chaos Orb")


def test_driver_error_becomes_database_error():
    pool, _ = _pool_returning(error=RuntimeError("connection reset"))

    with pytest.raises(DatabaseError) as exc:
        PostgresStashRepository(pool=pool).list_items("h-1")

    assert "list_items failed" in exc.value.message
    assert isinstance(exc.value.original_error, RuntimeError)


def test_hideout_ping():
    pool, _ = _pool_returning(fetchone=(1,))

    assert PostgresHideoutRepository(pool=pool).ping() is True
