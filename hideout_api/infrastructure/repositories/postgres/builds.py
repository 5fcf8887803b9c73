"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/builds.py
============================================================
Class: PostgresBuildRepository

Responsibilities:
- CRUD de builds (SQL crudo); listas (gear_gems, build_items, build_steps)
  persistidas como JSONB.
- Familias de traducción vía original_build_id.

Collaborators:
- domain.entities.Build, BuildEntry
- Tabla: builds (favorite_builds y checklist_item_builds con ON DELETE CASCADE)
============================================================
"""

from __future__ import annotations

from typing import Optional

from psycopg.types.json import Jsonb

from ....domain.entities import Build, BuildEntry
from .base import PostgresRepositoryBase


def _entries(raw) -> list[BuildEntry]:
    return [
        BuildEntry(
            name=str(e.get("name") or ""),
            quantity=str(e.get("quantity") or ""),
            unit=str(e.get("unit") or ""),
        )
        for e in (raw or [])
        if isinstance(e, dict)
    ]


class PostgresBuildRepository(PostgresRepositoryBase):
    _SELECT_COLUMNS = """
        id, hideout_id, build_title, analysis_log, build_reasoning,
        gear_gems, build_items, build_steps, compliance_badge,
        build_archetype, build_cost_tier, setup_time, setup_time_minutes,
        build_image, language, original_build_id, created_at
    """

    _ORDER_BY = "ORDER BY created_at DESC, id ASC"

    @staticmethod
    def _row_to_build(row: tuple) -> Build:
        (
            build_id,
            hideout_id,
            build_title,
            analysis_log,
            build_reasoning,
            gear_gems,
            build_items,
            build_steps,
            compliance_badge,
            build_archetype,
            build_cost_tier,
            setup_time,
            setup_time_minutes,
            build_image,
            language,
            original_build_id,
            created_at,
        ) = row
        return Build(
            id=build_id,
            hideout_id=hideout_id,
            build_title=build_title,
            analysis_log=analysis_log,
            build_reasoning=build_reasoning,
            gear_gems=_entries(gear_gems),
            build_items=_entries(build_items),
            build_steps=list(build_steps or []),
            compliance_badge=bool(compliance_badge),
            build_archetype=build_archetype,
            build_cost_tier=build_cost_tier,
            setup_time=setup_time or "",
            setup_time_minutes=setup_time_minutes,
            build_image=build_image,
            language=language,
            original_build_id=original_build_id,
            created_at=created_at,
        )

    @staticmethod
    def _values(build: Build) -> list:
        return [
            build.build_title,
            build.analysis_log,
            build.build_reasoning,
            Jsonb([e.to_dict() for e in build.gear_gems]),
            Jsonb([e.to_dict() for e in build.build_items]),
            Jsonb(list(build.build_steps)),
            build.compliance_badge,
            build.build_archetype,
            build.build_cost_tier,
            build.setup_time,
            build.setup_time_minutes,
            build.build_image,
            build.language,
            build.original_build_id,
        ]

    def list_builds(self, hideout_id: str) -> list[Build]:
        rows = self._fetchall(
            query=f"""
                SELECT {self._SELECT_COLUMNS} FROM builds
                WHERE hideout_id = %s
                {self._ORDER_BY}
            """,
            params=[hideout_id],
            context_msg="PostgresBuildRepository: list_builds failed",
            extra={"hideout_id": hideout_id},
        )
        return [self._row_to_build(r) for r in rows]

    def get_build(self, build_id: str) -> Optional[Build]:
        row = self._fetchone(
            query=f"SELECT {self._SELECT_COLUMNS} FROM builds WHERE id = %s",
            params=[build_id],
            context_msg="PostgresBuildRepository: get_build failed",
            extra={"build_id": build_id},
        )
        return self._row_to_build(row) if row else None

    def list_family(self, family_id: str) -> list[Build]:
        rows = self._fetchall(
            query=f"""
                SELECT {self._SELECT_COLUMNS} FROM builds
                WHERE id = %s OR original_build_id = %s
                {self._ORDER_BY}
            """,
            params=[family_id, family_id],
            context_msg="PostgresBuildRepository: list_family failed",
            extra={"family_id": family_id},
        )
        return [self._row_to_build(r) for r in rows]

    def create_build(self, build: Build) -> Build:
        row = self._fetchone(
            query=f"""
                INSERT INTO builds (
                    build_title, analysis_log, build_reasoning, gear_gems,
                    build_items, build_steps, compliance_badge, build_archetype,
                    build_cost_tier, setup_time, setup_time_minutes, build_image,
                    language, original_build_id, id, hideout_id
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING {self._SELECT_COLUMNS}
            """,
            params=[*self._values(build), build.id, build.hideout_id],
            context_msg="PostgresBuildRepository: create_build failed",
            extra={"build_id": build.id},
        )
        return self._row_to_build(row)

    def update_build(self, build: Build) -> Build:
        row = self._fetchone(
            query=f"""
                UPDATE builds SET
                    build_title = %s, analysis_log = %s, build_reasoning = %s,
                    gear_gems = %s, build_items = %s, build_steps = %s,
                    compliance_badge = %s, build_archetype = %s,
                    build_cost_tier = %s, setup_time = %s,
                    setup_time_minutes = %s, build_image = %s, language = %s,
                    original_build_id = %s
                WHERE id = %s
                RETURNING {self._SELECT_COLUMNS}
            """,
            params=[*self._values(build), build.id],
            context_msg="PostgresBuildRepository: update_build failed",
            extra={"build_id": build.id},
        )
        if row is None:
            raise KeyError(build.id)
        return self._row_to_build(row)

    def delete_build(self, build_id: str) -> bool:
        count = self._execute(
            query="DELETE FROM builds WHERE id = %s",
            params=[build_id],
            context_msg="PostgresBuildRepository: delete_build failed",
            extra={"build_id": build_id},
        )
        return count > 0
