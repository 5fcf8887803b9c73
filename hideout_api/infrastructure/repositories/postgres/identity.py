"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/identity.py
============================================================
Classes: PostgresUserRepository, PostgresHideoutRepository,
         PostgresPartyMemberRepository

Responsibilities:
- Acceso a users / hideouts / party_members / favorite_builds (SQL crudo).
- Soft delete de hideouts (deleted_at) respetado en list_members().

Collaborators:
- domain.entities (User, Hideout, PartyMember, MemberRole)
- PostgresRepositoryBase (pool + errores consistentes)
- Tablas: users, hideouts, party_members, favorite_builds
============================================================
"""

from __future__ import annotations

from typing import Optional

from psycopg.types.json import Jsonb

from ....domain.entities import Hideout, MemberRole, PartyMember, User
from .base import PostgresRepositoryBase


class PostgresUserRepository(PostgresRepositoryBase):
    def get_user(self, user_id: str) -> Optional[User]:
        row = self._fetchone(
            query="SELECT id, email, name FROM users WHERE id = %s",
            params=[user_id],
            context_msg="PostgresUserRepository: get_user failed",
            extra={"user_id": user_id},
        )
        return User(id=row[0], email=row[1], name=row[2] or "") if row else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        row = self._fetchone(
            query="SELECT id, email, name FROM users WHERE lower(email) = lower(%s)",
            params=[email.strip()],
            context_msg="PostgresUserRepository: get_user_by_email failed",
            extra={},
        )
        return User(id=row[0], email=row[1], name=row[2] or "") if row else None


class PostgresHideoutRepository(PostgresRepositoryBase):
    _SELECT_COLUMNS = "id, name, invite_code, created_at, deleted_at"

    @staticmethod
    def _row_to_hideout(row: tuple) -> Hideout:
        hideout_id, name, invite_code, created_at, deleted_at = row
        return Hideout(
            id=hideout_id,
            name=name,
            invite_code=invite_code,
            created_at=created_at,
            deleted_at=deleted_at,
        )

    def get_hideout(self, hideout_id: str) -> Optional[Hideout]:
        row = self._fetchone(
            query=f"SELECT {self._SELECT_COLUMNS} FROM hideouts WHERE id = %s",
            params=[hideout_id],
            context_msg="PostgresHideoutRepository: get_hideout failed",
            extra={"hideout_id": hideout_id},
        )
        return self._row_to_hideout(row) if row else None

    def get_hideout_by_invite_code(self, code: str) -> Optional[Hideout]:
        row = self._fetchone(
            query=f"SELECT {self._SELECT_COLUMNS} FROM hideouts WHERE invite_code = %s",
            params=[code],
            context_msg="PostgresHideoutRepository: get_hideout_by_invite_code failed",
            extra={},
        )
        return self._row_to_hideout(row) if row else None

    def create_hideout(self, hideout: Hideout) -> Hideout:
        row = self._fetchone(
            query=f"""
                INSERT INTO hideouts (id, name, invite_code)
                VALUES (%s, %s, %s)
                RETURNING {self._SELECT_COLUMNS}
            """,
            params=[hideout.id, hideout.name, hideout.invite_code],
            context_msg="PostgresHideoutRepository: create_hideout failed",
            extra={"hideout_id": hideout.id},
        )
        return self._row_to_hideout(row)

    def rename_hideout(self, hideout_id: str, name: str) -> Optional[Hideout]:
        row = self._fetchone(
            query=f"""
                UPDATE hideouts SET name = %s WHERE id = %s
                RETURNING {self._SELECT_COLUMNS}
            """,
            params=[name, hideout_id],
            context_msg="PostgresHideoutRepository: rename_hideout failed",
            extra={"hideout_id": hideout_id},
        )
        return self._row_to_hideout(row) if row else None

    def soft_delete_hideout(self, hideout_id: str) -> bool:
        count = self._execute(
            query="""
                UPDATE hideouts SET deleted_at = now()
                WHERE id = %s AND deleted_at IS NULL
            """,
            params=[hideout_id],
            context_msg="PostgresHideoutRepository: soft_delete_hideout failed",
            extra={"hideout_id": hideout_id},
        )
        return count > 0

    def ping(self) -> bool:
        row = self._fetchone(
            query="SELECT 1",
            params=[],
            context_msg="PostgresHideoutRepository: ping failed",
            extra={},
        )
        return bool(row and row[0] == 1)


class PostgresPartyMemberRepository(PostgresRepositoryBase):
    # R: favoritos agregados en la misma fila para mapear a PartyMember.
    _SELECT = """
        SELECT m.id, m.hideout_id, m.name, m.email, m.user_id, m.is_guest,
               m.role, m.restrictions, m.likes, m.dislikes,
               COALESCE(
                   (SELECT array_agg(f.build_id) FROM favorite_builds f
                    WHERE f.member_id = m.id),
                   ARRAY[]::text[]
               )
        FROM party_members m
    """

    @staticmethod
    def _row_to_member(row: tuple) -> PartyMember:
        (
            member_id,
            hideout_id,
            name,
            email,
            user_id,
            is_guest,
            role,
            restrictions,
            likes,
            dislikes,
            favorites,
        ) = row
        return PartyMember(
            id=member_id,
            hideout_id=hideout_id,
            name=name,
            email=email,
            user_id=user_id,
            is_guest=bool(is_guest),
            role=MemberRole(role),
            restrictions=list(restrictions or []),
            likes=list(likes or []),
            dislikes=list(dislikes or []),
            favorite_build_ids=set(favorites or []),
        )

    def list_members(self, hideout_id: str) -> list[PartyMember]:
        rows = self._fetchall(
            query=self._SELECT
            + """
                JOIN hideouts h ON h.id = m.hideout_id
                WHERE m.hideout_id = %s AND h.deleted_at IS NULL
                ORDER BY lower(m.name) ASC
            """,
            params=[hideout_id],
            context_msg="PostgresPartyMemberRepository: list_members failed",
            extra={"hideout_id": hideout_id},
        )
        return [self._row_to_member(r) for r in rows]

    def get_member(self, member_id: str) -> Optional[PartyMember]:
        row = self._fetchone(
            query=self._SELECT + " WHERE m.id = %s",
            params=[member_id],
            context_msg="PostgresPartyMemberRepository: get_member failed",
            extra={"member_id": member_id},
        )
        return self._row_to_member(row) if row else None

    def get_member_by_user(self, hideout_id: str, user_id: str) -> Optional[PartyMember]:
        row = self._fetchone(
            query=self._SELECT + " WHERE m.hideout_id = %s AND m.user_id = %s",
            params=[hideout_id, user_id],
            context_msg="PostgresPartyMemberRepository: get_member_by_user failed",
            extra={"hideout_id": hideout_id},
        )
        return self._row_to_member(row) if row else None

    def create_member(self, member: PartyMember) -> PartyMember:
        self._execute(
            query="""
                INSERT INTO party_members
                    (id, hideout_id, name, email, user_id, is_guest, role,
                     restrictions, likes, dislikes)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            """,
            params=[
                member.id,
                member.hideout_id,
                member.name,
                member.email,
                member.user_id,
                member.is_guest,
                member.role.value,
                Jsonb(member.restrictions),
                Jsonb(member.likes),
                Jsonb(member.dislikes),
            ],
            context_msg="PostgresPartyMemberRepository: create_member failed",
            extra={"member_id": member.id},
        )
        return member

    def update_member(self, member: PartyMember) -> PartyMember:
        self._execute(
            query="""
                UPDATE party_members
                SET name = %s, email = %s, user_id = %s, is_guest = %s, role = %s,
                    restrictions = %s, likes = %s, dislikes = %s
                WHERE id = %s
            """,
            params=[
                member.name,
                member.email,
                member.user_id,
                member.is_guest,
                member.role.value,
                Jsonb(member.restrictions),
                Jsonb(member.likes),
                Jsonb(member.dislikes),
                member.id,
            ],
            context_msg="PostgresPartyMemberRepository: update_member failed",
            extra={"member_id": member.id},
        )
        return member

    def delete_member(self, member_id: str) -> bool:
        count = self._execute(
            query="DELETE FROM party_members WHERE id = %s",
            params=[member_id],
            context_msg="PostgresPartyMemberRepository: delete_member failed",
            extra={"member_id": member_id},
        )
        return count > 0

    def toggle_favorite(self, member_id: str, build_id: str) -> bool:
        def _toggle(conn) -> bool:
            removed = conn.execute(
                "DELETE FROM favorite_builds WHERE member_id = %s AND build_id = %s",
                (member_id, build_id),
            ).rowcount
            if removed:
                return False
            conn.execute(
                "INSERT INTO favorite_builds (member_id, build_id) VALUES (%s, %s)",
                (member_id, build_id),
            )
            return True

        return self._in_transaction(
            _toggle,
            context_msg="PostgresPartyMemberRepository: toggle_favorite failed",
            extra={"member_id": member_id, "build_id": build_id},
        )
