"""
============================================================
TARJETA CRC (Class / Responsibilities / Collaborators)
============================================================
Class: 001_foundation (Alembic Migration)

Responsibilities:
  - Crear el esquema completo desde cero (migración fundacional).
  - Identity (users, hideouts, party_members, favoritos).
  - Builds (con familia de traducciones vía original_build_id).
  - Inventario (checklist, vínculos checklist <-> build, stash).

Collaborators:
  - PostgreSQL 16+
  - infrastructure/repositories/postgres/* (usa este esquema como contrato)

Policy:
  - Migración BASELINE. Downgrade NO soportado.
  - Ids son text: los genera la aplicación.
  - Convención de nombres:
      pk_<tabla> / uq_<tabla>_<col> / ix_<tabla>_<col> / fk_<tabla>_<col>__<ref_tabla>
============================================================
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_foundation"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def _jsonb_list(name: str) -> sa.Column:
    return sa.Column(
        name,
        postgresql.JSONB,
        nullable=False,
        server_default=sa.text("'[]'::jsonb"),
    )


def upgrade() -> None:
    # =========================================================
    # 1) IDENTITY
    # =========================================================
    op.create_table(
        "users",
        sa.Column("id", sa.Text, nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False, server_default=sa.text("''")),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
    )
    # Lookup case-insensitive (get_by_email).
    op.execute("CREATE UNIQUE INDEX uq_users_lower_email ON users (lower(email))")

    op.create_table(
        "hideouts",
        sa.Column("id", sa.Text, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("invite_code", sa.String(16), nullable=False),
        _created_at(),
        # deleted_at = soft delete; join devuelve 410.
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_hideouts"),
        sa.UniqueConstraint("invite_code", name="uq_hideouts_invite_code"),
    )

    op.create_table(
        "party_members",
        sa.Column("id", sa.Text, nullable=False),
        sa.Column("hideout_id", sa.Text, nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("email", sa.String(100), nullable=True),
        sa.Column("user_id", sa.Text, nullable=True),
        sa.Column("is_guest", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'MEMBER'")),
        _jsonb_list("restrictions"),
        _jsonb_list("likes"),
        _jsonb_list("dislikes"),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_party_members"),
        sa.ForeignKeyConstraint(
            ["hideout_id"],
            ["hideouts.id"],
            name="fk_party_members_hideout_id__hideouts",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_party_members_user_id__users",
            ondelete="SET NULL",
        ),
    )
    op.create_index("ix_party_members_hideout_id", "party_members", ["hideout_id"])
    op.create_index("ix_party_members_user_id", "party_members", ["user_id"])

    # =========================================================
    # 2) BUILDS
    # =========================================================
    op.create_table(
        "builds",
        sa.Column("id", sa.Text, nullable=False),
        sa.Column("hideout_id", sa.Text, nullable=False),
        sa.Column("build_title", sa.String(255), nullable=False),
        sa.Column("analysis_log", sa.Text, nullable=False, server_default=sa.text("''")),
        sa.Column("build_reasoning", sa.Text, nullable=False, server_default=sa.text("''")),
        _jsonb_list("gear_gems"),
        _jsonb_list("build_items"),
        _jsonb_list("build_steps"),
        sa.Column("compliance_badge", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("build_archetype", sa.String(50), nullable=False),
        sa.Column("build_cost_tier", sa.String(20), nullable=False),
        sa.Column("setup_time", sa.String(50), nullable=False, server_default=sa.text("''")),
        sa.Column("setup_time_minutes", sa.Integer, nullable=True),
        sa.Column("build_image", sa.Text, nullable=True),
        sa.Column("language", sa.String(10), nullable=False, server_default=sa.text("'en'")),
        # Raíz de la familia de traducciones (NULL en la raíz).
        sa.Column("original_build_id", sa.Text, nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_builds"),
        sa.ForeignKeyConstraint(
            ["hideout_id"],
            ["hideouts.id"],
            name="fk_builds_hideout_id__hideouts",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["original_build_id"],
            ["builds.id"],
            name="fk_builds_original_build_id__builds",
            ondelete="SET NULL",
        ),
    )
    op.create_index("ix_builds_hideout_id", "builds", ["hideout_id"])
    op.create_index("ix_builds_original_build_id", "builds", ["original_build_id"])
    op.create_index("ix_builds_created_at", "builds", ["created_at"])

    op.create_table(
        "favorite_builds",
        sa.Column("member_id", sa.Text, nullable=False),
        sa.Column("build_id", sa.Text, nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("member_id", "build_id", name="pk_favorite_builds"),
        sa.ForeignKeyConstraint(
            ["member_id"],
            ["party_members.id"],
            name="fk_favorite_builds_member_id__party_members",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["build_id"],
            ["builds.id"],
            name="fk_favorite_builds_build_id__builds",
            ondelete="CASCADE",
        ),
    )

    # =========================================================
    # 3) INVENTORY (checklist + stash)
    # =========================================================
    op.create_table(
        "checklist_items",
        sa.Column("id", sa.Text, nullable=False),
        sa.Column("hideout_id", sa.Text, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("checked", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("quantity", sa.String(50), nullable=True),
        sa.Column("unit", sa.String(50), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_checklist_items"),
        sa.UniqueConstraint("hideout_id", "name", name="uq_checklist_items_hideout_id"),
        sa.ForeignKeyConstraint(
            ["hideout_id"],
            ["hideouts.id"],
            name="fk_checklist_items_hideout_id__hideouts",
            ondelete="CASCADE",
        ),
    )

    op.create_table(
        "checklist_item_builds",
        sa.Column("checklist_item_id", sa.Text, nullable=False),
        sa.Column("build_id", sa.Text, nullable=False),
        sa.PrimaryKeyConstraint(
            "checklist_item_id", "build_id", name="pk_checklist_item_builds"
        ),
        sa.ForeignKeyConstraint(
            ["checklist_item_id"],
            ["checklist_items.id"],
            name="fk_checklist_item_builds_checklist_item_id__checklist_items",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["build_id"],
            ["builds.id"],
            name="fk_checklist_item_builds_build_id__builds",
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        "ix_checklist_item_builds_build_id", "checklist_item_builds", ["build_id"]
    )

    op.create_table(
        "stash_items",
        sa.Column("id", sa.Text, nullable=False),
        sa.Column("hideout_id", sa.Text, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("in_stock", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column(
            "replenishment_rule",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'NEVER'"),
        ),
        sa.Column("quantity", sa.String(50), nullable=True),
        sa.Column("unit", sa.String(50), nullable=True),
        sa.Column("unit_details", sa.Text, nullable=True),
        sa.Column("checklist_item_id", sa.Text, nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_stash_items"),
        sa.UniqueConstraint("hideout_id", "name", name="uq_stash_items_hideout_id"),
        sa.ForeignKeyConstraint(
            ["hideout_id"],
            ["hideouts.id"],
            name="fk_stash_items_hideout_id__hideouts",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["checklist_item_id"],
            ["checklist_items.id"],
            name="fk_stash_items_checklist_item_id__checklist_items",
            ondelete="SET NULL",
        ),
    )
    # Query del job de reposición.
    op.execute(
        "CREATE INDEX ix_stash_items_replenishment "
        "ON stash_items (replenishment_rule, in_stock) "
        "WHERE checklist_item_id IS NULL"
    )


def downgrade() -> None:
    raise NotImplementedError(
        "Baseline: downgrade no soportado. Recrear la base para resetear el entorno."
    )
