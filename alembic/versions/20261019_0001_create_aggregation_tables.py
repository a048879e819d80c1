"""create dojos, dojo_event_services and event_histories tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "dojos",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_dojos_is_active", "dojos", ["is_active"], unique=False)

    op.create_table(
        "dojo_event_services",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("dojo_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("group_id", sa.String(length=255), nullable=True),
        sa.Column("url", sa.String(length=512), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["dojo_id"], ["dojos.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("dojo_id", "name", "group_id", name="uq_dojo_event_services_dojo_name_group"),
    )
    op.create_index("ix_dojo_event_services_name", "dojo_event_services", ["name"], unique=False)

    op.create_table(
        "event_histories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("dojo_id", sa.Integer(), nullable=True),
        sa.Column("dojo_name", sa.String(length=255), nullable=False),
        sa.Column("service_name", sa.String(length=50), nullable=False),
        sa.Column("service_group_id", sa.String(length=255), nullable=True),
        sa.Column("event_id", sa.String(length=255), nullable=False),
        sa.Column("event_url", sa.String(length=1024), nullable=True),
        sa.Column("participants", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("evented_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["dojo_id"], ["dojos.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("service_name", "event_id", name="uq_event_histories_service_event"),
    )
    op.create_index(
        "ix_event_histories_service_evented_at",
        "event_histories",
        ["service_name", "evented_at"],
        unique=False,
    )
    op.create_index("ix_event_histories_dojo_id", "event_histories", ["dojo_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_event_histories_dojo_id", table_name="event_histories")
    op.drop_index("ix_event_histories_service_evented_at", table_name="event_histories")
    op.drop_table("event_histories")
    op.drop_index("ix_dojo_event_services_name", table_name="dojo_event_services")
    op.drop_table("dojo_event_services")
    op.drop_index("ix_dojos_is_active", table_name="dojos")
    op.drop_table("dojos")
