"""Initial schema: commands, plans, files, notes, execution history.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

command_kind = sa.Enum("drill", "class", name="command_kind")
event_type = sa.Enum("drill", "class", name="event_type")
flight_assignment = sa.Enum("alpha", "tango", "both", name="flight_assignment")
flight_type = sa.Enum("alpha", "tango", name="flight_type")


def upgrade() -> None:
    op.create_table(
        "drill_commands",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(256), nullable=False, index=True),
        sa.Column("kind", command_kind, nullable=False),
        sa.Column("metadata", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "drill_plans",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("flight_assignment", flight_assignment, nullable=False),
        sa.Column(
            "command_id",
            sa.String(36),
            sa.ForeignKey("drill_commands.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("event_type", event_type, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "drill_plan_files",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "plan_id",
            sa.String(36),
            sa.ForeignKey("drill_plans.id", ondelete="CASCADE"),
            nullable=True,
            index=True,
        ),
        sa.Column(
            "command_id",
            sa.String(36),
            sa.ForeignKey("drill_commands.id", ondelete="CASCADE"),
            nullable=True,
            index=True,
        ),
        sa.Column("file_name", sa.Text, nullable=False),
        sa.Column("file_path", sa.Text, nullable=False),
        sa.Column("file_size", sa.Integer, nullable=False),
        sa.Column("mime_type", sa.String(255), nullable=False),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "drill_plan_notes",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "plan_id",
            sa.String(36),
            sa.ForeignKey("drill_plans.id", ondelete="CASCADE"),
            nullable=True,
            index=True,
        ),
        sa.Column(
            "command_id",
            sa.String(36),
            sa.ForeignKey("drill_commands.id", ondelete="CASCADE"),
            nullable=True,
            index=True,
        ),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("author_name", sa.String(256), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "command_execution_history",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "command_id",
            sa.String(36),
            sa.ForeignKey("drill_commands.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column(
            "plan_id",
            sa.String(36),
            sa.ForeignKey("drill_plans.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("flight_type", flight_type, nullable=False),
        sa.Column("executed_at", sa.DateTime(timezone=True), nullable=False, index=True),
    )


def downgrade() -> None:
    op.drop_table("command_execution_history")
    op.drop_table("drill_plan_notes")
    op.drop_table("drill_plan_files")
    op.drop_table("drill_plans")
    op.drop_table("drill_commands")
