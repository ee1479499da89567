"""Create snapshot, cumulative and history tables.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17 00:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

_QUALITY_CLASSES = ("low", "mid", "high", "top")


def _quality_class() -> sa.Enum:
    return sa.Enum(*_QUALITY_CLASSES, name="quality_class", native_enum=False)


def upgrade() -> None:
    op.create_table(
        "actor_films",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("actor", sa.String(), nullable=True),
        sa.Column("actorid", sa.String(), nullable=False),
        sa.Column("film", sa.String(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("votes", sa.Integer(), nullable=False),
        sa.Column("rating", sa.Float(), nullable=False),
        sa.Column("filmid", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_actor_films")),
        sa.UniqueConstraint("actorid", "filmid", name="uq_actor_films_actor_film"),
    )
    op.create_index("ix_actor_films_year", "actor_films", ["year"])

    op.create_table(
        "actors",
        sa.Column("actorid", sa.String(), nullable=False),
        sa.Column("current_year", sa.Integer(), nullable=False),
        sa.Column("actor", sa.String(), nullable=True),
        sa.Column("films", sa.Text(), nullable=False),
        sa.Column("quality_class", _quality_class(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("actorid", "current_year", name=op.f("pk_actors")),
    )
    op.create_index("ix_actors_current_year", "actors", ["current_year"])

    op.create_table(
        "actors_history_scd",
        sa.Column("actorid", sa.String(), nullable=False),
        sa.Column("start_year", sa.Integer(), nullable=False),
        sa.Column("end_year", sa.Integer(), nullable=False),
        sa.Column("quality_class", _quality_class(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("current_year", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("actorid", "start_year", name=op.f("pk_actors_history_scd")),
    )


def downgrade() -> None:
    op.drop_table("actors_history_scd")
    op.drop_index("ix_actors_current_year", table_name="actors")
    op.drop_table("actors")
    op.drop_index("ix_actor_films_year", table_name="actor_films")
    op.drop_table("actor_films")
