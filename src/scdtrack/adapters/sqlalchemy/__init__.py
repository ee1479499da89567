"""SQLAlchemy adapter package for scdtrack."""

from __future__ import annotations

from .mappings import (
    FilmUnitsType,
    StoredFilmsError,
    actor_films_table,
    actors_history_scd_table,
    actors_table,
    metadata,
)
from .repositories import (
    SqlAlchemyCumulativeRepository,
    SqlAlchemyHistoryRepository,
    SqlAlchemySnapshotRepository,
)

__all__ = [
    "FilmUnitsType",
    "SqlAlchemyCumulativeRepository",
    "SqlAlchemyHistoryRepository",
    "SqlAlchemySnapshotRepository",
    "StoredFilmsError",
    "actor_films_table",
    "actors_history_scd_table",
    "actors_table",
    "metadata",
]
