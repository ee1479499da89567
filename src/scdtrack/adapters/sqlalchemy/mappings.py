"""SQLAlchemy table metadata for snapshots, cumulative rows and history."""

from __future__ import annotations

import json
from typing import Any, cast

from sqlalchemy import (
    Boolean,
    Column,
    Dialect,
    Enum,
    Float,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
)

from scdtrack.domain.model import FilmUnit, QualityClass


class StoredFilmsError(ValueError):
    """Raised when the films column of a cumulative row cannot be decoded."""


class FilmUnitsType(TypeDecorator[tuple[FilmUnit, ...]]):
    """Ordered film array stored as a JSON list of objects."""

    impl = Text
    cache_ok = True

    def process_bind_param(
        self, value: tuple[FilmUnit, ...] | None, dialect: Dialect
    ) -> str | None:
        _ = dialect
        if value is None:
            return None
        payload = [
            {
                "film": unit.unit_name,
                "votes": unit.votes,
                "rating": unit.rating,
                "filmid": unit.unit_id,
            }
            for unit in value
        ]
        return json.dumps(payload, separators=(",", ":"))

    def process_result_value(self, value: str | None, dialect: Dialect) -> tuple[FilmUnit, ...]:
        _ = dialect
        if value is None:
            return ()
        try:
            loaded = json.loads(value)
        except json.JSONDecodeError as exc:
            raise StoredFilmsError(f"Stored films are not valid JSON: {exc}") from exc
        if not isinstance(loaded, list):
            raise StoredFilmsError(f"Stored films must be a JSON list, got {type(loaded).__name__}")
        items = cast(list[Any], loaded)
        units: list[FilmUnit] = []
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                raise StoredFilmsError(f"Stored film #{index} is not an object: {item!r}")
            entry = cast(dict[str, Any], item)
            try:
                units.append(
                    FilmUnit(
                        unit_name=str(entry["film"]),
                        votes=int(entry["votes"]),
                        rating=float(entry["rating"]),
                        unit_id=str(entry["filmid"]),
                    )
                )
            except (KeyError, TypeError, ValueError) as exc:
                raise StoredFilmsError(f"Stored film #{index} is malformed: {entry!r}") from exc
        return tuple(units)


def _quality_class_type() -> Enum:
    return Enum(
        QualityClass,
        name="quality_class",
        native_enum=False,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

# Source ----------------------------------------------------------------------

actor_films_table = Table(
    "actor_films",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("actor", String, nullable=True),
    Column("actorid", String, nullable=False),
    Column("film", String, nullable=False),
    Column("year", Integer, nullable=False),
    Column("votes", Integer, nullable=False),
    Column("rating", Float, nullable=False),
    Column("filmid", String, nullable=False),
    UniqueConstraint("actorid", "filmid", name="uq_actor_films_actor_film"),
    Index("ix_actor_films_year", "year"),
)

# Outputs ---------------------------------------------------------------------

actors_table = Table(
    "actors",
    metadata,
    Column("actorid", String, primary_key=True),
    Column("current_year", Integer, primary_key=True),
    Column("actor", String, nullable=True),
    Column("films", FilmUnitsType(), nullable=False),
    Column("quality_class", _quality_class_type(), nullable=False),
    Column("is_active", Boolean, nullable=False),
    Index("ix_actors_current_year", "current_year"),
)

actors_history_scd_table = Table(
    "actors_history_scd",
    metadata,
    Column("actorid", String, primary_key=True),
    Column("start_year", Integer, primary_key=True),
    Column("end_year", Integer, nullable=False),
    Column("quality_class", _quality_class_type(), nullable=False),
    Column("is_active", Boolean, nullable=False),
    Column("current_year", Integer, nullable=False),
)
