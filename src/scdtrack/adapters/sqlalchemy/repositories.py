"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from itertools import batched
from typing import TYPE_CHECKING, Final, cast

from sqlalchemy import distinct, func, select

from scdtrack.adapters.sqlalchemy.mappings import (
    actor_films_table,
    actors_history_scd_table,
    actors_table,
)
from scdtrack.domain.model import (
    CumulativeRecord,
    FilmUnit,
    HistoryRecord,
    PeriodSnapshot,
    QualityClass,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Mapping, Sequence

    from sqlalchemy import Row
    from sqlalchemy.orm import Session

    from scdtrack.domain.model import EntityId, Period

# Keeps IN (...) lists below SQLite's bound-parameter limit.
IN_CLAUSE_CHUNK: Final[int] = 500


class SqlAlchemySnapshotRepository:
    """Read and load rows of the ``actor_films`` source table."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def snapshots_for(self, period: Period) -> dict[EntityId, PeriodSnapshot]:
        stmt = (
            select(actor_films_table)
            .where(actor_films_table.c.year == period)
            .order_by(actor_films_table.c.actorid, actor_films_table.c.id)
        )
        units: dict[EntityId, list[FilmUnit]] = {}
        names: dict[EntityId, str | None] = {}
        for row in self.session.execute(stmt):
            units.setdefault(row.actorid, []).append(
                FilmUnit(
                    unit_name=row.film,
                    votes=row.votes,
                    rating=row.rating,
                    unit_id=row.filmid,
                )
            )
            names[row.actorid] = row.actor or names.get(row.actorid)
        return {
            entity_id: PeriodSnapshot(
                entity_id=entity_id,
                period=period,
                units=tuple(entity_units),
                entity_name=names.get(entity_id),
            )
            for entity_id, entity_units in units.items()
        }

    def periods(self) -> list[Period]:
        stmt = select(distinct(actor_films_table.c.year)).order_by(actor_films_table.c.year)
        return list(self.session.execute(stmt).scalars())

    def add_snapshots(self, snapshots: Iterable[PeriodSnapshot]) -> int:
        """Insert the units of ``snapshots``, skipping films already loaded."""

        inserted = 0
        for snapshot in snapshots:
            for unit in snapshot.units:
                stmt = (
                    actor_films_table.insert()
                    .prefix_with("OR IGNORE")
                    .values(
                        actor=snapshot.entity_name,
                        actorid=snapshot.entity_id,
                        film=unit.unit_name,
                        year=snapshot.period,
                        votes=unit.votes,
                        rating=unit.rating,
                        filmid=unit.unit_id,
                    )
                )
                inserted += self.session.execute(stmt).rowcount
        return inserted


class SqlAlchemyCumulativeRepository:
    """Persist cumulative rows in the ``actors`` table."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def latest_before(self, period: Period) -> dict[EntityId, CumulativeRecord]:
        latest = (
            select(
                actors_table.c.actorid,
                func.max(actors_table.c.current_year).label("current_year"),
            )
            .where(actors_table.c.current_year < period)
            .group_by(actors_table.c.actorid)
            .subquery()
        )
        stmt = select(actors_table).join(
            latest,
            (actors_table.c.actorid == latest.c.actorid)
            & (actors_table.c.current_year == latest.c.current_year),
        )
        return {
            record.entity_id: record
            for record in (_to_cumulative(row) for row in self.session.execute(stmt))
        }

    def for_period(self, period: Period) -> list[CumulativeRecord]:
        stmt = (
            select(actors_table)
            .where(actors_table.c.current_year == period)
            .order_by(actors_table.c.actorid)
        )
        return [_to_cumulative(row) for row in self.session.execute(stmt)]

    def up_to(self, period: Period) -> list[CumulativeRecord]:
        stmt = (
            select(actors_table)
            .where(actors_table.c.current_year <= period)
            .order_by(actors_table.c.actorid, actors_table.c.current_year)
        )
        return [_to_cumulative(row) for row in self.session.execute(stmt)]

    def replace_period(self, period: Period, records: Iterable[CumulativeRecord]) -> int:
        """Overwrite the ``period`` rows of the entities in ``records`` only."""

        rows = list(records)
        for chunk in batched((record.entity_id for record in rows), IN_CLAUSE_CHUNK):
            self.session.execute(
                actors_table.delete()
                .where(actors_table.c.current_year == period)
                .where(actors_table.c.actorid.in_(chunk))
            )
        if rows:
            self.session.execute(
                actors_table.insert(),
                [
                    {
                        "actorid": record.entity_id,
                        "current_year": period,
                        "actor": record.entity_name,
                        "films": record.accumulated_units,
                        "quality_class": record.quality_class,
                        "is_active": record.is_active,
                    }
                    for record in rows
                ],
            )
        return len(rows)


class SqlAlchemyHistoryRepository:
    """Persist the latest Type-2 history in ``actors_history_scd``."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def all(self) -> list[HistoryRecord]:
        stmt = select(actors_history_scd_table).order_by(
            actors_history_scd_table.c.actorid,
            actors_history_scd_table.c.start_year,
        )
        return [_to_history(row) for row in self.session.execute(stmt)]

    def for_entity(self, entity_id: EntityId) -> list[HistoryRecord]:
        stmt = (
            select(actors_history_scd_table)
            .where(actors_history_scd_table.c.actorid == entity_id)
            .order_by(actors_history_scd_table.c.start_year)
        )
        return [_to_history(row) for row in self.session.execute(stmt)]

    def replace_entities(
        self,
        rows_by_entity: Mapping[EntityId, Sequence[HistoryRecord]],
    ) -> int:
        """Swap the stored history of each given entity; other entities are untouched."""

        for chunk in batched(rows_by_entity.keys(), IN_CLAUSE_CHUNK):
            self.session.execute(
                actors_history_scd_table.delete().where(
                    actors_history_scd_table.c.actorid.in_(chunk)
                )
            )
        payload = [
            {
                "actorid": row.entity_id,
                "start_year": row.start_period,
                "end_year": row.end_period,
                "quality_class": row.quality_class,
                "is_active": row.is_active,
                "current_year": row.as_of_period,
            }
            for rows in rows_by_entity.values()
            for row in rows
        ]
        if payload:
            self.session.execute(actors_history_scd_table.insert(), payload)
        return len(payload)

    def retain_only(self, entity_ids: Collection[EntityId]) -> int:
        """Delete the history of every stored entity not in ``entity_ids``."""

        keep = set(entity_ids)
        stmt = select(distinct(actors_history_scd_table.c.actorid))
        stored = self.session.execute(stmt).scalars()
        stale = sorted(entity_id for entity_id in stored if entity_id not in keep)
        deleted = 0
        for chunk in batched(stale, IN_CLAUSE_CHUNK):
            result = self.session.execute(
                actors_history_scd_table.delete().where(
                    actors_history_scd_table.c.actorid.in_(chunk)
                )
            )
            deleted += result.rowcount
        return deleted


def _to_cumulative(row: Row[tuple[object, ...]]) -> CumulativeRecord:
    mapping = row._mapping  # noqa: SLF001
    return CumulativeRecord(
        entity_id=cast(str, mapping["actorid"]),
        period=cast(int, mapping["current_year"]),
        quality_class=QualityClass(mapping["quality_class"]),
        is_active=bool(mapping["is_active"]),
        accumulated_units=cast(tuple[FilmUnit, ...], mapping["films"]),
        entity_name=cast(str | None, mapping["actor"]),
    )


def _to_history(row: Row[tuple[object, ...]]) -> HistoryRecord:
    mapping = row._mapping  # noqa: SLF001
    return HistoryRecord(
        entity_id=cast(str, mapping["actorid"]),
        quality_class=QualityClass(mapping["quality_class"]),
        is_active=bool(mapping["is_active"]),
        start_period=cast(int, mapping["start_year"]),
        end_period=cast(int, mapping["end_year"]),
        as_of_period=cast(int, mapping["current_year"]),
    )


if TYPE_CHECKING:
    from scdtrack.domain.ports.persistence import (
        CumulativeRepository,
        HistoryRepository,
        SnapshotSource,
        SnapshotWriter,
    )

    _session_stub = cast("Session", object())
    _snapshot_check: SnapshotSource = SqlAlchemySnapshotRepository(_session_stub)
    _writer_check: SnapshotWriter = SqlAlchemySnapshotRepository(_session_stub)
    _cumulative_check: CumulativeRepository = SqlAlchemyCumulativeRepository(_session_stub)
    _history_check: HistoryRepository = SqlAlchemyHistoryRepository(_session_stub)
