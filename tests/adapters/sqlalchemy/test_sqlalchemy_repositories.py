from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import select, text

from scdtrack.adapters.sqlalchemy import (
    SqlAlchemyCumulativeRepository,
    SqlAlchemyHistoryRepository,
    SqlAlchemySnapshotRepository,
    StoredFilmsError,
    actors_table,
)
from scdtrack.domain.model import QualityClass
from tests.helpers.records import make_cumulative, make_history, make_snapshot, make_unit

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def test_snapshot_repository_groups_rows_by_actor(sqlite_session: Session) -> None:
    repo = SqlAlchemySnapshotRepository(sqlite_session)
    first = make_snapshot("nm1", 1970, [7.0, 8.0], entity_name="Ann")
    second = make_snapshot("nm2", 1970, [6.0], entity_name="Bob")
    later = make_snapshot("nm1", 1971, [9.0], entity_name="Ann")

    inserted = repo.add_snapshots([first, second, later])
    sqlite_session.commit()

    assert inserted == 4
    snapshots = repo.snapshots_for(1970)
    assert set(snapshots) == {"nm1", "nm2"}
    assert snapshots["nm1"].units == first.units
    assert snapshots["nm1"].entity_name == "Ann"
    assert repo.periods() == [1970, 1971]
    assert repo.snapshots_for(1999) == {}


def test_snapshot_repository_skips_films_already_loaded(sqlite_session: Session) -> None:
    repo = SqlAlchemySnapshotRepository(sqlite_session)
    snapshot = make_snapshot("nm1", 1970, [7.0])

    assert repo.add_snapshots([snapshot]) == 1
    assert repo.add_snapshots([snapshot]) == 0


def test_cumulative_repository_round_trips_films(sqlite_session: Session) -> None:
    repo = SqlAlchemyCumulativeRepository(sqlite_session)
    units = (make_unit(7.5, votes=12, name="Heat"), make_unit(8.5, votes=3, name="Ronin"))
    record = make_cumulative("nm1", 1970, QualityClass.TOP, units=units)

    repo.replace_period(1970, [record])
    sqlite_session.commit()

    assert repo.for_period(1970) == [record]
    stored = sqlite_session.execute(select(actors_table.c.quality_class)).scalar_one()
    assert stored == QualityClass.TOP


def test_cumulative_repository_latest_before_picks_most_recent_row(
    sqlite_session: Session,
) -> None:
    repo = SqlAlchemyCumulativeRepository(sqlite_session)
    repo.replace_period(1, [make_cumulative("a", 1), make_cumulative("b", 1)])
    repo.replace_period(2, [make_cumulative("a", 2, QualityClass.TOP)])
    repo.replace_period(3, [make_cumulative("a", 3, QualityClass.LOW)])

    latest = repo.latest_before(3)

    assert latest["a"].period == 2
    assert latest["a"].quality_class is QualityClass.TOP
    assert latest["b"].period == 1


def test_cumulative_repository_replace_period_only_touches_given_entities(
    sqlite_session: Session,
) -> None:
    repo = SqlAlchemyCumulativeRepository(sqlite_session)
    repo.replace_period(1, [make_cumulative("a", 1), make_cumulative("b", 1)])

    written = repo.replace_period(1, [make_cumulative("a", 1, QualityClass.TOP)])

    assert written == 1
    rows = {record.entity_id: record for record in repo.for_period(1)}
    assert rows["a"].quality_class is QualityClass.TOP
    assert rows["b"].quality_class is QualityClass.MID
    assert [record.period for record in repo.up_to(1)] == [1, 1]


def test_history_repository_replaces_entities(sqlite_session: Session) -> None:
    repo = SqlAlchemyHistoryRepository(sqlite_session)
    repo.replace_entities(
        {
            "a": [make_history("a", 1, 1, QualityClass.TOP, as_of=1)],
            "b": [make_history("b", 1, 1, QualityClass.LOW, as_of=1)],
        }
    )

    written = repo.replace_entities(
        {
            "a": [
                make_history("a", 1, 1, QualityClass.TOP, as_of=2),
                make_history("a", 2, 2, QualityClass.MID, as_of=2),
            ]
        }
    )

    assert written == 2
    assert [row.start_period for row in repo.for_entity("a")] == [1, 2]
    assert repo.for_entity("b") == [make_history("b", 1, 1, QualityClass.LOW, as_of=1)]
    assert [row.entity_id for row in repo.all()] == ["a", "a", "b"]


def test_history_repository_retain_only_deletes_other_entities(sqlite_session: Session) -> None:
    repo = SqlAlchemyHistoryRepository(sqlite_session)
    repo.replace_entities(
        {
            "a": [make_history("a", 1, 2, QualityClass.TOP, as_of=2)],
            "b": [
                make_history("b", 1, 1, QualityClass.LOW, as_of=2),
                make_history("b", 2, 2, QualityClass.MID, as_of=2),
            ],
            "c": [make_history("c", 2, 2, QualityClass.HIGH, as_of=2)],
        }
    )

    deleted = repo.retain_only({"a", "missing"})

    assert deleted == 3
    assert [row.entity_id for row in repo.all()] == ["a"]


@pytest.mark.parametrize(
    "films",
    [
        "not json",
        '{"film": "Dust Road"}',
        '[{"film": "Dust Road", "votes": 10}]',
        '["Dust Road"]',
    ],
)
def test_cumulative_repository_rejects_corrupt_films(sqlite_session: Session, films: str) -> None:
    sqlite_session.execute(
        text(
            "INSERT INTO actors (actorid, current_year, actor, films, quality_class, is_active) "
            "VALUES ('a', 1, NULL, :films, 'low', 1)"
        ),
        {"films": films},
    )
    repo = SqlAlchemyCumulativeRepository(sqlite_session)

    with pytest.raises(StoredFilmsError):
        repo.for_period(1)
