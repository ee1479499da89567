from __future__ import annotations

import pytest

from scdtrack.domain.model import ActivityPolicy, QualityClass
from scdtrack.domain.reconciliation import (
    InvariantViolationError,
    MergeSettings,
    MissingPriorPeriodError,
    Operation,
    PeriodOrderError,
    ReconciliationEngine,
    backfill_history,
)
from tests.helpers.fakes import FakeUnitOfWork
from tests.helpers.records import make_cumulative, make_history, make_snapshot


@pytest.fixture
def uow() -> FakeUnitOfWork:
    fake = FakeUnitOfWork()
    fake.snapshots.add(
        make_snapshot("A", 1, [9.0, 9.0]),
        make_snapshot("A", 3, [5.0]),
        make_snapshot("B", 2, [7.5]),
    )
    return fake


def test_engine_run_builds_cumulative_rows_and_history(uow: FakeUnitOfWork) -> None:
    engine = ReconciliationEngine(unit_of_work_factory=lambda: uow)

    summaries = engine.run(1, 3)

    assert [(s.operation, s.period) for s in summaries] == [
        (Operation.CUMULATE, 1),
        (Operation.BACKFILL, 1),
        (Operation.CUMULATE, 2),
        (Operation.UPDATE, 2),
        (Operation.CUMULATE, 3),
        (Operation.UPDATE, 3),
    ]
    assert all(summary.ok for summary in summaries)
    assert uow.history.for_entity("A") == [
        make_history("A", 1, 2, QualityClass.TOP, as_of=3),
        make_history("A", 3, 3, QualityClass.LOW, as_of=3),
    ]
    assert uow.history.for_entity("B") == [make_history("B", 2, 3, QualityClass.HIGH, as_of=3)]
    assert len(uow.cumulative.for_period(3)) == 2
    assert uow.commits == 6


def test_engine_history_matches_backfill_of_stored_rows(uow: FakeUnitOfWork) -> None:
    engine = ReconciliationEngine(unit_of_work_factory=lambda: uow)

    engine.run(1, 3)

    expected = backfill_history(uow.cumulative.up_to(3), as_of=3)
    assert tuple(uow.history.all()) == expected.records


def test_engine_cumulate_rerun_is_idempotent(uow: FakeUnitOfWork) -> None:
    engine = ReconciliationEngine(unit_of_work_factory=lambda: uow)
    engine.cumulate(1)
    engine.cumulate(2)
    first = uow.cumulative.for_period(2)

    summary = engine.cumulate(2)

    assert summary.ok
    assert uow.cumulative.for_period(2) == first


def test_engine_reports_missing_prior_period_per_entity(uow: FakeUnitOfWork) -> None:
    uow.cumulative.replace_period(1, [make_cumulative("A", 1, QualityClass.TOP)])
    uow.cumulative.replace_period(3, [make_cumulative("B", 3, QualityClass.HIGH)])
    engine = ReconciliationEngine(unit_of_work_factory=lambda: uow)

    summary = engine.cumulate(4)

    assert summary.failed_entities == ("A",)
    assert isinstance(summary.failures[0].error, MissingPriorPeriodError)
    assert [record.entity_id for record in uow.cumulative.for_period(4)] == ["B"]
    assert summary.entities == 2


def test_engine_update_rerun_reports_period_order(uow: FakeUnitOfWork) -> None:
    engine = ReconciliationEngine(unit_of_work_factory=lambda: uow)
    engine.run(1, 2)
    stored = uow.history.all()

    summary = engine.update(2)

    assert not summary.ok
    assert all(isinstance(f.error, PeriodOrderError) for f in summary.failures)
    assert uow.history.all() == stored


def test_engine_update_without_stored_history_fails_for_known_entities(
    uow: FakeUnitOfWork,
) -> None:
    engine = ReconciliationEngine(unit_of_work_factory=lambda: uow)
    engine.cumulate(1)
    engine.cumulate(2)

    summary = engine.update(2)

    assert summary.failed_entities == ("A",)
    assert isinstance(summary.failures[0].error, InvariantViolationError)
    assert uow.history.for_entity("A") == []
    assert uow.history.for_entity("B") == [make_history("B", 2, 2, QualityClass.HIGH, as_of=2)]


def test_engine_backfill_to_earlier_period_drops_later_entities(uow: FakeUnitOfWork) -> None:
    engine = ReconciliationEngine(unit_of_work_factory=lambda: uow)
    engine.run(1, 3)

    summary = engine.backfill(1)

    assert summary.ok
    assert uow.history.all() == [make_history("A", 1, 1, QualityClass.TOP, as_of=1)]

    assert engine.update(2).ok
    expected = backfill_history(uow.cumulative.up_to(2), as_of=2)
    assert tuple(uow.history.all()) == expected.records


def test_engine_backfill_keeps_history_of_failed_entities(uow: FakeUnitOfWork) -> None:
    uow.cumulative.replace_period(1, [make_cumulative("A", 1, QualityClass.TOP)])
    uow.cumulative.replace_period(3, [make_cumulative("A", 3, QualityClass.TOP)])
    stored = [make_history("A", 1, 1, QualityClass.TOP, as_of=1)]
    uow.history.replace_entities({"A": stored})
    engine = ReconciliationEngine(unit_of_work_factory=lambda: uow)

    summary = engine.backfill(3)

    assert summary.failed_entities == ("A",)
    assert uow.history.for_entity("A") == stored


def test_engine_uses_activity_settings(uow: FakeUnitOfWork) -> None:
    engine = ReconciliationEngine(
        unit_of_work_factory=lambda: uow,
        settings=MergeSettings(activity_policy=ActivityPolicy.SNAPSHOT_PRESENCE),
    )

    engine.run(1, 2)

    (record_a,) = [r for r in uow.cumulative.for_period(2) if r.entity_id == "A"]
    assert record_a.is_active is False
    assert [row.is_active for row in uow.history.for_entity("A")] == [True, False]


def test_engine_run_rejects_inverted_range(uow: FakeUnitOfWork) -> None:
    engine = ReconciliationEngine(unit_of_work_factory=lambda: uow)

    with pytest.raises(ValueError, match="precedes"):
        engine.run(3, 1)


def test_engine_parallel_run_matches_sequential_run() -> None:
    def seeded() -> FakeUnitOfWork:
        fake = FakeUnitOfWork()
        for index in range(25):
            for period in range(1, 5):
                if (index + period) % 3:
                    fake.snapshots.add(
                        make_snapshot(f"e{index:02d}", period, [4.0 + (index * period) % 6])
                    )
        return fake

    sequential_uow = seeded()
    parallel_uow = seeded()

    ReconciliationEngine(unit_of_work_factory=lambda: sequential_uow).run(1, 4)
    ReconciliationEngine(unit_of_work_factory=lambda: parallel_uow, max_workers=4).run(1, 4)

    assert parallel_uow.history.all() == sequential_uow.history.all()
    assert parallel_uow.cumulative.up_to(4) == sequential_uow.cumulative.up_to(4)
