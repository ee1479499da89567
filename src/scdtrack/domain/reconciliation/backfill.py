"""History backfill: recompute every run from the full cumulative series."""

from __future__ import annotations

from itertools import groupby
from operator import attrgetter
from typing import TYPE_CHECKING

from scdtrack.domain.model import HistoryRecord

from .batch import run_per_entity
from .contracts import HistoryResult
from .errors import InvariantViolationError
from .invariants import check_partition

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from scdtrack.domain.model import CumulativeRecord, EntityId, Period


def backfill_history(
    records: Iterable[CumulativeRecord],
    as_of: Period,
    *,
    max_workers: int = 1,
) -> HistoryResult:
    """Build the history of every entity from its cumulative rows up to ``as_of``.

    Rows after ``as_of`` are ignored. The output is deterministic: running it
    again on the same rows yields the same records in the same order.
    """

    series: dict[EntityId, list[CumulativeRecord]] = {}
    for record in records:
        if record.period > as_of:
            continue
        series.setdefault(record.entity_id, []).append(record)

    def backfill_one(entity_id: EntityId) -> tuple[HistoryRecord, ...]:
        return backfill_entity(entity_id, series[entity_id], as_of)

    history, failures = run_per_entity(series.keys(), backfill_one, max_workers=max_workers)
    return HistoryResult(
        as_of_period=as_of,
        records=tuple(row for rows in history.values() for row in rows),
        failures=failures,
    )


def backfill_entity(
    entity_id: EntityId,
    records: Sequence[CumulativeRecord],
    as_of: Period,
) -> tuple[HistoryRecord, ...]:
    """Collapse one entity's cumulative series into maximal same-state runs."""

    ordered = sorted(records, key=attrgetter("period"))
    _check_series(entity_id, ordered, as_of)

    runs: list[HistoryRecord] = []
    # groupby only merges adjacent rows, so each group is one run.
    for (quality_class, active), group in groupby(ordered, key=attrgetter("state")):
        periods = [record.period for record in group]
        runs.append(
            HistoryRecord(
                entity_id=entity_id,
                quality_class=quality_class,
                is_active=active,
                start_period=periods[0],
                end_period=periods[-1],
                as_of_period=as_of,
            )
        )

    check_partition(entity_id, runs, as_of, first_period=ordered[0].period)
    return tuple(runs)


def _check_series(entity_id: EntityId, ordered: Sequence[CumulativeRecord], as_of: Period) -> None:
    if not ordered:
        raise InvariantViolationError("No cumulative records", entity_id=entity_id, period=as_of)
    for earlier, later in zip(ordered, ordered[1:], strict=False):
        if later.period == earlier.period:
            raise InvariantViolationError(
                f"Duplicate cumulative records for period {later.period}",
                entity_id=entity_id,
                period=as_of,
            )
        if later.period != earlier.period + 1:
            raise InvariantViolationError(
                f"Cumulative records missing between {earlier.period} and {later.period}",
                entity_id=entity_id,
                period=as_of,
            )
