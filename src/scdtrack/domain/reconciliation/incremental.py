"""Incremental history update: extend the history as of ``P-1`` by period ``P``.

Only the open row of each entity (the one ending at ``P-1``) can change. Rows
closed earlier are carried through and restamped with the new as-of period,
which keeps the result identical to a backfill up to ``P``.
"""

from __future__ import annotations

from dataclasses import replace
from operator import attrgetter
from typing import TYPE_CHECKING

from scdtrack.domain.model import HistoryRecord

from .batch import run_per_entity
from .contracts import HistoryResult
from .errors import InvariantViolationError, PeriodOrderError
from .invariants import check_partition

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Sequence

    from scdtrack.domain.model import CumulativeRecord, EntityId, Period


def update_history(
    prior: Iterable[HistoryRecord],
    current: Iterable[CumulativeRecord],
    period: Period,
    *,
    known_before: Collection[EntityId] = (),
    max_workers: int = 1,
) -> HistoryResult:
    """Apply the cumulative rows of ``period`` to the history as of ``period - 1``.

    ``known_before`` names the entities that already have cumulative rows before
    ``period``. Such an entity without stored history cannot be extended and is
    reported as a failure instead of being started over at ``period``.
    """

    earlier = frozenset(known_before)

    prior_by_entity: dict[EntityId, list[HistoryRecord]] = {}
    for row in prior:
        prior_by_entity.setdefault(row.entity_id, []).append(row)

    current_by_entity: dict[EntityId, CumulativeRecord] = {}
    for record in current:
        if record.period != period:
            continue
        current_by_entity[record.entity_id] = record

    def update_one(entity_id: EntityId) -> tuple[HistoryRecord, ...]:
        return update_entity(
            entity_id,
            prior_by_entity.get(entity_id, ()),
            current_by_entity.get(entity_id),
            period,
            seen_before=entity_id in earlier,
        )

    history, failures = run_per_entity(
        prior_by_entity.keys() | current_by_entity.keys(),
        update_one,
        max_workers=max_workers,
    )
    return HistoryResult(
        as_of_period=period,
        records=tuple(row for rows in history.values() for row in rows),
        failures=failures,
    )


def update_entity(
    entity_id: EntityId,
    prior: Sequence[HistoryRecord],
    current: CumulativeRecord | None,
    period: Period,
    *,
    seen_before: bool = False,
) -> tuple[HistoryRecord, ...]:
    """Return the full history of one entity as of ``period``."""

    previous_period = period - 1
    ordered = sorted(prior, key=attrgetter("start_period"))
    for row in ordered:
        if row.as_of_period != previous_period:
            raise PeriodOrderError(
                f"History row starting {row.start_period} is as of {row.as_of_period}, "
                f"expected {previous_period}",
                entity_id=entity_id,
                period=period,
            )

    if current is None:
        raise InvariantViolationError(
            f"No cumulative record for period {period} to extend the history with",
            entity_id=entity_id,
            period=period,
        )

    if not ordered and seen_before:
        raise InvariantViolationError(
            f"Entity has cumulative rows before period {period} but no stored history; "
            "run a backfill first",
            entity_id=entity_id,
            period=period,
        )

    if ordered:
        check_partition(entity_id, ordered, previous_period)

    closed = [replace(row, as_of_period=period) for row in ordered[:-1]]
    open_row = ordered[-1] if ordered else None

    if open_row is None:
        tail = [_new_run(current, period)]
    elif open_row.state == current.state:
        tail = [replace(open_row, end_period=period, as_of_period=period)]
    else:
        tail = [replace(open_row, as_of_period=period), _new_run(current, period)]

    updated = (*closed, *tail)
    check_partition(entity_id, updated, period)
    return updated


def _new_run(record: CumulativeRecord, period: Period) -> HistoryRecord:
    return HistoryRecord(
        entity_id=record.entity_id,
        quality_class=record.quality_class,
        is_active=record.is_active,
        start_period=period,
        end_period=period,
        as_of_period=period,
    )
