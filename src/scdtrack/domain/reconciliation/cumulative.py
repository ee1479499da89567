"""Cumulative merger: period ``N-1`` state plus period ``N`` snapshots.

The merge is a full outer join on ``entity_id`` expressed as a walk over the
union of both key sets. Neither input mapping is modified; every output row is
a new :class:`CumulativeRecord`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from scdtrack.domain.model import ActivityPolicy, CumulativeRecord

from .batch import run_per_entity
from .classify import FALLBACK_CLASS, average_rating, classify, is_active
from .contracts import MergeResult
from .errors import MissingPriorPeriodError, PeriodOrderError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from scdtrack.domain.model import EntityId, Period, PeriodSnapshot, QualityClass


@dataclass(frozen=True, slots=True)
class MergeSettings:
    activity_policy: ActivityPolicy = ActivityPolicy.CARRY_FORWARD


def merge_period(
    previous: Mapping[EntityId, CumulativeRecord],
    snapshots: Mapping[EntityId, PeriodSnapshot],
    period: Period,
    *,
    settings: MergeSettings | None = None,
    max_workers: int = 1,
) -> MergeResult:
    """Build the cumulative rows of ``period`` for every entity in either input.

    ``previous`` holds the latest known row of each entity (normally the rows
    of ``period - 1``). Entities whose latest row is older than that, or whose
    inputs belong to the wrong period, are reported as failures and left out.
    """

    effective = settings or MergeSettings()

    def merge_one(entity_id: EntityId) -> CumulativeRecord:
        return merge_entity(
            previous.get(entity_id),
            snapshots.get(entity_id),
            period,
            settings=effective,
        )

    merged, failures = run_per_entity(
        previous.keys() | snapshots.keys(),
        merge_one,
        max_workers=max_workers,
    )
    return MergeResult(period=period, records=tuple(merged.values()), failures=failures)


def merge_entity(
    previous: CumulativeRecord | None,
    snapshot: PeriodSnapshot | None,
    period: Period,
    *,
    settings: MergeSettings,
) -> CumulativeRecord:
    """Merge one entity's prior cumulative row with its snapshot for ``period``."""

    if previous is not None:
        _check_previous(previous, period)
    if snapshot is not None and snapshot.period != period:
        raise PeriodOrderError(
            f"Snapshot belongs to period {snapshot.period}",
            entity_id=snapshot.entity_id,
            period=period,
        )

    if snapshot is None:
        if previous is None:
            raise ValueError("merge_entity needs a previous record or a snapshot")
        return replace(
            previous,
            period=period,
            is_active=is_active(
                False,  # noqa: FBT003
                previous.is_active,
                policy=settings.activity_policy,
            ),
        )

    prior_units = previous.accumulated_units if previous is not None else ()
    return CumulativeRecord(
        entity_id=snapshot.entity_id,
        period=period,
        quality_class=_current_class(snapshot, previous),
        is_active=True,
        accumulated_units=prior_units + snapshot.units,
        entity_name=snapshot.entity_name
        or (previous.entity_name if previous is not None else None),
    )


def _current_class(snapshot: PeriodSnapshot, previous: CumulativeRecord | None) -> QualityClass:
    # Only this period's films count, not the accumulated history.
    metric = average_rating(snapshot.units)
    if metric is not None:
        return classify(metric)
    if previous is not None:
        return previous.quality_class
    return FALLBACK_CLASS


def _check_previous(previous: CumulativeRecord, period: Period) -> None:
    if previous.period >= period:
        raise PeriodOrderError(
            f"Previous record is already at period {previous.period}",
            entity_id=previous.entity_id,
            period=period,
        )
    if previous.period < period - 1:
        raise MissingPriorPeriodError(
            entity_id=previous.entity_id,
            period=period,
            latest_period=previous.period,
        )
