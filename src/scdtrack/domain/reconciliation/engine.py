"""Orchestrator binding the pure reconciliation stages to a unit of work.

Each public method is one reconciliation run: it reads its inputs through the
repositories, runs a stage, writes the rows of the entities that succeeded and
commits. Entities that failed keep whatever rows they already had, so the same
period can be run again once their inputs are fixed. Runs must be serialized
by the caller; the engine assumes it is the only writer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .backfill import backfill_history
from .contracts import BatchSummary, Operation
from .cumulative import MergeSettings, merge_period
from .incremental import update_history

if TYPE_CHECKING:
    from collections.abc import Callable

    from scdtrack.domain.model import Period
    from scdtrack.domain.ports.unit_of_work import ReconciliationUnitOfWork

    from .contracts import HistoryResult

log = logging.getLogger(__name__)


@dataclass(slots=True)
class ReconciliationEngine:
    """Run cumulative and history reconciliation period by period."""

    unit_of_work_factory: Callable[[], ReconciliationUnitOfWork]
    settings: MergeSettings = field(default_factory=MergeSettings)
    max_workers: int = 1

    def cumulate(self, period: Period) -> BatchSummary:
        """Build and store the cumulative rows of ``period``."""

        with self.unit_of_work_factory() as uow:
            repositories = uow.repositories
            previous = repositories.cumulative.latest_before(period)
            snapshots = repositories.snapshots.snapshots_for(period)
            log.info(
                "Cumulating period %s: previous=%s, snapshots=%s",
                period,
                len(previous),
                len(snapshots),
            )
            result = merge_period(
                previous,
                snapshots,
                period,
                settings=self.settings,
                max_workers=self.max_workers,
            )
            written = repositories.cumulative.replace_period(period, result.records)
            uow.commit()

        return self._summarize(
            BatchSummary(
                operation=Operation.CUMULATE,
                period=period,
                entities=len(result.records) + len(result.failures),
                rows_written=written,
                failures=result.failures,
            )
        )

    def backfill(self, as_of: Period) -> BatchSummary:
        """Recompute the whole history from the cumulative rows up to ``as_of``.

        Stored rows of entities with no cumulative row up to ``as_of`` are
        removed; rows of entities that failed are left as they were.
        """

        with self.unit_of_work_factory() as uow:
            records = uow.repositories.cumulative.up_to(as_of)
            log.info("Backfilling history as of %s from %s cumulative rows", as_of, len(records))
            result = backfill_history(records, as_of, max_workers=self.max_workers)
            rebuilt = result.records_by_entity()
            kept = rebuilt.keys() | {failure.entity_id for failure in result.failures}
            dropped = uow.repositories.history.retain_only(kept)
            if dropped:
                log.info("Dropped %s history rows with no data up to %s", dropped, as_of)
            written = uow.repositories.history.replace_entities(rebuilt)
            uow.commit()

        return self._summarize(self._history_summary(Operation.BACKFILL, result, written))

    def update(self, period: Period) -> BatchSummary:
        """Extend the stored history (as of ``period - 1``) by ``period``."""

        with self.unit_of_work_factory() as uow:
            prior = uow.repositories.history.all()
            current = uow.repositories.cumulative.for_period(period)
            known_before = uow.repositories.cumulative.latest_before(period).keys()
            log.info(
                "Updating history to %s: prior_rows=%s, current_rows=%s",
                period,
                len(prior),
                len(current),
            )
            result = update_history(
                prior,
                current,
                period,
                known_before=known_before,
                max_workers=self.max_workers,
            )
            written = uow.repositories.history.replace_entities(result.records_by_entity())
            uow.commit()

        return self._summarize(self._history_summary(Operation.UPDATE, result, written))

    def run(self, first: Period, last: Period) -> list[BatchSummary]:
        """Cumulate ``first..last`` and keep the history current after each period."""

        if last < first:
            raise ValueError(f"Last period {last} precedes first period {first}")

        summaries: list[BatchSummary] = []
        for period in range(first, last + 1):
            summaries.append(self.cumulate(period))
            if period == first:
                summaries.append(self.backfill(period))
            else:
                summaries.append(self.update(period))
        return summaries

    @staticmethod
    def _history_summary(operation: Operation, result: HistoryResult, written: int) -> BatchSummary:
        return BatchSummary(
            operation=operation,
            period=result.as_of_period,
            entities=len(result.records_by_entity()) + len(result.failures),
            rows_written=written,
            failures=result.failures,
        )

    @staticmethod
    def _summarize(summary: BatchSummary) -> BatchSummary:
        log.info(
            "Finished %s for period %s: entities=%s, rows_written=%s, failures=%s",
            summary.operation,
            summary.period,
            summary.entities,
            summary.rows_written,
            len(summary.failures),
        )
        return summary
