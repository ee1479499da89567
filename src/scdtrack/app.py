"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from scdtrack.adapters.actor_films import read_actor_films
from scdtrack.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyIngestUnitOfWork,
    SqlAlchemyReconciliationUnitOfWork,
    is_started,
    startup,
)
from scdtrack.config import get_reconcile_config
from scdtrack.domain.ports.unit_of_work import IngestUnitOfWork, ReconciliationUnitOfWork
from scdtrack.domain.reconciliation import MergeSettings, ReconciliationEngine

if TYPE_CHECKING:
    from pathlib import Path

    from scdtrack.adapters.actor_films import RejectedRow
    from scdtrack.config import ReconcileConfig
    from scdtrack.domain.model import Period
    from scdtrack.domain.reconciliation import BatchSummary

ReconciliationUnitOfWorkFactory = Callable[[], ReconciliationUnitOfWork]
IngestUnitOfWorkFactory = Callable[[], IngestUnitOfWork]


log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IngestSummary:
    rows: int
    inserted: int
    rejected: tuple[RejectedRow, ...]


def _ensure_started() -> None:
    if not is_started():
        startup()


def load_actor_films(
    path: Path,
    *,
    unit_of_work_factory: IngestUnitOfWorkFactory | None = None,
) -> IngestSummary:
    """Load an actor-films CSV file into the snapshot store."""

    if unit_of_work_factory is None:
        _ensure_started()
    effective_uow = unit_of_work_factory or SqlAlchemyIngestUnitOfWork
    loaded = read_actor_films(path)

    with effective_uow() as uow:
        inserted = uow.repositories.snapshots.add_snapshots(loaded.snapshots)
        uow.commit()

    log.info(
        "Loaded %s: rows=%s, inserted=%s, rejected=%s",
        path,
        loaded.rows,
        inserted,
        len(loaded.rejected),
    )
    return IngestSummary(rows=loaded.rows, inserted=inserted, rejected=loaded.rejected)


def build_reconciliation_engine(
    *,
    unit_of_work_factory: ReconciliationUnitOfWorkFactory | None = None,
    config: ReconcileConfig | None = None,
) -> ReconciliationEngine:
    """Wire a reconciliation engine to the configured adapters."""

    if unit_of_work_factory is None:
        _ensure_started()
    effective_config = config or get_reconcile_config()
    return ReconciliationEngine(
        unit_of_work_factory=unit_of_work_factory or SqlAlchemyReconciliationUnitOfWork,
        settings=MergeSettings(
            activity_policy=effective_config.activity_policy,
        ),
        max_workers=effective_config.max_workers,
    )


def cumulate_period(period: Period, *, engine: ReconciliationEngine | None = None) -> BatchSummary:
    """Build the cumulative rows of ``period``."""

    return (engine or build_reconciliation_engine()).cumulate(period)


def backfill_history(as_of: Period, *, engine: ReconciliationEngine | None = None) -> BatchSummary:
    """Rebuild the whole history up to ``as_of``."""

    return (engine or build_reconciliation_engine()).backfill(as_of)


def update_history(period: Period, *, engine: ReconciliationEngine | None = None) -> BatchSummary:
    """Extend the stored history by ``period``."""

    return (engine or build_reconciliation_engine()).update(period)


def reconcile_range(
    first: Period | None = None,
    last: Period | None = None,
    *,
    engine: ReconciliationEngine | None = None,
) -> list[BatchSummary]:
    """Cumulate and historize ``first..last``, defaulting to every loaded year."""

    effective_engine = engine or build_reconciliation_engine()
    if first is None or last is None:
        with effective_engine.unit_of_work_factory() as uow:
            periods = list(uow.repositories.snapshots.periods())
        if not periods:
            raise ValueError("No snapshots loaded; nothing to reconcile")
        first = periods[0] if first is None else first
        last = periods[-1] if last is None else last

    log.info("Reconciling periods %s..%s", first, last)
    return effective_engine.run(first, last)
