"""Reconciliation core turning yearly snapshots into cumulative and history rows.

Layered flow:
1) classify each period's films into a quality tier and activity flag
2) merge period ``N-1`` cumulative rows with period ``N`` snapshots
3) derive Type-2 history, either by backfilling the full series or by
   incrementally extending the previous period's history
4) check that every entity's history partitions its period range
"""

from __future__ import annotations

from .backfill import backfill_entity, backfill_history
from .classify import CLASS_THRESHOLDS, average_rating, classify, is_active
from .contracts import BatchSummary, EntityFailure, HistoryResult, MergeResult, Operation
from .cumulative import MergeSettings, merge_entity, merge_period
from .engine import ReconciliationEngine
from .errors import (
    InvariantViolationError,
    MissingPriorPeriodError,
    PeriodOrderError,
    ReconciliationError,
)
from .incremental import update_entity, update_history
from .invariants import check_partition

__all__ = [
    "CLASS_THRESHOLDS",
    "BatchSummary",
    "EntityFailure",
    "HistoryResult",
    "InvariantViolationError",
    "MergeResult",
    "MergeSettings",
    "MissingPriorPeriodError",
    "Operation",
    "PeriodOrderError",
    "ReconciliationEngine",
    "ReconciliationError",
    "average_rating",
    "backfill_entity",
    "backfill_history",
    "check_partition",
    "classify",
    "is_active",
    "merge_entity",
    "merge_period",
    "update_entity",
    "update_history",
]
