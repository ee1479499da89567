"""Result containers shared by the reconciliation stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from scdtrack.domain.model import CumulativeRecord, EntityId, HistoryRecord, Period

    from .errors import ReconciliationError


class Operation(StrEnum):
    CUMULATE = "cumulate"
    BACKFILL = "backfill"
    UPDATE = "update"


@dataclass(frozen=True, slots=True)
class EntityFailure:
    entity_id: EntityId
    error: ReconciliationError

    @property
    def reason(self) -> str:
        return str(self.error)


@dataclass(frozen=True, slots=True)
class MergeResult:
    """Output of the cumulative merger for one period."""

    period: Period
    records: tuple[CumulativeRecord, ...] = ()
    failures: tuple[EntityFailure, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass(frozen=True, slots=True)
class HistoryResult:
    """Output of a history stage, as of ``as_of_period``."""

    as_of_period: Period
    records: tuple[HistoryRecord, ...] = ()
    failures: tuple[EntityFailure, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failures

    def records_by_entity(self) -> dict[EntityId, tuple[HistoryRecord, ...]]:
        grouped: dict[EntityId, list[HistoryRecord]] = {}
        for record in self.records:
            grouped.setdefault(record.entity_id, []).append(record)
        return {entity_id: tuple(rows) for entity_id, rows in grouped.items()}


@dataclass(frozen=True, slots=True)
class BatchSummary:
    """What one engine call did, for logging and the CLI exit code."""

    operation: Operation
    period: Period
    entities: int
    rows_written: int
    failures: tuple[EntityFailure, ...] = field(default=())

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def failed_entities(self) -> tuple[EntityId, ...]:
        return tuple(failure.entity_id for failure in self.failures)
