"""Ports for reading snapshots and persisting reconciliation output."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Mapping, Sequence

    from scdtrack.domain.model import (
        CumulativeRecord,
        EntityId,
        HistoryRecord,
        Period,
        PeriodSnapshot,
    )


@runtime_checkable
class SnapshotSource(Protocol):
    """Read-only access to the per-period facts of every entity."""

    def snapshots_for(self, period: Period) -> Mapping[EntityId, PeriodSnapshot]: ...

    def periods(self) -> Sequence[Period]: ...


@runtime_checkable
class SnapshotWriter(Protocol):
    """Bulk loading of raw per-unit rows into the snapshot store."""

    def add_snapshots(self, snapshots: Iterable[PeriodSnapshot]) -> int: ...


@runtime_checkable
class CumulativeRepository(Protocol):
    """Persistence contract for cumulative rows, one per entity and period."""

    def latest_before(self, period: Period) -> Mapping[EntityId, CumulativeRecord]: ...

    def for_period(self, period: Period) -> Sequence[CumulativeRecord]: ...

    def up_to(self, period: Period) -> Sequence[CumulativeRecord]: ...

    def replace_period(self, period: Period, records: Iterable[CumulativeRecord]) -> int: ...


@runtime_checkable
class HistoryRepository(Protocol):
    """Persistence contract for the current Type-2 history."""

    def all(self) -> Sequence[HistoryRecord]: ...

    def for_entity(self, entity_id: EntityId) -> Sequence[HistoryRecord]: ...

    def replace_entities(
        self, rows_by_entity: Mapping[EntityId, Sequence[HistoryRecord]]
    ) -> int: ...

    def retain_only(self, entity_ids: Collection[EntityId]) -> int: ...
