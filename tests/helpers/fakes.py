"""In-memory repositories and unit of work for engine tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from scdtrack.domain.ports.unit_of_work import ReconciliationRepositories

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Mapping, Sequence
    from types import TracebackType

    from scdtrack.domain.model import CumulativeRecord, HistoryRecord, PeriodSnapshot


@dataclass
class FakeSnapshotSource:
    by_period: dict[int, dict[str, PeriodSnapshot]] = field(default_factory=dict)

    def add(self, *snapshots: PeriodSnapshot) -> None:
        for snapshot in snapshots:
            self.by_period.setdefault(snapshot.period, {})[snapshot.entity_id] = snapshot

    def snapshots_for(self, period: int) -> dict[str, PeriodSnapshot]:
        return dict(self.by_period.get(period, {}))

    def periods(self) -> list[int]:
        return sorted(self.by_period)


@dataclass
class FakeCumulativeRepository:
    rows: dict[tuple[str, int], CumulativeRecord] = field(default_factory=dict)

    def latest_before(self, period: int) -> dict[str, CumulativeRecord]:
        latest: dict[str, CumulativeRecord] = {}
        for (entity_id, row_period), record in sorted(self.rows.items()):
            if row_period < period:
                latest[entity_id] = record
        return latest

    def for_period(self, period: int) -> list[CumulativeRecord]:
        return [record for (_, row_period), record in sorted(self.rows.items()) if row_period == period]

    def up_to(self, period: int) -> list[CumulativeRecord]:
        return [record for (_, row_period), record in sorted(self.rows.items()) if row_period <= period]

    def replace_period(self, period: int, records: Iterable[CumulativeRecord]) -> int:
        written = 0
        for record in records:
            self.rows[(record.entity_id, period)] = record
            written += 1
        return written


@dataclass
class FakeHistoryRepository:
    rows: dict[str, list[HistoryRecord]] = field(default_factory=dict)

    def all(self) -> list[HistoryRecord]:
        return [row for entity_id in sorted(self.rows) for row in self.rows[entity_id]]

    def for_entity(self, entity_id: str) -> list[HistoryRecord]:
        return list(self.rows.get(entity_id, []))

    def replace_entities(self, rows_by_entity: Mapping[str, Sequence[HistoryRecord]]) -> int:
        for entity_id, rows in rows_by_entity.items():
            self.rows[entity_id] = list(rows)
        return sum(len(rows) for rows in rows_by_entity.values())

    def retain_only(self, entity_ids: Collection[str]) -> int:
        stale = [entity_id for entity_id in self.rows if entity_id not in entity_ids]
        return sum(len(self.rows.pop(entity_id)) for entity_id in stale)


@dataclass
class FakeUnitOfWork:
    snapshots: FakeSnapshotSource = field(default_factory=FakeSnapshotSource)
    cumulative: FakeCumulativeRepository = field(default_factory=FakeCumulativeRepository)
    history: FakeHistoryRepository = field(default_factory=FakeHistoryRepository)
    commits: int = 0
    rollbacks: int = 0

    @property
    def repositories(self) -> ReconciliationRepositories:
        return ReconciliationRepositories(
            snapshots=self.snapshots,
            cumulative=self.cumulative,
            history=self.history,
        )

    def __enter__(self) -> FakeUnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        return False

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1
