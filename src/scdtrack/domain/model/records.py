"""Value objects flowing through the reconciliation core.

All records are frozen; "updating" a record means building a new one with
``dataclasses.replace``. Unit sequences are tuples so that a cumulative row
never shares a mutable container with the row it was derived from.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .enums import QualityClass

type EntityId = str
type Period = int
type HistoryState = tuple[QualityClass, bool]


@dataclass(frozen=True, slots=True)
class FilmUnit:
    """One film credited to an entity in a period."""

    unit_name: str
    votes: int
    rating: float
    unit_id: str


@dataclass(frozen=True, slots=True)
class PeriodSnapshot:
    """Raw facts for one entity in one period."""

    entity_id: EntityId
    period: Period
    units: tuple[FilmUnit, ...] = ()
    entity_name: str | None = None


@dataclass(frozen=True, slots=True)
class CumulativeRecord:
    """Accumulated state of an entity up to and including ``period``."""

    entity_id: EntityId
    period: Period
    quality_class: QualityClass
    is_active: bool
    accumulated_units: tuple[FilmUnit, ...] = field(default=())
    entity_name: str | None = None

    @property
    def state(self) -> HistoryState:
        return (self.quality_class, self.is_active)


@dataclass(frozen=True, slots=True)
class HistoryRecord:
    """A maximal run of periods over which ``(quality_class, is_active)`` held."""

    entity_id: EntityId
    quality_class: QualityClass
    is_active: bool
    start_period: Period
    end_period: Period
    as_of_period: Period

    @property
    def state(self) -> HistoryState:
        return (self.quality_class, self.is_active)

    def covers(self, period: Period) -> bool:
        return self.start_period <= period <= self.end_period
