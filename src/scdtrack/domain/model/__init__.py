"""Domain model for cumulative and history reconciliation."""

from __future__ import annotations

from .enums import ActivityPolicy, QualityClass
from .records import (
    CumulativeRecord,
    EntityId,
    FilmUnit,
    HistoryRecord,
    HistoryState,
    Period,
    PeriodSnapshot,
)

__all__ = [
    "ActivityPolicy",
    "CumulativeRecord",
    "EntityId",
    "FilmUnit",
    "HistoryRecord",
    "HistoryState",
    "Period",
    "PeriodSnapshot",
    "QualityClass",
]
