"""Per-entity failures raised by the reconciliation stages.

Every error names the entity and period it concerns so that a batch can
collect them and keep processing the remaining entities.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from scdtrack.domain.model import EntityId, Period


class ReconciliationError(Exception):
    """Base class for failures isolated to a single entity."""

    def __init__(self, message: str, *, entity_id: EntityId, period: Period) -> None:
        self.entity_id = entity_id
        self.period = period
        super().__init__(f"{message} (entity={entity_id}, period={period})")


class MissingPriorPeriodError(ReconciliationError):
    """Raised when the latest known state of an entity is older than ``period - 1``."""

    def __init__(self, *, entity_id: EntityId, period: Period, latest_period: Period) -> None:
        self.latest_period = latest_period
        super().__init__(
            f"No cumulative record for period {period - 1}; latest is {latest_period}",
            entity_id=entity_id,
            period=period,
        )


class PeriodOrderError(ReconciliationError):
    """Raised when an input row belongs to a period that cannot precede ``period``."""


class InvariantViolationError(ReconciliationError):
    """Raised when an entity's history rows do not partition its period range."""
