"""Classification of a period's films into quality tiers and activity flags."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from scdtrack.domain.model import ActivityPolicy, QualityClass

if TYPE_CHECKING:
    from collections.abc import Sequence

    from scdtrack.domain.model import FilmUnit

# Checked in order; the first threshold strictly exceeded wins.
CLASS_THRESHOLDS: Final[tuple[tuple[float, QualityClass], ...]] = (
    (8.0, QualityClass.TOP),
    (7.0, QualityClass.HIGH),
    (6.0, QualityClass.MID),
)
FALLBACK_CLASS: Final[QualityClass] = QualityClass.LOW


def classify(aggregated_metric: float) -> QualityClass:
    """Map an average rating to its quality tier.

    Total over floats: anything that does not exceed the lowest threshold,
    including NaN, is :attr:`QualityClass.LOW`.
    """

    for threshold, quality_class in CLASS_THRESHOLDS:
        if aggregated_metric > threshold:
            return quality_class
    return FALLBACK_CLASS


def average_rating(units: Sequence[FilmUnit]) -> float | None:
    """Return the mean rating of ``units`` or ``None`` when there are none."""

    if not units:
        return None
    return sum(unit.rating for unit in units) / len(units)


def is_active(
    has_snapshot: bool,  # noqa: FBT001
    previous_is_active: bool | None,  # noqa: FBT001
    *,
    default: bool = True,
    policy: ActivityPolicy = ActivityPolicy.CARRY_FORWARD,
) -> bool:
    """Derive the activity flag for one entity in one period."""

    if has_snapshot:
        return True
    if policy is ActivityPolicy.SNAPSHOT_PRESENCE:
        return False
    if previous_is_active is None:
        return default
    return previous_is_active
