"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class QualityClass(StrEnum):
    """Quality tier derived from the average rating of a period's films.

    Members are declared from lowest to highest; comparisons follow that order
    rather than the string values.
    """

    LOW = "low"
    MID = "mid"
    HIGH = "high"
    TOP = "top"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, QualityClass):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, QualityClass):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, QualityClass):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, QualityClass):
            return NotImplemented
        return self.rank >= other.rank


_RANKS: dict[QualityClass, int] = {member: index for index, member in enumerate(QualityClass)}


class ActivityPolicy(StrEnum):
    """How ``is_active`` is derived for an entity without a snapshot."""

    CARRY_FORWARD = "carry_forward"
    SNAPSHOT_PRESENCE = "snapshot_presence"
