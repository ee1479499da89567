"""Partition checks for an entity's history rows."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .errors import InvariantViolationError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from scdtrack.domain.model import EntityId, HistoryRecord, Period


def check_partition(
    entity_id: EntityId,
    rows: Sequence[HistoryRecord],
    as_of: Period,
    *,
    first_period: Period | None = None,
) -> None:
    """Raise if ``rows`` are not contiguous maximal runs ending at ``as_of``.

    ``rows`` must already be ordered by ``start_period``.
    """

    def violation(message: str) -> InvariantViolationError:
        return InvariantViolationError(message, entity_id=entity_id, period=as_of)

    if not rows:
        raise violation("Entity has no history rows")
    if first_period is not None and rows[0].start_period != first_period:
        raise violation(
            f"History starts at {rows[0].start_period}, expected {first_period}",
        )

    previous: HistoryRecord | None = None
    for row in rows:
        if row.entity_id != entity_id:
            raise violation(f"Row for entity {row.entity_id} mixed into history")
        if row.as_of_period != as_of:
            raise violation(f"Row starting {row.start_period} is as of {row.as_of_period}")
        if row.start_period > row.end_period:
            raise violation(f"Row starting {row.start_period} ends at {row.end_period}")
        if previous is not None:
            if row.start_period <= previous.end_period:
                raise violation(
                    f"Rows starting {previous.start_period} and {row.start_period} overlap",
                )
            if row.start_period != previous.end_period + 1:
                raise violation(
                    f"Gap between {previous.end_period} and {row.start_period}",
                )
            if row.state == previous.state:
                raise violation(
                    f"Rows starting {previous.start_period} and {row.start_period} "
                    "share the same state",
                )
        previous = row

    if rows[-1].end_period != as_of:
        raise violation(f"History ends at {rows[-1].end_period}, expected {as_of}")
