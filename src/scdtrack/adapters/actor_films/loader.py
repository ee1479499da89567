"""Read the actor-films CSV export into per-period snapshots."""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import ValidationError

from scdtrack.domain.model import FilmUnit, PeriodSnapshot

from .schema import REQUIRED_COLUMNS, ActorFilmRow

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from scdtrack.domain.model import EntityId, Period

log = logging.getLogger(__name__)


class SnapshotFileError(RuntimeError):
    """Raised when a snapshot file cannot be read at all."""


@dataclass(frozen=True, slots=True)
class RejectedRow:
    line: int
    reason: str


@dataclass(frozen=True, slots=True)
class LoadResult:
    snapshots: tuple[PeriodSnapshot, ...]
    rows: int
    rejected: tuple[RejectedRow, ...] = ()


def read_actor_films(path: Path) -> LoadResult:
    """Parse ``path`` and group valid rows by actor and year.

    Rows failing validation are reported in :attr:`LoadResult.rejected`; the
    remaining rows are still returned.
    """

    try:
        with path.open(newline="", encoding="utf-8") as handle:
            reader = csv.DictReader(handle)
            missing = [name for name in REQUIRED_COLUMNS if name not in (reader.fieldnames or ())]
            if missing:
                raise SnapshotFileError(f"{path} is missing columns: {', '.join(missing)}")
            return _parse_rows(enumerate(reader, start=2))
    except OSError as exc:
        raise SnapshotFileError(f"Cannot read {path}: {exc}") from exc


def _parse_rows(rows: Iterable[tuple[int, dict[str, str]]]) -> LoadResult:
    units: dict[tuple[EntityId, Period], list[FilmUnit]] = {}
    names: dict[tuple[EntityId, Period], str | None] = {}
    rejected: list[RejectedRow] = []
    count = 0
    for line, raw in rows:
        count += 1
        try:
            row = ActorFilmRow.model_validate(raw)
        except ValidationError as exc:
            reason = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in exc.errors()
            )
            log.warning("Rejecting line %s: %s", line, reason)
            rejected.append(RejectedRow(line=line, reason=reason))
            continue
        key = (row.actorid, row.year)
        units.setdefault(key, []).append(
            FilmUnit(unit_name=row.film, votes=row.votes, rating=row.rating, unit_id=row.filmid)
        )
        names[key] = row.actor or names.get(key)

    snapshots = tuple(
        PeriodSnapshot(
            entity_id=entity_id,
            period=period,
            units=tuple(entity_units),
            entity_name=names.get((entity_id, period)),
        )
        for (entity_id, period), entity_units in sorted(units.items(), key=lambda item: item[0])
    )
    return LoadResult(snapshots=snapshots, rows=count, rejected=tuple(rejected))
