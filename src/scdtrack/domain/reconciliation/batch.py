"""Fan-out of per-entity work with failure isolation.

Entities never share state inside one period, so each one is reconciled on
its own. Results come back in ``entity_id`` order regardless of how many
workers ran them.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from .contracts import EntityFailure
from .errors import ReconciliationError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from scdtrack.domain.model import EntityId

log = logging.getLogger(__name__)

type _Outcome[T] = T | ReconciliationError


def run_per_entity[T](
    entity_ids: Iterable[EntityId],
    work: Callable[[EntityId], T],
    *,
    max_workers: int = 1,
) -> tuple[dict[EntityId, T], tuple[EntityFailure, ...]]:
    """Apply ``work`` to every entity, collecting reconciliation failures."""

    ordered = sorted(set(entity_ids))

    def guarded(entity_id: EntityId) -> _Outcome[T]:
        try:
            return work(entity_id)
        except ReconciliationError as exc:
            return exc

    if max_workers > 1 and len(ordered) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            outcomes = list(executor.map(guarded, ordered))
    else:
        outcomes = [guarded(entity_id) for entity_id in ordered]

    results: dict[EntityId, T] = {}
    failures: list[EntityFailure] = []
    for entity_id, outcome in zip(ordered, outcomes, strict=True):
        if isinstance(outcome, ReconciliationError):
            log.warning("Skipping entity %s: %s", entity_id, outcome)
            failures.append(EntityFailure(entity_id=entity_id, error=outcome))
            continue
        results[entity_id] = outcome
    return results, tuple(failures)
