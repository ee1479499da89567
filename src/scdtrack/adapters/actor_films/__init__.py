"""Adapter for the actor-films CSV dataset."""

from __future__ import annotations

from .loader import LoadResult, RejectedRow, SnapshotFileError, read_actor_films
from .schema import ActorFilmRow

__all__ = [
    "ActorFilmRow",
    "LoadResult",
    "RejectedRow",
    "SnapshotFileError",
    "read_actor_films",
]
