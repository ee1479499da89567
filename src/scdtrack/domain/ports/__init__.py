"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import (
    CumulativeRepository,
    HistoryRepository,
    SnapshotSource,
    SnapshotWriter,
)
from .unit_of_work import (
    IngestRepositories,
    IngestUnitOfWork,
    ReconciliationRepositories,
    ReconciliationUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "CumulativeRepository",
    "HistoryRepository",
    "IngestRepositories",
    "IngestUnitOfWork",
    "ReconciliationRepositories",
    "ReconciliationUnitOfWork",
    "RepositoryCollection",
    "SnapshotSource",
    "SnapshotWriter",
    "UnitOfWork",
]
