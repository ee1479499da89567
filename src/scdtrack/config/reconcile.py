"""Reconciliation defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass

from scdtrack.domain.model import ActivityPolicy

from .env import env_int
from .errors import ConfigurationError

DEFAULT_MAX_WORKERS = 1


@dataclass(frozen=True, slots=True)
class ReconcileConfig:
    activity_policy: ActivityPolicy = ActivityPolicy.CARRY_FORWARD
    max_workers: int = DEFAULT_MAX_WORKERS


def _activity_policy_from_env() -> ActivityPolicy:
    value = os.getenv("SCDTRACK_ACTIVITY_POLICY")
    if value is None or not value.strip():
        return ActivityPolicy.CARRY_FORWARD
    try:
        return ActivityPolicy(value.strip().lower())
    except ValueError as exc:
        choices = ", ".join(policy.value for policy in ActivityPolicy)
        raise ConfigurationError(
            f"Invalid SCDTRACK_ACTIVITY_POLICY {value!r}; expected one of: {choices}"
        ) from exc


def get_reconcile_config() -> ReconcileConfig:
    return ReconcileConfig(
        activity_policy=_activity_policy_from_env(),
        max_workers=env_int("SCDTRACK_MAX_WORKERS", default=DEFAULT_MAX_WORKERS, minimum=1),
    )
