from __future__ import annotations

import math

import pytest

from scdtrack.domain.model import ActivityPolicy, QualityClass
from scdtrack.domain.reconciliation import average_rating, classify, is_active
from tests.helpers.records import make_unit


@pytest.mark.parametrize(
    ("metric", "expected"),
    [
        (9.5, QualityClass.TOP),
        (8.01, QualityClass.TOP),
        (8.0, QualityClass.HIGH),
        (7.5, QualityClass.HIGH),
        (7.0, QualityClass.MID),
        (6.5, QualityClass.MID),
        (6.0, QualityClass.LOW),
        (0.0, QualityClass.LOW),
        (-1.0, QualityClass.LOW),
    ],
)
def test_classify_uses_strict_thresholds(metric: float, expected: QualityClass) -> None:
    assert classify(metric) is expected


def test_classify_treats_nan_as_lowest_class() -> None:
    assert classify(math.nan) is QualityClass.LOW


def test_classify_is_monotonic() -> None:
    metrics = [step / 4 for step in range(0, 41)]

    classes = [classify(metric) for metric in metrics]

    assert classes == sorted(classes)


def test_quality_class_orders_by_tier_not_by_name() -> None:
    assert QualityClass.LOW < QualityClass.MID < QualityClass.HIGH < QualityClass.TOP
    assert max(QualityClass) is QualityClass.TOP
    assert QualityClass("top") is QualityClass.TOP


def test_average_rating_of_units() -> None:
    units = [make_unit(9.0), make_unit(7.0)]

    assert average_rating(units) == pytest.approx(8.0)


def test_average_rating_is_undefined_without_units() -> None:
    assert average_rating([]) is None


def test_is_active_when_snapshot_present() -> None:
    assert is_active(True, False) is True  # noqa: FBT003


def test_is_active_carries_previous_value_forward() -> None:
    assert is_active(False, True) is True  # noqa: FBT003
    assert is_active(False, False) is False  # noqa: FBT003


def test_is_active_falls_back_to_default_without_history() -> None:
    assert is_active(False, None) is True  # noqa: FBT003
    assert is_active(False, None, default=False) is False  # noqa: FBT003


def test_is_active_snapshot_presence_policy_ignores_previous() -> None:
    assert (
        is_active(False, True, policy=ActivityPolicy.SNAPSHOT_PRESENCE)  # noqa: FBT003
        is False
    )
