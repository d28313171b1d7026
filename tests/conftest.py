import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from quest_engines.snapshots import EstimationSnapshot  # noqa: E402


BASE_TIME = datetime(2026, 3, 2, 8, 0)  # a Monday


def make_snapshot(
    task="Brush teeth",
    difference=0.0,
    actual=120.0,
    accuracy=None,
    recorded_at=None,
    routine="Morning",
    is_calibration=False,
):
    if accuracy is None:
        accuracy = max(0.0, 100.0 - abs(difference) / max(actual, 60.0) * 100.0)
    return EstimationSnapshot(
        task_display_name=task,
        estimated_seconds=actual + difference,
        actual_seconds=actual,
        difference_seconds=difference,
        accuracy_percent=accuracy,
        recorded_at=recorded_at or BASE_TIME,
        routine_name=routine,
        is_calibration=is_calibration,
    )


@pytest.fixture
def snapshot_series():
    """Build one snapshot per day for a task from parallel value lists."""

    def _build(task="Brush teeth", differences=None, accuracies=None, start=BASE_TIME, **kwargs):
        differences = differences or [0.0] * len(accuracies or [])
        accuracies = accuracies or [None] * len(differences)
        return [
            make_snapshot(
                task=task,
                difference=difference,
                accuracy=accuracy,
                recorded_at=start + timedelta(days=idx),
                **kwargs,
            )
            for idx, (difference, accuracy) in enumerate(zip(differences, accuracies))
        ]

    return _build
