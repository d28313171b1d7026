"""Immutable observation records consumed by the analytics engines."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List


@dataclass(frozen=True)
class EstimationSnapshot:
    """One completed task attempt, frozen at the time it was recorded."""

    task_display_name: str
    estimated_seconds: float
    actual_seconds: float
    difference_seconds: float  # positive = overestimate
    accuracy_percent: float  # 0-100, 100 = perfect
    recorded_at: datetime
    routine_name: str
    is_calibration: bool = False


def eligible_snapshots(snapshots: Iterable[EstimationSnapshot]) -> List[EstimationSnapshot]:
    """Drop calibration snapshots; they never feed statistics."""

    return [snapshot for snapshot in snapshots if not snapshot.is_calibration]
