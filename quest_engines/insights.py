"""Behavioral pattern detection over a task's estimation history.

Every detector ignores calibration snapshots and returns ``None`` until a task
has at least ``MINIMUM_SESSIONS`` eligible observations. ``None`` means "not
enough data yet" and is a normal state for new tasks.
"""

from __future__ import annotations

import logging
import statistics
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from .formatting import format_duration
from .snapshots import EstimationSnapshot, eligible_snapshots

_LOGGER = logging.getLogger(__name__)

MINIMUM_SESSIONS = 5
BIAS_THRESHOLD_SECONDS = 15.0
TREND_SLOPE_THRESHOLD = 0.5
CONSISTENCY_LOW_CV = 0.3
CONSISTENCY_HIGH_CV = 0.6
RECENT_WINDOW = 5


class BiasDirection(str, Enum):
    OVERESTIMATES = "overestimates"
    UNDERESTIMATES = "underestimates"
    BALANCED = "balanced"


class TrendDirection(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


class ConsistencyLevel(str, Enum):
    VERY_CONSISTENT = "very_consistent"
    MODERATE = "moderate"
    VARIABLE = "variable"


@dataclass(frozen=True)
class BiasResult:
    task_display_name: str
    direction: BiasDirection
    mean_difference_seconds: float
    sample_count: int


@dataclass(frozen=True)
class TrendResult:
    task_display_name: str
    direction: TrendDirection
    slope_per_session: float
    sample_count: int


@dataclass(frozen=True)
class ConsistencyResult:
    task_display_name: str
    level: ConsistencyLevel
    coefficient_of_variation: float
    sample_count: int


@dataclass(frozen=True)
class TaskInsight:
    """Everything known about one task's estimation habits."""

    task_display_name: str
    routine_name: str
    bias: Optional[BiasResult] = None
    trend: Optional[TrendResult] = None
    consistency: Optional[ConsistencyResult] = None
    recent_actual_seconds: List[float] = field(default_factory=list)


def _chronological(snapshots: Iterable[EstimationSnapshot]) -> List[EstimationSnapshot]:
    return sorted(snapshots, key=lambda snapshot: snapshot.recorded_at)


def _most_recent_first(snapshots: Iterable[EstimationSnapshot]) -> List[EstimationSnapshot]:
    return sorted(snapshots, key=lambda snapshot: snapshot.recorded_at, reverse=True)


def detect_bias(snapshots: Sequence[EstimationSnapshot]) -> Optional[BiasResult]:
    """Does the player habitually over- or underestimate this task?

    The mean signed difference must exceed ``BIAS_THRESHOLD_SECONDS`` in
    either direction to count as a bias.
    """

    eligible = eligible_snapshots(snapshots)
    if len(eligible) < MINIMUM_SESSIONS:
        return None

    mean_difference = statistics.fmean(s.difference_seconds for s in eligible)
    if mean_difference > BIAS_THRESHOLD_SECONDS:
        direction = BiasDirection.OVERESTIMATES
    elif mean_difference < -BIAS_THRESHOLD_SECONDS:
        direction = BiasDirection.UNDERESTIMATES
    else:
        direction = BiasDirection.BALANCED

    return BiasResult(
        task_display_name=eligible[0].task_display_name,
        direction=direction,
        mean_difference_seconds=mean_difference,
        sample_count=len(eligible),
    )


def regression_slope(values: Sequence[float]) -> Optional[float]:
    """Least-squares slope of ``values`` against their index 0, 1, 2, ...

    Returns ``None`` when the denominator is zero (fewer than two points).
    """

    n = float(len(values))
    xs = [float(idx) for idx in range(len(values))]
    sum_x = sum(xs)
    sum_y = sum(values)
    sum_xy = sum(x * y for x, y in zip(xs, values))
    sum_x2 = sum(x * x for x in xs)

    denominator = n * sum_x2 - sum_x * sum_x
    if denominator == 0:
        return None
    return (n * sum_xy - sum_x * sum_y) / denominator


def detect_trend(snapshots: Sequence[EstimationSnapshot]) -> Optional[TrendResult]:
    """Is accuracy improving, declining or stable across sessions?

    Accuracy is regressed against session order rather than wall-clock time,
    so long breaks between sessions do not flatten the slope.
    """

    eligible = _chronological(eligible_snapshots(snapshots))
    if len(eligible) < MINIMUM_SESSIONS:
        return None

    slope = regression_slope([s.accuracy_percent for s in eligible])
    if slope is None:
        return None

    if slope > TREND_SLOPE_THRESHOLD:
        direction = TrendDirection.IMPROVING
    elif slope < -TREND_SLOPE_THRESHOLD:
        direction = TrendDirection.DECLINING
    else:
        direction = TrendDirection.STABLE

    return TrendResult(
        task_display_name=eligible[0].task_display_name,
        direction=direction,
        slope_per_session=slope,
        sample_count=len(eligible),
    )


def compute_consistency(snapshots: Sequence[EstimationSnapshot]) -> Optional[ConsistencyResult]:
    """Coefficient of variation of the absolute estimation errors.

    A mean error of exactly zero (every estimate perfect) is reported as very
    consistent with a CV of 0.
    """

    eligible = eligible_snapshots(snapshots)
    if len(eligible) < MINIMUM_SESSIONS:
        return None

    abs_diffs = [abs(s.difference_seconds) for s in eligible]
    mean = statistics.fmean(abs_diffs)
    if mean <= 0:
        return ConsistencyResult(
            task_display_name=eligible[0].task_display_name,
            level=ConsistencyLevel.VERY_CONSISTENT,
            coefficient_of_variation=0.0,
            sample_count=len(eligible),
        )

    cv = statistics.pstdev(abs_diffs, mu=mean) / mean
    if cv < CONSISTENCY_LOW_CV:
        level = ConsistencyLevel.VERY_CONSISTENT
    elif cv < CONSISTENCY_HIGH_CV:
        level = ConsistencyLevel.MODERATE
    else:
        level = ConsistencyLevel.VARIABLE

    return ConsistencyResult(
        task_display_name=eligible[0].task_display_name,
        level=level,
        coefficient_of_variation=cv,
        sample_count=len(eligible),
    )


def contextual_hint(task_name: str, snapshots: Iterable[EstimationSnapshot]) -> Optional[str]:
    """Reference hint such as ``"Last 5 times: ~2m 30s"`` for the estimate screen."""

    eligible = _most_recent_first(
        s for s in snapshots if s.task_display_name == task_name and not s.is_calibration
    )
    if len(eligible) < MINIMUM_SESSIONS:
        return None

    recent = eligible[:RECENT_WINDOW]
    average_actual = statistics.fmean(s.actual_seconds for s in recent)
    return f"Last {len(recent)} times: ~{format_duration(average_actual)}"


def generate_insights(snapshots: Iterable[EstimationSnapshot]) -> List[TaskInsight]:
    """Group snapshots by task and analyse every task with enough history.

    Tasks are keyed by display name and returned in name order.
    """

    by_task: Dict[str, List[EstimationSnapshot]] = defaultdict(list)
    for snapshot in eligible_snapshots(snapshots):
        by_task[snapshot.task_display_name].append(snapshot)

    insights: List[TaskInsight] = []
    for task_name in sorted(by_task):
        task_snapshots = by_task[task_name]
        if len(task_snapshots) < MINIMUM_SESSIONS:
            continue

        recent = _most_recent_first(task_snapshots)[:RECENT_WINDOW]
        insights.append(
            TaskInsight(
                task_display_name=task_name,
                routine_name=task_snapshots[0].routine_name,
                bias=detect_bias(task_snapshots),
                trend=detect_trend(task_snapshots),
                consistency=compute_consistency(task_snapshots),
                recent_actual_seconds=[s.actual_seconds for s in recent],
            )
        )

    _LOGGER.debug("Generated insights for %d of %d tasks", len(insights), len(by_task))
    return insights
