"""Weekly summary report built from estimation snapshots.

Weeks are calendar weeks: boundaries are computed on local calendar dates and
then re-attached to the caller's ``tzinfo``, so a week spanning a DST change
still starts and ends at local midnight.
"""

from __future__ import annotations

import logging
import statistics
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Collection, Dict, Iterable, List, Optional, Sequence, Tuple

from .insights import BiasDirection, ConsistencyLevel, TrendDirection, generate_insights
from .snapshots import EstimationSnapshot, eligible_snapshots

_LOGGER = logging.getLogger(__name__)

DAYS_IN_WEEK = 7
MIN_ESTIMATIONS_FOR_IMPROVEMENT = 2


@dataclass(frozen=True)
class ImprovementResult:
    task_name: str
    delta: float


@dataclass(frozen=True)
class WeeklyReflection:
    week_start_date: datetime
    week_end_date: datetime

    quests_completed: int
    average_accuracy: float  # 0-100
    accuracy_change_vs_prior_week: Optional[float]

    best_estimate_task_name: Optional[str]
    best_estimate_accuracy: Optional[float]
    most_improved_task_name: Optional[str]
    most_improved_delta: Optional[float]

    days_played_this_week: int  # 0-7
    total_days_in_week: int

    pattern_highlight: Optional[str]

    has_gaps: bool
    total_estimations: int

    @property
    def streak_context_string(self) -> str:
        return f"{self.days_played_this_week} of {self.total_days_in_week} days"

    @property
    def is_meaningful(self) -> bool:
        """Only reflections covering at least one completed quest are shown."""
        return self.quests_completed > 0

    @property
    def formatted_accuracy_change(self) -> Optional[str]:
        delta = self.accuracy_change_vs_prior_week
        if delta is None:
            return None
        sign = "+" if delta >= 0 else ""
        return f"{sign}{int(delta)}%"


# ----- calendar helpers ----------------------------------------------
def _week_start_date(day: date, first_weekday: int) -> date:
    offset = (day.weekday() - first_weekday) % DAYS_IN_WEEK
    return day - timedelta(days=offset)


def _local_midnight(day: date, reference: datetime) -> datetime:
    return datetime.combine(day, time.min, tzinfo=reference.tzinfo)


def week_bounds(
    weeks_back: int,
    moment: datetime,
    first_weekday: int = 0,
) -> Tuple[datetime, datetime]:
    """``[start, end)`` of the week ``weeks_back`` weeks before ``moment``'s week.

    ``weeks_back=0`` is the current week. ``first_weekday`` follows
    :meth:`date.weekday` (0 = Monday).
    """

    current_start = _week_start_date(moment.date(), first_weekday)
    target_start = current_start - timedelta(days=DAYS_IN_WEEK * weeks_back)
    target_end = target_start + timedelta(days=DAYS_IN_WEEK)
    return _local_midnight(target_start, moment), _local_midnight(target_end, moment)


def previous_week_bounds(moment: datetime, first_weekday: int = 0) -> Tuple[datetime, datetime]:
    """``[start, end)`` of the last completed week before ``moment``."""

    return week_bounds(1, moment, first_weekday)


# ----- report --------------------------------------------------------
def _average_accuracy(snapshots: Sequence[EstimationSnapshot]) -> float:
    return statistics.fmean(s.accuracy_percent for s in snapshots)


def find_most_improved_task(
    this_week: Iterable[EstimationSnapshot],
    prior_week: Iterable[EstimationSnapshot],
) -> Optional[ImprovementResult]:
    """Task with the largest positive accuracy gain between two windows.

    Only tasks with at least two estimations in each window are compared so a
    single lucky guess cannot win.
    """

    this_by_task: Dict[str, List[EstimationSnapshot]] = defaultdict(list)
    prior_by_task: Dict[str, List[EstimationSnapshot]] = defaultdict(list)
    for snapshot in this_week:
        this_by_task[snapshot.task_display_name].append(snapshot)
    for snapshot in prior_week:
        prior_by_task[snapshot.task_display_name].append(snapshot)

    best: Optional[ImprovementResult] = None
    for task_name in sorted(this_by_task):
        current = this_by_task[task_name]
        prior = prior_by_task.get(task_name)
        if not prior:
            continue
        if len(current) < MIN_ESTIMATIONS_FOR_IMPROVEMENT or len(prior) < MIN_ESTIMATIONS_FOR_IMPROVEMENT:
            continue

        delta = _average_accuracy(current) - _average_accuracy(prior)
        if delta <= 0:
            continue
        if best is None or delta > best.delta:
            best = ImprovementResult(task_name=task_name, delta=delta)

    return best


def pick_pattern_highlight(
    all_snapshots: Iterable[EstimationSnapshot],
    week_task_names: Collection[str],
) -> Optional[str]:
    """One headline pattern for the tasks played this week.

    Priority: improving trend, then a clear bias, then very consistent
    estimates. Tasks are scanned in name order.
    """

    if not week_task_names:
        return None

    insights = [
        insight
        for insight in generate_insights(all_snapshots)
        if insight.task_display_name in week_task_names
    ]
    if not insights:
        return None

    for insight in insights:
        if insight.trend is not None and insight.trend.direction is TrendDirection.IMPROVING:
            return f"Your {insight.task_display_name} estimates are getting closer over time"

    for insight in insights:
        if insight.bias is not None and insight.bias.direction is not BiasDirection.BALANCED:
            verb = (
                "overestimate"
                if insight.bias.direction is BiasDirection.OVERESTIMATES
                else "underestimate"
            )
            return f"You tend to {verb} {insight.task_display_name}"

    for insight in insights:
        if (
            insight.consistency is not None
            and insight.consistency.level is ConsistencyLevel.VERY_CONSISTENT
        ):
            return f"You read {insight.task_display_name} the same way each time"

    return None


def compute_reflection(
    snapshots: Sequence[EstimationSnapshot],
    week_start: datetime,
    week_end: datetime,
    prior_week_snapshots: Optional[Sequence[EstimationSnapshot]],
    completed_quest_count: int,
) -> WeeklyReflection:
    """Build the reflection for ``[week_start, week_end)``.

    ``snapshots`` may cover more than the week; the full history feeds the
    pattern highlight. ``prior_week_snapshots`` is ``None`` when no prior week
    data is available. ``completed_quest_count`` counts quests, not snapshots.
    """

    week_snapshots = [
        s
        for s in eligible_snapshots(snapshots)
        if week_start <= s.recorded_at < week_end
    ]

    average_accuracy = _average_accuracy(week_snapshots) if week_snapshots else 0.0

    accuracy_change: Optional[float] = None
    improvement: Optional[ImprovementResult] = None
    if prior_week_snapshots is not None:
        eligible_prior = eligible_snapshots(prior_week_snapshots)
        if eligible_prior:
            accuracy_change = average_accuracy - _average_accuracy(eligible_prior)
        improvement = find_most_improved_task(week_snapshots, eligible_prior)

    best_snapshot = max(week_snapshots, key=lambda s: s.accuracy_percent, default=None)

    days_played = len({s.recorded_at.date() for s in week_snapshots})

    pattern_highlight = pick_pattern_highlight(
        snapshots, {s.task_display_name for s in week_snapshots}
    )

    _LOGGER.debug(
        "Reflection for %s: %d estimations over %d days",
        week_start.date().isoformat(),
        len(week_snapshots),
        days_played,
    )

    return WeeklyReflection(
        week_start_date=week_start,
        week_end_date=week_end,
        quests_completed=completed_quest_count,
        average_accuracy=average_accuracy,
        accuracy_change_vs_prior_week=accuracy_change,
        best_estimate_task_name=best_snapshot.task_display_name if best_snapshot else None,
        best_estimate_accuracy=best_snapshot.accuracy_percent if best_snapshot else None,
        most_improved_task_name=improvement.task_name if improvement else None,
        most_improved_delta=improvement.delta if improvement else None,
        days_played_this_week=days_played,
        total_days_in_week=DAYS_IN_WEEK,
        pattern_highlight=pattern_highlight,
        has_gaps=days_played < DAYS_IN_WEEK,
        total_estimations=len(week_snapshots),
    )
