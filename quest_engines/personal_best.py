"""Closest-ever estimate per task."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List

from .snapshots import EstimationSnapshot


@dataclass(frozen=True)
class PersonalBest:
    task_display_name: str
    closest_difference_seconds: float  # signed
    date: datetime


def find_personal_bests(estimations: Iterable[EstimationSnapshot]) -> List[PersonalBest]:
    """Return the observation with the smallest absolute error for every task.

    The earliest observation wins a tie. Results are ordered by task name.
    """

    by_task: Dict[str, List[EstimationSnapshot]] = defaultdict(list)
    for estimation in estimations:
        by_task[estimation.task_display_name].append(estimation)

    bests: List[PersonalBest] = []
    for task_name in sorted(by_task):
        ordered = sorted(by_task[task_name], key=lambda item: item.recorded_at)
        best = min(ordered, key=lambda item: abs(item.difference_seconds))
        bests.append(
            PersonalBest(
                task_display_name=task_name,
                closest_difference_seconds=best.difference_seconds,
                date=best.recorded_at,
            )
        )
    return bests


def is_new_personal_best(
    task_display_name: str,
    difference_seconds: float,
    existing_estimations: Iterable[EstimationSnapshot],
) -> bool:
    """Whether ``difference_seconds`` beats every prior estimate for the task.

    ``existing_estimations`` must not include the current attempt. The first
    attempt at a task is always a personal best; ties are not.
    """

    previous = [
        abs(estimation.difference_seconds)
        for estimation in existing_estimations
        if estimation.task_display_name == task_display_name
    ]
    if not previous:
        return True
    return abs(difference_seconds) < min(previous)
