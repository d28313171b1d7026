"""Session progression for a completed quest.

This module wires the individual engines together for the moment a player
finishes a quest: every task attempt is scored with its task's current
difficulty bands, checked for a personal best and folded into the task's
difficulty state; the session's XP and the player's streak are then updated.

The engine never touches storage. It receives the current records and returns
the next ones in a :class:`SessionOutcome` for the caller to persist. Callers
must apply outcomes for one player one at a time.
"""

from __future__ import annotations

import logging
import statistics
from collections import defaultdict
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from typing import Dict, List, Mapping, Sequence

from difficulty_levels import (
    DEFAULT_DIFFICULTY,
    DEFAULT_XP,
    DifficultyConfiguration,
    XPConfiguration,
)

from .calibration import is_calibration_session
from .difficulty import DifficultyState, advance_state
from .feedback import FeedbackMessage, message_for
from .personal_best import is_new_personal_best
from .scorer import EstimationResult, score
from .snapshots import EstimationSnapshot
from .streak import StreakState, updated_streak
from .xp import PlayerProgress, apply_xp, level_from_total_xp, xp_for_estimation

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskAttempt:
    """Raw measurement for one task of a quest."""

    task_display_name: str
    estimated_seconds: float
    actual_seconds: float
    recorded_at: datetime


@dataclass(frozen=True)
class ScoredAttempt:
    snapshot: EstimationSnapshot
    result: EstimationResult
    feedback: FeedbackMessage
    difficulty_level: int
    is_personal_best: bool
    xp: int


@dataclass(frozen=True)
class SessionOutcome:
    """Next-state values produced by one completed quest."""

    attempts: List[ScoredAttempt]
    difficulty_states: Dict[str, DifficultyState]
    progress: PlayerProgress
    streak: StreakState
    xp_earned: int
    is_calibration: bool
    player_level_before: int
    player_level_after: int
    personal_bests: List[str] = field(default_factory=list)

    @property
    def snapshots(self) -> List[EstimationSnapshot]:
        return [attempt.snapshot for attempt in self.attempts]

    @property
    def leveled_up(self) -> bool:
        return self.player_level_after > self.player_level_before


@dataclass(frozen=True)
class DailyAccuracy:
    day: date
    average_accuracy: float


class SessionProgressionEngine:
    """Apply a completed quest to the player's difficulty, XP and streak records.

    Parameters
    ----------
    difficulty_config:
        Difficulty ladder tuning used for rating bands, EMA updates and XP
        multipliers.
    xp_config:
        XP rewards and level curve.
    """

    def __init__(
        self,
        difficulty_config: DifficultyConfiguration = DEFAULT_DIFFICULTY,
        xp_config: XPConfiguration = DEFAULT_XP,
    ) -> None:
        self.difficulty_config = difficulty_config
        self.xp_config = xp_config

    # ----- public API --------------------------------------------------
    def complete_session(
        self,
        attempts: Sequence[TaskAttempt],
        history: Sequence[EstimationSnapshot],
        difficulty_states: Mapping[str, DifficultyState],
        progress: PlayerProgress,
        completed_session_count: int,
        routine_name: str,
        today: date,
    ) -> SessionOutcome:
        """Score ``attempts`` and compute the records that follow from them.

        ``history`` holds every earlier snapshot for the player, and
        ``completed_session_count`` the routine's completed sessions before
        this one. Only tasks touched by this quest appear in the returned
        ``difficulty_states``.
        """

        if completed_session_count < 0:
            raise ValueError("completed_session_count must not be negative")
        for attempt in attempts:
            if attempt.actual_seconds <= 0:
                raise ValueError(
                    f"actual_seconds must be positive for task {attempt.task_display_name!r}"
                )

        calibration = is_calibration_session(completed_session_count)
        states: Dict[str, DifficultyState] = {}
        seen: List[EstimationSnapshot] = list(history)
        eligible_counts: Dict[str, int] = defaultdict(int)
        for snapshot in history:
            if not snapshot.is_calibration:
                eligible_counts[snapshot.task_display_name] += 1

        scored: List[ScoredAttempt] = []
        for attempt in attempts:
            task_name = attempt.task_display_name
            state = states.get(task_name) or difficulty_states.get(task_name)
            level = state.difficulty_level if state is not None else 1

            result = score(
                attempt.estimated_seconds,
                attempt.actual_seconds,
                self.difficulty_config.thresholds(level),
                self.difficulty_config,
            )
            personal_best = is_new_personal_best(task_name, result.difference_seconds, seen)
            snapshot = EstimationSnapshot(
                task_display_name=task_name,
                estimated_seconds=result.estimated_seconds,
                actual_seconds=result.actual_seconds,
                difference_seconds=result.difference_seconds,
                accuracy_percent=result.accuracy_percent,
                recorded_at=attempt.recorded_at,
                routine_name=routine_name,
                is_calibration=calibration,
            )
            seen.append(snapshot)

            if not calibration:
                eligible_counts[task_name] += 1
                states[task_name] = advance_state(
                    state,
                    task_name,
                    result.accuracy_percent,
                    eligible_counts[task_name],
                    attempt.recorded_at,
                    self.difficulty_config,
                )

            scored.append(
                ScoredAttempt(
                    snapshot=snapshot,
                    result=result,
                    feedback=message_for(result, calibration),
                    difficulty_level=level,
                    is_personal_best=personal_best,
                    xp=xp_for_estimation(
                        result.rating, level, self.difficulty_config, self.xp_config
                    ),
                )
            )

        xp_earned = sum(item.xp for item in scored) + self.xp_config.completion_bonus
        streak = updated_streak(progress.current_streak, progress.last_played_date, today)
        next_progress = replace(
            apply_xp(progress, xp_earned),
            current_streak=streak.current_streak,
            last_played_date=streak.last_played_date,
        )

        outcome = SessionOutcome(
            attempts=scored,
            difficulty_states=states,
            progress=next_progress,
            streak=streak,
            xp_earned=xp_earned,
            is_calibration=calibration,
            player_level_before=level_from_total_xp(progress.total_xp, self.xp_config),
            player_level_after=level_from_total_xp(next_progress.total_xp, self.xp_config),
            personal_bests=[
                item.snapshot.task_display_name for item in scored if item.is_personal_best
            ],
        )
        _LOGGER.debug(
            "Session for %r: %d attempts, %d XP, calibration=%s",
            routine_name,
            len(scored),
            xp_earned,
            calibration,
        )
        if outcome.leveled_up:
            _LOGGER.info(
                "Player reached level %d (total XP %d)",
                outcome.player_level_after,
                next_progress.total_xp,
            )
        return outcome


def daily_accuracy_series(
    snapshots: Sequence[EstimationSnapshot],
    today: date,
    days: int = 30,
) -> List[DailyAccuracy]:
    """Average accuracy per calendar day over the last ``days`` days, oldest first."""

    cutoff = today - timedelta(days=days)
    by_day: Dict[date, List[float]] = defaultdict(list)
    for snapshot in snapshots:
        day = snapshot.recorded_at.date()
        if cutoff <= day <= today:
            by_day[day].append(snapshot.accuracy_percent)

    return [
        DailyAccuracy(day=day, average_accuracy=statistics.fmean(values))
        for day, values in sorted(by_day.items())
    ]
