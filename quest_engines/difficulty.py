"""Adaptive per-task difficulty driven by an exponential moving average.

Each task carries an EMA of its accuracy percent and a difficulty level. The
level selects the rating bands and XP multiplier and is a ratchet: a run of
poor estimates never lowers it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from difficulty_levels import DEFAULT_DIFFICULTY, AccuracyThresholds, DifficultyConfiguration

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DifficultyState:
    """Per-task difficulty record; persisted by the caller, keyed by task name."""

    task_display_name: str
    difficulty_level: int = 1
    ema: float = 0.0
    sessions_at_current_level: int = 0
    last_updated: Optional[datetime] = None


def updated_ema(
    current_accuracy: float,
    previous_ema: float,
    alpha: float = DEFAULT_DIFFICULTY.ema_alpha,
) -> float:
    """EMA = accuracy * alpha + previous * (1 - alpha)."""

    return (current_accuracy * alpha) + (previous_ema * (1.0 - alpha))


def difficulty_level(
    ema: float,
    current_level: int,
    total_estimations: int,
    config: DifficultyConfiguration = DEFAULT_DIFFICULTY,
) -> int:
    """Next difficulty level for a task; never lower than ``current_level``.

    Advancement past level 1 is gated on ``config.minimum_sessions_to_advance``
    completed estimations for the task.
    """

    if total_estimations < config.minimum_sessions_to_advance:
        return max(1, current_level)
    return max(current_level, config.level_for_ema(ema))


def thresholds(level: int, config: DifficultyConfiguration = DEFAULT_DIFFICULTY) -> AccuracyThresholds:
    """Rating bands for ``level``. Levels below 1 or above the maximum clamp."""

    return config.thresholds(level)


def xp_multiplier(level: int, config: DifficultyConfiguration = DEFAULT_DIFFICULTY) -> float:
    """XP multiplier for ``level``. Levels below 1 or above the maximum clamp."""

    return config.xp_multiplier(level)


def advance_state(
    state: Optional[DifficultyState],
    task_display_name: str,
    accuracy_percent: float,
    total_estimations: int,
    now: datetime,
    config: DifficultyConfiguration = DEFAULT_DIFFICULTY,
) -> DifficultyState:
    """Fold one non-calibration observation into a task's difficulty state.

    ``state`` may be ``None`` for a task seen for the first time.
    ``total_estimations`` counts the task's non-calibration estimations
    including this one. Returns the next state; the input is not modified.
    """

    if state is None:
        state = DifficultyState(task_display_name=task_display_name)

    ema = updated_ema(accuracy_percent, state.ema, config.ema_alpha)
    level = difficulty_level(ema, state.difficulty_level, total_estimations, config)

    if level > state.difficulty_level:
        _LOGGER.info(
            "Task %r advanced from level %d to %d (ema=%.1f, estimations=%d)",
            task_display_name,
            state.difficulty_level,
            level,
            ema,
            total_estimations,
        )
        sessions_at_level = 0
    else:
        sessions_at_level = state.sessions_at_current_level + 1

    return replace(
        state,
        difficulty_level=level,
        ema=ema,
        sessions_at_current_level=sessions_at_level,
        last_updated=now,
    )
