"""Experience points and the player level curve.

XP rewards accuracy, never speed. Per-estimation XP scales with the task's
difficulty multiplier; the session completion bonus rewards finishing and is
never scaled.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import date
from typing import Iterable, Optional

from difficulty_levels import (
    DEFAULT_DIFFICULTY,
    DEFAULT_XP,
    DifficultyConfiguration,
    XPConfiguration,
)

from .scorer import AccuracyRating


@dataclass(frozen=True)
class PlayerProgress:
    """Cumulative player record; persisted by the caller."""

    total_xp: int = 0
    current_streak: int = 0
    last_played_date: Optional[date] = None


def base_xp(rating: AccuracyRating, xp_config: XPConfiguration = DEFAULT_XP) -> int:
    return {
        AccuracyRating.SPOT_ON: xp_config.spot_on_xp,
        AccuracyRating.CLOSE: xp_config.close_xp,
        AccuracyRating.OFF: xp_config.off_xp,
        AccuracyRating.WAY_OFF: xp_config.way_off_xp,
    }[AccuracyRating(rating)]


def xp_for_estimation(
    rating: AccuracyRating,
    difficulty_level: int = 1,
    difficulty_config: DifficultyConfiguration = DEFAULT_DIFFICULTY,
    xp_config: XPConfiguration = DEFAULT_XP,
) -> int:
    """Base XP for ``rating`` times the level multiplier, truncated."""

    return int(base_xp(rating, xp_config) * difficulty_config.xp_multiplier(difficulty_level))


def xp_for_session(
    ratings: Iterable[AccuracyRating],
    difficulty_level: int = 1,
    difficulty_config: DifficultyConfiguration = DEFAULT_DIFFICULTY,
    xp_config: XPConfiguration = DEFAULT_XP,
) -> int:
    """Sum of per-estimation XP plus the flat completion bonus."""

    task_xp = sum(
        xp_for_estimation(rating, difficulty_level, difficulty_config, xp_config)
        for rating in ratings
    )
    return task_xp + xp_config.completion_bonus


def xp_required(level: int, xp_config: XPConfiguration = DEFAULT_XP) -> int:
    """Total XP needed to reach ``level``: ``base * level ** exponent``."""

    return int(xp_config.level_base_xp * math.pow(level, xp_config.level_exponent))


def level_from_total_xp(total_xp: int, xp_config: XPConfiguration = DEFAULT_XP) -> int:
    """Player level for ``total_xp``; 0 until any XP has been earned."""

    if total_xp <= 0:
        return 0
    raw = math.pow(total_xp / xp_config.level_base_xp, 1.0 / xp_config.level_exponent)
    return max(1, int(math.floor(raw)))


def progress_to_next_level(total_xp: int, xp_config: XPConfiguration = DEFAULT_XP) -> float:
    """Fraction of the current level band already earned, in ``[0, 1]``."""

    current_level = level_from_total_xp(total_xp, xp_config)
    current_level_xp = xp_required(current_level, xp_config)
    next_level_xp = xp_required(current_level + 1, xp_config)

    band = next_level_xp - current_level_xp
    if band <= 0:
        return 0.0

    progress = (total_xp - current_level_xp) / band
    return min(1.0, max(0.0, progress))


def xp_to_next_level(total_xp: int, xp_config: XPConfiguration = DEFAULT_XP) -> int:
    """Total XP at which the next level is reached."""

    return xp_required(level_from_total_xp(total_xp, xp_config) + 1, xp_config)


def apply_xp(progress: PlayerProgress, earned: int) -> PlayerProgress:
    return replace(progress, total_xp=progress.total_xp + earned)
