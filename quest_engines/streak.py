"""Day-granularity play streaks.

A gap of two or more days pauses the streak instead of resetting it: the
count is kept and the streak is reported inactive until the player returns.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

DateLike = Union[date, datetime]


@dataclass(frozen=True)
class StreakState:
    current_streak: int
    last_played_date: Optional[date]
    is_active: bool


def _as_date(value: DateLike) -> date:
    # datetime is a subclass of date
    if isinstance(value, datetime):
        return value.date()
    return value


def updated_streak(
    current_streak: int,
    last_played_date: Optional[DateLike],
    today: DateLike,
) -> StreakState:
    """Streak after a session played on ``today``.

    Days are compared as calendar dates, not 24-hour windows. Aware datetimes
    should already be in the player's local time zone.
    """

    today_date = _as_date(today)

    if last_played_date is None:
        return StreakState(current_streak=1, last_played_date=today_date, is_active=True)

    last_date = _as_date(last_played_date)
    if today_date == last_date:
        return StreakState(current_streak=current_streak, last_played_date=last_date, is_active=True)

    days_between = (today_date - last_date).days
    if days_between == 1:
        return StreakState(
            current_streak=current_streak + 1, last_played_date=today_date, is_active=True
        )

    return StreakState(current_streak=current_streak, last_played_date=today_date, is_active=False)


def is_streak_active(last_played_date: Optional[DateLike], today: DateLike) -> bool:
    """True when the player has already played on ``today``."""

    if last_played_date is None:
        return False
    return _as_date(last_played_date) == _as_date(today)
