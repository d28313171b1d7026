"""Pydantic schemas for records owned by the persistence layer.

The engines only work with immutable values. Stored rows are validated here
and mapped to those values before they reach any computation, and next-state
values are mapped back for the storage layer to write.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable, List, Mapping

from pydantic import BaseModel, Field, ValidationError

from quest_engines.difficulty import DifficultyState
from quest_engines.snapshots import EstimationSnapshot
from quest_engines.xp import PlayerProgress

__all__ = [
    "TaskEstimationRecord",
    "DifficultyStateRecord",
    "PlayerProfileRecord",
    "ValidationError",
    "snapshots_from_records",
]

UNKNOWN_ROUTINE = "Unknown"


class TaskEstimationRecord(BaseModel):
    """A stored task estimation, joined with its session and routine."""

    task_display_name: str = Field(min_length=1)
    estimated_seconds: float = Field(ge=0.0)
    actual_seconds: float = Field(
        gt=0.0,
        description="Measured duration; the scorer requires a positive value.",
    )
    difference_seconds: float = Field(description="Estimated minus actual; positive = overestimate.")
    accuracy_percent: float = Field(ge=0.0, le=100.0)
    recorded_at: datetime
    routine_name: str | None = Field(
        default=None,
        description="Display name of the owning routine, if the session still has one.",
    )
    is_calibration: bool | None = Field(
        default=None,
        description="Calibration flag of the owning session; missing sessions count as regular play.",
    )

    model_config = {
        "extra": "ignore",
    }

    def to_snapshot(self) -> EstimationSnapshot:
        return EstimationSnapshot(
            task_display_name=self.task_display_name,
            estimated_seconds=self.estimated_seconds,
            actual_seconds=self.actual_seconds,
            difference_seconds=self.difference_seconds,
            accuracy_percent=self.accuracy_percent,
            recorded_at=self.recorded_at,
            routine_name=self.routine_name or UNKNOWN_ROUTINE,
            is_calibration=bool(self.is_calibration),
        )


class DifficultyStateRecord(BaseModel):
    task_display_name: str = Field(min_length=1)
    difficulty_level: int = Field(default=1, ge=1)
    ema: float = Field(default=0.0, ge=0.0, le=100.0)
    sessions_at_current_level: int = Field(default=0, ge=0)
    last_updated: datetime | None = None

    model_config = {
        "extra": "ignore",
    }

    def to_state(self) -> DifficultyState:
        return DifficultyState(
            task_display_name=self.task_display_name,
            difficulty_level=self.difficulty_level,
            ema=self.ema,
            sessions_at_current_level=self.sessions_at_current_level,
            last_updated=self.last_updated,
        )

    @classmethod
    def from_state(cls, state: DifficultyState) -> "DifficultyStateRecord":
        return cls(
            task_display_name=state.task_display_name,
            difficulty_level=state.difficulty_level,
            ema=state.ema,
            sessions_at_current_level=state.sessions_at_current_level,
            last_updated=state.last_updated,
        )


class PlayerProfileRecord(BaseModel):
    total_xp: int = Field(default=0, ge=0)
    current_streak: int = Field(default=0, ge=0)
    last_played_date: date | None = None

    model_config = {
        "extra": "ignore",
    }

    def to_progress(self) -> PlayerProgress:
        return PlayerProgress(
            total_xp=self.total_xp,
            current_streak=self.current_streak,
            last_played_date=self.last_played_date,
        )

    @classmethod
    def from_progress(cls, progress: PlayerProgress) -> "PlayerProfileRecord":
        return cls(
            total_xp=progress.total_xp,
            current_streak=progress.current_streak,
            last_played_date=progress.last_played_date,
        )


def snapshots_from_records(rows: Iterable[Mapping[str, Any]]) -> List[EstimationSnapshot]:
    """Validate raw estimation rows and map them to snapshots.

    Raises :class:`pydantic.ValidationError` for the first invalid row.
    """

    return [TaskEstimationRecord.model_validate(dict(row)).to_snapshot() for row in rows]
