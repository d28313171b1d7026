"""Score a single time estimate against the measured duration."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from difficulty_levels import DEFAULT_DIFFICULTY, AccuracyThresholds, DifficultyConfiguration

# Tasks shorter than this are normalised against a fixed window so a few
# seconds of error on a short task do not read as a huge miss.
SHORT_TASK_WINDOW_SECONDS = 60.0


class AccuracyRating(str, Enum):
    """Rating bands ordered from best to worst."""

    SPOT_ON = "spot_on"
    CLOSE = "close"
    OFF = "off"
    WAY_OFF = "way_off"

    @property
    def rank(self) -> int:
        return _RATING_ORDER.index(self)


_RATING_ORDER = (
    AccuracyRating.SPOT_ON,
    AccuracyRating.CLOSE,
    AccuracyRating.OFF,
    AccuracyRating.WAY_OFF,
)


@dataclass(frozen=True)
class EstimationResult:
    estimated_seconds: float
    actual_seconds: float
    difference_seconds: float  # positive = overestimate
    abs_difference_seconds: float
    accuracy_percent: float  # 0-100
    rating: AccuracyRating


def accuracy_percent(abs_difference: float, actual: float) -> float:
    """Difficulty-independent accuracy in ``[0, 100]``."""

    denominator = SHORT_TASK_WINDOW_SECONDS if actual < SHORT_TASK_WINDOW_SECONDS else actual
    return max(0.0, 100.0 - (abs_difference / denominator * 100.0))


def score(
    estimated: float,
    actual: float,
    thresholds: Optional[AccuracyThresholds] = None,
    config: DifficultyConfiguration = DEFAULT_DIFFICULTY,
) -> EstimationResult:
    """Score ``estimated`` against ``actual`` (both in seconds).

    ``thresholds`` only moves the rating bands; the accuracy percent is
    computed the same way at every difficulty level so historical charts stay
    comparable. Defaults to the level 1 bands of ``config``.

    Precondition: ``actual > 0``.
    """

    if thresholds is None:
        thresholds = config.thresholds(1)

    difference = float(estimated) - float(actual)
    abs_diff = abs(difference)

    spot_on_limit = max(config.minimum_absolute_threshold_seconds, actual * thresholds.spot_on)
    if abs_diff <= spot_on_limit:
        rating = AccuracyRating.SPOT_ON
    elif abs_diff <= actual * thresholds.close:
        rating = AccuracyRating.CLOSE
    elif abs_diff <= actual * thresholds.off:
        rating = AccuracyRating.OFF
    else:
        rating = AccuracyRating.WAY_OFF

    return EstimationResult(
        estimated_seconds=float(estimated),
        actual_seconds=float(actual),
        difference_seconds=difference,
        abs_difference_seconds=abs_diff,
        accuracy_percent=accuracy_percent(abs_diff, actual),
        rating=rating,
    )
