"""Player-facing messages for a scored estimate.

Messages stay curious, never judgmental: a large miss is a "discovery".
"""

from __future__ import annotations

from dataclasses import dataclass

from .formatting import format_duration
from .scorer import AccuracyRating, EstimationResult


@dataclass(frozen=True)
class FeedbackMessage:
    headline: str
    body: str
    icon: str  # symbol name resolved by the UI


CALIBRATION_BODY = "Just learning your patterns. Every guess teaches something."


def message_for(result: EstimationResult, is_calibration_phase: bool) -> FeedbackMessage:
    diff = format_duration(result.abs_difference_seconds)
    direction = "over" if result.difference_seconds > 0 else "under"

    if is_calibration_phase:
        return FeedbackMessage(
            headline=f"{diff} {direction}",
            body=CALIBRATION_BODY,
            icon="chart.line.uptrend.xyaxis",
        )

    if result.rating is AccuracyRating.SPOT_ON:
        return FeedbackMessage(
            headline="Nailed it!",
            body="Your time sense was right on.",
            icon="bullseye",
        )
    if result.rating is AccuracyRating.CLOSE:
        return FeedbackMessage(
            headline=f"{diff} {direction}",
            body="Getting dialed in.",
            icon="scope",
        )
    if result.rating is AccuracyRating.OFF:
        return FeedbackMessage(
            headline=f"{diff} {direction}",
            body="Interesting -- that one felt different than it was.",
            icon="magnifyingglass",
        )
    return FeedbackMessage(
        headline=f"{diff} {direction}!",
        body="Big discovery! This one's tricky to feel.",
        icon="sparkles",
    )
