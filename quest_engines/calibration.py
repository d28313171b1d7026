"""Calibration phase tracking for routines."""

from __future__ import annotations

CALIBRATION_THRESHOLD = 3
"""Completed sessions a routine needs before it leaves calibration."""


def is_calibration_session(completed_session_count: int) -> bool:
    """True while the routine has fewer than ``CALIBRATION_THRESHOLD`` completed sessions.

    Abandoned sessions must not be counted by the caller.
    """

    return completed_session_count < CALIBRATION_THRESHOLD


def calibration_sessions_remaining(completed_session_count: int) -> int:
    return max(0, CALIBRATION_THRESHOLD - completed_session_count)
