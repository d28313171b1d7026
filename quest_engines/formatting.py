"""Human-readable duration strings for hints and feedback."""

from __future__ import annotations

from typing import List


def _split(seconds: float) -> tuple[int, int, int]:
    total = int(seconds)
    return total // 3600, (total % 3600) // 60, total % 60


def format_duration(seconds: float) -> str:
    """Short format: ``"1h 5m 10s"``, ``"2m 30s"`` or ``"45s"``."""

    hours, minutes, secs = _split(seconds)
    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def format_duration_long(seconds: float) -> str:
    """Spoken format: ``"2 minutes 30 seconds"``, ``"1 second"``."""

    hours, minutes, secs = _split(seconds)
    parts: List[str] = []
    if hours > 0:
        parts.append("1 hour" if hours == 1 else f"{hours} hours")
    if minutes > 0:
        parts.append("1 minute" if minutes == 1 else f"{minutes} minutes")
    if secs > 0 or not parts:
        parts.append("1 second" if secs == 1 else f"{secs} seconds")
    return " ".join(parts)
