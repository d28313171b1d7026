"""Difficulty and XP tuning configuration.

Both configurations are immutable values. The defaults below are the shipped
tuning; alternative tunings can be loaded from a JSON document with
:func:`load_configuration` and passed explicitly to the engines.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple

_LOGGER = logging.getLogger(__name__)


class DifficultyConfigError(ValueError):
    """Raised when a difficulty configuration document contains invalid data."""


@dataclass(frozen=True)
class AccuracyThresholds:
    """Maximum absolute-difference ratios for each rating band.

    Anything beyond ``off`` is rated ``way_off``.
    """

    spot_on: float
    close: float
    off: float


_DEFAULT_LEVEL_EMA_THRESHOLDS: Tuple[float, ...] = (0.0, 65.0, 75.0, 83.0, 90.0)

_DEFAULT_THRESHOLDS_PER_LEVEL: Tuple[AccuracyThresholds, ...] = (
    AccuracyThresholds(spot_on=0.10, close=0.25, off=0.50),
    AccuracyThresholds(spot_on=0.08, close=0.20, off=0.40),
    AccuracyThresholds(spot_on=0.06, close=0.15, off=0.35),
    AccuracyThresholds(spot_on=0.05, close=0.12, off=0.30),
    AccuracyThresholds(spot_on=0.04, close=0.10, off=0.25),
)

_DEFAULT_XP_MULTIPLIERS: Tuple[float, ...] = (1.0, 1.15, 1.35, 1.60, 2.00)


@dataclass(frozen=True)
class DifficultyConfiguration:
    """Tuning for the adaptive difficulty ladder."""

    ema_alpha: float = 0.3
    minimum_sessions_to_advance: int = 5
    level_ema_thresholds: Tuple[float, ...] = _DEFAULT_LEVEL_EMA_THRESHOLDS
    thresholds_per_level: Tuple[AccuracyThresholds, ...] = _DEFAULT_THRESHOLDS_PER_LEVEL
    xp_multipliers: Tuple[float, ...] = _DEFAULT_XP_MULTIPLIERS
    minimum_absolute_threshold_seconds: float = 15.0

    @property
    def max_level(self) -> int:
        return len(self.thresholds_per_level)

    def level_for_ema(self, ema: float) -> int:
        """Return the highest 1-based level whose EMA threshold ``ema`` meets."""

        level = 1
        for idx, threshold in enumerate(self.level_ema_thresholds):
            if ema >= threshold:
                level = idx + 1
        return level

    def _clamped_index(self, level: int, size: int) -> int:
        return min(max(level - 1, 0), size - 1)

    def thresholds(self, level: int) -> AccuracyThresholds:
        """Rating bands for ``level``; out-of-range levels clamp to the ends."""

        return self.thresholds_per_level[
            self._clamped_index(level, len(self.thresholds_per_level))
        ]

    def xp_multiplier(self, level: int) -> float:
        """XP multiplier for ``level``; out-of-range levels clamp to the ends."""

        return self.xp_multipliers[self._clamped_index(level, len(self.xp_multipliers))]


@dataclass(frozen=True)
class XPConfiguration:
    """XP rewards per rating band and the level curve constants."""

    spot_on_xp: int = 100
    close_xp: int = 60
    off_xp: int = 25
    way_off_xp: int = 10
    completion_bonus: int = 20
    level_base_xp: float = 100.0
    level_exponent: float = 1.5


DEFAULT_DIFFICULTY = DifficultyConfiguration()
"""Shipped difficulty tuning."""

DEFAULT_XP = XPConfiguration()
"""Shipped XP tuning."""


# ----------------------------------------------------------------------
def _require_number(section: str, key: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DifficultyConfigError(f"{section}.{key} must be numeric")
    return float(value)


def _parse_thresholds(raw: Any) -> Tuple[AccuracyThresholds, ...]:
    if not isinstance(raw, list) or not raw:
        raise DifficultyConfigError("difficulty.thresholds_per_level must be a non-empty list")

    parsed: List[AccuracyThresholds] = []
    for idx, entry in enumerate(raw, start=1):
        if not isinstance(entry, dict):
            raise DifficultyConfigError(f"Threshold entry #{idx} must be a JSON object")
        try:
            bands = AccuracyThresholds(
                spot_on=_require_number("thresholds", "spot_on", entry["spot_on"]),
                close=_require_number("thresholds", "close", entry["close"]),
                off=_require_number("thresholds", "off", entry["off"]),
            )
        except KeyError as exc:
            raise DifficultyConfigError(
                f"Threshold entry #{idx} is missing {exc.args[0]!r}"
            ) from exc
        if not 0.0 < bands.spot_on <= bands.close <= bands.off:
            raise DifficultyConfigError(
                f"Threshold entry #{idx} must satisfy 0 < spot_on <= close <= off"
            )
        parsed.append(bands)
    return tuple(parsed)


def _parse_difficulty(raw: Mapping[str, Any]) -> DifficultyConfiguration:
    known = {f.name for f in fields(DifficultyConfiguration)}
    unknown = set(raw) - known
    if unknown:
        raise DifficultyConfigError(f"Unknown difficulty keys: {', '.join(sorted(unknown))}")

    values: Dict[str, Any] = {}
    if "ema_alpha" in raw:
        alpha = _require_number("difficulty", "ema_alpha", raw["ema_alpha"])
        if not 0.0 < alpha <= 1.0:
            raise DifficultyConfigError("difficulty.ema_alpha must be within (0, 1]")
        values["ema_alpha"] = alpha
    if "minimum_sessions_to_advance" in raw:
        minimum = raw["minimum_sessions_to_advance"]
        if isinstance(minimum, bool) or not isinstance(minimum, int) or minimum < 0:
            raise DifficultyConfigError(
                "difficulty.minimum_sessions_to_advance must be a non-negative integer"
            )
        values["minimum_sessions_to_advance"] = minimum
    if "level_ema_thresholds" in raw:
        raw_levels = raw["level_ema_thresholds"]
        if not isinstance(raw_levels, list) or not raw_levels:
            raise DifficultyConfigError("difficulty.level_ema_thresholds must be a non-empty list")
        levels = tuple(
            _require_number("difficulty", "level_ema_thresholds", value) for value in raw_levels
        )
        if any(later < earlier for earlier, later in zip(levels, levels[1:])):
            raise DifficultyConfigError("difficulty.level_ema_thresholds must be ascending")
        values["level_ema_thresholds"] = levels
    if "thresholds_per_level" in raw:
        values["thresholds_per_level"] = _parse_thresholds(raw["thresholds_per_level"])
    if "xp_multipliers" in raw:
        raw_multipliers = raw["xp_multipliers"]
        if not isinstance(raw_multipliers, list) or not raw_multipliers:
            raise DifficultyConfigError("difficulty.xp_multipliers must be a non-empty list")
        multipliers = tuple(
            _require_number("difficulty", "xp_multipliers", value) for value in raw_multipliers
        )
        if any(value < 1.0 for value in multipliers):
            raise DifficultyConfigError("difficulty.xp_multipliers must all be >= 1.0")
        values["xp_multipliers"] = multipliers
    if "minimum_absolute_threshold_seconds" in raw:
        floor = _require_number(
            "difficulty",
            "minimum_absolute_threshold_seconds",
            raw["minimum_absolute_threshold_seconds"],
        )
        if floor < 0:
            raise DifficultyConfigError(
                "difficulty.minimum_absolute_threshold_seconds must not be negative"
            )
        values["minimum_absolute_threshold_seconds"] = floor

    config = DifficultyConfiguration(**values)
    level_lists = {
        "level_ema_thresholds": len(config.level_ema_thresholds),
        "thresholds_per_level": len(config.thresholds_per_level),
        "xp_multipliers": len(config.xp_multipliers),
    }
    if len(set(level_lists.values())) != 1:
        detail = ", ".join(f"{name}={size}" for name, size in level_lists.items())
        raise DifficultyConfigError(f"Per-level lists must have equal length ({detail})")
    return config


def _parse_xp(raw: Mapping[str, Any]) -> XPConfiguration:
    known = {f.name for f in fields(XPConfiguration)}
    unknown = set(raw) - known
    if unknown:
        raise DifficultyConfigError(f"Unknown xp keys: {', '.join(sorted(unknown))}")

    values: Dict[str, Any] = {}
    for key in ("spot_on_xp", "close_xp", "off_xp", "way_off_xp", "completion_bonus"):
        if key in raw:
            value = raw[key]
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise DifficultyConfigError(f"xp.{key} must be a non-negative integer")
            values[key] = value
    for key in ("level_base_xp", "level_exponent"):
        if key in raw:
            value = _require_number("xp", key, raw[key])
            if value <= 0:
                raise DifficultyConfigError(f"xp.{key} must be positive")
            values[key] = value
    return XPConfiguration(**values)


def parse_configuration(
    raw: Mapping[str, Any],
) -> Tuple[DifficultyConfiguration, XPConfiguration]:
    """Build configuration values from an already decoded JSON document."""

    if not isinstance(raw, Mapping):
        raise DifficultyConfigError("Configuration document must be a JSON object")

    unknown = set(raw) - {"difficulty", "xp"}
    if unknown:
        raise DifficultyConfigError(f"Unknown configuration sections: {', '.join(sorted(unknown))}")

    difficulty_raw = raw.get("difficulty", {})
    xp_raw = raw.get("xp", {})
    if not isinstance(difficulty_raw, Mapping):
        raise DifficultyConfigError("'difficulty' section must be a JSON object")
    if not isinstance(xp_raw, Mapping):
        raise DifficultyConfigError("'xp' section must be a JSON object")

    return _parse_difficulty(difficulty_raw), _parse_xp(xp_raw)


def load_configuration(
    path: str | Path,
) -> Tuple[DifficultyConfiguration, XPConfiguration]:
    """Load difficulty and XP tuning from a JSON file.

    Missing sections or keys fall back to the shipped defaults.
    """

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Difficulty configuration file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as fh:
        try:
            raw = json.load(fh)
        except json.JSONDecodeError as exc:
            raise DifficultyConfigError(f"Invalid JSON in {config_path}: {exc}") from exc

    difficulty, xp = parse_configuration(raw)
    _LOGGER.info(
        "Loaded difficulty configuration from %s (%d levels, alpha=%.2f)",
        config_path,
        difficulty.max_level,
        difficulty.ema_alpha,
    )
    return difficulty, xp


__all__ = [
    "AccuracyThresholds",
    "DEFAULT_DIFFICULTY",
    "DEFAULT_XP",
    "DifficultyConfigError",
    "DifficultyConfiguration",
    "XPConfiguration",
    "load_configuration",
    "parse_configuration",
]
