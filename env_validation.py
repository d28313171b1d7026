"""Environment variable validation and management."""

import os
import logging
from typing import Optional, Tuple

from difficulty_levels import (
    DEFAULT_DIFFICULTY,
    DEFAULT_XP,
    DifficultyConfiguration,
    XPConfiguration,
    load_configuration,
)

logger = logging.getLogger(__name__)

CONFIG_PATH_VAR = "TIMEQUEST_CONFIG_PATH"
LOG_LEVEL_VAR = "TIMEQUEST_LOG_LEVEL"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class EnvironmentError(Exception):
    """Raised when required environment variables are missing or invalid."""
    pass


def validate_environment() -> None:
    """Validate the engine's environment variables.

    Raises EnvironmentError if validation fails.
    """
    log_level = os.getenv(LOG_LEVEL_VAR)
    if log_level and log_level.upper() not in _LOG_LEVELS:
        raise EnvironmentError(
            f"Invalid log level for {LOG_LEVEL_VAR}: {log_level}"
        )

    config_path = os.getenv(CONFIG_PATH_VAR)
    if config_path and not os.path.isfile(config_path):
        raise EnvironmentError(
            f"{CONFIG_PATH_VAR} points to a missing file: {config_path}"
        )

    optional_vars = {
        CONFIG_PATH_VAR: "Path to a difficulty/XP tuning JSON document",
        LOG_LEVEL_VAR: "Log level for the progression engines",
    }
    for var, description in optional_vars.items():
        if not os.getenv(var):
            logger.debug(f"Optional environment variable not set: {var} ({description})")


def configure_logging(default_level: str = "WARNING") -> None:
    """Apply the log level from the environment to the root logger."""
    level = (os.getenv(LOG_LEVEL_VAR) or default_level).upper()
    if level not in _LOG_LEVELS:
        logger.warning("Unknown log level %s; using %s", level, default_level)
        level = default_level.upper()
    logging.basicConfig(level=getattr(logging, level))


def configuration_from_environment(
    path: Optional[str] = None,
) -> Tuple[DifficultyConfiguration, XPConfiguration]:
    """Resolve the active tuning.

    An explicit ``path`` wins over ``TIMEQUEST_CONFIG_PATH``; with neither set
    the shipped defaults are returned.
    """
    config_path = path or os.getenv(CONFIG_PATH_VAR)
    if not config_path:
        logger.info("%s not set; using default difficulty configuration", CONFIG_PATH_VAR)
        return DEFAULT_DIFFICULTY, DEFAULT_XP
    return load_configuration(config_path)

