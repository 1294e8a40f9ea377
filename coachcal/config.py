"""
Centralized configuration with environment variable overrides.

Scheduling defaults, display formats and logging are configurable here.
Per-trainer values live in the trainer_settings collection; this module
only supplies the defaults used when a trainer has not saved any.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from coachcal.logging_context import SessionIdFilter

load_dotenv()

logger = logging.getLogger(__name__)

CONFIRMATION_MODES = ("manual", "auto")
LOG_FORMAT = "%(asctime)s [%(name)s] [%(session_id)s] %(levelname)s: %(message)s"


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class SchedulingConfig:
    """Defaults for slot generation, trainer settings and recurrence."""

    default_min_duration: int = _safe_int("DEFAULT_MIN_DURATION", "30")
    default_max_duration: int = _safe_int("DEFAULT_MAX_DURATION", "120")
    default_time_step: int = _safe_int("DEFAULT_TIME_STEP", "15")
    default_confirmation_mode: str = os.getenv("DEFAULT_CONFIRMATION_MODE", "manual")
    booking_horizon_days: int = _safe_int("BOOKING_HORIZON_DAYS", "60")
    recurrence_horizon: int = _safe_int("RECURRENCE_HORIZON", "12")
    recurring_title_suffix: str = os.getenv("RECURRING_TITLE_SUFFIX", " (repeating)")


@dataclass(frozen=True)
class DisplayConfig:
    """Formatting of times inside user-facing texts."""

    datetime_format: str = os.getenv("DISPLAY_DATETIME_FORMAT", "%Y. %m. %d. %H:%M")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "coachcal")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    sched = config.scheduling
    if sched.default_min_duration < 1:
        raise ValueError(
            f"DEFAULT_MIN_DURATION must be >= 1, got {sched.default_min_duration}"
        )
    if sched.default_max_duration < sched.default_min_duration:
        raise ValueError(
            "DEFAULT_MAX_DURATION must be >= DEFAULT_MIN_DURATION, "
            f"got {sched.default_max_duration} < {sched.default_min_duration}"
        )
    if sched.default_time_step < 1:
        raise ValueError(
            f"DEFAULT_TIME_STEP must be >= 1, got {sched.default_time_step}"
        )
    if sched.default_confirmation_mode not in CONFIRMATION_MODES:
        raise ValueError(
            "DEFAULT_CONFIRMATION_MODE must be one of "
            f"{CONFIRMATION_MODES}, got {sched.default_confirmation_mode!r}"
        )
    if sched.booking_horizon_days < 1:
        raise ValueError(
            f"BOOKING_HORIZON_DAYS must be >= 1, got {sched.booking_horizon_days}"
        )
    if sched.recurrence_horizon < 0:
        raise ValueError(
            f"RECURRENCE_HORIZON must be >= 0, got {sched.recurrence_horizon}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    handler = logging.StreamHandler()
    handler.addFilter(SessionIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        handlers=[handler],
    )
    logger.info("Configuration loaded for '%s'", config.app_name)
    return config


# Singleton instance
settings = load_config()
