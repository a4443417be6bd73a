"""
UNPLUG Preferences Service
Loads and saves the two fatigue durations. Stored values that would be
unusable as divisors are replaced by the configured defaults.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session as SASession

from app.core.config import settings
from app.models.preferences import UserPreferences
from fatigue_model import FatigueConfig

logger = logging.getLogger("unplug.preferences")

PREFERENCES_ROW_ID = 1


def default_config() -> FatigueConfig:
    return FatigueConfig(
        warning_threshold=settings.DEFAULT_WARNING_THRESHOLD,
        recovery_time=settings.DEFAULT_RECOVERY_TIME,
    )


def _get_row(db: SASession) -> Optional[UserPreferences]:
    return db.get(UserPreferences, PREFERENCES_ROW_ID)


def load_config(db: SASession) -> FatigueConfig:
    """Current durations, falling back to defaults when unset or invalid"""
    row = _get_row(db)
    if row is None:
        return default_config()
    try:
        return FatigueConfig(
            warning_threshold=row.warning_threshold,
            recovery_time=row.recovery_time,
        )
    except ValueError as exc:
        logger.warning(f"Stored preferences invalid ({exc}), using defaults")
        return default_config()


def save_config(db: SASession, warning_threshold: float, recovery_time: float) -> FatigueConfig:
    """Validate and persist. Raises ValueError without touching the row."""
    config = FatigueConfig(warning_threshold=warning_threshold, recovery_time=recovery_time)

    row = _get_row(db)
    if row is None:
        row = UserPreferences(id=PREFERENCES_ROW_ID)
        db.add(row)
    row.warning_threshold = config.warning_threshold
    row.recovery_time = config.recovery_time
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(
        f"Preferences saved: warning_threshold={config.warning_threshold:.0f}s, "
        f"recovery_time={config.recovery_time:.0f}s"
    )
    return config


def reset_to_defaults(db: SASession) -> FatigueConfig:
    config = default_config()
    return save_config(db, config.warning_threshold, config.recovery_time)
