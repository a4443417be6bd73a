"""
Pydantic Schemas for API request/response validation
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


# Ranges and steps offered by the settings screen
WARNING_THRESHOLD_RANGE = (300.0, 7200.0)
RECOVERY_TIME_RANGE = (60.0, 1800.0)
WARNING_THRESHOLD_STEP = 300.0
RECOVERY_TIME_STEP = 60.0


# ── Settings Schemas ─────────────────────────────────────
class SettingsUpdate(BaseModel):
    warning_threshold: float = Field(
        ge=WARNING_THRESHOLD_RANGE[0], le=WARNING_THRESHOLD_RANGE[1],
        multiple_of=WARNING_THRESHOLD_STEP,
        description="Seconds of listening before fatigue reaches 100%",
    )
    recovery_time: float = Field(
        ge=RECOVERY_TIME_RANGE[0], le=RECOVERY_TIME_RANGE[1],
        multiple_of=RECOVERY_TIME_STEP,
        description="Seconds to fully recover from 100% fatigue",
    )


class SettingsResponse(BaseModel):
    warning_threshold: float
    recovery_time: float
    warning_threshold_label: str
    recovery_time_label: str


# ── Monitor Schemas ──────────────────────────────────────
class DeviceUpdate(BaseModel):
    active: bool


class MonitorStatus(BaseModel):
    connected: bool
    accumulating: bool
    recovering: bool
    usage_duration: float
    usage_label: str
    fatigue_level: float
    fatigue_percent: int
    fatigue_band: str
    has_warned: bool
    show_reset: bool
    tooltip: str
    warning_threshold: float
    recovery_time: float


# ── Alert Schemas ────────────────────────────────────────
class AlertResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    alert_type: str
    severity: str
    message: str
    fatigue_level: float
    usage_duration: float
    is_read: bool
    created_at: Optional[datetime] = None

