"""
UNPLUG Status Presentation Layer
Turns FatigueSnapshot + FatigueConfig into the labels and flags a status UI
shows (menu row, tooltip, progress bar colour band).
"""

from typing import Any, Dict

from fatigue_model import FatigueConfig, FatigueSnapshot


# ── Progress bar bands ───────────────────────────────────

FATIGUE_BANDS = (
    (0.5, "low"),        # green
    (0.8, "moderate"),   # yellow
)
HIGH_BAND = "high"       # red


def fatigue_band(level: float) -> str:
    for upper, band in FATIGUE_BANDS:
        if level < upper:
            return band
    return HIGH_BAND


def fatigue_percent(level: float) -> int:
    return int(level * 100)


def format_duration(seconds: float) -> str:
    """Usage clock: HH:MM:SS once past an hour, MM:SS before."""
    total = int(seconds)
    hours = total // 3600
    minutes = total % 3600 // 60
    secs = total % 60
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def format_setting(seconds: float) -> str:
    """Settings label: '1h 00m', '10m 00s' or '45s'."""
    total = int(seconds)
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60
    if hours > 0:
        return f"{hours}h {minutes:02d}m"
    if minutes > 0:
        return f"{minutes}m {secs:02d}s"
    return f"{secs}s"


def tooltip(snapshot: FatigueSnapshot) -> str:
    if snapshot.connected:
        return f"Headphones connected - Usage: {format_duration(snapshot.usage_duration)}"
    return "No headphones connected"


def build_status(snapshot: FatigueSnapshot, config: FatigueConfig) -> Dict[str, Any]:
    return {
        "connected": snapshot.connected,
        "accumulating": snapshot.accumulating,
        "recovering": snapshot.recovering,
        "usage_duration": round(snapshot.usage_duration, 1),
        "usage_label": format_duration(snapshot.usage_duration),
        "fatigue_level": round(snapshot.fatigue_level, 4),
        "fatigue_percent": fatigue_percent(snapshot.fatigue_level),
        "fatigue_band": fatigue_band(snapshot.fatigue_level),
        "has_warned": snapshot.has_warned,
        "show_reset": snapshot.connected,
        "tooltip": tooltip(snapshot),
        "warning_threshold": config.warning_threshold,
        "recovery_time": config.recovery_time,
    }


def build_settings(config: FatigueConfig) -> Dict[str, Any]:
    return {
        "warning_threshold": config.warning_threshold,
        "recovery_time": config.recovery_time,
        "warning_threshold_label": format_setting(config.warning_threshold),
        "recovery_time_label": format_setting(config.recovery_time),
    }
