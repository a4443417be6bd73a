"""
Ear Fatigue Engine - Core State Machine
Converts headphone connect/disconnect transitions and elapsed time into a
bounded fatigue score.

The engine never touches hardware, timers or storage. Callers feed it
transitions and ticks (with an injectable clock), and read back state or
subscribe to the signals it emits.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .scheduler import Clock, SystemClock

logger = logging.getLogger("unplug.engine")


# ============================================================================
# CONFIGURATION
# ============================================================================

DEFAULT_WARNING_THRESHOLD = 3600.0  # 1 hour
DEFAULT_RECOVERY_TIME = 600.0       # 10 minutes


def _validate_duration(name: str, value: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"{name} must be a positive finite duration, got {value!r}")
    return value


@dataclass(frozen=True)
class FatigueConfig:
    """Immutable fatigue parameters (seconds). Swapped as a whole, never mutated."""

    warning_threshold: float = DEFAULT_WARNING_THRESHOLD
    recovery_time: float = DEFAULT_RECOVERY_TIME

    def __post_init__(self):
        object.__setattr__(
            self, "warning_threshold",
            _validate_duration("warning_threshold", self.warning_threshold),
        )
        object.__setattr__(
            self, "recovery_time",
            _validate_duration("recovery_time", self.recovery_time),
        )


# ============================================================================
# SIGNALS & SNAPSHOTS
# ============================================================================

class FatigueSignal(str, Enum):
    """Edge-triggered notifications published by the engine"""
    CONNECTION_CHANGED = "CONNECTION_CHANGED"
    USAGE_CHANGED = "USAGE_CHANGED"
    FATIGUE_CHANGED = "FATIGUE_CHANGED"
    WARNING_THRESHOLD_CROSSED = "WARNING_THRESHOLD_CROSSED"
    MAXIMUM_FATIGUE_REACHED = "MAXIMUM_FATIGUE_REACHED"


@dataclass(frozen=True)
class FatigueSnapshot:
    """Point-in-time view of the engine's observable state"""
    timestamp: float
    connected: bool
    usage_duration: float
    fatigue_level: float
    accumulating: bool
    recovering: bool
    has_warned: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "connected": self.connected,
            "usage_duration": round(self.usage_duration, 1),
            "fatigue_level": round(self.fatigue_level, 4),
            "accumulating": self.accumulating,
            "recovering": self.recovering,
            "has_warned": self.has_warned,
        }


SignalCallback = Callable[[FatigueSignal, FatigueSnapshot], None]


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


# ============================================================================
# ENGINE
# ============================================================================

class FatigueEngine:
    """
    Tracks usage duration and fatigue for a single listener.

    States:
      - accumulating: headphones active, ``usage_start_time`` set
      - recovering:   headphones inactive, ``disconnected_at`` set
      - idle:         neither (fatigue fully decayed)

    Not thread-safe: the owner must serialize transitions, ticks and resets.
    """

    def __init__(self, config: Optional[FatigueConfig] = None, clock: Optional[Clock] = None):
        self._config = config or FatigueConfig()
        self._clock = clock or SystemClock()
        self._subscribers: List[SignalCallback] = []

        self.connected = False
        self.usage_start_time: Optional[float] = None
        self.usage_duration = 0.0
        self.fatigue_level = 0.0
        self.disconnected_at: Optional[float] = None
        self.has_warned = False
        self.baseline = 0.0

    # ──────────────────────────────────────────────────────
    # Configuration
    # ──────────────────────────────────────────────────────

    @property
    def config(self) -> FatigueConfig:
        return self._config

    def set_configuration(self, warning_threshold: float, recovery_time: float) -> FatigueConfig:
        """
        Replace both durations at once. Takes effect on the next tick and
        leaves current state untouched. Raises ValueError (keeping the old
        configuration) when either duration is not positive.
        """
        config = FatigueConfig(warning_threshold=warning_threshold, recovery_time=recovery_time)
        self._config = config
        logger.info(
            f"Configuration updated: warning_threshold={config.warning_threshold:.0f}s, "
            f"recovery_time={config.recovery_time:.0f}s"
        )
        return config

    # ──────────────────────────────────────────────────────
    # Observers
    # ──────────────────────────────────────────────────────

    def subscribe(self, callback: SignalCallback) -> Callable[[], None]:
        """Register a signal callback. Returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _emit(self, signal: FatigueSignal, now: float) -> None:
        snapshot = self.snapshot(now)
        for callback in list(self._subscribers):
            try:
                callback(signal, snapshot)
            except Exception:
                logger.exception(f"Subscriber failed while handling {signal.value}")

    # ──────────────────────────────────────────────────────
    # State queries
    # ──────────────────────────────────────────────────────

    @property
    def is_accumulating(self) -> bool:
        return self.usage_start_time is not None

    @property
    def is_recovering(self) -> bool:
        return self.disconnected_at is not None

    @property
    def is_active(self) -> bool:
        """True while ticks can still change state."""
        return self.is_accumulating or self.is_recovering

    def snapshot(self, now: Optional[float] = None) -> FatigueSnapshot:
        return FatigueSnapshot(
            timestamp=self._clock.now() if now is None else now,
            connected=self.connected,
            usage_duration=self.usage_duration,
            fatigue_level=self.fatigue_level,
            accumulating=self.is_accumulating,
            recovering=self.is_recovering,
            has_warned=self.has_warned,
        )

    # ──────────────────────────────────────────────────────
    # Transitions
    # ──────────────────────────────────────────────────────

    def _start_episode(self, now: float) -> None:
        self.usage_start_time = now
        self.usage_duration = 0.0
        self.baseline = self.fatigue_level
        self.has_warned = False
        self.disconnected_at = None

    def on_connected(self, now: Optional[float] = None) -> None:
        """Headphones became active. Fatigue builds on top of the current level."""
        if self.connected:
            return
        now = self._clock.now() if now is None else now

        self.connected = True
        self._start_episode(now)
        logger.info(f"Headphones connected (baseline fatigue {self.baseline * 100:.0f}%)")
        self._emit(FatigueSignal.CONNECTION_CHANGED, now)

    def on_disconnected(self, now: Optional[float] = None) -> None:
        """Headphones became inactive. Recovery starts from the current level."""
        if not self.connected:
            return
        now = self._clock.now() if now is None else now

        self.connected = False
        self.usage_start_time = None
        self.usage_duration = 0.0
        self.disconnected_at = now
        logger.info(f"Headphones disconnected (fatigue {self.fatigue_level * 100:.0f}%), recovering")
        self._emit(FatigueSignal.CONNECTION_CHANGED, now)

    def reset_usage_tracking(self, now: Optional[float] = None) -> None:
        """User-initiated full clear. Unlike a reconnect, fatigue goes back to zero."""
        now = self._clock.now() if now is None else now

        if self.connected:
            self.fatigue_level = 0.0
            self._start_episode(now)
        else:
            self.usage_duration = 0.0
            self.fatigue_level = 0.0
            self.has_warned = False

        logger.info(f"Usage tracking reset (connected={self.connected})")
        self._emit(FatigueSignal.USAGE_CHANGED, now)
        self._emit(FatigueSignal.FATIGUE_CHANGED, now)

    # ──────────────────────────────────────────────────────
    # Periodic tick
    # ──────────────────────────────────────────────────────

    def tick(self, now: Optional[float] = None) -> bool:
        """
        Recompute duration and fatigue for ``now``.
        Returns True when observable state changed.
        """
        now = self._clock.now() if now is None else now
        config = self._config

        if self.usage_start_time is not None:
            return self._tick_accumulating(now, config)
        if self.disconnected_at is not None:
            return self._tick_recovering(now, config)
        return False

    def _tick_accumulating(self, now: float, config: FatigueConfig) -> bool:
        previous_duration = self.usage_duration
        previous_fatigue = self.fatigue_level

        # Clock moved backward: hold the last known duration
        duration = max(now - self.usage_start_time, previous_duration)

        self.usage_duration = duration
        self.fatigue_level = _clamp(self.baseline + duration / config.warning_threshold)

        signals = [FatigueSignal.USAGE_CHANGED]
        if self.fatigue_level != previous_fatigue:
            signals.append(FatigueSignal.FATIGUE_CHANGED)
        if previous_duration < config.warning_threshold <= duration:
            logger.info(f"Usage reached warning threshold ({config.warning_threshold:.0f}s)")
            signals.append(FatigueSignal.WARNING_THRESHOLD_CROSSED)
        if previous_fatigue < 1.0 <= self.fatigue_level and not self.has_warned:
            self.has_warned = True
            logger.warning(f"Maximum ear fatigue reached after {duration:.0f}s of use")
            signals.append(FatigueSignal.MAXIMUM_FATIGUE_REACHED)

        logger.debug(f"tick: usage={duration:.1f}s fatigue={self.fatigue_level:.4f}")
        for signal in signals:
            self._emit(signal, now)
        return duration != previous_duration or self.fatigue_level != previous_fatigue

    def _tick_recovering(self, now: float, config: FatigueConfig) -> bool:
        previous_fatigue = self.fatigue_level

        elapsed = max(now - self.disconnected_at, 0.0)
        progress = elapsed / config.recovery_time
        fatigue = max(0.0, previous_fatigue * (1.0 - progress))

        if fatigue <= 0.0:
            fatigue = 0.0
            self.disconnected_at = None
            logger.info("Recovery complete")

        self.fatigue_level = fatigue
        logger.debug(f"tick: recovering fatigue={self.fatigue_level:.4f} (progress {progress:.2f})")

        if self.fatigue_level != previous_fatigue:
            self._emit(FatigueSignal.FATIGUE_CHANGED, now)
            return True
        return False
