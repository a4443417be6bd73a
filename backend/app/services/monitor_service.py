"""
UNPLUG Monitor Service
Top-level coordinator: owns one FatigueEngine, one device state source and
the repeating tick task.

All engine calls happen on the asyncio event loop. Device callbacks that
arrive on other threads are handed over with ``call_soon_threadsafe``.
Warnings raised by the engine are turned into alerts and passed to the
alert sink; every engine signal schedules one status broadcast.
"""

import asyncio
import logging
import threading
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

from fatigue_model import (
    Clock,
    DeviceStateSource,
    FatigueConfig,
    FatigueEngine,
    FatigueSignal,
    FatigueSnapshot,
    ManualDeviceSource,
    PollingDeviceSource,
    RepeatingTask,
    SystemClock,
)

from app.core.config import settings
from app.services import alert_bridge
from app.services.status_presenter import build_status, format_setting
from app.services.websocket_manager import ws_manager

logger = logging.getLogger("unplug.monitor")

AlertSink = Callable[[List[Dict[str, Any]]], Awaitable[Any]]
StatusSink = Callable[[Dict[str, Any], Optional[str]], Awaitable[Any]]

# Engine signal → (alert_type, severity)
ALERT_SIGNALS = {
    FatigueSignal.MAXIMUM_FATIGUE_REACHED: ("max_fatigue_reached", "critical"),
    FatigueSignal.WARNING_THRESHOLD_CROSSED: ("usage_limit_reached", "warning"),
}


def build_alert(signal: FatigueSignal, snapshot: FatigueSnapshot, config: FatigueConfig) -> Dict[str, Any]:
    alert_type, severity = ALERT_SIGNALS[signal]
    if signal == FatigueSignal.MAXIMUM_FATIGUE_REACHED:
        message = "Ear fatigue reached 100%. Time to unplug and let your ears rest"
    else:
        message = f"Headphone usage limit of {format_setting(config.warning_threshold)} reached"
    return {
        "alert_type": alert_type,
        "severity": severity,
        "message": message,
        "fatigue_level": round(snapshot.fatigue_level, 4),
        "usage_duration": round(snapshot.usage_duration, 1),
        "timestamp": snapshot.timestamp,
        "source": "engine",
    }


class MonitorService:
    def __init__(
        self,
        engine: FatigueEngine,
        device_source: DeviceStateSource,
        clock: Optional[Clock] = None,
        tick_interval: float = 1.0,
        alert_sink: Optional[AlertSink] = None,
        status_sink: Optional[StatusSink] = None,
    ):
        self.engine = engine
        self.device_source = device_source
        self._clock = clock or SystemClock()
        self._alert_sink = alert_sink or alert_bridge.persist_and_broadcast
        self._status_sink = status_sink or ws_manager.send_status

        self._ticker = RepeatingTask(tick_interval, self.tick, self._clock, name="fatigue-tick")
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._loop_thread: Optional[int] = None
        self._unsubscribe_engine = engine.subscribe(self._on_engine_signal)
        self._unsubscribe_device: Optional[Callable[[], None]] = None
        self._pending_signal: Optional[FatigueSignal] = None
        self._background: Set[asyncio.Task] = set()

    # ──────────────────────────────────────────────────────
    # Lifecycle
    # ──────────────────────────────────────────────────────

    @property
    def ticking(self) -> bool:
        return self._ticker.running

    async def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._loop_thread = threading.get_ident()

        self._unsubscribe_device = self.device_source.subscribe(self._on_device_state)
        self.device_source.start()
        self._apply_device_state(self.device_source.is_headphone_active())
        logger.info(
            f"Monitor started (connected={self.engine.connected}, "
            f"tick every {self._ticker.interval:.1f}s)"
        )

    async def stop(self) -> None:
        self._ticker.cancel()
        if self._unsubscribe_device is not None:
            self._unsubscribe_device()
            self._unsubscribe_device = None
        self.device_source.stop()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        logger.info("Monitor stopped")

    # ──────────────────────────────────────────────────────
    # Inbound operations (event loop only)
    # ──────────────────────────────────────────────────────

    def tick(self) -> bool:
        changed = self.engine.tick(self._clock.now())
        self._after_update()
        return changed

    def reset_usage(self) -> None:
        self.engine.reset_usage_tracking(self._clock.now())
        self._after_update()

    def update_configuration(self, warning_threshold: float, recovery_time: float) -> FatigueConfig:
        config = self.engine.set_configuration(warning_threshold, recovery_time)
        self._pending_signal = self._pending_signal or FatigueSignal.USAGE_CHANGED
        self._after_update()
        return config

    def set_device_active(self, active: bool) -> bool:
        """Drive a manual device source. Raises TypeError for hardware sources."""
        if not isinstance(self.device_source, ManualDeviceSource):
            raise TypeError("device state can only be set on a manual device source")
        return self.device_source.set_active(active)

    def snapshot(self) -> FatigueSnapshot:
        return self.engine.snapshot(self._clock.now())

    def status(self) -> Dict[str, Any]:
        return build_status(self.snapshot(), self.engine.config)

    # ──────────────────────────────────────────────────────
    # Device callbacks
    # ──────────────────────────────────────────────────────

    def _on_device_state(self, active: bool) -> None:
        if threading.get_ident() == self._loop_thread:
            self._apply_device_state(active)
            return
        if self._loop is None or self._loop.is_closed():
            logger.debug("Device change dropped, monitor not running")
            return
        self._loop.call_soon_threadsafe(self._apply_device_state, active)

    def _apply_device_state(self, active: bool) -> None:
        now = self._clock.now()
        if active:
            self.engine.on_connected(now)
        else:
            self.engine.on_disconnected(now)
        self._after_update()

    # ──────────────────────────────────────────────────────
    # Engine signals → alerts / broadcasts
    # ──────────────────────────────────────────────────────

    def _on_engine_signal(self, signal: FatigueSignal, snapshot: FatigueSnapshot) -> None:
        if signal in ALERT_SIGNALS:
            alert = build_alert(signal, snapshot, self.engine.config)
            logger.info(f"Alert raised: {alert['alert_type']}")
            self._dispatch(self._alert_sink([alert]))
        if self._pending_signal is None or signal in ALERT_SIGNALS:
            self._pending_signal = signal

    def _after_update(self) -> None:
        if self.engine.is_active and not self._ticker.running:
            self._ticker.start()
        elif not self.engine.is_active and self._ticker.running:
            self._ticker.cancel()

        if self._pending_signal is not None:
            signal = self._pending_signal
            self._pending_signal = None
            self._dispatch(self._status_sink(self.status(), signal.value))

    def _dispatch(self, coro: Awaitable[Any]) -> None:
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)


def create_device_source() -> DeviceStateSource:
    if settings.uses_manual_devices:
        return ManualDeviceSource()
    return PollingDeviceSource(poll_interval=settings.DEVICE_POLL_INTERVAL_SECONDS)


def create_monitor_service(config: FatigueConfig, clock: Optional[Clock] = None) -> MonitorService:
    clock = clock or SystemClock()
    return MonitorService(
        engine=FatigueEngine(config, clock),
        device_source=create_device_source(),
        clock=clock,
        tick_interval=settings.TICK_INTERVAL_SECONDS,
    )
