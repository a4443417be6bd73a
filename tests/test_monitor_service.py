"""Coordinator tests: virtual clock, manual device source, in-memory sinks."""

import asyncio

import pytest

from fatigue_model import (
    FatigueConfig,
    FatigueEngine,
    FatigueSignal,
    ManualClock,
    ManualDeviceSource,
    PollingDeviceSource,
)
from app.services.monitor_service import MonitorService, build_alert


# ---- Helpers ----

class Harness:
    def __init__(self, active=False, warning_threshold=60, recovery_time=10):
        self.clock = ManualClock(0)
        self.source = ManualDeviceSource(active)
        self.alerts = []
        self.statuses = []
        self.engine = FatigueEngine(FatigueConfig(warning_threshold, recovery_time), self.clock)
        self.monitor = MonitorService(
            self.engine,
            self.source,
            self.clock,
            tick_interval=1.0,
            alert_sink=self._alert_sink,
            status_sink=self._status_sink,
        )

    async def _alert_sink(self, alerts):
        self.alerts.extend(alerts)

    async def _status_sink(self, status, signal):
        self.statuses.append((signal, status))


async def run_until(predicate, limit=10_000):
    for _ in range(limit):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never reached")


def run(coro):
    return asyncio.run(coro)


# ---- Lifecycle ----

class TestStartStop:
    def test_idle_start_does_not_tick(self):
        h = Harness()

        async def scenario():
            await h.monitor.start()
            assert not h.monitor.ticking
            await h.monitor.stop()

        run(scenario())
        assert not h.engine.connected

    def test_headphones_present_at_launch(self):
        h = Harness(active=True)

        async def scenario():
            await h.monitor.start()
            assert h.engine.connected
            assert h.monitor.ticking
            await h.monitor.stop()
            assert not h.monitor.ticking

        run(scenario())
        assert h.statuses[0][0] == FatigueSignal.CONNECTION_CHANGED.value


# ---- Accumulation & alerts ----

class TestAlerts:
    def test_full_fatigue_raises_both_alerts_once(self):
        h = Harness()

        async def scenario():
            await h.monitor.start()
            h.monitor.set_device_active(True)
            await run_until(lambda: h.engine.fatigue_level >= 1.0)
            for _ in range(20):
                await asyncio.sleep(0)
            await h.monitor.stop()

        run(scenario())
        types = sorted(a["alert_type"] for a in h.alerts)
        assert types == ["max_fatigue_reached", "usage_limit_reached"]
        critical = next(a for a in h.alerts if a["alert_type"] == "max_fatigue_reached")
        assert critical["severity"] == "critical"
        assert critical["fatigue_level"] == 1.0

    def test_status_broadcast_once_per_update(self):
        h = Harness()

        async def scenario():
            await h.monitor.start()
            h.monitor.set_device_active(True)
            h.clock.advance(30)
            h.monitor.tick()
            await h.monitor.stop()

        run(scenario())
        signals = [signal for signal, _ in h.statuses]
        assert signals == [
            FatigueSignal.CONNECTION_CHANGED.value,
            FatigueSignal.USAGE_CHANGED.value,
        ]
        assert h.statuses[-1][1]["fatigue_percent"] == 50


# ---- Recovery ----

class TestRecovery:
    def test_ticking_stops_once_recovered(self):
        h = Harness()

        async def scenario():
            await h.monitor.start()
            h.monitor.set_device_active(True)
            await run_until(lambda: h.engine.fatigue_level >= 0.5)
            h.monitor.set_device_active(False)
            assert h.engine.is_recovering
            await run_until(lambda: not h.monitor.ticking)
            await h.monitor.stop()

        run(scenario())
        assert h.engine.fatigue_level == 0.0
        assert not h.engine.is_active

    def test_reconnect_restarts_ticking(self):
        h = Harness()

        async def scenario():
            await h.monitor.start()
            h.monitor.set_device_active(True)
            h.monitor.set_device_active(False)
            await run_until(lambda: not h.monitor.ticking)
            h.monitor.set_device_active(True)
            assert h.monitor.ticking
            await h.monitor.stop()

        run(scenario())


# ---- Threads & operations ----

class TestOperations:
    def test_device_change_from_other_thread_is_handed_off(self):
        h = Harness()

        async def scenario():
            await h.monitor.start()
            await asyncio.to_thread(h.source.set_active, True)
            await run_until(lambda: h.engine.connected)
            assert h.monitor.ticking
            await h.monitor.stop()

        run(scenario())

    def test_reset_usage(self):
        h = Harness()

        async def scenario():
            await h.monitor.start()
            h.monitor.set_device_active(True)
            h.clock.advance(45)
            h.monitor.tick()
            h.monitor.reset_usage()
            await h.monitor.stop()

        run(scenario())
        status = h.statuses[-1][1]
        assert status["usage_duration"] == 0
        assert status["fatigue_level"] == 0
        assert status["show_reset"] is True

    def test_update_configuration(self):
        h = Harness()

        async def scenario():
            await h.monitor.start()
            h.monitor.update_configuration(120, 30)
            with pytest.raises(ValueError):
                h.monitor.update_configuration(-1, 30)
            await h.monitor.stop()

        run(scenario())
        assert h.engine.config == FatigueConfig(120, 30)
        assert h.statuses[-1][1]["warning_threshold"] == 120

    def test_manual_device_control_requires_manual_source(self):
        engine = FatigueEngine(FatigueConfig(60, 10), ManualClock())
        monitor = MonitorService(engine, PollingDeviceSource(lambda: []), ManualClock())
        with pytest.raises(TypeError):
            monitor.set_device_active(True)


def test_build_alert_messages():
    h = Harness()
    h.engine.on_connected(0)
    h.engine.tick(60)
    snapshot = h.engine.snapshot(60)
    warning = build_alert(FatigueSignal.WARNING_THRESHOLD_CROSSED, snapshot, FatigueConfig(3600, 600))
    assert warning["alert_type"] == "usage_limit_reached"
    assert warning["message"] == "Headphone usage limit of 1h 00m reached"
    assert warning["usage_duration"] == 60
