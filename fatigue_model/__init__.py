"""
UNPLUG Fatigue Model Package
Ear-fatigue tracking for headphone listening.

Usage (virtual time):
    from fatigue_model import FatigueEngine, FatigueConfig, ManualClock

    clock = ManualClock()
    engine = FatigueEngine(FatigueConfig(warning_threshold=60, recovery_time=10), clock)
    engine.on_connected()
    clock.advance(30)
    engine.tick()
    print(engine.snapshot().to_dict())   # fatigue_level 0.5

Usage (device monitoring):
    from fatigue_model import PollingDeviceSource

    source = PollingDeviceSource(poll_interval=2.0)
    source.subscribe(lambda active: print("headphones", active))
    source.start()
"""

from .fatigue_engine import (
    DEFAULT_RECOVERY_TIME,
    DEFAULT_WARNING_THRESHOLD,
    FatigueConfig,
    FatigueEngine,
    FatigueSignal,
    FatigueSnapshot,
)
from .device_monitor import (
    AudioDevice,
    DeviceStateSource,
    ManualDeviceSource,
    PollingDeviceSource,
    TransportType,
    any_headphone_active,
    is_headphone_device,
    list_output_devices,
)
from .scheduler import Clock, ManualClock, RepeatingTask, SystemClock

__all__ = [
    "DEFAULT_RECOVERY_TIME",
    "DEFAULT_WARNING_THRESHOLD",
    "FatigueConfig",
    "FatigueEngine",
    "FatigueSignal",
    "FatigueSnapshot",
    "AudioDevice",
    "DeviceStateSource",
    "ManualDeviceSource",
    "PollingDeviceSource",
    "TransportType",
    "any_headphone_active",
    "is_headphone_device",
    "list_output_devices",
    "Clock",
    "ManualClock",
    "RepeatingTask",
    "SystemClock",
]
