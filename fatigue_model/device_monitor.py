"""Audio output device monitoring - headphone detection."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Protocol, runtime_checkable

logger = logging.getLogger("unplug.devices")

HEADPHONE_KEYWORDS = ("headphone", "headset", "airpods", "earbud", "earphone")
WIRELESS_AUDIO_KEYWORDS = ("audio", "wireless")

StateCallback = Callable[[bool], None]


class TransportType(str, Enum):
    BUILT_IN = "built_in"
    USB = "usb"
    BLUETOOTH = "bluetooth"
    HDMI = "hdmi"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class AudioDevice:
    name: str
    transport: TransportType = TransportType.UNKNOWN
    is_output: bool = True


def is_headphone_device(name: str, transport: TransportType) -> bool:
    """Keyword match on the device name, or a wireless-sounding Bluetooth device."""
    lowercase_name = name.lower()

    if any(keyword in lowercase_name for keyword in HEADPHONE_KEYWORDS):
        return True

    return transport == TransportType.BLUETOOTH and any(
        keyword in lowercase_name for keyword in WIRELESS_AUDIO_KEYWORDS
    )


def any_headphone_active(devices: Iterable[AudioDevice]) -> bool:
    return any(
        device.is_output and is_headphone_device(device.name, device.transport)
        for device in devices
    )


def guess_transport(name: str) -> TransportType:
    lowercase_name = name.lower()
    if "bluetooth" in lowercase_name:
        return TransportType.BLUETOOTH
    if "usb" in lowercase_name:
        return TransportType.USB
    if "hdmi" in lowercase_name or "displayport" in lowercase_name:
        return TransportType.HDMI
    if "built-in" in lowercase_name or "speaker" in lowercase_name:
        return TransportType.BUILT_IN
    return TransportType.UNKNOWN


def list_output_devices() -> List[AudioDevice]:
    """
    Enumerate output devices through PortAudio (``sounddevice``).
    PortAudio does not expose the transport, so it is guessed from the name.
    Returns an empty list when the audio backend is unavailable.
    """
    try:
        import sounddevice as sd

        raw_devices = sd.query_devices()
    except Exception as e:
        logger.warning(f"Audio device enumeration failed: {e}")
        return []

    devices = []
    for raw in raw_devices:
        if raw.get("max_output_channels", 0) <= 0:
            continue
        name = raw.get("name", "")
        devices.append(AudioDevice(name=name, transport=guess_transport(name)))
    return devices


# ============================================================================
# STATE SOURCES
# ============================================================================

@runtime_checkable
class DeviceStateSource(Protocol):
    """Publishes "headphone-class output active" and its transitions."""

    def is_headphone_active(self) -> bool:
        ...

    def subscribe(self, callback: StateCallback) -> Callable[[], None]:
        ...

    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...


class _SubscriberMixin:
    def _init_subscribers(self) -> None:
        self._subscribers: List[StateCallback] = []
        self._subscribers_lock = threading.Lock()

    def subscribe(self, callback: StateCallback) -> Callable[[], None]:
        with self._subscribers_lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._subscribers_lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self, active: bool) -> None:
        with self._subscribers_lock:
            callbacks = list(self._subscribers)
        for callback in callbacks:
            try:
                callback(active)
            except Exception:
                logger.exception("Device state subscriber failed")


class PollingDeviceSource(_SubscriberMixin):
    """
    Polls the device list on a background thread and reports transitions.
    Callbacks run on the polling thread; consumers must hand off to their
    own context before touching shared state.
    """

    def __init__(
        self,
        enumerate_devices: Callable[[], List[AudioDevice]] = list_output_devices,
        poll_interval: float = 2.0,
    ) -> None:
        self._init_subscribers()
        self._enumerate_devices = enumerate_devices
        self.poll_interval = poll_interval

        self._lock = threading.Lock()
        self._active = False
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def is_headphone_active(self) -> bool:
        with self._lock:
            return self._active

    def poll_once(self) -> bool:
        """Refresh the state now. Notifies subscribers if it changed."""
        active = any_headphone_active(self._enumerate_devices())
        with self._lock:
            changed = active != self._active
            self._active = active
        if changed:
            logger.info(f"Headphone-class output {'active' if active else 'inactive'}")
            self._notify(active)
        return active

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self.poll_once()
        self._thread = threading.Thread(
            target=self._poll_loop, name="HeadphoneDeviceMonitor", daemon=True
        )
        self._thread.start()

    def _poll_loop(self) -> None:
        while not self._stop_event.wait(self.poll_interval):
            try:
                self.poll_once()
            except Exception:
                logger.exception("Device poll failed")

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None


class ManualDeviceSource(_SubscriberMixin):
    """Device state driven by explicit ``set_active`` calls."""

    def __init__(self, active: bool = False) -> None:
        self._init_subscribers()
        self._active = active

    def is_headphone_active(self) -> bool:
        return self._active

    def set_active(self, active: bool) -> bool:
        """Returns True when the state actually changed."""
        if active == self._active:
            return False
        self._active = active
        self._notify(active)
        return True

    def start(self) -> None:
        pass

    def stop(self) -> None:
        pass
