"""Scan controller driving an adapter and fanning out decoded readings."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from enum import Enum

from hygroscan.adapters.base import Adapter, AdapterState, TimerHandle
from hygroscan.core.decoder import decode
from hygroscan.core.device_filter import DeviceFilter
from hygroscan.core.errors import AdapterError, DecodeError, HygroscanError, ScannerStateError
from hygroscan.core.model import SERVICE_DATA_UUID, DiscoveredDevice, Reading, ReadingKind
from hygroscan.core.products import DEFAULT_PRODUCT_TABLE, ProductHeaderTable

DEFAULT_RESTART_DELAY_S = 2.5
LOGGER = logging.getLogger(__name__)


class ScanListener(ABC):
    """Consumer of scan results.

    `on_error` is abstract: every consumer has to decide what a decode or
    adapter failure means to it. The per-kind hooks default to no-ops; an
    exception raised by a reading hook is logged and does not stop the
    remaining readings of the same advertisement.
    """

    def on_reading(self, reading: Reading, device: DiscoveredDevice) -> None:
        pass

    def on_temperature(self, value: float, device: DiscoveredDevice) -> None:
        pass

    def on_humidity(self, value: float, device: DiscoveredDevice) -> None:
        pass

    def on_battery(self, value: int, device: DiscoveredDevice) -> None:
        pass

    def on_illuminance(self, value: int, device: DiscoveredDevice) -> None:
        pass

    def on_moisture(self, value: int, device: DiscoveredDevice) -> None:
        pass

    def on_fertility(self, value: int, device: DiscoveredDevice) -> None:
        pass

    @abstractmethod
    def on_error(self, error: HygroscanError) -> None:
        """Handle a decode or adapter failure."""


_KIND_HOOKS = {
    ReadingKind.TEMPERATURE: "on_temperature",
    ReadingKind.HUMIDITY: "on_humidity",
    ReadingKind.BATTERY: "on_battery",
    ReadingKind.ILLUMINANCE: "on_illuminance",
    ReadingKind.MOISTURE: "on_moisture",
    ReadingKind.FERTILITY: "on_fertility",
}


class ControllerState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    STOPPED = "stopped"


class ScanController:
    """Mirror adapter power state into scan start/stop calls and decode discoveries.

    The controller is the only caller of the adapter's start/stop scanning
    operations for its lifetime. While listening, `scanning` tracks whether
    the controller currently wants the radio scanning.
    """

    def __init__(
        self,
        adapter: Adapter,
        listener: ScanListener,
        *,
        address: str | None = None,
        force_discovering: bool = True,
        restart_delay: float = DEFAULT_RESTART_DELAY_S,
        table: ProductHeaderTable = DEFAULT_PRODUCT_TABLE,
        logger: logging.Logger | None = None,
    ) -> None:
        if not callable(getattr(listener, "on_error", None)):
            raise TypeError("Scan listener must implement on_error")
        if restart_delay < 0:
            raise ValueError("restart_delay must be >= 0")
        self.adapter = adapter
        self.listener = listener
        self.device_filter = DeviceFilter(address)
        self.force_discovering = force_discovering
        self.restart_delay = restart_delay
        self.table = table
        self.logger = logger or LOGGER
        self._state = ControllerState.IDLE
        self._scanning = False
        self._restart_handle: TimerHandle | None = None

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def scanning(self) -> bool:
        return self._scanning

    @property
    def listening(self) -> bool:
        return self._state is ControllerState.LISTENING

    def start(self) -> None:
        if self._state is ControllerState.STOPPED:
            raise ScannerStateError("Scan controller has been stopped and cannot be restarted")
        if self._state is ControllerState.LISTENING:
            return
        self._state = ControllerState.LISTENING
        self.adapter.subscribe(self)
        self.logger.debug("Listening for advertisements (address filter: %s)", self.device_filter.address)
        if self.adapter.state == AdapterState.POWERED_ON:
            self._start_scanning()

    def stop(self) -> None:
        if self._state is ControllerState.STOPPED:
            return
        was_listening = self._state is ControllerState.LISTENING
        self._state = ControllerState.STOPPED
        self._cancel_restart()
        if was_listening:
            self.adapter.unsubscribe(self)
        if self._scanning:
            self._scanning = False
            self.adapter.stop_scanning()

    # Adapter notifications

    def on_state_change(self, state: AdapterState) -> None:
        if not self.listening:
            return
        self.logger.debug("Adapter state changed to %s", state)
        if state == AdapterState.POWERED_ON:
            self._start_scanning()
        else:
            self._cancel_restart()
            self._stop_scanning()

    def on_scan_start(self) -> None:
        if self.listening:
            self.logger.debug("Started scanning.")

    def on_scan_stop(self) -> None:
        if not self.listening:
            return
        self.logger.debug("Stopped scanning.")
        if not self._scanning:
            return
        if self.force_discovering and self.adapter.state == AdapterState.POWERED_ON:
            self._schedule_restart()
        else:
            self._scanning = False

    def on_warning(self, message: str) -> None:
        if self.listening:
            self.logger.info("Adapter warning: %s", message)

    def on_adapter_error(self, error: AdapterError) -> None:
        if not self.listening:
            return
        self.listener.on_error(error)
        # A failed start reports no scan-stop; retry it like one.
        if self._scanning and self.force_discovering and self.adapter.state == AdapterState.POWERED_ON:
            self._schedule_restart()

    def on_discover(self, device: DiscoveredDevice) -> None:
        if not self.listening:
            return
        if not self.device_filter.accepts(device.address):
            return
        payload = device.service_data_for(SERVICE_DATA_UUID)
        if payload is None:
            return

        try:
            readings = decode(payload, self.table)
        except DecodeError as exc:
            self.logger.debug("[%s] Could not decode payload %s: %s", device.address, payload.hex(), exc)
            self.listener.on_error(exc)
            return

        for reading in readings:
            self._emit(replace(reading, address=device.address, rssi=device.rssi), device)

    # Internals

    def _emit(self, reading: Reading, device: DiscoveredDevice) -> None:
        on_reading = getattr(self.listener, "on_reading", None)
        if on_reading is not None:
            self._call_hook(on_reading, reading, device)
        hook = getattr(self.listener, _KIND_HOOKS[reading.kind], None)
        if hook is not None:
            self._call_hook(hook, reading.value, device)

    def _call_hook(self, hook, value, device: DiscoveredDevice) -> None:
        try:
            hook(value, device)
        except Exception:
            self.logger.exception("[%s] Listener hook %s failed", device.address, getattr(hook, "__name__", hook))

    def _start_scanning(self) -> None:
        if self._scanning:
            return
        self._scanning = True
        self.adapter.start_scanning()

    def _stop_scanning(self) -> None:
        if not self._scanning:
            return
        self._scanning = False
        self.adapter.stop_scanning()

    def _schedule_restart(self) -> None:
        if self._restart_handle is not None:
            return
        self.logger.debug("Restarting scan in %.1fs", self.restart_delay)
        self._restart_handle = self.adapter.call_later(self.restart_delay, self._restart)

    def _restart(self) -> None:
        self._restart_handle = None
        if not self.listening or not self._scanning:
            return
        if self.adapter.state != AdapterState.POWERED_ON:
            self._scanning = False
            return
        self.logger.debug("Restarting scan.")
        self.adapter.start_scanning()

    def _cancel_restart(self) -> None:
        if self._restart_handle is not None:
            self._restart_handle.cancel()
            self._restart_handle = None
