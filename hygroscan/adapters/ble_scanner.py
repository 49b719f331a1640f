"""Adapter implementation on top of bleak's BleakScanner."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from hygroscan.adapters.base import AdapterListener, AdapterState, TimerHandle
from hygroscan.core.errors import AdapterError
from hygroscan.core.model import DiscoveredDevice, ServiceData, normalize_uuid

LOGGER = logging.getLogger(__name__)


def to_discovered_device(device: Any, advertisement_data: Any) -> DiscoveredDevice:
    """Convert a bleak (BLEDevice, AdvertisementData) pair into a DiscoveredDevice."""
    service_data = tuple(
        ServiceData(uuid=normalize_uuid(uuid), data=bytes(data))
        for uuid, data in (advertisement_data.service_data or {}).items()
    )
    return DiscoveredDevice(
        id=str(device.address),
        address=str(device.address),
        rssi=advertisement_data.rssi,
        service_data=service_data,
        name=advertisement_data.local_name or device.name,
    )


class BleakAdapter:
    """Radio adapter driven by an asyncio loop.

    bleak has no power-state notifications, so the adapter reports
    `powered_on` for the lifetime of `run()` and `powered_off` once it ends.
    Scanner start/stop calls are scheduled as tasks on the running loop.
    """

    def __init__(self, *, scanning_mode: str = "active") -> None:
        self.state = AdapterState.UNKNOWN
        self.scanning_mode = scanning_mode
        self._listeners: list[AdapterListener] = []
        self._loop: asyncio.AbstractEventLoop | None = None
        self._scanner: Any = None
        self._tasks: set[asyncio.Task[None]] = set()
        # Start and stop run strictly in request order; a stop queued behind
        # an in-flight start stops the scanner that start produced.
        self._scan_lock = asyncio.Lock()
        self._want_scanning = False

    def subscribe(self, listener: AdapterListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: AdapterListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def start_scanning(self) -> None:
        self._require_loop()
        self._want_scanning = True
        self._spawn(self._start())

    def stop_scanning(self) -> None:
        self._require_loop()
        self._want_scanning = False
        self._spawn(self._stop())

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return self._require_loop().call_later(delay, callback)

    async def run(self, duration: float | None = None) -> None:
        """Report the radio as powered on and keep it that way until `duration` elapses."""
        self._loop = asyncio.get_running_loop()
        self._set_state(AdapterState.POWERED_ON)
        try:
            if duration is None:
                await asyncio.Event().wait()
            else:
                await asyncio.sleep(duration)
        finally:
            self._set_state(AdapterState.POWERED_OFF)
            if self._tasks:
                await asyncio.gather(*self._tasks, return_exceptions=True)
            self._want_scanning = False
            await self._stop()
            self._loop = None

    def _require_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            raise AdapterError("Bleak adapter is not running; await BleakAdapter.run() first")
        return self._loop

    def _spawn(self, coro: Any) -> None:
        task = self._require_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _emit(self, method: str, *args: Any) -> None:
        for listener in list(self._listeners):
            getattr(listener, method)(*args)

    def _set_state(self, state: AdapterState) -> None:
        if state == self.state:
            return
        self.state = state
        self._emit("on_state_change", state)

    def _on_detection(self, device: Any, advertisement_data: Any) -> None:
        self._emit("on_discover", to_discovered_device(device, advertisement_data))

    async def _start(self) -> None:
        async with self._scan_lock:
            if self._scanner is not None or not self._want_scanning:
                return
            await self._start_scanner()

    async def _start_scanner(self) -> None:
        try:
            from bleak import BleakScanner  # type: ignore
            from bleak.exc import BleakError  # type: ignore
        except ImportError as exc:
            self._emit(
                "on_adapter_error",
                AdapterError(f"Scanning requires 'bleak'. Install dependency and retry. ({exc})"),
            )
            return

        scanner = BleakScanner(detection_callback=self._on_detection, scanning_mode=self.scanning_mode)
        try:
            await scanner.start()
        except (BleakError, OSError) as exc:
            self._emit("on_adapter_error", AdapterError(f"Could not start BLE scan: {exc}"))
            return
        self._scanner = scanner
        self._emit("on_scan_start")

    async def _stop(self) -> None:
        async with self._scan_lock:
            scanner, self._scanner = self._scanner, None
            if scanner is None:
                return
            try:
                await scanner.stop()
            except Exception as exc:
                self._emit("on_warning", f"BLE scan did not stop cleanly: {exc}")
        self._emit("on_scan_stop")
