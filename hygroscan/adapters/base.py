"""Radio adapter interfaces."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Protocol

from hygroscan.core.errors import AdapterError
from hygroscan.core.model import DiscoveredDevice


class AdapterState(str, Enum):
    UNKNOWN = "unknown"
    RESETTING = "resetting"
    UNSUPPORTED = "unsupported"
    UNAUTHORIZED = "unauthorized"
    POWERED_OFF = "powered_off"
    POWERED_ON = "powered_on"


class TimerHandle(Protocol):
    def cancel(self) -> None:
        """Cancel the scheduled callback if it has not run yet."""


class AdapterListener(Protocol):
    def on_state_change(self, state: AdapterState) -> None: ...

    def on_discover(self, device: DiscoveredDevice) -> None: ...

    def on_scan_start(self) -> None: ...

    def on_scan_stop(self) -> None: ...

    def on_warning(self, message: str) -> None: ...

    def on_adapter_error(self, error: AdapterError) -> None: ...


class Adapter(Protocol):
    state: AdapterState

    def subscribe(self, listener: AdapterListener) -> None:
        """Deliver adapter notifications to `listener`."""

    def unsubscribe(self, listener: AdapterListener) -> None:
        """Stop delivering notifications to `listener`."""

    def start_scanning(self) -> None:
        """Begin scanning; idempotent and non-blocking."""

    def stop_scanning(self) -> None:
        """Stop scanning; idempotent and non-blocking."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run `callback` after `delay` seconds on the adapter's event source."""
