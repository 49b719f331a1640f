"""Stable public API for building tooling on top of hygroscan.

This module is the supported integration surface for third-party callers
(bridges, loggers, scripts). Avoid importing from private/internal modules
unless intentionally depending on non-stable internals.
"""

from __future__ import annotations

import logging

from hygroscan.adapters.base import Adapter, AdapterListener, AdapterState
from hygroscan.adapters.ble_scanner import BleakAdapter
from hygroscan.core.decoder import decode, parse_frame
from hygroscan.core.device_filter import DeviceFilter
from hygroscan.core.errors import (
    AdapterError,
    DecodeError,
    HygroscanError,
    MalformedPayloadError,
    ProductLoadError,
    ProductValidationError,
    ScannerStateError,
    UnknownEventTypeError,
)
from hygroscan.core.model import (
    SERVICE_DATA_UUID,
    AdvertisementFrame,
    DiscoveredDevice,
    EventRecord,
    EventType,
    ProductHeader,
    Reading,
    ReadingKind,
    ServiceData,
)
from hygroscan.core.product_loader import load_product_table
from hygroscan.core.products import DEFAULT_PRODUCT_TABLE, ProductHeaderTable
from hygroscan.core.scanner import DEFAULT_RESTART_DELAY_S, ControllerState, ScanController, ScanListener

__all__ = [
    "HygroscanError",
    "DecodeError",
    "MalformedPayloadError",
    "UnknownEventTypeError",
    "AdapterError",
    "ScannerStateError",
    "ProductLoadError",
    "ProductValidationError",
    "SERVICE_DATA_UUID",
    "AdvertisementFrame",
    "DiscoveredDevice",
    "EventRecord",
    "EventType",
    "ProductHeader",
    "Reading",
    "ReadingKind",
    "ServiceData",
    "DEFAULT_PRODUCT_TABLE",
    "ProductHeaderTable",
    "Adapter",
    "AdapterListener",
    "AdapterState",
    "BleakAdapter",
    "ControllerState",
    "DeviceFilter",
    "ScanController",
    "ScanListener",
    "decode",
    "parse_frame",
    "Client",
]


def _coerce_payload(payload: bytes | bytearray | memoryview | str) -> bytes:
    if not isinstance(payload, str):
        return bytes(payload)
    normalized = payload.strip().lower().replace(" ", "").replace(":", "")
    try:
        return bytes.fromhex(normalized)
    except ValueError as exc:
        raise MalformedPayloadError(f"Payload is not valid hex: {payload!r}") from exc


class Client:
    """Public client for decoding payloads and building scan controllers.

    A `Client` owns the product table (built-in products merged with user
    product files) and hands it to every decode and controller it creates.
    """

    def __init__(self, *, table: ProductHeaderTable | None = None) -> None:
        if table is None:
            loaded = load_product_table()
            self.table = loaded.table
            self._load_warnings = loaded.warnings
        else:
            self.table = table
            self._load_warnings = ()

    @property
    def load_warnings(self) -> tuple[str, ...]:
        return self._load_warnings

    def list_products(self) -> list[ProductHeader]:
        return list(self.table)

    def parse(self, payload: bytes | bytearray | memoryview | str) -> AdvertisementFrame:
        return parse_frame(_coerce_payload(payload), self.table)

    def decode(self, payload: bytes | bytearray | memoryview | str) -> list[Reading]:
        return decode(_coerce_payload(payload), self.table)

    def scanner(
        self,
        adapter: Adapter,
        listener: ScanListener,
        *,
        address: str | None = None,
        force_discovering: bool = True,
        restart_delay: float = DEFAULT_RESTART_DELAY_S,
        logger: logging.Logger | None = None,
    ) -> ScanController:
        return ScanController(
            adapter,
            listener,
            address=address,
            force_discovering=force_discovering,
            restart_delay=restart_delay,
            table=self.table,
            logger=logger,
        )
