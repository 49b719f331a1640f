"""Core data models used across decoder, scanner, and CLI."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, IntEnum

SERVICE_DATA_UUID = "fe95"

_BASE_UUID_RE = re.compile(r"^0000([0-9a-f]{4})-0000-1000-8000-00805f9b34fb$")


def normalize_uuid(value: str) -> str:
    """Lowercase a service UUID and collapse Bluetooth base UUIDs to 16-bit form."""
    normalized = value.strip().lower()
    match = _BASE_UUID_RE.match(normalized)
    if match:
        return match.group(1)
    return normalized


class EventType(IntEnum):
    TEMPERATURE = 0x1004
    HUMIDITY = 0x1006
    ILLUMINANCE = 0x1007
    MOISTURE = 0x1008
    FERTILITY = 0x1009
    BATTERY = 0x100A
    TEMPERATURE_AND_HUMIDITY = 0x100D


EVENT_LENGTHS: dict[EventType, int] = {
    EventType.TEMPERATURE: 2,
    EventType.HUMIDITY: 2,
    EventType.ILLUMINANCE: 3,
    EventType.MOISTURE: 1,
    EventType.FERTILITY: 2,
    EventType.BATTERY: 1,
    EventType.TEMPERATURE_AND_HUMIDITY: 4,
}


class ReadingKind(str, Enum):
    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    BATTERY = "battery"
    ILLUMINANCE = "illuminance"
    MOISTURE = "moisture"
    FERTILITY = "fertility"

    @property
    def unit(self) -> str:
        return _UNITS[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()


_UNITS = {
    ReadingKind.TEMPERATURE: "°C",
    ReadingKind.HUMIDITY: "%",
    ReadingKind.BATTERY: "%",
    ReadingKind.ILLUMINANCE: "lx",
    ReadingKind.MOISTURE: "%",
    ReadingKind.FERTILITY: "µS/cm",
}


@dataclass(frozen=True)
class ServiceData:
    uuid: str
    data: bytes


@dataclass(frozen=True)
class DiscoveredDevice:
    id: str
    address: str
    rssi: int | None
    service_data: tuple[ServiceData, ...] = ()
    name: str | None = None

    def service_data_for(self, uuid: str) -> bytes | None:
        wanted = normalize_uuid(uuid)
        for segment in self.service_data:
            if normalize_uuid(segment.uuid) == wanted:
                return segment.data
        return None


@dataclass(frozen=True)
class ProductHeader:
    product_id: int
    name: str
    header_length: int


@dataclass(frozen=True)
class EventRecord:
    type: int
    value: bytes


@dataclass(frozen=True)
class AdvertisementFrame:
    frame_control: int
    product_id: int
    frame_counter: int
    address: str
    records: tuple[EventRecord, ...]


@dataclass(frozen=True)
class Reading:
    kind: ReadingKind
    value: float | int
    address: str | None = None
    rssi: int | None = None

    @property
    def unit(self) -> str:
        return self.kind.unit
