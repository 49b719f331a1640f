"""Decoder for the vendor service-data advertisement payload.

Payload layout (all multi-byte integers little-endian):

    frame control      2 bytes
    product id         2 bytes
    frame counter      1 byte
    device address     6 bytes, reversed
    reserved           0..n bytes, depending on the product
    event records      type (2 bytes), length (1 byte), value (length bytes)
"""

from __future__ import annotations

import logging
import struct
from collections.abc import Iterable

from hygroscan.core.errors import MalformedPayloadError, UnknownEventTypeError
from hygroscan.core.model import (
    EVENT_LENGTHS,
    AdvertisementFrame,
    EventRecord,
    EventType,
    Reading,
    ReadingKind,
)
from hygroscan.core.products import ADDRESS_LENGTH, DEFAULT_PRODUCT_TABLE, ProductHeaderTable

_PREAMBLE = struct.Struct("<HHB")
_RECORD_HEADER = struct.Struct("<HB")
LOGGER = logging.getLogger(__name__)


def parse_frame(
    buffer: bytes | bytearray | memoryview,
    table: ProductHeaderTable = DEFAULT_PRODUCT_TABLE,
) -> AdvertisementFrame:
    data = bytes(buffer)
    if len(data) < _PREAMBLE.size:
        raise MalformedPayloadError(
            f"Payload of {len(data)} bytes is shorter than the {_PREAMBLE.size}-byte frame preamble"
        )
    frame_control, product_id, frame_counter = _PREAMBLE.unpack_from(data, 0)

    product = table.lookup(product_id)
    if product is None:
        LOGGER.debug(
            "Unknown product id 0x%04x, assuming %d-byte header",
            product_id,
            table.default_header_length,
        )
    header_length = table.header_length(product_id)

    offset = _PREAMBLE.size
    if len(data) < offset + header_length:
        raise MalformedPayloadError(
            f"Payload of {len(data)} bytes is too short for the {header_length}-byte header "
            f"of product 0x{product_id:04x}"
        )
    address = ":".join(f"{b:02x}" for b in reversed(data[offset : offset + ADDRESS_LENGTH]))
    offset += header_length

    return AdvertisementFrame(
        frame_control=frame_control,
        product_id=product_id,
        frame_counter=frame_counter,
        address=address,
        records=tuple(_parse_records(data, offset)),
    )


def _parse_records(data: bytes, offset: int) -> list[EventRecord]:
    records: list[EventRecord] = []
    while offset < len(data):
        remaining = len(data) - offset
        if remaining < _RECORD_HEADER.size:
            raise MalformedPayloadError(
                f"{remaining} trailing byte(s) at offset {offset} cannot form an event record header"
            )
        event_type, length = _RECORD_HEADER.unpack_from(data, offset)
        offset += _RECORD_HEADER.size
        if offset + length > len(data):
            raise MalformedPayloadError(
                f"Event 0x{event_type:04x} declares {length} bytes but only "
                f"{len(data) - offset} remain"
            )
        records.append(EventRecord(type=event_type, value=data[offset : offset + length]))
        offset += length
    return records


def _temperature(raw: bytes) -> float:
    return int.from_bytes(raw, "little", signed=True) / 10


def _humidity(raw: bytes) -> float:
    return int.from_bytes(raw, "little") / 10


def _unsigned(raw: bytes) -> int:
    return int.from_bytes(raw, "little")


def decode_record(record: EventRecord) -> list[Reading]:
    try:
        event_type = EventType(record.type)
    except ValueError:
        raise UnknownEventTypeError(f"Unknown event type 0x{record.type:04x}") from None

    expected = EVENT_LENGTHS[event_type]
    if len(record.value) != expected:
        raise UnknownEventTypeError(
            f"Event 0x{record.type:04x} ({event_type.name}) must be {expected} bytes, "
            f"got {len(record.value)}"
        )

    value = record.value
    if event_type is EventType.TEMPERATURE:
        return [Reading(ReadingKind.TEMPERATURE, _temperature(value))]
    if event_type is EventType.HUMIDITY:
        return [Reading(ReadingKind.HUMIDITY, _humidity(value))]
    if event_type is EventType.BATTERY:
        return [Reading(ReadingKind.BATTERY, _unsigned(value))]
    if event_type is EventType.ILLUMINANCE:
        return [Reading(ReadingKind.ILLUMINANCE, _unsigned(value))]
    if event_type is EventType.MOISTURE:
        return [Reading(ReadingKind.MOISTURE, _unsigned(value))]
    if event_type is EventType.FERTILITY:
        return [Reading(ReadingKind.FERTILITY, _unsigned(value))]
    return [
        Reading(ReadingKind.TEMPERATURE, _temperature(value[:2])),
        Reading(ReadingKind.HUMIDITY, _humidity(value[2:])),
    ]


def decode_records(records: Iterable[EventRecord]) -> list[Reading]:
    readings: list[Reading] = []
    for record in records:
        readings.extend(decode_record(record))
    return readings


def decode(
    buffer: bytes | bytearray | memoryview,
    table: ProductHeaderTable = DEFAULT_PRODUCT_TABLE,
) -> list[Reading]:
    """Decode a service-data payload into readings.

    Raises `MalformedPayloadError` for truncated payloads and
    `UnknownEventTypeError` for unknown record types or lengths. Values are
    not range-checked.
    """
    return decode_records(parse_frame(buffer, table).records)
