from __future__ import annotations

from pathlib import Path

import pytest

from hygroscan.api import Client, MalformedPayloadError, ProductHeader, Reading, ReadingKind, ScanController
from hygroscan.core.products import DEFAULT_PRODUCT_TABLE


class ErrorsOnly:
    def on_error(self, error) -> None:
        pass


class FakeAdapter:
    state = "unknown"

    def subscribe(self, listener) -> None:
        pass

    def unsubscribe(self, listener) -> None:
        pass

    def start_scanning(self) -> None:
        pass

    def stop_scanning(self) -> None:
        pass

    def call_later(self, delay, callback):
        raise AssertionError("not expected")


@pytest.fixture(autouse=True)
def _isolated_xdg(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))


def test_public_client_decodes_hex_and_bytes() -> None:
    client = Client()
    expected = [Reading(ReadingKind.TEMPERATURE, 21.7), Reading(ReadingKind.HUMIDITY, 35.2)]
    assert client.decode("5020aa01b064aed0a8654c0d1004d9006001") == expected
    assert client.decode(bytes.fromhex("5020aa01b064aed0a8654c0d1004d9006001")) == expected
    assert client.load_warnings == ()


def test_public_client_rejects_invalid_hex() -> None:
    with pytest.raises(MalformedPayloadError):
        Client().decode("not-hex")


def test_public_client_lists_products() -> None:
    products = Client().list_products()
    assert ProductHeader(0x01AA, "LYWSDCGQ hygrothermograph", 6) in products


def test_public_client_uses_given_table_for_scanners() -> None:
    table = DEFAULT_PRODUCT_TABLE.with_products(ProductHeader(0x1234, "test", 7))
    client = Client(table=table)
    controller = client.scanner(FakeAdapter(), ErrorsOnly(), address="AA:BB", restart_delay=1.0)
    assert isinstance(controller, ScanController)
    assert controller.table is table
    assert controller.device_filter.address == "AA:BB"
    assert controller.restart_delay == 1.0
    assert client.parse("5020341201" "64aed0a8654c" "ff" "0a100150").product_id == 0x1234
