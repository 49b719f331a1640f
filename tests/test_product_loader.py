from __future__ import annotations

from pathlib import Path

import pytest

from hygroscan.core.errors import ProductValidationError
from hygroscan.core.model import ProductHeader
from hygroscan.core.product_loader import load_product_table
from hygroscan.core.products import DEFAULT_PRODUCT_TABLE


def _write_product(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


@pytest.fixture
def xdg(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    return tmp_path


def test_builtin_table() -> None:
    assert DEFAULT_PRODUCT_TABLE.header_length(0x01AA) == 6
    assert DEFAULT_PRODUCT_TABLE.header_length(0x0098) == 7
    assert DEFAULT_PRODUCT_TABLE.header_length(0xBEEF) == 6
    assert DEFAULT_PRODUCT_TABLE.lookup(0xBEEF) is None
    assert [p.product_id for p in DEFAULT_PRODUCT_TABLE] == [0x0098, 0x01AA]


def test_with_products_does_not_modify_original() -> None:
    extended = DEFAULT_PRODUCT_TABLE.with_products(ProductHeader(0x0347, "CGG1", 7))
    assert extended.header_length(0x0347) == 7
    assert DEFAULT_PRODUCT_TABLE.lookup(0x0347) is None
    assert len(extended) == len(DEFAULT_PRODUCT_TABLE) + 1


def test_no_user_files_returns_builtin_table(xdg: Path) -> None:
    loaded = load_product_table()
    assert loaded.table is DEFAULT_PRODUCT_TABLE
    assert loaded.warnings == ()


def test_user_product_is_added(xdg: Path) -> None:
    _write_product(
        xdg / "cfg" / "hygroscan" / "products" / "cgg1.yaml",
        """
product_id: "0x0347"
name: CGG1 thermometer
header_length: 7
""",
    )

    loaded = load_product_table()
    product = loaded.table.lookup(0x0347)
    assert product == ProductHeader(product_id=0x0347, name="CGG1 thermometer", header_length=7)
    assert loaded.warnings == ()


def test_integer_product_id_accepted(xdg: Path) -> None:
    _write_product(
        xdg / "data" / "hygroscan" / "products" / "int.yml",
        """
product_id: 0x045b
name: LYWSD02 clock
header_length: 6
""",
    )

    loaded = load_product_table()
    assert loaded.table.header_length(0x045B) == 6


def test_user_product_overrides_builtin(xdg: Path) -> None:
    _write_product(
        xdg / "cfg" / "hygroscan" / "products" / "override.yaml",
        """
product_id: "01aa"
name: Patched hygrothermograph
header_length: 7
""",
    )

    loaded = load_product_table()
    assert loaded.table.header_length(0x01AA) == 7
    assert loaded.table.lookup(0x01AA).name == "Patched hygrothermograph"
    assert any("overrides" in warning for warning in loaded.warnings)


def test_invalid_header_length_rejected(xdg: Path) -> None:
    _write_product(
        xdg / "cfg" / "hygroscan" / "products" / "bad.yaml",
        """
product_id: "0x0347"
name: Bad
header_length: 9
""",
    )

    with pytest.raises(ProductValidationError):
        load_product_table()


def test_missing_required_keys_rejected(xdg: Path) -> None:
    _write_product(
        xdg / "cfg" / "hygroscan" / "products" / "missing.yaml",
        """
product_id: "0x0347"
name: Missing
""",
    )

    with pytest.raises(ProductValidationError):
        load_product_table()


def test_invalid_hex_product_id_rejected(xdg: Path) -> None:
    _write_product(
        xdg / "cfg" / "hygroscan" / "products" / "hex.yaml",
        """
product_id: "xyz"
name: Bad hex
header_length: 6
""",
    )

    with pytest.raises(ProductValidationError):
        load_product_table()


def test_duplicate_yaml_keys_rejected(xdg: Path) -> None:
    _write_product(
        xdg / "cfg" / "hygroscan" / "products" / "dup.yaml",
        """
product_id: "0x0347"
name: Duplicate
header_length: 6
header_length: 7
""",
    )

    with pytest.raises(ProductValidationError):
        load_product_table()


def test_non_mapping_root_rejected(xdg: Path) -> None:
    _write_product(xdg / "cfg" / "hygroscan" / "products" / "list.yaml", "- 1\n- 2\n")

    with pytest.raises(ProductValidationError):
        load_product_table()
