"""Product table loading and validation for YAML-based product definitions."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from hygroscan.core.errors import ProductLoadError, ProductValidationError
from hygroscan.core.model import ProductHeader
from hygroscan.core.products import DEFAULT_PRODUCT_TABLE, ProductHeaderTable

LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ProductValidationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class LoadedProducts:
    table: ProductHeaderTable
    warnings: tuple[str, ...]


def _load_schema_validator() -> Any:
    schema_text = resources.files("hygroscan.schemas").joinpath("product.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _product_dirs() -> tuple[Path, Path]:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    xdg_data = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local/share"))
    return xdg_config / "hygroscan/products", xdg_data / "hygroscan/products"


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ProductLoadError(f"Could not read product file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ProductValidationError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ProductValidationError(f"Product file {path} must contain a mapping at root")
    return loaded


def _normalize_product_id(value: int | str) -> int:
    if isinstance(value, int):
        return value
    return int(value.strip().lower().removeprefix("0x"), 16)


def _build_product(doc: dict[str, Any], source: Path, validator: Any) -> ProductHeader:
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise ProductValidationError(f"Schema validation failed for {source}{where}: {exc.message}") from exc

    return ProductHeader(
        product_id=_normalize_product_id(doc["product_id"]),
        name=doc["name"],
        header_length=int(doc["header_length"]),
    )


def _iter_user_product_paths() -> list[Path]:
    paths: list[Path] = []
    for directory in _product_dirs():
        if not directory.exists() or not directory.is_dir():
            continue
        paths.extend(sorted(p for p in directory.iterdir() if p.suffix in {".yml", ".yaml"}))
    return paths


def load_product_table(base: ProductHeaderTable = DEFAULT_PRODUCT_TABLE) -> LoadedProducts:
    """Merge user product files over `base`.

    Files later in the search order win over earlier ones, and every user
    file wins over the built-in table.
    """
    table = base
    warnings: list[str] = []
    paths = _iter_user_product_paths()
    if not paths:
        return LoadedProducts(table=table, warnings=())

    validator = _load_schema_validator()
    for path in paths:
        product = _build_product(_read_yaml(path), path, validator)
        if table.lookup(product.product_id) is not None:
            warning = f"User product 0x{product.product_id:04x} from {path.name} overrides existing definition"
            LOGGER.warning(warning)
            warnings.append(warning)
        table = table.with_products(product)

    return LoadedProducts(table=table, warnings=tuple(warnings))
