"""Product identifier to header-length lookup."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from hygroscan.core.model import ProductHeader

ADDRESS_LENGTH = 6


@dataclass(frozen=True)
class ProductHeaderTable:
    """Closed table of known products and the header length each one uses.

    The header length counts the bytes following the frame counter: the
    6-byte device address plus any reserved bytes. Unknown product ids fall
    back to `default_header_length`.
    """

    products: Mapping[int, ProductHeader] = field(default_factory=dict)
    default_header_length: int = ADDRESS_LENGTH

    def __post_init__(self) -> None:
        object.__setattr__(self, "products", MappingProxyType(dict(self.products)))

    def lookup(self, product_id: int) -> ProductHeader | None:
        return self.products.get(product_id)

    def header_length(self, product_id: int) -> int:
        product = self.lookup(product_id)
        if product is None:
            return self.default_header_length
        return product.header_length

    def with_products(self, *products: ProductHeader) -> ProductHeaderTable:
        merged = dict(self.products)
        for product in products:
            merged[product.product_id] = product
        return ProductHeaderTable(products=merged, default_header_length=self.default_header_length)

    def __iter__(self):
        return iter(sorted(self.products.values(), key=lambda p: p.product_id))

    def __len__(self) -> int:
        return len(self.products)


BUILTIN_PRODUCTS = (
    ProductHeader(product_id=0x01AA, name="LYWSDCGQ hygrothermograph", header_length=6),
    ProductHeader(product_id=0x0098, name="HHCCJCY01 flower care", header_length=7),
)

DEFAULT_PRODUCT_TABLE = ProductHeaderTable(
    products={product.product_id: product for product in BUILTIN_PRODUCTS}
)
