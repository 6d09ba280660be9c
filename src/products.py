"""
Product variants sold by the store.

A product has an identity triple ``(id, name, category)`` plus a price and a
measured quantity.  Two variants exist:

* :class:`PackagedProduct` is counted in whole units (``quantity``).
* :class:`BulkProduct` is sold by weight (``weight``).

Equality and hashing use only the identity triple.  Price and variant are
ignored, so a bulk and a packaged product with the same triple compare equal;
the collection layer decides what to do with such a pair.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Tuple, Union

from store_errors import UnsupportedVariantError

PACKAGED = "packaged"
BULK = "bulk"


def to_decimal(value) -> Decimal:
    """Convert a price or amount to ``Decimal`` without float artefacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(str(value))


@dataclass(eq=False)
class BaseProduct:
    id: int
    name: str
    category: str
    price: Decimal

    def __post_init__(self) -> None:
        self.id = int(self.id)
        self.price = to_decimal(self.price)

    @property
    def identity(self) -> Tuple[int, str, str]:
        return (self.id, self.name, self.category)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BaseProduct):
            return NotImplemented
        return self.identity == other.identity

    def __hash__(self) -> int:
        return hash(self.identity)


@dataclass(eq=False)
class PackagedProduct(BaseProduct):
    """Product counted in whole units and priced per unit."""
    quantity: int = 0

    def __post_init__(self) -> None:
        super().__post_init__()
        self.quantity = int(self.quantity)

    @property
    def measure(self) -> int:
        return self.quantity

    def calculate_price(self) -> Decimal:
        return self.quantity * self.price

    def with_measure(self, amount) -> "PackagedProduct":
        return replace(self, quantity=int(amount))

    def describe(self) -> str:
        return f"Packaged product: {self.name}, quantity: {self.quantity}, unit price: {self.price}"

    def __str__(self) -> str:
        return f"{self.name} - {self.price}/pc (qty: {self.quantity} pcs)"


@dataclass(eq=False)
class BulkProduct(BaseProduct):
    """Product sold by weight and priced per kilogram."""
    weight: float = 0.0

    def __post_init__(self) -> None:
        super().__post_init__()
        self.weight = float(self.weight)

    @property
    def measure(self) -> float:
        return self.weight

    def calculate_price(self) -> Decimal:
        return to_decimal(self.weight) * self.price

    def with_measure(self, amount) -> "BulkProduct":
        return replace(self, weight=float(amount))

    def describe(self) -> str:
        return f"Bulk product: {self.name}, weight: {self.weight}, price per kg: {self.price}"

    def __str__(self) -> str:
        return f"{self.name} - {self.price}/kg (weight: {self.weight} kg)"


Product = Union[PackagedProduct, BulkProduct]


def variant_of(product: object) -> str:
    """Return the variant tag of ``product``.

    Raises:
        UnsupportedVariantError: if ``product`` is not a known variant.
    """
    if isinstance(product, PackagedProduct):
        return PACKAGED
    if isinstance(product, BulkProduct):
        return BULK
    raise UnsupportedVariantError(product)


def same_variant(a: Product, b: Product) -> bool:
    return variant_of(a) == variant_of(b)


def copy_with_measure(product: object, amount) -> Product:
    """Build a new product sharing identity, price and variant with ``product``."""
    variant_of(product)
    return product.with_measure(amount)


def make_product(variant: str, id: int, name: str, category: str, price, measure) -> Product:
    """Construct a product from its variant tag; used by snapshot decoding."""
    if variant == PACKAGED:
        return PackagedProduct(id, name, category, price, quantity=measure)
    if variant == BULK:
        return BulkProduct(id, name, category, price, weight=measure)
    raise UnsupportedVariantError(variant)


def adjust_measure(product: Product, delta) -> None:
    """Add ``delta`` (possibly negative) to the product's quantity or weight."""
    if isinstance(product, PackagedProduct):
        product.quantity += int(delta)
    elif isinstance(product, BulkProduct):
        product.weight += float(delta)
    else:
        raise UnsupportedVariantError(product)
