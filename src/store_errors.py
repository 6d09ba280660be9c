"""
Error taxonomy for the store engine.

Invariant violations on a product collection (``InvalidRemovalError``) are
fatal to the calling operation and propagate.  The remaining errors describe
user-input problems: the component that detects them logs a warning and
abandons the operation, leaving state unchanged.  ``PersistenceError`` wraps
any failure while reading or writing snapshot files.
"""

from __future__ import annotations


class StoreError(Exception):
    """Base class for every error raised by the store engine."""


class InvalidRemovalError(StoreError):
    """Attempt to remove more quantity/weight than a collection holds."""

    def __init__(self, product_name: str, requested, held) -> None:
        self.product_name = product_name
        self.requested = requested
        self.held = held
        super().__init__(
            f"Cannot remove {requested} of {product_name!r}: only {held} held in the collection"
        )


class UnsupportedVariantError(StoreError):
    """A product object that is neither packaged nor bulk."""

    def __init__(self, obj: object) -> None:
        self.obj = obj
        kind = obj if isinstance(obj, str) else type(obj).__name__
        super().__init__(f"Unsupported product type: {kind}")


class InsufficientBalanceError(StoreError):
    """Customer balance does not cover the requested amount."""

    def __init__(self, balance, required) -> None:
        self.balance = balance
        self.required = required
        super().__init__(f"Insufficient funds: balance {balance}, required {required}")


class InsufficientCartQuantityError(StoreError):
    """Cart holds less of a product than the caller asked to remove."""

    def __init__(self, product_name: str, requested, held) -> None:
        self.product_name = product_name
        self.requested = requested
        self.held = held
        super().__init__(
            f"Cannot remove {requested} of {product_name!r} from cart: only {held} in cart"
        )


class PersistenceError(StoreError):
    """Snapshot file could not be read, written, encoded or decoded."""
