"""Customer shopping cart built on the aggregating product collection."""

from __future__ import annotations

import logging
import math
from decimal import Decimal
from typing import Optional

from metrics import CART_REJECTIONS_TOTAL
from product_collection import ProductCollection
from products import Product, copy_with_measure, variant_of
from store_errors import InsufficientCartQuantityError, UnsupportedVariantError

logger = logging.getLogger(__name__)


class ShoppingCart:
    """
    Cart holding copies of catalog products at the amounts the customer chose.

    Catalog entries are never referenced from the cart: ``add_item`` builds a
    fresh product of the same variant so checkout can later subtract it from
    the store.  Problems caused by user input are logged and the call returns
    False; the cart is left unchanged.
    """

    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self._items = ProductCollection()
        self.logger = log or logger

    def items(self) -> ProductCollection:
        return self._items

    def _reject_non_finite(self, product: Product, amount) -> bool:
        try:
            finite = math.isfinite(amount)
        except (TypeError, ValueError):
            finite = False
        if finite:
            return False
        self.logger.warning(
            f"Amount must be a finite number for {product.name}: {amount!r}",
            extra={"category": product.category},
        )
        CART_REJECTIONS_TOTAL.inc(reason="non_finite_amount")
        return True

    def add_item(self, catalog_item: Product, amount) -> bool:
        if catalog_item is None:
            return False
        try:
            variant_of(catalog_item)
        except UnsupportedVariantError as exc:
            self.logger.warning(str(exc))
            CART_REJECTIONS_TOTAL.inc(reason="unsupported_variant")
            return False
        if self._reject_non_finite(catalog_item, amount):
            return False
        new_item = copy_with_measure(catalog_item, amount)
        if new_item.measure <= 0:
            self.logger.warning(
                f"Amount must be positive to add {catalog_item.name} to cart",
                extra={"category": catalog_item.category},
            )
            CART_REJECTIONS_TOTAL.inc(reason="non_positive_amount")
            return False
        self._items.add(new_item)
        self.logger.info(
            f"Added {new_item.measure} x {new_item.name} to cart",
            extra={"category": new_item.category},
        )
        return True

    def _check_removable(self, held: Product, amount) -> None:
        if held.measure < amount:
            raise InsufficientCartQuantityError(held.name, amount, held.measure)

    def remove_item(self, cart_item: Product, amount=1) -> bool:
        """Take ``amount`` units (or kilograms) of ``cart_item`` out of the cart.

        The amount is cast the way the entry's variant stores it, so packaged
        items drop fractions.  The entry disappears once nothing of it is
        left.  Asking for more than the cart holds logs a warning and changes
        nothing.
        """
        held = self._items.find(cart_item) if cart_item is not None else None
        if held is None:
            name = cart_item.name if cart_item is not None else None
            self.logger.warning(f"Product is not in the cart: {name}")
            CART_REJECTIONS_TOTAL.inc(reason="not_in_cart")
            return False
        if self._reject_non_finite(held, amount):
            return False
        to_remove = held.with_measure(amount)
        requested = to_remove.measure
        if requested <= 0:
            self.logger.warning(f"Amount to remove must be positive: {amount}")
            CART_REJECTIONS_TOTAL.inc(reason="non_positive_amount")
            return False
        try:
            self._check_removable(held, requested)
        except InsufficientCartQuantityError as exc:
            self.logger.warning(str(exc), extra={"category": held.category})
            CART_REJECTIONS_TOTAL.inc(reason="insufficient_in_cart")
            return False
        self._items.remove(to_remove)
        if held in self._items:
            self.logger.info(f"Reduced {held.name} in cart by {requested}")
        else:
            self.logger.info(f"Removed {held.name} from cart")
        return True

    def total(self) -> Decimal:
        return sum((item.calculate_price() for item in self._items), Decimal("0"))

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)
