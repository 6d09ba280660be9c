"""
Category-indexed product catalog.

The store maps each category name to one :class:`ProductCollection`.  It is
built once by the application entry point and passed to the components that
need it (cart flows, checkout, snapshot persistence).
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, TypeVar

from product_collection import ProductCollection
from products import Product

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Store:
    """Product catalog grouped by category, in first-insertion order."""

    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self._categories: Dict[str, ProductCollection] = {}
        self.logger = log or logger

    def add_product(self, product: Product) -> None:
        collection = self._categories.get(product.category)
        if collection is None:
            collection = ProductCollection()
            self._categories[product.category] = collection
            self.logger.debug("Created category", extra={"category": product.category})
        collection.add(product)

    def remove_product(self, product: Product) -> None:
        """Remove ``product``'s measure from its category.

        Unknown categories are ignored; ``InvalidRemovalError`` propagates.
        """
        collection = self._categories.get(product.category)
        if collection is None:
            return
        collection.remove(product)

    def categories(self) -> List[str]:
        return list(self._categories)

    def products_in_category(self, category: str) -> ProductCollection:
        collection = self._categories.get(category)
        return collection if collection is not None else ProductCollection()

    def find(self, product: Product) -> Optional[Product]:
        """Return the live catalog entry sharing ``product``'s identity."""
        collection = self._categories.get(product.category)
        return collection.find(product) if collection is not None else None

    def all_products(self) -> ProductCollection:
        combined = ProductCollection()
        for collection in self._categories.values():
            for product in collection:
                combined.add(product)
        return combined

    def sort_and_export_category(
        self,
        category: str,
        exporter: Callable[[ProductCollection], T],
        key: Optional[Callable[[Product], object]] = None,
        cmp: Optional[Callable[[Product, Product], int]] = None,
        reverse: bool = False,
    ) -> T:
        """Sort one category and hand it to ``exporter`` without interleaving.

        The category's lock is held across both steps.
        """
        collection = self.products_in_category(category)
        with collection.exclusive():
            collection.sort_products(key=key, cmp=cmp, reverse=reverse)
            result = exporter(collection)
        self.logger.info(
            "Sorted and exported category",
            extra={"category": category, "extra": {"count": len(collection)}},
        )
        return result
