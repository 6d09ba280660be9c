"""
Aggregating product collection shared by catalog categories and the cart.

Adding a product whose identity is already present merges the measured
quantity into the existing entry instead of creating a second one.  Removing
a product subtracts from the entry and evicts it once it reaches zero.
Requests pairing a packaged item with a bulk entry (or the other way round)
leave the collection untouched.
"""

from __future__ import annotations

import functools
import logging
import operator
import threading
from concurrent.futures import Future
from contextlib import contextmanager
from typing import Callable, Iterable, Iterator, List, Optional

from products import Product, adjust_measure, same_variant
from store_errors import InvalidRemovalError, StoreError

logger = logging.getLogger(__name__)


class ProductCollection:
    """Insertion-ordered list of products with merge-on-add semantics."""

    def __init__(self, products: Optional[Iterable[Product]] = None) -> None:
        self._products: List[Product] = []
        # Held for sort-then-export regions; re-entrant so sort_products can nest
        self._lock = threading.RLock()
        for product in products or ():
            self.add(product)

    # ---- lookup ----

    def find(self, item: Product) -> Optional[Product]:
        """Return the entry sharing ``item``'s identity triple, if any."""
        for product in self._products:
            if product == item:
                return product
        return None

    def __contains__(self, item: object) -> bool:
        return item in self._products

    def __len__(self) -> int:
        return len(self._products)

    def __iter__(self) -> Iterator[Product]:
        return iter(self._products)

    def __getitem__(self, index: int) -> Product:
        return self._products[index]

    def to_list(self) -> List[Product]:
        return list(self._products)

    # ---- mutation ----

    def add(self, item: Product) -> None:
        existing = self.find(item)
        if existing is None:
            self._products.append(item)
            return
        if not same_variant(existing, item):
            logger.debug(
                "Ignoring add across variants",
                extra={"category": item.category, "extra": {"product": item.name}},
            )
            return
        adjust_measure(existing, item.measure)

    def remove(self, item: Product) -> bool:
        """Subtract ``item``'s measure from the matching entry.

        Returns False when no entry shares the identity.  A cross-variant
        match is left alone but still reported as found.

        Raises:
            InvalidRemovalError: if ``item`` asks for more than the entry holds.
        """
        existing = self.find(item)
        if existing is None:
            return False
        if not same_variant(existing, item):
            return True
        if item.measure > existing.measure:
            raise InvalidRemovalError(existing.name, item.measure, existing.measure)
        adjust_measure(existing, -item.measure)
        if existing.measure == 0:
            self._products.remove(existing)
        return True

    def clear(self) -> None:
        self._products.clear()

    # ---- ordering ----

    @contextmanager
    def exclusive(self) -> Iterator["ProductCollection"]:
        """Hold the collection lock for a sort-then-export region."""
        with self._lock:
            yield self

    def sort_products(
        self,
        key: Optional[Callable[[Product], object]] = None,
        cmp: Optional[Callable[[Product, Product], int]] = None,
        reverse: bool = False,
    ) -> None:
        """Reorder entries in place by ``key`` or a two-argument ``cmp``.

        With neither given, entries are ordered by name.
        """
        if cmp is not None:
            key = functools.cmp_to_key(cmp)
        elif key is None:
            key = operator.attrgetter("name")
        with self._lock:
            self._products.sort(key=key, reverse=reverse)

    def sort_products_async(self, sort_action: Callable[[List[Product]], None]) -> Future:
        """Run ``sort_action`` on a worker thread under the collection lock.

        ``sort_action`` receives a working list it may reorder in place.  The
        result is only adopted when it holds exactly the original entries.
        The returned future resolves to None, or re-raises the sort's error
        from ``result()``.
        """
        future: Future = Future()

        def _run() -> None:
            with self._lock:
                working = list(self._products)
                try:
                    sort_action(working)
                    if sorted(map(id, working)) != sorted(map(id, self._products)):
                        raise StoreError("Sort action added or dropped products")
                except Exception as exc:
                    logger.error(f"Background sort failed; keeping previous order: {exc}")
                    future.set_exception(exc)
                    return
                self._products[:] = working
            future.set_result(None)

        future.set_running_or_notify_cancel()
        threading.Thread(target=_run, name="product-sort", daemon=True).start()
        return future

    @staticmethod
    def compare_products(
        compare_func: Callable[[Product, Product], bool], first: Product, second: Product
    ) -> bool:
        return compare_func(first, second)

    def __repr__(self) -> str:
        return f"ProductCollection({self._products!r})"
