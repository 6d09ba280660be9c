# src/app.py
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import logging_config
from cash_register import CashRegister, Receipt
from customer import Customer
from metrics import generate_metrics_text
from product_collection import ProductCollection
from products import BulkProduct, PackagedProduct, Product
from settings import Settings
from snapshot import SnapshotService, select_serializer
from store import Store
from store_errors import InvalidRemovalError

logger = logging.getLogger(__name__)

# Catalog used when no snapshot is configured.  Bread is listed twice on
# purpose: the second entry merges into the first (15 loaves in total).
DEMO_CATALOG: List[Product] = [
    PackagedProduct(1, "Bread", "Bakery", 60, quantity=10),
    PackagedProduct(1, "Bread", "Bakery", 60, quantity=5),
    PackagedProduct(2, "Milk", "Dairy", 100, quantity=2),
    BulkProduct(3, "Poppy seed bun", "Bakery", 25, weight=100),
]


class StoreApp:
    """
    Application entry point for the store.  Owns the single ``Store``
    instance and wires it to the customer, the cash register and snapshot
    persistence.  The CLI talks only to this class.
    """

    def __init__(self, settings: Optional[Settings] = None, configure_logs: bool = True) -> None:
        self.settings = settings or Settings.from_env()
        if configure_logs:
            logging_config.configure_logging(self.settings.log_dir, self.settings.log_level)
        self.store = Store()
        self.snapshots = SnapshotService(self.store)
        self.customer = Customer(self.settings.customer_name, self.settings.customer_balance)
        self.cash_register = CashRegister(self.store, atomic=self.settings.atomic_checkout)

    # ---- Startup / shutdown ----

    def bootstrap(self) -> int:
        """Fill the catalog from the configured snapshot or the demo data."""
        if self.settings.snapshot_load:
            return self.snapshots.load(self.settings.snapshot_load)
        return self.seed_demo_catalog()

    def seed_demo_catalog(self) -> int:
        for product in DEMO_CATALOG:
            # copies, so the module-level demo data is never mutated
            self.store.add_product(product.with_measure(product.measure))
        return len(DEMO_CATALOG)

    def shutdown(self) -> List[str]:
        """Write the catalog in both snapshot formats; returns the paths."""
        paths = [self.settings.xml_snapshot_path, self.settings.json_snapshot_path]
        for path in paths:
            self.snapshots.save(path)
        return paths

    def metrics_text(self) -> str:
        """Current metrics in Prometheus text format."""
        return generate_metrics_text().decode("utf-8")

    # ---- Catalog ----

    def list_categories(self) -> List[str]:
        return self.store.categories()

    def list_products(self, category: str) -> ProductCollection:
        return self.store.products_in_category(category)

    def export_category(self, category: str, file_path: str) -> int:
        """Sort a category by name and write it as a snapshot file."""
        serializer = select_serializer(file_path)

        def _export(collection: ProductCollection) -> int:
            serializer.serialize(file_path, collection)
            return len(collection)

        return self.store.sort_and_export_category(category, _export)

    # ---- Cart ----

    def add_to_cart(self, product: Product, amount) -> bool:
        return self.customer.shopping_cart.add_item(product, amount)

    def remove_from_cart(self, product: Product, amount=1) -> bool:
        return self.customer.shopping_cart.remove_item(product, amount)

    def view_cart(self) -> ProductCollection:
        return self.customer.shopping_cart.items()

    # ---- Balance ----

    def recharge(self, amount) -> bool:
        return self.customer.recharge_balance(amount)

    # ---- Checkout ----

    def checkout(self) -> Tuple[bool, Receipt | str]:
        """Run the cash register for the current customer.

        Returns ``(True, receipt)`` when a receipt was produced (check
        ``receipt.status``) and ``(False, reason)`` when the store could not
        cover the cart.
        """
        try:
            receipt = self.cash_register.process_payment(self.customer)
        except InvalidRemovalError as exc:
            logger.error(
                f"Checkout failed: {exc}", extra={"customer": self.customer.name}
            )
            return False, f"Checkout failed: {exc}"
        return True, receipt
