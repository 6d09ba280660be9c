# --- path/bootstrap (keep this at the very top) ---
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))
# --- end path/bootstrap ---

import unittest
from decimal import Decimal

from cash_register import CashRegister
from customer import Customer
from metrics import CART_REJECTIONS_TOTAL, CHECKOUT_TOTAL, reset_metrics
from products import BulkProduct, PackagedProduct
from shopping_cart import ShoppingCart
from store import Store
from store_errors import InvalidRemovalError


def seed_store() -> Store:
    store = Store()
    store.add_product(PackagedProduct(1, "Bread", "Bakery", 60, quantity=10))
    store.add_product(PackagedProduct(1, "Bread", "Bakery", 60, quantity=5))
    store.add_product(PackagedProduct(2, "Milk", "Dairy", 100, quantity=2))
    store.add_product(BulkProduct(3, "Poppy seed bun", "Bakery", 25, weight=100))
    return store


def catalog_item(store: Store, category: str, name: str):
    return next(p for p in store.products_in_category(category) if p.name == name)


class TestStore(unittest.TestCase):
    def setUp(self):
        self.store = seed_store()

    def test_duplicate_adds_merge_into_one_entry(self):
        bakery = self.store.products_in_category("Bakery")
        self.assertEqual(len(bakery), 2)
        self.assertEqual(catalog_item(self.store, "Bakery", "Bread").quantity, 15)

    def test_removing_everything_empties_category(self):
        store = Store()
        store.add_product(PackagedProduct(1, "Bread", "Bakery", 60, quantity=10))
        store.add_product(PackagedProduct(1, "Bread", "Bakery", 60, quantity=5))
        store.remove_product(PackagedProduct(1, "Bread", "Bakery", 60, quantity=15))
        self.assertEqual(len(store.products_in_category("Bakery")), 0)

    def test_categories_keep_first_insertion_order(self):
        self.store.add_product(PackagedProduct(7, "Tea", "Drinks", 40, quantity=3))
        self.store.add_product(PackagedProduct(8, "Kefir", "Dairy", 90, quantity=3))
        self.assertEqual(self.store.categories(), ["Bakery", "Dairy", "Drinks"])

    def test_unknown_category_is_empty_not_an_error(self):
        self.assertEqual(len(self.store.products_in_category("Toys")), 0)
        self.store.remove_product(PackagedProduct(5, "Ball", "Toys", 10, quantity=1))
        self.assertEqual(self.store.categories(), ["Bakery", "Dairy"])

    def test_remove_more_than_held_propagates(self):
        with self.assertRaises(InvalidRemovalError):
            self.store.remove_product(PackagedProduct(2, "Milk", "Dairy", 100, quantity=3))
        self.assertEqual(catalog_item(self.store, "Dairy", "Milk").quantity, 2)

    def test_all_products_concatenates_categories(self):
        everything = self.store.all_products()
        self.assertEqual([p.name for p in everything], ["Bread", "Poppy seed bun", "Milk"])
        self.assertIsNot(everything, self.store.products_in_category("Bakery"))

    def test_sort_and_export_holds_category_lock(self):
        seen = {}

        def exporter(collection):
            seen["names"] = [p.name for p in collection]
            seen["locked"] = collection._lock._is_owned()
            return "exported"

        self.store.add_product(PackagedProduct(6, "Baguette", "Bakery", 80, quantity=4))
        result = self.store.sort_and_export_category("Bakery", exporter)
        self.assertEqual(result, "exported")
        self.assertEqual(seen["names"], ["Baguette", "Bread", "Poppy seed bun"])
        self.assertTrue(seen["locked"])


class TestShoppingCart(unittest.TestCase):
    def setUp(self):
        reset_metrics()
        self.store = seed_store()
        self.cart = ShoppingCart()
        self.bread = catalog_item(self.store, "Bakery", "Bread")
        self.buns = catalog_item(self.store, "Bakery", "Poppy seed bun")

    def test_add_item_copies_catalog_entry(self):
        self.assertTrue(self.cart.add_item(self.bread, 2))
        in_cart = self.cart.items()[0]
        self.assertIsNot(in_cart, self.bread)
        self.assertEqual(in_cart.quantity, 2)
        self.assertEqual(self.bread.quantity, 15)

    def test_add_item_casts_amount_per_variant(self):
        self.cart.add_item(self.bread, 2.7)
        self.cart.add_item(self.buns, 0.75)
        items = self.cart.items()
        self.assertEqual(items[0].quantity, 2)
        self.assertEqual(items[1].weight, 0.75)

    def test_repeated_adds_merge(self):
        self.cart.add_item(self.bread, 1)
        self.cart.add_item(self.bread, 2)
        self.assertEqual(len(self.cart), 1)
        self.assertEqual(self.cart.items()[0].quantity, 3)

    def test_unsupported_variant_is_logged_and_skipped(self):
        with self.assertLogs("shopping_cart", level="WARNING") as logs:
            self.assertFalse(self.cart.add_item(object(), 1))
        self.assertIn("Unsupported product type", logs.output[0])
        self.assertEqual(len(self.cart), 0)
        self.assertEqual(CART_REJECTIONS_TOTAL.value(reason="unsupported_variant"), 1)

    def test_non_positive_amount_is_rejected(self):
        with self.assertLogs("shopping_cart", level="WARNING"):
            self.assertFalse(self.cart.add_item(self.bread, 0))
        self.assertEqual(len(self.cart), 0)

    def test_remove_item_decrements_then_evicts(self):
        self.cart.add_item(self.bread, 3)
        cart_bread = self.cart.items()[0]
        self.assertTrue(self.cart.remove_item(cart_bread))
        self.assertEqual(cart_bread.quantity, 2)
        self.assertTrue(self.cart.remove_item(cart_bread, 2))
        self.assertEqual(len(self.cart), 0)

    def test_remove_item_insufficient_is_logged_not_raised(self):
        self.cart.add_item(self.buns, 1.5)
        with self.assertLogs("shopping_cart", level="WARNING") as logs:
            self.assertFalse(self.cart.remove_item(self.cart.items()[0], 2))
        self.assertIn("only 1.5 in cart", logs.output[0])
        self.assertEqual(self.cart.items()[0].weight, 1.5)
        self.assertEqual(CART_REJECTIONS_TOTAL.value(reason="insufficient_in_cart"), 1)

    def test_remove_item_not_in_cart(self):
        with self.assertLogs("shopping_cart", level="WARNING"):
            self.assertFalse(self.cart.remove_item(self.bread, 1))

    def test_total_sums_quantity_and_weight_prices(self):
        self.cart.add_item(self.bread, 2)
        self.cart.add_item(self.buns, 0.5)
        self.cart.add_item(catalog_item(self.store, "Dairy", "Milk"), 1)
        self.assertEqual(self.cart.total(), Decimal("120") + Decimal("12.5") + Decimal("100"))

    def test_empty_cart_total_is_zero(self):
        self.assertEqual(self.cart.total(), Decimal("0"))

    def test_non_finite_amounts_are_rejected_for_both_variants(self):
        for item in (self.bread, self.buns):
            for amount in (float("nan"), float("inf"), float("-inf")):
                with self.subTest(item=item.name, amount=amount):
                    with self.assertLogs("shopping_cart", level="WARNING") as logs:
                        self.assertFalse(self.cart.add_item(item, amount))
                    self.assertIn("finite", logs.output[0])
        self.assertEqual(len(self.cart), 0)
        self.assertEqual(CART_REJECTIONS_TOTAL.value(reason="non_finite_amount"), 6)

    def test_rejected_nan_weight_leaves_checkout_usable(self):
        customer = Customer("Ivan", 1000)
        with self.assertLogs("customer", level="WARNING"):
            customer.shopping_cart.add_item(self.buns, float("nan"))
        receipt = CashRegister(self.store).process_payment(customer)
        self.assertEqual(receipt.status, "Empty")
        self.assertEqual(customer.balance, Decimal("1000"))

    def test_remove_item_rejects_non_finite_amount(self):
        self.cart.add_item(self.buns, 2)
        for amount in (float("nan"), float("inf")):
            with self.assertLogs("shopping_cart", level="WARNING"):
                self.assertFalse(self.cart.remove_item(self.cart.items()[0], amount))
        self.assertEqual(self.cart.items()[0].weight, 2.0)

    def test_fractional_removal_below_one_unit_is_rejected_for_packaged(self):
        self.cart.add_item(self.bread, 3)
        with self.assertLogs("shopping_cart", level="WARNING"):
            self.assertFalse(self.cart.remove_item(self.cart.items()[0], 0.5))
        self.assertEqual(self.cart.items()[0].quantity, 3)
        self.assertEqual(CART_REJECTIONS_TOTAL.value(reason="non_positive_amount"), 1)

    def test_fractional_removal_is_truncated_for_packaged(self):
        self.cart.add_item(self.bread, 3)
        with self.assertLogs("shopping_cart", level="INFO") as logs:
            self.assertTrue(self.cart.remove_item(self.cart.items()[0], 1.9))
        self.assertEqual(self.cart.items()[0].quantity, 2)
        self.assertIn("by 1", logs.output[-1])


class TestCustomer(unittest.TestCase):
    def test_pay_debits_when_affordable(self):
        customer = Customer("Ivan", 1000)
        self.assertTrue(customer.pay(Decimal("120")))
        self.assertEqual(customer.balance, Decimal("880"))

    def test_pay_insufficient_logs_and_keeps_balance(self):
        customer = Customer("Ivan", 10)
        with self.assertLogs("customer", level="WARNING"):
            self.assertFalse(customer.pay(50))
        self.assertEqual(customer.balance, Decimal("10"))

    def test_recharge(self):
        customer = Customer("Ivan", 0)
        self.assertTrue(customer.recharge_balance(250))
        with self.assertLogs("customer", level="WARNING"):
            self.assertFalse(customer.recharge_balance(-5))
        with self.assertLogs("customer", level="WARNING"):
            self.assertFalse(customer.recharge_balance(Decimal("NaN")))
            self.assertFalse(customer.recharge_balance(float("inf")))
        self.assertEqual(customer.balance, Decimal("250"))


class TestCashRegister(unittest.TestCase):
    def setUp(self):
        reset_metrics()
        self.store = seed_store()
        self.register = CashRegister(self.store)
        self.customer = Customer("Ivan", 1000)
        self.bread = catalog_item(self.store, "Bakery", "Bread")
        self.milk = catalog_item(self.store, "Dairy", "Milk")
        self.buns = catalog_item(self.store, "Bakery", "Poppy seed bun")

    def test_empty_cart_is_a_no_op(self):
        receipt = self.register.process_payment(self.customer)
        self.assertEqual(receipt.status, "Empty")
        self.assertEqual(receipt.lines, [])
        self.assertEqual(self.customer.balance, Decimal("1000"))
        self.assertEqual(self.register.total_revenue, Decimal("0"))
        self.assertEqual(self.bread.quantity, 15)
        self.assertEqual(CHECKOUT_TOTAL.value(status="Empty"), 1)

    def test_successful_checkout(self):
        self.customer.shopping_cart.add_item(self.bread, 2)
        self.customer.shopping_cart.add_item(self.buns, 0.5)
        receipt = self.register.process_payment(self.customer)

        self.assertTrue(receipt.paid)
        self.assertEqual(receipt.total, Decimal("132.5"))
        self.assertEqual([line.price for line in receipt.lines], [Decimal("120"), Decimal("12.5")])
        self.assertEqual(self.customer.balance, Decimal("867.5"))
        self.assertEqual(self.register.total_revenue, Decimal("132.5"))
        self.assertEqual(self.bread.quantity, 13)
        self.assertEqual(self.buns.weight, 99.5)
        self.assertEqual(len(self.customer.shopping_cart), 0)
        text = receipt.format()
        self.assertIn("Customer: Ivan", text)
        self.assertIn("Total: 132.5", text)

    def test_buying_all_stock_evicts_catalog_entry(self):
        self.customer.shopping_cart.add_item(self.milk, 2)
        self.register.process_payment(self.customer)
        self.assertEqual(len(self.store.products_in_category("Dairy")), 0)

    def test_atomic_insufficient_balance_changes_nothing(self):
        poor = Customer("Petr", 50)
        poor.shopping_cart.add_item(self.bread, 1)
        with self.assertLogs("cash_register", level="WARNING"):
            receipt = self.register.process_payment(poor)
        self.assertEqual(receipt.status, "Rejected")
        self.assertEqual(receipt.lines, [])
        self.assertEqual(poor.balance, Decimal("50"))
        self.assertEqual(self.bread.quantity, 15)
        self.assertEqual(self.register.total_revenue, Decimal("0"))
        self.assertEqual(len(poor.shopping_cart), 1)

    def test_atomic_stock_shortfall_raises_before_any_mutation(self):
        self.customer.shopping_cart.add_item(self.milk, 1)
        self.customer.shopping_cart.add_item(self.bread, 20)
        with self.assertRaises(InvalidRemovalError):
            self.register.process_payment(self.customer)
        self.assertEqual(self.milk.quantity, 2)
        self.assertEqual(self.bread.quantity, 15)
        self.assertEqual(self.customer.balance, Decimal("1000"))
        self.assertEqual(len(self.customer.shopping_cart), 2)
        self.assertEqual(CHECKOUT_TOTAL.value(status="Failed"), 1)

    def test_best_effort_insufficient_balance_keeps_inventory_decrement(self):
        register = CashRegister(self.store, atomic=False)
        poor = Customer("Petr", 50)
        poor.shopping_cart.add_item(self.bread, 1)
        with self.assertLogs("customer", level="WARNING"):
            receipt = register.process_payment(poor)
        self.assertEqual(receipt.status, "Unpaid")
        self.assertEqual(len(receipt.lines), 1)
        self.assertEqual(self.bread.quantity, 14)
        self.assertEqual(poor.balance, Decimal("50"))
        self.assertEqual(register.total_revenue, Decimal("60"))
        self.assertEqual(len(poor.shopping_cart), 0)

    def test_best_effort_shortfall_leaves_earlier_removals(self):
        register = CashRegister(self.store, atomic=False)
        self.customer.shopping_cart.add_item(self.milk, 1)
        self.customer.shopping_cart.add_item(self.bread, 20)
        with self.assertRaises(InvalidRemovalError):
            register.process_payment(self.customer)
        self.assertEqual(self.milk.quantity, 1)
        self.assertEqual(self.bread.quantity, 15)
        self.assertEqual(self.customer.balance, Decimal("1000"))


if __name__ == "__main__":
    unittest.main(verbosity=2)
