"""
Command-line interface for the store.

This script wires the ``StoreApp`` class into an interactive CLI loop.  It
prompts the user for input, invokes methods on the ``StoreApp`` instance and
prints results.  Separating the CLI from the business logic keeps the latter
testable and free from I/O code.
"""

import math
import os
import sys
from decimal import Decimal, InvalidOperation
from typing import Optional, Sequence

from app import StoreApp
from store_errors import PersistenceError


def _choose(title: str, options: Sequence) -> Optional[int]:
    """Print a numbered list and return the chosen index, or None."""
    print(f"\n{title}:")
    for idx, option in enumerate(options, start=1):
        print(f"{idx}. {option}")
    raw = input("Choice: ").strip()
    try:
        choice = int(raw)
    except ValueError:
        print("Please enter a valid number.")
        return None
    if not 1 <= choice <= len(options):
        print("Invalid choice.")
        return None
    return choice - 1


def _read_amount(prompt: str) -> Optional[float]:
    try:
        amount = float(input(prompt).strip())
    except ValueError:
        print("Please enter a valid numeric amount.")
        return None
    if not math.isfinite(amount):
        print("Please enter a finite amount.")
        return None
    return amount


def browse_catalog(app: StoreApp) -> None:
    categories = app.list_categories()
    if not categories:
        print("The catalog is empty.")
        return
    idx = _choose("Product categories", categories)
    if idx is None:
        return
    products = app.list_products(categories[idx]).to_list()
    if not products:
        print("No products in the selected category.")
        return
    pidx = _choose("Select a product", products)
    if pidx is None:
        return
    amount = _read_amount("Enter amount: ")
    if amount is None:
        return
    if app.add_to_cart(products[pidx], amount):
        print("Product added to cart.")
    else:
        print("Could not add product to cart.")


def cart_actions(app: StoreApp) -> None:
    items = app.view_cart().to_list()
    if not items:
        print("Cart is empty.")
        return
    idx = _choose("Cart contents (select an item to remove)", items)
    if idx is None:
        return
    amount = _read_amount("Enter amount to remove: ")
    if amount is None:
        return
    if app.remove_from_cart(items[idx], amount):
        print("Cart updated.")
    else:
        print("Could not remove that amount from the cart.")


def checkout(app: StoreApp) -> None:
    ok, result = app.checkout()
    if not ok:
        print(result)
        return
    if not result.lines:
        print("Cart is empty." if result.status == "Empty" else f"Checkout {result.status.lower()}: {result.reason}")
        return
    print(result.format())


def balance_actions(app: StoreApp) -> None:
    print(app.customer.describe())
    print("1. Top up balance")
    print("2. Back")
    if input("Choice: ").strip() != "1":
        return
    try:
        amount = Decimal(input("Amount to add: ").strip())
    except InvalidOperation:
        print("Please enter a valid numeric amount.")
        return
    if app.recharge(amount):
        print(f"New balance: {app.customer.balance}")
    else:
        print("Top-up amount must be a positive number.")


def export_category(app: StoreApp) -> None:
    categories = app.list_categories()
    if not categories:
        print("The catalog is empty.")
        return
    idx = _choose("Category to export", categories)
    if idx is None:
        return
    path = input("Target file (.json or .xml): ").strip()
    try:
        count = app.export_category(categories[idx], path)
    except PersistenceError as exc:
        print(f"Export failed: {exc}")
        return
    print(f"Exported {count} products to {path}.")


def interactive_cli(app: Optional[StoreApp] = None) -> None:
    """Run the menu loop until the user chooses to exit."""
    if app is None:
        app = StoreApp()
        app.bootstrap()

    def print_menu() -> None:
        print("\n-- Store --")
        print("1. Product catalog")
        print("2. Cart")
        print("3. Checkout")
        print("4. Balance")
        print("5. Export category")
        print("6. Metrics")
        print("0. Exit")

    while True:
        print_menu()
        choice = input("Select an option: ").strip()
        if choice == "1":
            browse_catalog(app)
        elif choice == "2":
            cart_actions(app)
        elif choice == "3":
            checkout(app)
        elif choice == "4":
            balance_actions(app)
        elif choice == "5":
            export_category(app)
        elif choice == "6":
            print(app.metrics_text())
        elif choice == "0":
            try:
                paths = app.shutdown()
            except PersistenceError as exc:
                print(f"Could not save the catalog: {exc}")
            else:
                print("Catalog saved to " + ", ".join(os.path.basename(p) for p in paths))
            print("Exiting.")
            break
        else:
            print("Invalid option. Please try again.")


def main() -> None:
    try:
        interactive_cli()
    except KeyboardInterrupt:
        print("\nInterrupted by user. Exiting.")
        sys.exit(0)


if __name__ == "__main__":
    main()
