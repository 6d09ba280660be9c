"""
Checkout orchestration.

``CashRegister.process_payment`` turns a customer's cart into a sale:
compute the total, take the goods out of the store, accrue revenue, debit the
customer, print a receipt and clear the cart.

Two modes are supported:

* atomic (default): stock and balance are validated before anything is
  touched, so a checkout either applies every change or none.
* best-effort (``atomic=False``): the steps run in sequence with no
  rollback.  A stock shortfall part-way through leaves earlier removals
  applied, and an insufficient balance is only logged after the inventory
  has already been decremented.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from customer import Customer
from metrics import CHECKOUT_DURATION_SECONDS, CHECKOUT_TOTAL, REVENUE_TOTAL
from products import Product, same_variant
from store import Store
from store_errors import InsufficientBalanceError, InvalidRemovalError

logger = logging.getLogger(__name__)

COMPLETED = "Completed"
EMPTY = "Empty"
REJECTED = "Rejected"
UNPAID = "Unpaid"


@dataclass
class ReceiptLine:
    description: str
    price: Decimal


@dataclass
class Receipt:
    """Outcome of a checkout.  Only Completed and Unpaid receipts carry lines."""
    customer_name: str
    status: str
    total: Decimal = Decimal("0")
    lines: List[ReceiptLine] = field(default_factory=list)
    reason: str = ""

    @property
    def paid(self) -> bool:
        return self.status == COMPLETED

    def format(self) -> str:
        out = [
            "----------- Receipt -----------",
            f"Customer: {self.customer_name}",
            "Purchased items:",
        ]
        out.extend(f"- {line.description} = {line.price}" for line in self.lines)
        out.append(f"Total: {self.total}")
        if self.status != COMPLETED:
            out.append(f"Status: {self.status}" + (f" ({self.reason})" if self.reason else ""))
        out.append("-------------------------------")
        return "\n".join(out)


class CashRegister:
    def __init__(self, store: Store, atomic: bool = True, log: Optional[logging.Logger] = None) -> None:
        self.store = store
        self.atomic = atomic
        self.logger = log or logger
        self._total_revenue = Decimal("0")

    @property
    def total_revenue(self) -> Decimal:
        return self._total_revenue

    def _accrue(self, amount: Decimal) -> None:
        self._total_revenue += amount
        REVENUE_TOTAL.inc(float(amount))

    def _ensure_in_stock(self, items: List[Product]) -> None:
        """Raise before any mutation if the store cannot cover every cart line."""
        for item in items:
            held = self.store.find(item)
            available = held.measure if held is not None and same_variant(held, item) else 0
            if item.measure > available:
                raise InvalidRemovalError(item.name, item.measure, available)

    def _build_receipt(self, customer: Customer, items: List[Product], total: Decimal, status: str, reason: str = "") -> Receipt:
        receipt = Receipt(
            customer_name=customer.name,
            status=status,
            total=total,
            lines=[ReceiptLine(str(item), item.calculate_price()) for item in items],
            reason=reason,
        )
        for text in receipt.format().splitlines():
            self.logger.info(text, extra={"customer": customer.name})
        return receipt

    def process_payment(self, customer: Customer) -> Receipt:
        """Check out ``customer``'s cart and return the receipt.

        Raises:
            InvalidRemovalError: if the store holds less than the cart asks for.
        """
        start_time = time.perf_counter()
        status = "Failed"
        try:
            cart = customer.shopping_cart
            total = cart.total()
            if total == 0:
                self.logger.info("Cart is empty; nothing to pay for", extra={"customer": customer.name})
                status = EMPTY
                return Receipt(customer_name=customer.name, status=EMPTY)

            # Snapshot the lines: the cart is cleared before we return
            items = cart.items().to_list()
            if self.atomic:
                receipt = self._checkout_atomic(customer, items, total)
            else:
                receipt = self._checkout_best_effort(customer, items, total)
            status = receipt.status
            return receipt
        finally:
            CHECKOUT_TOTAL.inc(status=status)
            CHECKOUT_DURATION_SECONDS.observe(
                time.perf_counter() - start_time, mode="atomic" if self.atomic else "best_effort"
            )

    def _checkout_atomic(self, customer: Customer, items: List[Product], total: Decimal) -> Receipt:
        self._ensure_in_stock(items)
        if not customer.can_afford(total):
            reason = str(InsufficientBalanceError(customer.balance, total))
            self.logger.warning(f"Checkout rejected: {reason}", extra={"customer": customer.name})
            return Receipt(customer_name=customer.name, status=REJECTED, total=total, reason=reason)

        for item in items:
            self.store.remove_product(item)
        self._accrue(total)
        customer.debit(total)
        self.logger.info(
            f"Payment successful. Remaining balance: {customer.balance}",
            extra={"customer": customer.name},
        )
        receipt = self._build_receipt(customer, items, total, COMPLETED)
        customer.shopping_cart.clear()
        return receipt

    def _checkout_best_effort(self, customer: Customer, items: List[Product], total: Decimal) -> Receipt:
        for item in items:
            self.store.remove_product(item)
        self._accrue(total)
        paid = customer.pay(total)
        if paid:
            receipt = self._build_receipt(customer, items, total, COMPLETED)
        else:
            receipt = self._build_receipt(customer, items, total, UNPAID, reason="insufficient balance")
        customer.shopping_cart.clear()
        return receipt
