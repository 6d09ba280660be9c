"""Store customer: a name, a balance and one shopping cart."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from products import to_decimal
from shopping_cart import ShoppingCart
from store_errors import InsufficientBalanceError

logger = logging.getLogger(__name__)


class Customer:
    def __init__(self, name: str, balance, log: Optional[logging.Logger] = None) -> None:
        self.name = name
        self.balance: Decimal = to_decimal(balance)
        self.logger = log or logger
        self.shopping_cart = ShoppingCart(log=self.logger)

    def can_afford(self, total) -> bool:
        return self.balance >= to_decimal(total)

    def debit(self, total) -> Decimal:
        """Take ``total`` from the balance and return what is left.

        Raises:
            InsufficientBalanceError: if the balance does not cover ``total``.
        """
        total = to_decimal(total)
        if not self.can_afford(total):
            raise InsufficientBalanceError(self.balance, total)
        self.balance -= total
        return self.balance

    def pay(self, total) -> bool:
        try:
            remaining = self.debit(total)
        except InsufficientBalanceError as exc:
            self.logger.warning(
                f"Payment declined: {exc}", extra={"customer": self.name}
            )
            return False
        self.logger.info(
            f"Payment successful. Remaining balance: {remaining}",
            extra={"customer": self.name},
        )
        return True

    def recharge_balance(self, amount) -> bool:
        amount = to_decimal(amount)
        if not amount.is_finite() or amount <= 0:
            self.logger.warning(
                "Top-up amount must be a positive number", extra={"customer": self.name}
            )
            return False
        self.balance += amount
        self.logger.info(
            f"Balance topped up. New balance: {self.balance}",
            extra={"customer": self.name},
        )
        return True

    def describe(self) -> str:
        return f"{self.name}:\n Balance: {self.balance}"
