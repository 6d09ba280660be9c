"""Runtime configuration read from ``STORE_*`` environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path

_THIS_FILE = Path(__file__).resolve()
_PROJECT_ROOT = _THIS_FILE.parent.parent

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class Settings:
    log_dir: str
    log_level: int
    snapshot_dir: str
    snapshot_load: str | None
    customer_name: str
    customer_balance: Decimal
    atomic_checkout: bool

    @property
    def json_snapshot_path(self) -> str:
        return os.path.join(self.snapshot_dir, "store.json")

    @property
    def xml_snapshot_path(self) -> str:
        return os.path.join(self.snapshot_dir, "store.xml")

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        """Build settings from ``environ`` (defaults to ``os.environ``).

        Raises:
            ValueError: if a numeric or level variable cannot be parsed.
        """
        env = os.environ if environ is None else environ
        level_name = env.get("STORE_LOG_LEVEL", "INFO").strip().upper()
        level = logging.getLevelName(level_name)
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level in STORE_LOG_LEVEL: {level_name}")
        raw_balance = env.get("STORE_CUSTOMER_BALANCE", "1000")
        try:
            balance = Decimal(raw_balance)
        except InvalidOperation as exc:
            raise ValueError(f"STORE_CUSTOMER_BALANCE is not a number: {raw_balance}") from exc
        return cls(
            log_dir=env.get("STORE_LOG_DIR", str(_PROJECT_ROOT / "logs")),
            log_level=level,
            snapshot_dir=env.get("STORE_SNAPSHOT_DIR", str(_PROJECT_ROOT / "data")),
            snapshot_load=env.get("STORE_SNAPSHOT_LOAD") or None,
            customer_name=env.get("STORE_CUSTOMER_NAME", "Ivan"),
            customer_balance=balance,
            atomic_checkout=env.get("STORE_ATOMIC_CHECKOUT", "1").strip().lower() in _TRUTHY,
        )
