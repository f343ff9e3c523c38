"""Cart, customer details and the last completed booking.

State lives in a `CartStore` that mirrors every change to a key/value
storage as JSON strings, the same way the storefront keeps it in the
browser's local storage.
"""

import json
import logging
import os
from decimal import Decimal
from pathlib import Path
from typing import Protocol

from pydantic import TypeAdapter, ValidationError

from tourbook.models import CartItem, CompletedBooking, CustomerInfo
from tourbook.money import ZERO

logger = logging.getLogger(__name__)

CART_STORAGE_KEY = "tour_network_cart"
CUSTOMER_INFO_STORAGE_KEY = "tour_network_customer_info"
COMPLETED_BOOKING_STORAGE_KEY = "completed_booking"

_cart_items = TypeAdapter(list[CartItem])


class KeyValueStorage(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStorage:
    def __init__(self, items: dict[str, str] | None = None):
        self.items = dict(items or {})

    def get(self, key: str) -> str | None:
        return self.items.get(key)

    def set(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove(self, key: str) -> None:
        self.items.pop(key, None)


class JsonFileStorage:
    """All keys kept in a single JSON document on disk."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Could not read storage file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, self.path)

    def get(self, key: str) -> str | None:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)


class CartStore:
    def __init__(self, storage: KeyValueStorage):
        self.storage = storage
        self.items: list[CartItem] = self._load_items()
        self._customer_info: CustomerInfo | None = self._load_customer_info()

    def _load_items(self) -> list[CartItem]:
        saved = self.storage.get(CART_STORAGE_KEY)
        if not saved:
            return []
        try:
            return _cart_items.validate_json(saved)
        except ValidationError as e:
            logger.error(f"Error loading cart from storage: {e}")
            return []

    def _load_customer_info(self) -> CustomerInfo | None:
        saved = self.storage.get(CUSTOMER_INFO_STORAGE_KEY)
        if not saved:
            return None
        try:
            return CustomerInfo.model_validate_json(saved)
        except ValidationError as e:
            logger.error(f"Error loading customer info from storage: {e}")
            return None

    def _save_items(self) -> None:
        self.storage.set(CART_STORAGE_KEY, _cart_items.dump_json(self.items).decode())

    def add(self, item: CartItem) -> None:
        self.items.append(item)
        self._save_items()
        logger.info(f"Added {item.package_name} on {item.selected_date} to cart")

    def remove(self, item_id: str) -> None:
        self.items = [item for item in self.items if item.id != item_id]
        self._save_items()

    def update(self, item_id: str, **changes) -> None:
        self.items = [
            item.model_copy(update=changes) if item.id == item_id else item
            for item in self.items
        ]
        self._save_items()

    def clear(self) -> None:
        self.items = []
        self.storage.remove(CART_STORAGE_KEY)

    def total(self) -> Decimal:
        return sum((item.pricing.total_amount for item in self.items), ZERO)

    def count(self) -> int:
        return len(self.items)

    @property
    def customer_info(self) -> CustomerInfo | None:
        return self._customer_info

    @customer_info.setter
    def customer_info(self, info: CustomerInfo) -> None:
        self._customer_info = info
        self.storage.set(CUSTOMER_INFO_STORAGE_KEY, info.model_dump_json())


def record_completed_booking(storage: KeyValueStorage, booking: CompletedBooking) -> None:
    storage.set(COMPLETED_BOOKING_STORAGE_KEY, booking.model_dump_json())


def pop_completed_booking(storage: KeyValueStorage) -> CompletedBooking | None:
    """Read the completed booking once; it is cleared from storage on read."""
    saved = storage.get(COMPLETED_BOOKING_STORAGE_KEY)
    if not saved:
        return None
    storage.remove(COMPLETED_BOOKING_STORAGE_KEY)
    try:
        return CompletedBooking.model_validate_json(saved)
    except ValidationError as e:
        logger.error(f"Error loading completed booking from storage: {e}")
        return None
