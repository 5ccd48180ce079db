"""
Order storage for tracking numbers.
Orders are opaque records; this module only reads and writes the
tracking number list kept in each order's meta data.
"""

import json
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable
from loguru import logger


TRACKING_META_KEY = "_usps_tracking_numbers"


class OrderStoreError(Exception):
    """Raised when the order store cannot be read or written."""
    pass


@runtime_checkable
class Order(Protocol):
    """The order capabilities the tracking service relies on."""

    def get_id(self) -> str: ...

    def get_customer_id(self) -> Optional[str]: ...

    def get_tracking_numbers(self) -> list[str]: ...

    def set_tracking_numbers(self, numbers: list[str]) -> None: ...

    def save(self) -> None: ...


class OrderStore(ABC):
    """Base class for order stores."""

    @abstractmethod
    def get(self, order_id: str) -> Optional[Order]:
        """Get an order by ID, or None if it does not exist."""
        pass

    @abstractmethod
    def put(self, order_id: str, tracking_numbers: list[str]) -> None:
        """Persist the tracking numbers for an order."""
        pass

    @abstractmethod
    def create(self, order_id: str, customer_id: Optional[str] = None) -> Order:
        """Register an order so tracking numbers can be attached to it."""
        pass


class StoredOrder:
    """Order record handed out by the bundled stores."""

    def __init__(
        self,
        store: OrderStore,
        order_id: str,
        customer_id: Optional[str] = None,
        tracking_numbers: Optional[list[str]] = None,
    ):
        self._store = store
        self._order_id = order_id
        self._customer_id = customer_id
        self._tracking_numbers = list(tracking_numbers or [])

    def get_id(self) -> str:
        return self._order_id

    def get_customer_id(self) -> Optional[str]:
        return self._customer_id

    def get_tracking_numbers(self) -> list[str]:
        return list(self._tracking_numbers)

    def set_tracking_numbers(self, numbers: list[str]) -> None:
        self._tracking_numbers = list(numbers)

    def save(self) -> None:
        self._store.put(self._order_id, self._tracking_numbers)

    def __repr__(self) -> str:
        return f"StoredOrder({self._order_id!r}, numbers={len(self._tracking_numbers)})"


class InMemoryOrderStore(OrderStore):
    """Order store backed by a dict. Used in tests and demos."""

    def __init__(self):
        self._orders: dict[str, dict] = {}

    def create(self, order_id: str, customer_id: Optional[str] = None) -> Order:
        self._orders.setdefault(
            order_id, {"customer_id": customer_id, "meta": {}}
        )
        return self.get(order_id)

    def get(self, order_id: str) -> Optional[Order]:
        record = self._orders.get(order_id)
        if record is None:
            return None

        numbers = record["meta"].get(TRACKING_META_KEY)
        if not isinstance(numbers, list):
            numbers = []

        return StoredOrder(self, order_id, record.get("customer_id"), numbers)

    def put(self, order_id: str, tracking_numbers: list[str]) -> None:
        if order_id not in self._orders:
            raise OrderStoreError(f"Order not found: {order_id}")
        self._orders[order_id]["meta"][TRACKING_META_KEY] = list(tracking_numbers)


class JsonFileOrderStore(OrderStore):
    """
    Order store persisted to a single JSON document.

    Layout:
        {"orders": {"<id>": {"customer_id": ..., "meta": {...}}}, "saved_at": ...}

    The file is re-read on every get so separate processes (CLI, server)
    see each other's writes. Writes replace the file in one rename.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _load(self) -> dict:
        if not self.path.exists():
            return {"orders": {}}

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise OrderStoreError(f"Failed to read order store {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise OrderStoreError(f"Order store {self.path} is not a JSON object")

        data.setdefault("orders", {})
        if not isinstance(data["orders"], dict):
            raise OrderStoreError(f"Order store {self.path} has malformed \"orders\"")

        return data

    def _save(self, data: dict) -> None:
        data["saved_at"] = datetime.utcnow().isoformat()
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            tmp_path.replace(self.path)
        except OSError as e:
            raise OrderStoreError(f"Failed to write order store {self.path}: {e}") from e

    def create(self, order_id: str, customer_id: Optional[str] = None) -> Order:
        data = self._load()

        if order_id not in data["orders"]:
            data["orders"][order_id] = {"customer_id": customer_id, "meta": {}}
            self._save(data)
            logger.info(f"Order {order_id} created in {self.path}")

        return self.get(order_id)

    def get(self, order_id: str) -> Optional[Order]:
        record = self._load()["orders"].get(order_id)
        if record is None:
            return None

        numbers = record.get("meta", {}).get(TRACKING_META_KEY)
        if not isinstance(numbers, list):
            numbers = []

        return StoredOrder(self, order_id, record.get("customer_id"), numbers)

    def put(self, order_id: str, tracking_numbers: list[str]) -> None:
        data = self._load()

        record = data["orders"].get(order_id)
        if record is None:
            raise OrderStoreError(f"Order not found: {order_id}")

        record.setdefault("meta", {})[TRACKING_META_KEY] = list(tracking_numbers)
        self._save(data)

    def order_ids(self) -> list[str]:
        """List the IDs of all stored orders."""
        return list(self._load()["orders"].keys())
