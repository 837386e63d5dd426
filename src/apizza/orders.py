"""Saved orders kept in the shared key-value store.

Each order is a JSON-encoded :class:`~apizza.models.Order` stored under
``"user_order_" + name``. The prefix keeps orders apart from the menu cache
records, which live under :data:`~apizza.cache.CACHE_KEY_PREFIX`.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from apizza.exceptions import InvalidUsageError, NotFoundError, StoreKeyNotFoundError, StoreUnavailableError
from apizza.models import Order
from apizza.store import KeyValueStore

logger = logging.getLogger(__name__)

ORDER_KEY_PREFIX = "user_order_"


class OrderBook:
    """Named orders persisted in a :class:`~apizza.store.KeyValueStore`.

    Args:
        store: The store shared with the menu cache.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    @staticmethod
    def key(name: str) -> str:
        return ORDER_KEY_PREFIX + name

    def names(self) -> list[str]:
        """Return saved order names, sorted."""
        return sorted(
            key[len(ORDER_KEY_PREFIX):]
            for key in self._store.get_all()
            if key.startswith(ORDER_KEY_PREFIX)
        )

    def get(self, name: str) -> Order:
        """Load the order called *name*.

        Raises:
            NotFoundError: If no such order exists.
            StoreUnavailableError: If the stored order cannot be decoded.
        """
        try:
            raw = self._store.get(self.key(name))
        except StoreKeyNotFoundError:
            raise NotFoundError(f"No order named '{name}'") from None
        try:
            return Order.model_validate_json(raw)
        except ValidationError as exc:
            raise StoreUnavailableError(f"Stored order '{name}' is corrupt: {exc}") from exc

    def save(self, name: str, order: Order) -> None:
        """Store *order* under *name*, replacing any order of that name."""
        if not name or not name.strip():
            raise InvalidUsageError("Order name must not be empty")
        raw = order.model_dump_json(by_alias=True).encode("utf-8")
        self._store.put(self.key(name), raw)
        logger.debug("Saved order '%s' (%d products)", name, len(order.products))

    def delete(self, name: str) -> None:
        """Delete the order called *name*.

        Raises:
            NotFoundError: If no such order exists.
        """
        if name not in self.names():
            raise NotFoundError(f"No order named '{name}'")
        self._store.delete(self.key(name))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name in self.names()
