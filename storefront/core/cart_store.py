"""Cart state container persisted through :class:`PersistedStore`."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Iterable

from pydantic import ValidationError

from storefront.core.constants import CART_STORAGE_KEY
from storefront.core.persisted_store import PersistedStore
from storefront.domain.loadable import LOADING, Loadable, Ready, is_ready, value_or
from storefront.domain.schemas import CartItem

logger = logging.getLogger(__name__)


class CartStore:
    """In-memory cart with a full snapshot persisted after every mutation.

    Items are unique per ``product_id``. Totals are derived on every call and
    read as ``0`` until the persisted snapshot has been restored.
    """

    def __init__(self, storage: PersistedStore, key: str = CART_STORAGE_KEY) -> None:
        self._storage = storage
        self._key = key
        self._state: Loadable[list[CartItem]] = LOADING

    # ---------- hydration ----------

    @property
    def state(self) -> Loadable[list[CartItem]]:
        return self._state

    @property
    def has_hydrated(self) -> bool:
        return is_ready(self._state)

    async def hydrate(self) -> None:
        payload = await self._storage.load(self._key)
        if self.has_hydrated:
            # A mutation already happened on this container; it wins.
            return
        self._state = Ready(self._restore(payload))
        logger.debug("Cart hydrated with %d items", len(self._state.value))

    @staticmethod
    def _restore(payload: Any) -> list[CartItem]:
        if not isinstance(payload, dict) or not isinstance(payload.get("items"), list):
            return []
        items: list[CartItem] = []
        seen: set[int] = set()
        for raw in payload["items"]:
            try:
                item = CartItem.model_validate(raw)
            except ValidationError:
                logger.warning("Dropping invalid persisted cart item: %r", raw)
                continue
            if item.product_id in seen:
                continue
            seen.add(item.product_id)
            items.append(item)
        return items

    # ---------- persistence ----------

    def _current(self) -> list[CartItem]:
        return list(value_or(self._state, []))

    def _commit(self, items: list[CartItem]) -> None:
        self._state = Ready(items)
        try:
            self._storage.set(self._key, {"items": [item.to_dict() for item in items]})
        except Exception as exc:
            logger.warning("Cart snapshot was not persisted: %s", exc)

    # ---------- reads ----------

    @property
    def items(self) -> tuple[CartItem, ...]:
        return tuple(value_or(self._state, []))

    @property
    def is_empty(self) -> bool:
        return not value_or(self._state, [])

    def get_item(self, product_id: int) -> CartItem | None:
        for item in value_or(self._state, []):
            if item.product_id == int(product_id):
                return item
        return None

    def get_total_items(self) -> int:
        if not self.has_hydrated:
            return 0
        return sum(item.quantity for item in self._state.value)

    def get_total_price(self) -> Decimal:
        if not self.has_hydrated:
            return Decimal("0")
        return sum((item.line_total for item in self._state.value), Decimal("0"))

    # ---------- mutations ----------

    def add_item(self, item: CartItem) -> None:
        items = self._current()
        for idx, existing in enumerate(items):
            if existing.product_id == item.product_id:
                items[idx] = existing.model_copy(
                    update={"quantity": existing.quantity + item.quantity}
                )
                break
        else:
            items.append(item.model_copy())
        self._commit(items)

    def remove_item(self, product_id: int) -> None:
        items = self._current()
        remaining = [item for item in items if item.product_id != int(product_id)]
        if len(remaining) == len(items):
            return
        self._commit(remaining)

    def update_quantity(self, product_id: int, quantity: int) -> None:
        if quantity <= 0:
            self.remove_item(product_id)
            return
        items = [
            item.model_copy(update={"quantity": int(quantity)})
            if item.product_id == int(product_id)
            else item
            for item in self._current()
        ]
        self._commit(items)

    def set_items(self, items: Iterable[CartItem]) -> None:
        """Replace the whole cart with server state (last write wins)."""
        merged: dict[int, CartItem] = {}
        for item in items:
            if item.product_id in merged:
                previous = merged[item.product_id]
                merged[item.product_id] = previous.model_copy(
                    update={"quantity": previous.quantity + item.quantity}
                )
            else:
                merged[item.product_id] = item
        self._commit(list(merged.values()))

    def clear_cart(self) -> None:
        self._commit([])
