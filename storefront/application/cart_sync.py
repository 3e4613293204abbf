"""Use case: keep the local cart in step with the backend cart."""
from __future__ import annotations

from logging_config import logger
from storefront.api.resources import CartAPI
from storefront.application.results import ActionResult
from storefront.core.auth_store import Audience, AuthStore
from storefront.core.cart_store import CartStore
from storefront.core.exceptions import ApiException, ValidationException
from storefront.core.navigation import Notifier
from storefront.domain.schemas import CartItem

LOGIN_REQUIRED = "Please login to add items to cart"
ALREADY_PENDING = "Please wait, the previous change is still saving"


class CartSynchronizer:
    """
    Confirm-then-apply cart mutations.

    The request goes out first; the local cart changes only after the server
    accepts it. A failed request leaves the local cart untouched, is reported
    through the notifier and is not retried. One mutation per product may be
    in flight at a time.
    """

    def __init__(
        self,
        cart_api: CartAPI,
        cart_store: CartStore,
        auth_store: AuthStore,
        notifier: Notifier,
    ):
        self.cart_api = cart_api
        self.cart_store = cart_store
        self.auth_store = auth_store
        self.notifier = notifier
        self._in_flight: set[int] = set()
        self.loading = False

    def pending(self, product_id: int) -> bool:
        return int(product_id) in self._in_flight

    async def load(self) -> ActionResult:
        """Fetch the server cart and make it the local cart."""
        if not self.auth_store.is_authenticated(Audience.USER):
            return ActionResult(False, LOGIN_REQUIRED)
        self.loading = True
        try:
            items = await self.cart_api.get()
        except ApiException as exc:
            self.notifier.error(exc.message)
            return ActionResult(False, exc.message)
        finally:
            self.loading = False
        self.cart_store.set_items(items)
        logger.info(f"Cart reconciled with server: {len(items)} items")
        return ActionResult(True, value=items)

    async def _run(self, product_id: int, send, apply, success_message: str | None = None) -> ActionResult:
        if not self.auth_store.is_authenticated(Audience.USER):
            self.notifier.error(LOGIN_REQUIRED)
            return ActionResult(False, LOGIN_REQUIRED)
        product_id = int(product_id)
        if product_id in self._in_flight:
            logger.debug(f"Ignoring cart mutation for product {product_id}: already in flight")
            return ActionResult(False, ALREADY_PENDING)

        self._in_flight.add(product_id)
        try:
            await send()
        except ApiException as exc:
            self.notifier.error(exc.message)
            return ActionResult(False, exc.message)
        finally:
            self._in_flight.discard(product_id)

        apply()
        if success_message:
            self.notifier.success(success_message)
        return ActionResult(True)

    async def add(self, item: CartItem) -> ActionResult:
        return await self._run(
            item.product_id,
            lambda: self.cart_api.add(item.product_id, item.quantity),
            lambda: self.cart_store.add_item(item),
            success_message=f"{item.product_name or 'Item'} added to cart",
        )

    async def update_quantity(self, product_id: int, quantity: int) -> ActionResult:
        try:
            quantity = _validate_quantity(quantity)
        except ValidationException as exc:
            self.notifier.error(exc.message)
            return ActionResult(False, exc.message)
        return await self._run(
            product_id,
            lambda: self.cart_api.update(int(product_id), quantity),
            lambda: self.cart_store.update_quantity(int(product_id), quantity),
        )

    async def remove(self, product_id: int) -> ActionResult:
        return await self._run(
            product_id,
            lambda: self.cart_api.remove(int(product_id)),
            lambda: self.cart_store.remove_item(int(product_id)),
            success_message="Item removed from cart",
        )


def _validate_quantity(quantity: object) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationException("Quantity must be a whole number", field="quantity")
    if quantity < 0:
        raise ValidationException("Quantity cannot be negative", field="quantity")
    return quantity
