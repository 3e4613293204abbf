"""Use case: wishlist toggle from product cards."""
from __future__ import annotations

from storefront.api.resources import WishlistAPI
from storefront.application.results import ActionResult
from storefront.core.auth_store import Audience, AuthStore
from storefront.core.exceptions import ApiException
from storefront.core.navigation import Notifier

LOGIN_REQUIRED = "Please login to add items to wishlist"


class WishlistService:
    def __init__(self, wishlist_api: WishlistAPI, auth_store: AuthStore, notifier: Notifier):
        self.wishlist_api = wishlist_api
        self.auth_store = auth_store
        self.notifier = notifier
        self._in_flight: set[int] = set()

    async def toggle(self, product_id: int, in_wishlist: bool) -> ActionResult:
        """Add or remove; returns the new membership in ``value``."""
        if not self.auth_store.is_authenticated(Audience.USER):
            self.notifier.error(LOGIN_REQUIRED)
            return ActionResult(False, LOGIN_REQUIRED, value=in_wishlist)
        product_id = int(product_id)
        if product_id in self._in_flight:
            return ActionResult(False, value=in_wishlist)

        self._in_flight.add(product_id)
        try:
            if in_wishlist:
                await self.wishlist_api.remove(product_id)
            else:
                await self.wishlist_api.add(product_id)
        except ApiException as exc:
            self.notifier.error(exc.message)
            return ActionResult(False, exc.message, value=in_wishlist)
        finally:
            self._in_flight.discard(product_id)

        self.notifier.success("Removed from wishlist" if in_wishlist else "Added to wishlist")
        return ActionResult(True, value=not in_wishlist)
