"""Wiring of stores, API client and use cases from configuration."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass

from logging_config import logger, setup_logging
from storefront.api.client import ApiClient
from storefront.api.resources import StorefrontApi
from storefront.application.cart_sync import CartSynchronizer
from storefront.application.checkout import CheckoutOrchestrator
from storefront.application.orders import OrderHistory
from storefront.application.session import SessionService
from storefront.application.wishlist import WishlistService
from storefront.core.auth_store import AuthStore
from storefront.core.cart_store import CartStore
from storefront.core.config import Settings, load_settings
from storefront.core.money import format_currency
from storefront.core.navigation import Navigator, Notifier, RecordingNavigator, RecordingNotifier
from storefront.core.persisted_store import PersistedStore, StorageBackend, build_backend


@dataclass
class Storefront:
    settings: Settings
    storage: PersistedStore
    cart: CartStore
    auth: AuthStore
    client: ApiClient
    api: StorefrontApi
    navigator: Navigator
    notifier: Notifier
    cart_sync: CartSynchronizer
    session: SessionService
    wishlist: WishlistService
    orders: OrderHistory

    async def hydrate(self) -> None:
        """Restore cart and auth state; reads before this see defaults."""
        await asyncio.gather(self.cart.hydrate(), self.auth.hydrate())
        logger.info(
            f"Storefront state restored: {self.cart.get_total_items()} cart items, "
            f"user={'yes' if self.auth.is_authenticated() else 'no'}"
        )

    def checkout(self) -> CheckoutOrchestrator:
        """A fresh orchestrator per checkout attempt."""
        return CheckoutOrchestrator(
            addresses_api=self.api.addresses,
            orders_api=self.api.orders,
            cart_store=self.cart,
            auth_store=self.auth,
            navigator=self.navigator,
            notifier=self.notifier,
            shipping=self.settings.shipping,
        )

    def format_price(self, amount) -> str:
        return format_currency(amount, symbol=self.settings.currency_symbol)

    async def close(self) -> None:
        await self.client.close()


def build_storefront(
    settings: Settings | None = None,
    *,
    backend: StorageBackend | None = None,
    navigator: Navigator | None = None,
    notifier: Notifier | None = None,
) -> Storefront:
    """Create storefront runtime components from configuration."""
    settings = settings or load_settings()
    setup_logging(settings.log_level)

    storage = PersistedStore(backend or build_backend(settings))
    cart = CartStore(storage)
    auth = AuthStore(storage)
    navigator = navigator or RecordingNavigator()
    notifier = notifier or RecordingNotifier()

    client = ApiClient(settings, auth, navigator=navigator)
    api = StorefrontApi(client)

    return Storefront(
        settings=settings,
        storage=storage,
        cart=cart,
        auth=auth,
        client=client,
        api=api,
        navigator=navigator,
        notifier=notifier,
        cart_sync=CartSynchronizer(api.cart, cart, auth, notifier),
        session=SessionService(api.auth, api.admin_auth, auth, notifier),
        wishlist=WishlistService(api.wishlist, auth, notifier),
        orders=OrderHistory(api.orders),
    )
