from __future__ import annotations

import asyncio

import pytest

from storefront.application.cart_sync import ALREADY_PENDING, LOGIN_REQUIRED, CartSynchronizer
from storefront.core.auth_store import Audience

from factories import make_item


@pytest.fixture
def sync(api, cart_store, auth_store, notifier) -> CartSynchronizer:
    return CartSynchronizer(api.cart, cart_store, auth_store, notifier)


@pytest.mark.asyncio
async def test_add_applies_after_server_accepts(sync, backend, cart_store, notifier, logged_in) -> None:
    result = await sync.add(make_item(product_id=1, quantity=2, product_name="Neem Oil"))

    assert result.ok
    assert cart_store.get_item(1).quantity == 2
    assert backend.cart[0]["quantity"] == 2
    assert notifier.last("success") == "Neem Oil added to cart"


@pytest.mark.asyncio
async def test_failed_add_leaves_cart_untouched(sync, backend, cart_store, notifier, logged_in) -> None:
    cart_store.add_item(make_item(product_id=1, quantity=1))
    backend.fail("POST", "/api/user/cart/add", 400, {"message": "Only 1 left in stock"})

    result = await sync.add(make_item(product_id=1, quantity=1))

    assert not result.ok
    assert result.error == "Only 1 left in stock"
    assert cart_store.get_item(1).quantity == 1
    assert notifier.last("error") == "Only 1 left in stock"


@pytest.mark.asyncio
async def test_failed_remove_keeps_item(sync, backend, cart_store, logged_in) -> None:
    cart_store.add_item(make_item(product_id=4))
    backend.fail("DELETE", "/api/user/cart/remove/4", 500, None)

    result = await sync.remove(4)

    assert result.error == "Failed to remove item"
    assert cart_store.get_item(4) is not None


@pytest.mark.asyncio
async def test_add_requires_login(sync, backend, cart_store, notifier) -> None:
    result = await sync.add(make_item(product_id=1))

    assert result.error == LOGIN_REQUIRED
    assert notifier.last("error") == LOGIN_REQUIRED
    assert backend.calls == []
    assert cart_store.is_empty


@pytest.mark.asyncio
async def test_second_change_for_same_product_is_ignored_while_pending(
    sync, backend, cart_store, logged_in
) -> None:
    first, second = await asyncio.gather(
        sync.add(make_item(product_id=1, quantity=1)),
        sync.add(make_item(product_id=1, quantity=1)),
    )

    assert first.ok
    assert second.error == ALREADY_PENDING
    assert backend.count("POST", "/api/user/cart/add") == 1
    assert cart_store.get_item(1).quantity == 1
    assert not sync.pending(1)


@pytest.mark.asyncio
async def test_changes_for_different_products_run_concurrently(
    sync, backend, cart_store, logged_in
) -> None:
    results = await asyncio.gather(
        sync.add(make_item(product_id=1)),
        sync.add(make_item(product_id=2)),
    )

    assert all(result.ok for result in results)
    assert cart_store.get_total_items() == 2


@pytest.mark.asyncio
async def test_update_to_zero_removes_after_confirmation(sync, backend, cart_store, logged_in) -> None:
    await sync.add(make_item(product_id=1, quantity=3))

    result = await sync.update_quantity(1, 0)

    assert result.ok
    assert cart_store.get_item(1) is None
    assert backend.count("PUT", "/api/user/cart/update") == 1


@pytest.mark.asyncio
async def test_invalid_quantity_is_rejected_locally(sync, backend, logged_in) -> None:
    result = await sync.update_quantity(1, -2)

    assert result.error == "Quantity cannot be negative"
    assert backend.count("PUT", "/api/user/cart/update") == 0


@pytest.mark.asyncio
async def test_expired_session_keeps_cart_and_redirects(
    sync, backend, cart_store, navigator, logged_in
) -> None:
    cart_store.add_item(make_item(product_id=1))
    backend.user_token = "rotated"

    result = await sync.update_quantity(1, 5)

    assert not result.ok
    assert cart_store.get_item(1).quantity == 1
    assert navigator.redirects == ["/login"]
    assert not logged_in.is_authenticated(Audience.USER)


@pytest.mark.asyncio
async def test_load_replaces_local_cart_with_server_cart(sync, backend, cart_store, logged_in) -> None:
    cart_store.add_item(make_item(product_id=99))
    backend.cart = [
        {"cart_id": 1, "product_id": 7, "product_name": "Amla Juice", "quantity": 2, "price": "150"},
    ]

    result = await sync.load()

    assert result.ok
    assert [item.product_id for item in cart_store.items] == [7]
    assert cart_store.get_total_price() == 300
