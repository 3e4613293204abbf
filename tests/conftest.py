"""Shared pytest fixtures: fake Redis, fake REST backend, wired stores."""
from __future__ import annotations

import asyncio
from typing import Any

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from storefront.api.client import ApiClient
from storefront.api.resources import StorefrontApi
from storefront.core.auth_store import AuthStore
from storefront.core.cart_store import CartStore
from storefront.core.config import Settings
from storefront.core.navigation import RecordingNavigator, RecordingNotifier
from storefront.core.persisted_store import MemoryBackend, PersistedStore

from factories import ADMIN_TOKEN, USER_TOKEN, FakeRedisClient, make_admin, make_user


@pytest.fixture
def fake_redis(monkeypatch):
    import storefront.core.persisted_store as persisted_store_module

    client = FakeRedisClient()
    monkeypatch.setattr(
        persisted_store_module.redis, "from_url", lambda *args, **kwargs: client, raising=False
    )
    return client


@pytest.fixture
def storage() -> PersistedStore:
    return PersistedStore(MemoryBackend())


@pytest.fixture
async def cart_store(storage) -> CartStore:
    store = CartStore(storage)
    await store.hydrate()
    return store


@pytest.fixture
async def auth_store(storage) -> AuthStore:
    store = AuthStore(storage)
    await store.hydrate()
    return store


@pytest.fixture
def navigator() -> RecordingNavigator:
    return RecordingNavigator()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


class FakeBackend:
    """In-memory stand-in for the storefront REST backend."""

    def __init__(self) -> None:
        self.user_token = USER_TOKEN
        self.admin_token = ADMIN_TOKEN
        self.cart: list[dict[str, Any]] = []
        self.addresses: list[dict[str, Any]] = []
        self.orders: list[dict[str, Any]] = []
        self.calls: list[tuple[str, str, str | None]] = []
        self.failures: dict[tuple[str, str], list[tuple[int, Any]]] = {}
        self.next_address_id = 100
        self.next_order_id = 1001
        self.address_gate: asyncio.Event | None = None

    def fail(self, method: str, path: str, status: int, body: Any = None, times: int = 1) -> None:
        self.failures.setdefault((method, path), []).extend([(status, body)] * times)

    def count(self, method: str, path: str) -> int:
        return sum(1 for m, p, _ in self.calls if m == method and p == path)

    def _authorized(self, request: web.Request, token: str) -> bool:
        return request.headers.get("Authorization") == f"Bearer {token}"

    @web.middleware
    async def middleware(self, request: web.Request, handler):
        self.calls.append((request.method, request.path, request.headers.get("Authorization")))
        queue = self.failures.get((request.method, request.path))
        if queue:
            status, body = queue.pop(0)
            if body is None:
                return web.Response(status=status)
            if isinstance(body, bytes):
                return web.Response(status=status, body=body, content_type="text/html")
            return web.json_response(body, status=status)
        if request.path.startswith("/api/user/") and not request.path.startswith("/api/user/auth/"):
            if not self._authorized(request, self.user_token):
                return web.json_response({"message": "Unauthorized"}, status=401)
        if request.path.startswith("/api/admin/") and not request.path.startswith("/api/admin/auth/"):
            if not self._authorized(request, self.admin_token):
                return web.json_response({"message": "Unauthorized"}, status=401)
        return await handler(request)

    # ---------- handlers ----------

    async def login(self, request: web.Request) -> web.Response:
        body = await request.json()
        if body.get("password") != "secret":
            return web.json_response({"message": "Invalid email or password"}, status=400)
        user = make_user(email=body["email"]).model_dump()
        return web.json_response({"token": self.user_token, "user": user})

    async def register(self, request: web.Request) -> web.Response:
        return web.json_response({"message": "Registration successful! Please verify your email."})

    async def admin_login(self, request: web.Request) -> web.Response:
        body = await request.json()
        if body.get("password") != "secret":
            return web.json_response({"error": "Invalid credentials"}, status=400)
        return web.json_response({"token": self.admin_token, "admin": make_admin().model_dump()})

    async def get_cart(self, request: web.Request) -> web.Response:
        return web.json_response({"success": True, "data": {"cart_items": self.cart}})

    async def add_cart(self, request: web.Request) -> web.Response:
        body = await request.json()
        for row in self.cart:
            if row["product_id"] == body["product_id"]:
                row["quantity"] += body["quantity"]
                return web.json_response({"message": "Cart updated"})
        self.cart.append(
            {
                "cart_id": len(self.cart) + 1,
                "product_id": body["product_id"],
                "product_name": f"Product {body['product_id']}",
                "quantity": body["quantity"],
                "price": "100.00",
                "discount_price": "80.00",
                "image_url": None,
            }
        )
        return web.json_response({"message": "Added to cart"})

    async def update_cart(self, request: web.Request) -> web.Response:
        body = await request.json()
        for row in self.cart:
            if row["product_id"] == body["product_id"]:
                row["quantity"] = body["quantity"]
        return web.json_response({"message": "Cart updated"})

    async def remove_cart(self, request: web.Request) -> web.Response:
        product_id = int(request.match_info["product_id"])
        self.cart = [row for row in self.cart if row["product_id"] != product_id]
        return web.json_response({"message": "Removed"})

    async def list_addresses(self, request: web.Request) -> web.Response:
        if self.address_gate is not None:
            await self.address_gate.wait()
        return web.json_response({"addresses": self.addresses})

    async def add_address(self, request: web.Request) -> web.Response:
        body = await request.json()
        body["address_id"] = self.next_address_id
        self.next_address_id += 1
        if body.get("is_default"):
            for row in self.addresses:
                row["is_default"] = False
        self.addresses.append(body)
        return web.json_response({"message": "Address added", "address": body})

    async def update_address(self, request: web.Request) -> web.Response:
        address_id = int(request.match_info["address_id"])
        body = await request.json()
        for row in self.addresses:
            if row["address_id"] == address_id:
                row.update(body)
                return web.json_response({"message": "Address updated"})
        return web.json_response({"message": "Address not found"}, status=404)

    async def create_order(self, request: web.Request) -> web.Response:
        body = await request.json()
        order_id = self.next_order_id
        self.next_order_id += 1
        order = {
            "order_id": str(order_id),
            "order_number": f"ORD-{order_id}",
            "status": "pending",
            "total_amount": body["total_amount"],
            "item_count": sum(item["quantity"] for item in body["items"]),
            "payment_method": body["payment_method"],
            "created_at": f"2026-10-{10 + len(self.orders):02d}T10:00:00",
            "items": body["items"],
            "shipping_address": body["shipping_address"],
        }
        self.orders.append(order)
        self.cart = []
        return web.json_response(
            {"success": True, "data": {"order_number": order["order_number"], "order_id": order_id}}
        )

    async def list_orders(self, request: web.Request) -> web.Response:
        return web.json_response({"orders": self.orders})

    async def get_order(self, request: web.Request) -> web.Response:
        for order in self.orders:
            if order["order_id"] == request.match_info["order_id"]:
                return web.json_response({"success": True, "data": {"order": order}})
        return web.json_response({"message": "Order not found"}, status=404)

    async def wishlist_add(self, request: web.Request) -> web.Response:
        return web.json_response({"message": "Added"})

    async def wishlist_remove(self, request: web.Request) -> web.Response:
        return web.json_response({"message": "Removed"})

    async def public_categories(self, request: web.Request) -> web.Response:
        return web.json_response({"categories": [{"category_id": 1, "name": "Herbal Oils"}]})

    async def admin_dashboard(self, request: web.Request) -> web.Response:
        return web.json_response({"total_users": 3, "total_orders": 5, "total_revenue": "1250.50"})

    async def admin_orders(self, request: web.Request) -> web.Response:
        return web.json_response(
            {
                "items": self.orders,
                "pagination": {"total": len(self.orders), "pages": 1},
                "echo": dict(request.query),
            }
        )

    def build_app(self) -> web.Application:
        app = web.Application(middlewares=[self.middleware])
        app.router.add_post("/api/user/auth/login", self.login)
        app.router.add_post("/api/user/auth/register", self.register)
        app.router.add_post("/api/admin/auth/login", self.admin_login)
        app.router.add_get("/api/user/cart", self.get_cart)
        app.router.add_post("/api/user/cart/add", self.add_cart)
        app.router.add_put("/api/user/cart/update", self.update_cart)
        app.router.add_delete("/api/user/cart/remove/{product_id}", self.remove_cart)
        app.router.add_get("/api/user/addresses", self.list_addresses)
        app.router.add_post("/api/user/addresses", self.add_address)
        app.router.add_put("/api/user/addresses/{address_id}", self.update_address)
        app.router.add_post("/api/user/orders", self.create_order)
        app.router.add_get("/api/user/orders", self.list_orders)
        app.router.add_get("/api/user/orders/{order_id}", self.get_order)
        app.router.add_post("/api/user/wishlist/add", self.wishlist_add)
        app.router.add_delete("/api/user/wishlist/remove/{product_id}", self.wishlist_remove)
        app.router.add_get("/api/public/categories", self.public_categories)
        app.router.add_get("/api/admin/dashboard", self.admin_dashboard)
        app.router.add_get("/api/admin/orders", self.admin_orders)
        return app


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
async def settings(backend):
    server = TestServer(backend.build_app())
    await server.start_server()
    try:
        yield Settings(
            api_base_url=str(server.make_url("/api")),
            api_timeout=5,
            list_fetch_retries=2,
        )
    finally:
        await server.close()


@pytest.fixture
async def api(settings, auth_store, navigator):
    client = ApiClient(settings, auth_store, navigator=navigator)
    try:
        yield StorefrontApi(client)
    finally:
        await client.close()


@pytest.fixture
def logged_in(auth_store) -> AuthStore:
    auth_store.login(USER_TOKEN, make_user())
    return auth_store
