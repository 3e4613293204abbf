"""Resource groups of the storefront REST backend."""
from __future__ import annotations

from typing import Any

from storefront.api.client import ApiClient, parse, unwrap_data
from storefront.core.auth_store import Audience
from storefront.core.constants import MAX_PAGE_SIZE
from storefront.domain.schemas import (
    Address,
    AddressInput,
    AddressList,
    AdminLoginResponse,
    CartEnvelope,
    CartItem,
    Category,
    DashboardStats,
    LoginResponse,
    MessageResponse,
    Order,
    OrderCreated,
    OrderCreateRequest,
    OrderList,
    Page,
    Product,
    ReferralSummary,
    RegisterForm,
    Wallet,
    WishlistItem,
)

USER = Audience.USER
ADMIN = Audience.ADMIN
PUBLIC = None


def _list_params(
    page: int | None = None,
    per_page: int | None = None,
    search: str | None = None,
    status: str | None = None,
) -> dict[str, str]:
    params: dict[str, str] = {}
    if page:
        params["page"] = str(page)
    if per_page:
        params["per_page"] = str(min(per_page, MAX_PAGE_SIZE))
    if search and search.strip():
        params["search"] = search.strip()
    if status:
        params["status"] = status
    return params


def _items(body: Any, *keys: str) -> list[Any]:
    data = unwrap_data(body)
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in keys:
            value = data.get(key)
            if isinstance(value, list):
                return value
    return []


class _Resource:
    def __init__(self, client: ApiClient):
        self.client = client


# ===== USER APIs =====


class AuthAPI(_Resource):
    async def login(self, email: str, password: str, remember_me: bool = False) -> LoginResponse:
        body = await self.client.post(
            USER,
            "/auth/login",
            json_body={"email": email, "password": password, "remember_me": remember_me},
            fallback="Login failed",
        )
        return parse(LoginResponse, body)

    async def register(self, form: RegisterForm) -> MessageResponse:
        body = await self.client.post(
            USER, "/auth/register", json_body=form.to_payload(), fallback="Registration failed"
        )
        return parse(MessageResponse, body)

    async def verify_email(self, token: str) -> MessageResponse:
        body = await self.client.post(
            USER, "/auth/verify-email", json_body={"token": token}, fallback="Verification failed"
        )
        return parse(MessageResponse, body)

    async def resend_verification(self, email: str) -> MessageResponse:
        body = await self.client.post(
            USER,
            "/auth/resend-verification",
            json_body={"email": email},
            fallback="Failed to resend verification email",
        )
        return parse(MessageResponse, body)

    async def forgot_password(self, email: str) -> MessageResponse:
        body = await self.client.post(
            USER,
            "/auth/forgot-password",
            json_body={"email": email},
            fallback="Failed to send reset link",
        )
        return parse(MessageResponse, body)

    async def validate_reset_token(self, token: str) -> MessageResponse:
        body = await self.client.post(
            USER,
            "/auth/validate-reset-token",
            json_body={"token": token},
            fallback="Invalid or expired reset link",
        )
        return parse(MessageResponse, body)

    async def reset_password(self, token: str, password: str, confirm_password: str) -> MessageResponse:
        body = await self.client.post(
            USER,
            "/auth/reset-password",
            json_body={"token": token, "password": password, "confirm_password": confirm_password},
            fallback="Failed to reset password",
        )
        return parse(MessageResponse, body)


class ProductsAPI(_Resource):
    async def featured(self) -> list[Product]:
        body = await self.client.get(USER, "/products/featured", fallback="Failed to load products")
        return [parse(Product, raw) for raw in _items(body, "products", "items")]

    async def list(
        self,
        category_id: str | None = None,
        search: str | None = None,
        page: int | None = None,
        per_page: int | None = None,
        sort_by: str | None = None,
    ) -> list[Product]:
        params: dict[str, str] = {}
        if category_id:
            params["category_id"] = str(category_id)
        if search and search.strip():
            params["search"] = search.strip()
        # The first page is the default; only later pages are sent.
        if page and page > 1:
            params["page"] = str(page)
        if per_page:
            params["per_page"] = str(per_page)
        if sort_by:
            params["sort_by"] = sort_by
        body = await self.client.get(USER, "/products", params=params, fallback="Failed to load products")
        return [parse(Product, raw) for raw in _items(body, "products", "items")]

    async def get(self, product_id: int) -> Product:
        body = await self.client.get(USER, f"/products/{product_id}", fallback="Product not found")
        data = unwrap_data(body)
        if isinstance(data, dict) and isinstance(data.get("product"), dict):
            data = data["product"]
        return parse(Product, data)


class CategoriesAPI(_Resource):
    async def list(self) -> list[Category]:
        body = await self.client.get(
            PUBLIC, "/public/categories", fallback="Failed to load categories"
        )
        return [parse(Category, raw) for raw in _items(body, "categories", "items")]


class CartAPI(_Resource):
    async def get(self) -> list[CartItem]:
        body = await self.client.get(USER, "/cart", fallback="Failed to load cart")
        return parse(CartEnvelope, body).cart_items

    async def add(self, product_id: int, quantity: int) -> Any:
        return await self.client.post(
            USER,
            "/cart/add",
            json_body={"product_id": product_id, "quantity": quantity},
            fallback="Failed to add to cart",
        )

    async def update(self, product_id: int, quantity: int) -> Any:
        return await self.client.put(
            USER,
            "/cart/update",
            json_body={"product_id": product_id, "quantity": quantity},
            fallback="Failed to update quantity",
        )

    async def remove(self, product_id: int) -> Any:
        return await self.client.delete(
            USER, f"/cart/remove/{product_id}", fallback="Failed to remove item"
        )


class AddressesAPI(_Resource):
    async def list(self) -> list[Address]:
        body = await self.client.get(
            USER,
            "/addresses",
            fallback="Failed to load addresses",
            retries=self.client.settings.list_fetch_retries,
        )
        return parse(AddressList, body).addresses

    async def add(self, address: AddressInput) -> Any:
        return await self.client.post(
            USER, "/addresses", json_body=address.to_payload(), fallback="Failed to add address"
        )

    async def update(self, address_id: int, address: AddressInput) -> Any:
        return await self.client.put(
            USER,
            f"/addresses/{address_id}",
            json_body=address.to_payload(),
            fallback="Failed to update address",
        )

    async def delete(self, address_id: int) -> Any:
        return await self.client.delete(
            USER, f"/addresses/{address_id}", fallback="Failed to delete address"
        )


class OrdersAPI(_Resource):
    async def create(self, order: OrderCreateRequest) -> OrderCreated:
        body = await self.client.post(
            USER, "/orders", json_body=order.to_payload(), fallback="Failed to place order"
        )
        return parse(OrderCreated, body)

    async def list(self) -> list[Order]:
        body = await self.client.get(
            USER,
            "/orders",
            fallback="Failed to load orders",
            retries=self.client.settings.list_fetch_retries,
        )
        return parse(OrderList, body).orders

    async def get(self, order_id: str) -> Order:
        body = await self.client.get(USER, f"/orders/{order_id}", fallback="Order not found")
        data = unwrap_data(body)
        if isinstance(data, dict) and isinstance(data.get("order"), dict):
            data = data["order"]
        return parse(Order, data)


class WishlistAPI(_Resource):
    async def list(self) -> list[WishlistItem]:
        body = await self.client.get(USER, "/wishlist", fallback="Failed to load wishlist")
        return [parse(WishlistItem, raw) for raw in _items(body, "wishlist", "items")]

    async def add(self, product_id: int) -> Any:
        return await self.client.post(
            USER,
            "/wishlist/add",
            json_body={"product_id": product_id},
            fallback="Failed to update wishlist",
        )

    async def remove(self, product_id: int) -> Any:
        return await self.client.delete(
            USER, f"/wishlist/remove/{product_id}", fallback="Failed to update wishlist"
        )


class ReferralsAPI(_Resource):
    async def validate(self, code: str) -> MessageResponse:
        body = await self.client.post(
            USER, "/referrals/validate", json_body={"code": code}, fallback="Invalid referral code"
        )
        return parse(MessageResponse, body)

    async def get(self) -> ReferralSummary:
        body = await self.client.get(USER, "/referrals", fallback="Failed to load referrals")
        return parse(ReferralSummary, body)


class WalletAPI(_Resource):
    async def get(self) -> Wallet:
        body = await self.client.get(USER, "/wallet", fallback="Failed to load wallet")
        return parse(Wallet, body)


# ===== ADMIN APIs =====


class AdminAuthAPI(_Resource):
    async def login(self, username: str, password: str) -> AdminLoginResponse:
        body = await self.client.post(
            ADMIN,
            "/auth/login",
            json_body={"username": username, "password": password},
            fallback="Login failed",
        )
        return parse(AdminLoginResponse, body)


class AdminProductsAPI(_Resource):
    async def list(
        self, page: int | None = None, per_page: int | None = None, search: str | None = None
    ) -> Page:
        body = await self.client.get(
            ADMIN,
            "/products",
            params=_list_params(page, per_page, search),
            fallback="Failed to load products",
        )
        return parse(Page, body)

    async def get(self, product_id: int) -> Product:
        body = await self.client.get(ADMIN, f"/products/{product_id}", fallback="Product not found")
        return parse(Product, body)

    async def add(self, product: dict[str, Any]) -> Any:
        return await self.client.post(
            ADMIN, "/products", json_body=product, fallback="Failed to add product"
        )

    async def update(self, product_id: int, product: dict[str, Any]) -> Any:
        return await self.client.put(
            ADMIN, f"/products/{product_id}", json_body=product, fallback="Failed to update product"
        )

    async def delete(self, product_id: int) -> Any:
        return await self.client.delete(
            ADMIN, f"/products/{product_id}", fallback="Failed to delete product"
        )


class AdminCategoriesAPI(_Resource):
    async def list(self) -> list[Category]:
        body = await self.client.get(ADMIN, "/categories", fallback="Failed to load categories")
        return [parse(Category, raw) for raw in _items(body, "categories", "items")]

    async def add(self, category: dict[str, Any]) -> Any:
        return await self.client.post(
            ADMIN, "/categories", json_body=category, fallback="Failed to add category"
        )

    async def update(self, category_id: int, category: dict[str, Any]) -> Any:
        return await self.client.put(
            ADMIN,
            f"/categories/{category_id}",
            json_body=category,
            fallback="Failed to update category",
        )

    async def delete(self, category_id: int, force: bool = False) -> Any:
        return await self.client.delete(
            ADMIN,
            f"/categories/{category_id}",
            params={"force": "true"} if force else None,
            fallback="Failed to delete category",
        )


class AdminDashboardAPI(_Resource):
    async def stats(self) -> DashboardStats:
        body = await self.client.get(ADMIN, "/dashboard", fallback="Failed to load dashboard")
        return parse(DashboardStats, body)


class AdminUsersAPI(_Resource):
    async def list(
        self,
        page: int | None = None,
        per_page: int | None = None,
        search: str | None = None,
        status: str | None = None,
    ) -> Page:
        body = await self.client.get(
            ADMIN,
            "/users",
            params=_list_params(page, per_page, search, status),
            fallback="Failed to load users",
        )
        return parse(Page, body)

    async def update_status(self, user_id: str, status: str) -> Any:
        return await self.client.put(
            ADMIN,
            f"/users/{user_id}/status",
            json_body={"status": status},
            fallback="Failed to update user status",
        )


class AdminOrdersAPI(_Resource):
    async def list(
        self, page: int | None = None, per_page: int | None = None, status: str | None = None
    ) -> Page:
        body = await self.client.get(
            ADMIN,
            "/orders",
            params=_list_params(page, per_page, status=status),
            fallback="Failed to load orders",
        )
        return parse(Page, body)

    async def update_status(self, order_id: str, status: str) -> Any:
        return await self.client.put(
            ADMIN,
            f"/orders/{order_id}/status",
            json_body={"status": status},
            fallback="Failed to update order status",
        )


class AdminReferralsAPI(_Resource):
    async def list(self, page: int | None = None, per_page: int | None = None) -> Page:
        body = await self.client.get(
            ADMIN,
            "/referrals",
            params=_list_params(page, per_page),
            fallback="Failed to load referrals",
        )
        return parse(Page, body)


class StorefrontApi:
    """All resource groups over one :class:`ApiClient`."""

    def __init__(self, client: ApiClient):
        self.client = client
        self.auth = AuthAPI(client)
        self.products = ProductsAPI(client)
        self.categories = CategoriesAPI(client)
        self.cart = CartAPI(client)
        self.addresses = AddressesAPI(client)
        self.orders = OrdersAPI(client)
        self.wishlist = WishlistAPI(client)
        self.referrals = ReferralsAPI(client)
        self.wallet = WalletAPI(client)
        self.admin_auth = AdminAuthAPI(client)
        self.admin_products = AdminProductsAPI(client)
        self.admin_categories = AdminCategoriesAPI(client)
        self.admin_dashboard = AdminDashboardAPI(client)
        self.admin_users = AdminUsersAPI(client)
        self.admin_orders = AdminOrdersAPI(client)
        self.admin_referrals = AdminReferralsAPI(client)
