"""Request and response schemas for the storefront REST backend.

Every payload that crosses the network boundary is one of these models, so a
malformed response fails with a typed error instead of leaking ``None`` into
the cart or the checkout.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from storefront.core.money import parse_amount


def _new_cart_id() -> str:
    return uuid.uuid4().hex


class CartItem(BaseModel):
    """Single line of the cart, denormalized from the catalog at add time."""

    cart_id: int | str = Field(default_factory=_new_cart_id, description="Local line identifier")
    product_id: int = Field(..., description="Catalog product ID, merge key")
    product_name: str = Field(
        "",
        validation_alias=AliasChoices("product_name", "name"),
        description="Product name at time of add",
    )
    quantity: int = Field(..., ge=1, description="Units in cart")
    price: Decimal = Field(Decimal("0"), description="Original price")
    discount_price: Decimal = Field(Decimal("0"), description="Effective sale price")
    image_url: str = Field("", description="Display image")

    class Config:
        """Pydantic config."""

        populate_by_name = True

    @model_validator(mode="before")
    @classmethod
    def default_discount_to_price(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("discount_price") in (None, ""):
            data = {**data, "discount_price": data.get("price")}
        return data

    @field_validator("price", "discount_price", mode="before")
    @classmethod
    def parse_money(cls, v: Any) -> Decimal:
        return parse_amount(v)

    @field_validator("image_url", "product_name", mode="before")
    @classmethod
    def none_to_blank(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def line_total(self) -> Decimal:
        return self.discount_price * self.quantity

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-safe dictionary for persistence."""
        return {
            "cart_id": self.cart_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "price": str(self.price),
            "discount_price": str(self.discount_price),
            "image_url": self.image_url,
        }


class CartEnvelope(BaseModel):
    cart_items: list[CartItem] = Field(default_factory=list)
    message: Optional[str] = None


# ============== IDENTITY ==============


class UserProfile(BaseModel):
    user_id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    referral_code: Optional[str] = None

    @field_validator("user_id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class AdminProfile(BaseModel):
    admin_id: str
    username: str
    email: str = ""
    role: str = "admin"
    full_name: str = ""

    @field_validator("admin_id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class LoginResponse(BaseModel):
    token: str = Field(..., min_length=1)
    user: UserProfile


class AdminLoginResponse(BaseModel):
    token: str = Field(..., min_length=1)
    admin: AdminProfile


class MessageResponse(BaseModel):
    message: str = ""


class RegisterForm(BaseModel):
    """Registration form as typed by the customer."""

    email: str
    password: str
    confirm_password: str
    first_name: str
    last_name: str = ""
    phone: str
    referral_code: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(exclude={"confirm_password"})
        if not payload.get("referral_code"):
            payload.pop("referral_code", None)
        return payload


# ============== ADDRESSES ==============


class AddressType(str, Enum):
    HOME = "home"
    WORK = "work"
    OFFICE = "office"
    OTHER = "other"


ADDRESS_REQUIRED_FIELDS = ("name", "phone", "address_line_1", "city", "state", "pincode")


class AddressInput(BaseModel):
    """Address form; mandatory fields must be non-blank."""

    type: AddressType = AddressType.HOME
    name: str
    phone: str
    address_line_1: str
    address_line_2: str = ""
    city: str
    state: str
    pincode: str
    landmark: str = ""
    is_default: bool = False

    @field_validator(*ADDRESS_REQUIRED_FIELDS)
    @classmethod
    def not_blank(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError("field is required")
        return cleaned

    @field_validator("address_line_2", "landmark", mode="before")
    @classmethod
    def optional_blank(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("type", mode="before")
    @classmethod
    def default_type(cls, v: Any) -> Any:
        return v or AddressType.HOME

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class Address(AddressInput):
    address_id: int

    def to_input(self) -> AddressInput:
        return AddressInput(**self.model_dump(exclude={"address_id"}))


class AddressList(BaseModel):
    addresses: list[Address] = Field(default_factory=list)


class ShippingAddress(BaseModel):
    """Address copied into an order at submission time."""

    name: str
    phone: str
    address_line_1: str
    address_line_2: str = ""
    city: str
    state: str
    pincode: str
    landmark: str = ""
    type: AddressType = AddressType.HOME

    @classmethod
    def from_address(cls, address: AddressInput) -> ShippingAddress:
        return cls(
            name=address.name,
            phone=address.phone,
            address_line_1=address.address_line_1,
            address_line_2=address.address_line_2 or "",
            city=address.city,
            state=address.state,
            pincode=address.pincode,
            landmark=address.landmark or "",
            type=address.type,
        )


# ============== ORDERS ==============


class OrderItemInput(BaseModel):
    product_id: int
    product_name: str
    quantity: int = Field(..., ge=1)
    price: Decimal

    @field_serializer("price")
    def serialize_price(self, v: Decimal) -> float:
        return float(v)


class OrderCreateRequest(BaseModel):
    items: list[OrderItemInput] = Field(..., min_length=1)
    shipping_address: ShippingAddress
    payment_method: str
    subtotal: Decimal
    shipping_amount: Decimal
    tax_amount: Decimal = Decimal("0")
    total_amount: Decimal

    @field_serializer("subtotal", "shipping_amount", "tax_amount", "total_amount")
    def serialize_amount(self, v: Decimal) -> float:
        return float(v)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class OrderCreated(BaseModel):
    order_number: str
    order_id: str

    @field_validator("order_number", "order_id", mode="before")
    @classmethod
    def coerce_str(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class Order(BaseModel):
    order_id: str
    order_number: Optional[str] = None
    status: str = "pending"
    total_amount: Decimal = Decimal("0")
    item_count: int = 0
    payment_method: Optional[str] = None
    created_at: Optional[datetime] = None
    items: list[dict[str, Any]] = Field(default_factory=list)
    shipping_address: Optional[ShippingAddress] = None

    @field_validator("order_id", "order_number", mode="before")
    @classmethod
    def coerce_str(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator("total_amount", mode="before")
    @classmethod
    def parse_money(cls, v: Any) -> Decimal:
        return parse_amount(v)

    @property
    def display_number(self) -> str:
        return self.order_number or self.order_id


class OrderList(BaseModel):
    orders: list[Order] = Field(default_factory=list)


# ============== CATALOG & ACCOUNT ==============


class Product(BaseModel):
    product_id: int
    name: str
    price: Decimal = Decimal("0")
    discount_price: Optional[Decimal] = None
    image_url: Optional[str] = None
    category_id: Optional[int] = None
    stock_quantity: Optional[int] = None
    description: Optional[str] = None

    @field_validator("price", mode="before")
    @classmethod
    def parse_price(cls, v: Any) -> Decimal:
        return parse_amount(v)

    @field_validator("discount_price", mode="before")
    @classmethod
    def parse_discount(cls, v: Any) -> Optional[Decimal]:
        return None if v in (None, "") else parse_amount(v)

    @property
    def effective_price(self) -> Decimal:
        return self.discount_price if self.discount_price is not None else self.price

    def to_cart_item(self, quantity: int = 1) -> CartItem:
        return CartItem(
            product_id=self.product_id,
            product_name=self.name,
            quantity=quantity,
            price=self.price,
            discount_price=self.effective_price,
            image_url=self.image_url or "",
        )


class Category(BaseModel):
    category_id: int
    name: str
    slug: Optional[str] = None
    product_count: Optional[int] = None


class WishlistItem(BaseModel):
    product_id: int
    product_name: str = Field("", validation_alias=AliasChoices("product_name", "name"))
    price: Decimal = Decimal("0")
    discount_price: Optional[Decimal] = None
    image_url: Optional[str] = None

    @field_validator("price", mode="before")
    @classmethod
    def parse_price(cls, v: Any) -> Decimal:
        return parse_amount(v)


class ReferralSummary(BaseModel):
    referral_code: Optional[str] = None
    total_referrals: int = 0
    total_earnings: Decimal = Decimal("0")
    referrals: list[dict[str, Any]] = Field(default_factory=list)

    @field_validator("total_earnings", mode="before")
    @classmethod
    def parse_money(cls, v: Any) -> Decimal:
        return parse_amount(v)


class Wallet(BaseModel):
    balance: Decimal = Decimal("0")
    transactions: list[dict[str, Any]] = Field(default_factory=list)

    @field_validator("balance", mode="before")
    @classmethod
    def parse_money(cls, v: Any) -> Decimal:
        return parse_amount(v)


class Pagination(BaseModel):
    total: int = 0
    pages: int = 0
    page: Optional[int] = None
    per_page: Optional[int] = None


class Page(BaseModel):
    """Admin list envelope: ``{items, pagination}``."""

    items: list[dict[str, Any]] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


class DashboardStats(BaseModel):
    total_users: int = 0
    total_orders: int = 0
    total_products: int = 0
    total_revenue: Decimal = Decimal("0")
    recent_orders: list[dict[str, Any]] = Field(default_factory=list)

    @field_validator("total_revenue", mode="before")
    @classmethod
    def parse_money(cls, v: Any) -> Decimal:
        return parse_amount(v)
