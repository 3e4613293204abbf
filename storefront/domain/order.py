"""Order domain types and status values."""
from __future__ import annotations

from storefront.core.constants import (
    ENABLED_PAYMENT_METHODS,
    PAYMENT_CASH_ON_DELIVERY,
    PAYMENT_ONLINE,
)


class OrderStatus:
    """Order lifecycle statuses reported by the backend."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    ALL = (PENDING, CONFIRMED, PROCESSING, SHIPPED, DELIVERED, CANCELLED)

    @classmethod
    def normalize(cls, status: str | None) -> str:
        if not status:
            return cls.PENDING
        value = str(status).strip().lower()
        mapping = {
            "new": cls.PENDING,
            "placed": cls.PENDING,
            "canceled": cls.CANCELLED,
            "completed": cls.DELIVERED,
        }
        return mapping.get(value, value)


class PaymentMethod:
    """Payment methods offered at checkout."""

    CASH_ON_DELIVERY = PAYMENT_CASH_ON_DELIVERY
    ONLINE = PAYMENT_ONLINE

    @classmethod
    def normalize(cls, method: str | None) -> str:
        if not method:
            return cls.CASH_ON_DELIVERY
        value = str(method).strip().lower()
        aliases = {"cash": cls.CASH_ON_DELIVERY, "cash-on-delivery": cls.CASH_ON_DELIVERY}
        return aliases.get(value, value)

    @classmethod
    def is_enabled(cls, method: str | None) -> bool:
        return cls.normalize(method) in ENABLED_PAYMENT_METHODS
