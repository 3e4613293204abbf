"""Use case: order history and tracking."""
from __future__ import annotations

from datetime import datetime, timezone

from storefront.api.resources import OrdersAPI
from storefront.domain.order import OrderStatus
from storefront.domain.schemas import Order

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _sort_key(order: Order) -> datetime:
    created = order.created_at
    if created is None:
        return _EPOCH
    if created.tzinfo is None:
        return created.replace(tzinfo=timezone.utc)
    return created


class OrderHistory:
    def __init__(self, orders_api: OrdersAPI):
        self.orders_api = orders_api

    async def list(self) -> list[Order]:
        """Orders newest first, with statuses normalized."""
        orders = await self.orders_api.list()
        normalized = [
            order.model_copy(update={"status": OrderStatus.normalize(order.status)})
            for order in orders
        ]
        return sorted(normalized, key=_sort_key, reverse=True)

    async def get(self, order_id: str) -> Order:
        order = await self.orders_api.get(order_id)
        return order.model_copy(update={"status": OrderStatus.normalize(order.status)})
