"""Order lookups by order number and verification code"""

from typing import List, Tuple

import structlog
from sqlalchemy import select

from storefront.models.order import Order, OrderItem, OrderStatus
from storefront.services.errors import OrderNotFoundError
from storefront.services.store import Store

logger = structlog.get_logger()

STATUS_LABELS = {
    OrderStatus.PENDING: "Pending",
    OrderStatus.CONFIRMED: "Confirmed",
    OrderStatus.PROCESSING: "Processing",
    OrderStatus.SHIPPED: "Shipped",
    OrderStatus.DELIVERED: "Delivered",
    OrderStatus.CANCELLED: "Cancelled",
}


def status_label(status) -> str:
    try:
        return STATUS_LABELS[OrderStatus(status)]
    except ValueError:
        return "Unknown"


class OrderService:
    """Customer-facing order operations that need no login"""

    def __init__(self, store: Store):
        self.store = store

    async def verify(self, order_number: str, verification_code: str) -> Order:
        """Mark an order as verified by its customer"""
        order = await self._find(order_number, verification_code)

        async with self.store.transaction():
            order.is_verified = True

        logger.info("Order verified", order_number=order.order_number)
        return order

    async def query(self, order_number: str, verification_code: str) -> Tuple[Order, List[OrderItem]]:
        order = await self._find(order_number, verification_code)
        items = await self.store.all(
            select(OrderItem).where(OrderItem.order_id == order.id).order_by(OrderItem.position)
        )
        return order, items

    async def _find(self, order_number: str, verification_code: str) -> Order:
        order = await self.store.get(
            select(Order).where(
                Order.order_number == order_number.strip(),
                Order.verification_code == verification_code.strip().upper(),
            )
        )
        if order is None:
            logger.info("Order lookup failed", order_number=order_number)
            raise OrderNotFoundError(order_number)
        return order
