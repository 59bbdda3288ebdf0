"""Background job tasks"""

import asyncio
from typing import List, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from twilio.rest import Client as TwilioClient

from storefront.jobs.celery_app import celery_app
from storefront.config import settings
from storefront.database import build_engine, utcnow
from storefront.models.order import Order, OrderItem

logger = structlog.get_logger()


def build_order_message(order, items: List) -> str:
    """Staff-facing summary of a new order"""
    lines = []
    for item in items:
        label = item.product_name
        if item.flavor_name:
            label += f" - {item.flavor_name}"
        lines.append(f"{label} x{item.quantity} - ${item.subtotal}")

    message = "New order!\n"
    message += f"Order: {order.order_number}\n"
    message += f"Customer: {order.customer_name} ({order.customer_phone})\n"
    message += f"Store: {order.store_number}\n"
    if order.discount_amount:
        message += f"Subtotal: ${order.subtotal_amount}\n"
        message += f"Coupon: {order.coupon_code} (-${order.discount_amount})\n"
    message += f"Shipping: {'free' if order.shipping_fee == 0 else f'${order.shipping_fee}'}\n"
    message += f"Total: ${order.total_amount}\n"
    message += "Items:\n" + "\n".join(lines) + "\n"
    message += f"Verification code: {order.verification_code}"
    return message


async def deliver_order_notification(order_number: str, session_factory) -> bool:
    """Text every staff contact about an order; True if at least one send succeeded"""
    recipients = settings.staff_notify_numbers_list
    if not recipients:
        logger.info("No staff numbers configured, skipping notification", order_number=order_number)
        return False

    async with session_factory() as db:
        order = (
            await db.execute(select(Order).where(Order.order_number == order_number))
        ).scalar_one_or_none()
        if order is None:
            logger.warning("Order to notify not found", order_number=order_number)
            return False

        items = (
            await db.execute(select(OrderItem).where(OrderItem.order_id == order.id).order_by(OrderItem.position))
        ).scalars().all()

        message = build_order_message(order, items)
        client = TwilioClient(settings.twilio_account_sid, settings.twilio_auth_token)

        sent = 0
        for phone in recipients:
            try:
                client.messages.create(
                    body=message,
                    from_=settings.twilio_phone_number,
                    to=phone,
                )
                sent += 1
            except Exception as e:
                logger.error(
                    "Failed to notify staff",
                    order_number=order_number,
                    to=phone[-4:],
                    error=str(e),
                )

        if sent:
            order.notification_sent_at = utcnow()
            await db.commit()
            logger.info("Staff notified of new order", order_number=order_number, recipients=sent)

        return sent > 0


@celery_app.task(name="notify_order_created")
def notify_order_created(order_number: str):
    """Notify staff about a newly committed order"""
    logger.info("Notifying order created", order_number=order_number)
    
    async def _deliver():
        # asyncio.run gives each task a fresh loop, so it gets its own engine
        engine = build_engine(settings.database_url)
        try:
            return await deliver_order_notification(
                order_number,
                async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False),
            )
        finally:
            await engine.dispose()

    return asyncio.run(_deliver())


def enqueue_order_notification(order_number: str) -> Optional[str]:
    """Post-commit notifier used by the checkout endpoint"""
    if not settings.notifications_enabled:
        return None
    result = notify_order_created.delay(order_number)
    return result.id
