"""Shared FastAPI dependencies"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config import settings
from storefront.database import get_db
from storefront.jobs.tasks import enqueue_order_notification
from storefront.services import CheckoutService, CouponLedger, OrderService, Store
from storefront.services.checkout import OrderNotifier


def get_store(db: AsyncSession = Depends(get_db)) -> Store:
    return Store(db)


def get_notifier() -> OrderNotifier:
    """Post-commit order notifier"""
    return enqueue_order_notification


def get_checkout_service(
    store: Store = Depends(get_store),
    notifier: OrderNotifier = Depends(get_notifier),
) -> CheckoutService:
    return CheckoutService(store, settings=settings, notifier=notifier)


def get_order_service(store: Store = Depends(get_store)) -> OrderService:
    return OrderService(store)


def get_coupon_ledger(store: Store = Depends(get_store)) -> CouponLedger:
    return CouponLedger(store)
