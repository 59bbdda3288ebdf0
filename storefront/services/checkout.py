"""
Checkout coordinator.

Validation, stock decrements, coupon redemption and the order insert share
one database transaction. Any failure rolls all of it back before the error
reaches the caller; nothing outside the transaction can observe stock taken
for an order that was never written.
"""

import asyncio
import enum
import inspect
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List, Optional
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError

from storefront.config import Settings, settings as default_settings
from storefront.models.order import Order, OrderItem, OrderStatus
from storefront.services.coupons import AppliedCoupon, CouponLedger
from storefront.services.errors import CheckoutTimeoutError
from storefront.services.order_number import OrderNumberGenerator, generate_verification_code
from storefront.services.stock import StockLedger
from storefront.services.store import Store
from storefront.services.validator import CartLine, OrderValidator, PricedLine

logger = structlog.get_logger()

OrderNotifier = Callable[[str], Any]


class CheckoutStage(str, enum.Enum):
    BEGIN = "begin"
    VALIDATING = "validating"
    RESERVING = "reserving"
    DISCOUNTING = "discounting"
    PERSISTING = "persisting"
    COMMITTED = "committed"
    ROLLING_BACK = "rolling_back"
    ABORTED = "aborted"


@dataclass
class CheckoutRequest:
    customer_name: str
    customer_phone: str
    store_number: str
    lines: List[CartLine]
    coupon_code: Optional[str] = None
    store_name: Optional[str] = None


@dataclass
class PlacedOrder:
    order_id: UUID
    order_number: str
    verification_code: str
    customer_name: str
    customer_phone: str
    store_number: str
    status: OrderStatus
    subtotal_amount: int
    shipping_fee: int
    discount_amount: int
    total_amount: int
    created_at: datetime
    coupon_code: Optional[str] = None
    lines: List[PricedLine] = field(default_factory=list)


def compute_shipping(
    subtotal: int,
    discount: int,
    free_shipping: bool,
    shipping_fee: int,
    free_shipping_threshold: int,
) -> int:
    """Shipping is waived by a free-shipping coupon or a large enough order"""
    if free_shipping:
        return 0
    return 0 if subtotal - discount >= free_shipping_threshold else shipping_fee


def _lock_order(line: PricedLine):
    """Rows are always locked flavors first, then up-sells, each by id"""
    if line.is_upsell:
        return (1, str(line.upsell_product_id), "")
    return (0, str(line.product_id), line.flavor_name)


class CheckoutService:
    """Places orders atomically"""

    def __init__(
        self,
        store: Store,
        settings: Optional[Settings] = None,
        notifier: Optional[OrderNotifier] = None,
    ):
        self.store = store
        self.settings = settings or default_settings
        self.notifier = notifier
        self.validator = OrderValidator(store, default_flavor_name=self.settings.default_flavor_name)
        self.stock = StockLedger(store)
        self.order_numbers = OrderNumberGenerator(
            store,
            prefix=self.settings.order_number_prefix,
            max_attempts=self.settings.order_number_max_attempts,
        )
        self.coupons = CouponLedger(store)

    async def place_order(self, request: CheckoutRequest) -> PlacedOrder:
        """
        Place an order or raise a StorefrontError.

        A checkout that overruns the timeout is cancelled; the cancellation
        unwinds through the transaction scope, which rolls everything back.
        """
        timeout = self.settings.checkout_timeout_seconds
        try:
            placed = await asyncio.wait_for(self._place_order(request), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Checkout timed out", timeout=timeout)
            raise CheckoutTimeoutError(timeout)

        await self._notify(placed)
        return placed

    async def _place_order(self, request: CheckoutRequest) -> PlacedOrder:
        log = logger.bind(customer=request.customer_phone[-4:], line_count=len(request.lines))
        stage = CheckoutStage.BEGIN
        log.debug("Checkout stage", stage=stage.value)

        try:
            async with self.store.transaction():
                stage = CheckoutStage.VALIDATING
                log.debug("Checkout stage", stage=stage.value)
                lines = await self.validator.validate(request.lines)

                stage = CheckoutStage.RESERVING
                log.debug("Checkout stage", stage=stage.value)
                for line in sorted(lines, key=_lock_order):
                    await self.stock.reserve(line)

                order_number = await self.order_numbers.generate()
                subtotal = sum(line.subtotal for line in lines)

                stage = CheckoutStage.DISCOUNTING
                log.debug("Checkout stage", stage=stage.value, order_number=order_number)
                applied = None
                if request.coupon_code and request.coupon_code.strip():
                    applied = await self.coupons.apply(request.coupon_code, request.customer_phone, subtotal)

                discount = applied.discount_amount if applied else 0
                shipping = compute_shipping(
                    subtotal,
                    discount,
                    applied.free_shipping if applied else False,
                    self.settings.shipping_fee,
                    self.settings.free_shipping_threshold,
                )
                total = max(0, subtotal + shipping - discount)

                stage = CheckoutStage.PERSISTING
                log.debug("Checkout stage", stage=stage.value, order_number=order_number)
                order = await self._insert_order(
                    order_number,
                    request,
                    applied,
                    subtotal_amount=subtotal,
                    shipping_fee=shipping,
                    discount_amount=discount,
                    total_amount=total,
                )
                for position, line in enumerate(lines):
                    self.store.add(
                        OrderItem(
                            order_id=order.id,
                            position=position,
                            product_id=line.product_id,
                            flavor_name=line.flavor_name,
                            upsell_product_id=line.upsell_product_id,
                            is_upsell=line.is_upsell,
                            product_name=line.product_name,
                            unit_price=line.unit_price,
                            quantity=line.quantity,
                            subtotal=line.subtotal,
                        )
                    )
                if applied:
                    await self.coupons.record_usage(
                        applied.coupon_id, order.id, request.customer_phone, discount
                    )
                await self.store.flush()
        except (Exception, asyncio.CancelledError) as exc:
            log.debug("Checkout stage", stage=CheckoutStage.ROLLING_BACK.value, failed_at=stage.value)
            log.info(
                "Checkout aborted",
                stage=CheckoutStage.ABORTED.value,
                failed_at=stage.value,
                error=getattr(exc, "code", type(exc).__name__),
            )
            raise

        log.info(
            "Order placed",
            stage=CheckoutStage.COMMITTED.value,
            order_number=order.order_number,
            total=order.total_amount,
            coupon=order.coupon_code,
        )

        return PlacedOrder(
            order_id=order.id,
            order_number=order.order_number,
            verification_code=order.verification_code,
            customer_name=order.customer_name,
            customer_phone=order.customer_phone,
            store_number=order.store_number,
            status=order.status,
            subtotal_amount=order.subtotal_amount,
            shipping_fee=order.shipping_fee,
            discount_amount=order.discount_amount,
            total_amount=order.total_amount,
            created_at=order.created_at,
            coupon_code=order.coupon_code,
            lines=lines,
        )

    async def _insert_order(
        self,
        order_number: str,
        request: CheckoutRequest,
        applied: Optional[AppliedCoupon],
        **amounts: int,
    ) -> Order:
        """Insert the order row, regenerating the number once on a unique violation"""
        for attempt in (1, 2):
            order = Order(
                order_number=order_number,
                customer_name=request.customer_name,
                customer_phone=request.customer_phone,
                store_number=request.store_number,
                store_name=request.store_name,
                status=OrderStatus.PENDING,
                verification_code=generate_verification_code(),
                coupon_id=applied.coupon_id if applied else None,
                coupon_code=applied.code if applied else None,
                **amounts,
            )
            try:
                async with self.store.savepoint():
                    self.store.add(order)
                    await self.store.flush()
                return order
            except IntegrityError as exc:
                if attempt == 2 or "order_number" not in str(exc.orig):
                    raise
                logger.warning("Order number taken at insert, regenerating", order_number=order_number)
                order_number = await self.order_numbers.generate()

    async def _notify(self, placed: PlacedOrder) -> None:
        """
        Post-commit hook; a failing notifier never affects the order.

        Plain callables (the Celery enqueue talks to the broker) run in a worker
        thread so they cannot stall other checkouts on this event loop.
        """
        if self.notifier is None:
            return
        try:
            if inspect.iscoroutinefunction(self.notifier):
                await self.notifier(placed.order_number)
            else:
                result = await asyncio.to_thread(self.notifier, placed.order_number)
                if inspect.isawaitable(result):
                    await result
        except Exception as e:
            logger.error("Failed to notify order created", order_number=placed.order_number, error=str(e))
