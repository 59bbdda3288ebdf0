"""
Coupon ledger.

Checks run in a fixed order and the first failure wins:
lookup, validity window, minimum order, global limit, per-customer limit.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Optional
from uuid import UUID

import structlog
from sqlalchemy import func, or_, select, update

from storefront.database import utcnow
from storefront.models.coupon import Coupon, CouponType, CouponUsage
from storefront.services.errors import (
    CouponExpiredError,
    CouponNotFoundError,
    MinimumNotMetError,
    PerUserLimitReachedError,
    UsageLimitReachedError,
)
from storefront.services.store import Store

logger = structlog.get_logger()


@dataclass
class Discount:
    amount: int
    free_shipping: bool = False


def _percentage_discount(coupon: Coupon, subtotal: int) -> Discount:
    amount = int(
        (Decimal(subtotal) * Decimal(coupon.value) / 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    )
    if coupon.max_discount:
        amount = min(amount, coupon.max_discount)
    return Discount(min(amount, subtotal))


def _fixed_amount_discount(coupon: Coupon, subtotal: int) -> Discount:
    return Discount(min(coupon.value, subtotal))


def _free_shipping_discount(coupon: Coupon, subtotal: int) -> Discount:
    # shipping is waived by the caller, nothing comes off the goods
    return Discount(0, free_shipping=True)


DISCOUNT_RULES = {
    CouponType.PERCENTAGE: _percentage_discount,
    CouponType.FIXED_AMOUNT: _fixed_amount_discount,
    CouponType.FREE_SHIPPING: _free_shipping_discount,
}


def compute_discount(coupon: Coupon, subtotal: int) -> Discount:
    return DISCOUNT_RULES[CouponType(coupon.type)](coupon, subtotal)


def normalize_code(code: str) -> str:
    return code.strip().upper()


@dataclass
class AppliedCoupon:
    """A coupon that passed every check, with its effect on this order"""
    coupon_id: UUID
    code: str
    name: str
    description: Optional[str]
    type: CouponType
    value: int
    discount_amount: int
    free_shipping: bool


class CouponLedger:
    """Coupon validation and usage recording"""

    def __init__(self, store: Store, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    async def preview(self, code: str, customer_phone: str, subtotal: int) -> AppliedCoupon:
        """Run every check without claiming a use; nothing is written"""
        coupon = await self._check_terms(code, subtotal)

        if coupon.usage_limit and coupon.used_count >= coupon.usage_limit:
            raise UsageLimitReachedError(coupon.code)
        await self._check_per_user_limit(coupon, customer_phone)

        return self._applied(coupon, subtotal)

    async def apply(self, code: str, customer_phone: str, subtotal: int) -> AppliedCoupon:
        """
        Validate a coupon for this order and claim one use of it.

        The used_count increment is a conditional UPDATE: it enforces the
        global limit and holds the coupon row lock for the rest of the
        transaction, so the per-customer count below cannot race another
        checkout redeeming the same coupon.
        """
        coupon = await self._check_terms(code, subtotal)

        result = await self.store.run(
            update(Coupon)
            .where(
                Coupon.id == coupon.id,
                or_(
                    Coupon.usage_limit.is_(None),
                    Coupon.usage_limit == 0,
                    Coupon.used_count < Coupon.usage_limit,
                ),
            )
            .values(used_count=Coupon.used_count + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise UsageLimitReachedError(coupon.code)

        await self._check_per_user_limit(coupon, customer_phone)

        applied = self._applied(coupon, subtotal)
        logger.info(
            "Coupon applied",
            coupon=applied.code,
            discount=applied.discount_amount,
            free_shipping=applied.free_shipping,
        )
        return applied

    async def record_usage(
        self,
        coupon_id: UUID,
        order_id: UUID,
        customer_phone: str,
        discount_amount: int,
    ) -> CouponUsage:
        """Insert the usage row; must share the transaction of the order insert"""
        usage = CouponUsage(
            coupon_id=coupon_id,
            order_id=order_id,
            customer_phone=customer_phone,
            discount_amount=discount_amount,
        )
        self.store.add(usage)
        await self.store.flush()
        return usage

    async def _check_terms(self, code: str, subtotal: int) -> Coupon:
        normalized = normalize_code(code)
        coupon = await self.store.get(
            select(Coupon)
            .where(Coupon.code == normalized, Coupon.is_active == True)
            .execution_options(populate_existing=True)
        )
        if coupon is None:
            raise CouponNotFoundError(normalized)

        now = self.clock()
        if now < coupon.valid_from or now > coupon.valid_until:
            raise CouponExpiredError(coupon.code)

        if subtotal < coupon.min_order_amount:
            raise MinimumNotMetError(coupon.code, coupon.min_order_amount, subtotal)

        return coupon

    async def _check_per_user_limit(self, coupon: Coupon, customer_phone: str) -> None:
        if not coupon.per_user_limit:
            return

        used = await self.store.scalar(
            select(func.count(CouponUsage.id)).where(
                CouponUsage.coupon_id == coupon.id,
                CouponUsage.customer_phone == customer_phone,
            )
        )
        if used >= coupon.per_user_limit:
            raise PerUserLimitReachedError(coupon.code, coupon.per_user_limit)

    def _applied(self, coupon: Coupon, subtotal: int) -> AppliedCoupon:
        discount = compute_discount(coupon, subtotal)
        return AppliedCoupon(
            coupon_id=coupon.id,
            code=coupon.code,
            name=coupon.name,
            description=coupon.description,
            type=CouponType(coupon.type),
            value=coupon.value,
            discount_amount=discount.amount,
            free_shipping=discount.free_shipping,
        )
