"""Pydantic schemas for request/response validation"""

from storefront.schemas.order import (
    CartLineCreate,
    OrderCreate,
    OrderLineResponse,
    OrderCreatedResponse,
    OrderLookupRequest,
    OrderVerifyResponse,
    OrderDetailResponse,
)
from storefront.schemas.coupon import (
    CouponValidateRequest,
    CouponSummary,
    CouponValidateResponse,
)

__all__ = [
    "CartLineCreate",
    "OrderCreate",
    "OrderLineResponse",
    "OrderCreatedResponse",
    "OrderLookupRequest",
    "OrderVerifyResponse",
    "OrderDetailResponse",
    "CouponValidateRequest",
    "CouponSummary",
    "CouponValidateResponse",
]
