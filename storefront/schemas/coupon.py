"""Coupon schemas"""

from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field


class CouponValidateRequest(BaseModel):
    """Coupon preview request"""
    code: str = Field(min_length=1)
    customer_phone: str = Field(min_length=1)
    subtotal: int = Field(ge=0)


class CouponSummary(BaseModel):
    id: UUID
    code: str
    name: str
    description: Optional[str]
    type: str
    value: int


class CouponValidateResponse(BaseModel):
    """What the coupon would do to an order of this subtotal"""
    coupon: CouponSummary
    discount_amount: int
    free_shipping: bool
    message: str
