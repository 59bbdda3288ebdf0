"""Order schemas"""

from datetime import datetime
from typing import Any, Optional, List
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field


class CartLineCreate(BaseModel):
    """One cart line: a product flavor or an up-sell product"""
    product_id: Optional[UUID] = None
    flavor: Optional[str] = None
    upsell_product_id: Optional[UUID] = None
    is_upsell: bool = False
    quantity: Any = None  # checked by the order validator, not coerced here


class OrderCreate(BaseModel):
    """Create order request"""
    customer_name: str = Field(min_length=1, max_length=255)
    customer_phone: str = Field(min_length=1, max_length=20)
    store_number: str = Field(min_length=1, max_length=50)
    store_name: Optional[str] = None
    items: List[CartLineCreate]
    coupon_code: Optional[str] = None


class OrderLineResponse(BaseModel):
    """Order line in response"""
    model_config = ConfigDict(from_attributes=True)
    
    product_id: Optional[UUID] = None
    flavor_name: Optional[str] = None
    upsell_product_id: Optional[UUID] = None
    is_upsell: bool
    product_name: str
    unit_price: int
    quantity: int
    subtotal: int


class OrderCreatedResponse(BaseModel):
    """Placed order"""
    order_id: UUID
    order_number: str
    verification_code: str
    customer_name: str
    store_number: str
    status: str
    subtotal_amount: int
    shipping_fee: int
    discount_amount: int
    total_amount: int
    coupon_code: Optional[str]
    created_at: datetime
    items: List[OrderLineResponse]


class OrderLookupRequest(BaseModel):
    """Order number plus its verification code"""
    order_number: str = Field(min_length=1)
    verification_code: str = Field(min_length=1)


class OrderVerifyResponse(BaseModel):
    order_number: str
    customer_name: str
    total_amount: int


class OrderDetailResponse(BaseModel):
    """Full order as seen by the customer"""
    order_number: str
    customer_name: str
    customer_phone: str
    store_number: str
    store_name: Optional[str]
    subtotal_amount: int
    shipping_fee: int
    discount_amount: int
    total_amount: int
    coupon_code: Optional[str]
    status: str
    status_text: str
    is_verified: bool
    tracking_number: Optional[str]
    created_at: datetime
    items: List[OrderLineResponse]
