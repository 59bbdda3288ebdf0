"""Coupon models"""

import uuid
import enum
from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Boolean, Enum, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from storefront.database import Base, utcnow


class CouponType(str, enum.Enum):
    """How a coupon affects the order price"""
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"
    FREE_SHIPPING = "free_shipping"


class Coupon(Base):
    """Discount coupons"""
    __tablename__ = "coupons"
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    code = Column(String(50), unique=True, nullable=False)  # stored upper-case
    name = Column(String(255), nullable=False)
    description = Column(Text)
    
    type = Column(Enum(CouponType), nullable=False)
    value = Column(Integer, nullable=False, default=0)  # percent or fixed amount
    min_order_amount = Column(Integer, nullable=False, default=0)
    max_discount = Column(Integer)  # cap for percentage coupons
    
    # Limits; NULL means unlimited
    usage_limit = Column(Integer)
    per_user_limit = Column(Integer, default=1)
    used_count = Column(Integer, nullable=False, default=0)
    
    valid_from = Column(DateTime, nullable=False)
    valid_until = Column(DateTime, nullable=False)
    is_active = Column(Boolean, default=True)
    
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    
    # Relationships
    usages = relationship("CouponUsage", back_populates="coupon")


class CouponUsage(Base):
    """Ledger of coupon redemptions, one row per order"""
    __tablename__ = "coupon_usages"
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    coupon_id = Column(UUID(as_uuid=True), ForeignKey("coupons.id"), nullable=False)
    order_id = Column(UUID(as_uuid=True), ForeignKey("orders.id"), nullable=False)
    customer_phone = Column(String(20), nullable=False)
    discount_amount = Column(Integer, nullable=False, default=0)
    used_at = Column(DateTime, default=utcnow)
    
    # Relationships
    coupon = relationship("Coupon", back_populates="usages")
