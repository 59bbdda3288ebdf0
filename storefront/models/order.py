"""Order models"""

import uuid
import enum
from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Boolean, Enum, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from storefront.database import Base, utcnow


class OrderStatus(str, enum.Enum):
    """Order lifecycle states"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Order(Base):
    """Customer orders, immutable apart from status and tracking fields"""
    __tablename__ = "orders"
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_number = Column(String(32), unique=True, nullable=False)
    
    # Customer information
    customer_name = Column(String(255), nullable=False)
    customer_phone = Column(String(20), nullable=False)
    
    # Fulfillment target, chosen before checkout
    store_number = Column(String(50), nullable=False)
    store_name = Column(String(255))
    
    # Pricing, frozen at creation
    subtotal_amount = Column(Integer, nullable=False, default=0)
    shipping_fee = Column(Integer, nullable=False, default=0)
    discount_amount = Column(Integer, nullable=False, default=0)
    total_amount = Column(Integer, nullable=False, default=0)
    
    # Coupon
    coupon_id = Column(UUID(as_uuid=True), ForeignKey("coupons.id"))
    coupon_code = Column(String(50))
    
    # Status
    status = Column(Enum(OrderStatus), nullable=False, default=OrderStatus.PENDING)
    verification_code = Column(String(16), nullable=False)
    is_verified = Column(Boolean, default=False)
    tracking_number = Column(String(100))
    
    # Staff notification
    notification_sent_at = Column(DateTime)
    
    # Metadata
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    
    # Relationships
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    coupon = relationship("Coupon")


class OrderItem(Base):
    """Order lines with frozen name and price"""
    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint(
            "(product_id IS NULL) <> (upsell_product_id IS NULL)",
            name="ck_order_items_single_source",
        ),
    )
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_id = Column(UUID(as_uuid=True), ForeignKey("orders.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)  # cart order
    
    # Either a catalog product + flavor, or an up-sell product
    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id"))
    flavor_name = Column(String(100))
    upsell_product_id = Column(UUID(as_uuid=True), ForeignKey("upsell_products.id"))
    is_upsell = Column(Boolean, nullable=False, default=False)
    
    product_name = Column(String(255), nullable=False)
    unit_price = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    subtotal = Column(Integer, nullable=False)
    
    created_at = Column(DateTime, default=utcnow)
    
    # Relationships
    order = relationship("Order", back_populates="items")
