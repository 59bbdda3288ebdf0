"""Catalog models: products, their flavors (SKUs) and up-sell products"""

import uuid
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, Text, CheckConstraint, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from storefront.database import Base, utcnow


class Product(Base):
    """Catalog products"""
    __tablename__ = "products"
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    price = Column(Integer, nullable=False)  # whole currency units
    is_active = Column(Boolean, default=True)
    sort_order = Column(Integer, default=0)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    
    # Relationships
    flavors = relationship("Flavor", back_populates="product", cascade="all, delete-orphan")


class Flavor(Base):
    """Purchasable variant of a product with its own stock counter"""
    __tablename__ = "flavors"
    __table_args__ = (
        UniqueConstraint("product_id", "name", name="uq_flavors_product_name"),
        CheckConstraint("stock >= 0", name="ck_flavors_stock_non_negative"),
    )
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id"), nullable=False)
    name = Column(String(100), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    price = Column(Integer)  # overrides the product price when set
    is_active = Column(Boolean, default=True)
    sort_order = Column(Integer, default=0)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    
    # Relationships
    product = relationship("Product", back_populates="flavors")


class UpsellProduct(Base):
    """Add-on products offered at checkout; they have no flavors"""
    __tablename__ = "upsell_products"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_upsell_products_stock_non_negative"),
    )
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    price = Column(Integer, nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
