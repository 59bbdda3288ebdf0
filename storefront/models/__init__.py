"""Database models"""

from storefront.models.catalog import Product, Flavor, UpsellProduct
from storefront.models.order import Order, OrderItem, OrderStatus
from storefront.models.coupon import Coupon, CouponUsage, CouponType

__all__ = [
    "Product",
    "Flavor",
    "UpsellProduct",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Coupon",
    "CouponUsage",
    "CouponType",
]
