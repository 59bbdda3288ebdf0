"""Order placement and inventory consistency engine"""

from storefront.services.store import Store
from storefront.services.checkout import CheckoutService, CheckoutRequest, PlacedOrder
from storefront.services.orders import OrderService
from storefront.services.coupons import CouponLedger
from storefront.services.validator import CartLine

__all__ = [
    "Store",
    "CheckoutService",
    "CheckoutRequest",
    "PlacedOrder",
    "OrderService",
    "CouponLedger",
    "CartLine",
]
