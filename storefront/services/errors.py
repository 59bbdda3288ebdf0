"""Checkout error taxonomy"""

from typing import Any, List


class StorefrontError(Exception):
    """Base exception for storefront operations."""

    code = "STOREFRONT_ERROR"
    status_code = 400
    retryable = False

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context


# Invalid input


class InvalidInputError(StorefrontError):
    """Malformed request content."""

    code = "INVALID_INPUT"


class EmptyCartError(InvalidInputError):
    code = "EMPTY_CART"

    def __init__(self):
        super().__init__("The cart is empty")


class InvalidLineFormatError(InvalidInputError):
    code = "INVALID_LINE_FORMAT"

    def __init__(self, line_index: int, reason: str):
        super().__init__(
            f"Cart line {line_index + 1} is malformed: {reason}",
            line_index=line_index,
        )


class InvalidQuantityError(InvalidInputError):
    code = "INVALID_QUANTITY"

    def __init__(self, line_index: int, quantity: Any):
        super().__init__(
            f"Cart line {line_index + 1} has an invalid quantity: {quantity!r}",
            line_index=line_index,
            quantity=quantity,
        )


# Not found


class NotFoundError(StorefrontError):
    code = "NOT_FOUND"
    status_code = 404


class ProductNotFoundError(NotFoundError):
    code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: Any, upsell: bool = False):
        kind = "Up-sell product" if upsell else "Product"
        super().__init__(
            f"{kind} {product_id} does not exist or is no longer available",
            product_id=str(product_id),
            upsell=upsell,
        )


class FlavorNotFoundError(NotFoundError):
    """Requested flavor is missing or inactive; lists what is on sale instead."""

    code = "FLAVOR_NOT_FOUND"

    def __init__(self, product_id: Any, flavor: str, available: List[str]):
        listing = ", ".join(available) if available else "none"
        super().__init__(
            f'Flavor "{flavor}" does not exist or is no longer available. Available flavors: {listing}',
            product_id=str(product_id),
            flavor=flavor,
            available=available,
        )


class OrderNotFoundError(NotFoundError):
    code = "ORDER_NOT_FOUND"

    def __init__(self, order_number: str):
        super().__init__(
            "Order number or verification code is incorrect",
            order_number=order_number,
        )


# Stock


class InsufficientStockError(StorefrontError):
    code = "INSUFFICIENT_STOCK"
    status_code = 409

    def __init__(self, item_name: str, requested: int, available: int):
        super().__init__(
            f'"{item_name}" is out of stock: {available} left, {requested} requested',
            item_name=item_name,
            requested=requested,
            available=available,
        )


class StockCorruptionError(StorefrontError):
    code = "STOCK_CORRUPTION"
    status_code = 500

    def __init__(self, item_name: str, stock: int):
        super().__init__(
            f'Stock for "{item_name}" went negative ({stock}); please refresh and try again',
            item_name=item_name,
            stock=stock,
        )


# Coupons


class CouponRejectedError(StorefrontError):
    code = "COUPON_REJECTED"


class CouponNotFoundError(CouponRejectedError):
    code = "COUPON_NOT_FOUND"
    status_code = 404

    def __init__(self, code: str):
        super().__init__("Coupon does not exist or is no longer active", coupon_code=code)


class CouponExpiredError(CouponRejectedError):
    code = "COUPON_EXPIRED"

    def __init__(self, code: str):
        super().__init__("Coupon is not valid at this time", coupon_code=code)


class MinimumNotMetError(CouponRejectedError):
    code = "MINIMUM_NOT_MET"

    def __init__(self, code: str, min_order_amount: int, subtotal: int):
        super().__init__(
            f"Orders must reach {min_order_amount} to use this coupon",
            coupon_code=code,
            min_order_amount=min_order_amount,
            subtotal=subtotal,
        )


class UsageLimitReachedError(CouponRejectedError):
    code = "USAGE_LIMIT_REACHED"

    def __init__(self, code: str):
        super().__init__("Coupon has reached its usage limit", coupon_code=code)


class PerUserLimitReachedError(CouponRejectedError):
    code = "PER_USER_LIMIT_REACHED"

    def __init__(self, code: str, per_user_limit: int):
        super().__init__(
            f"This coupon can be used {per_user_limit} time(s) per customer",
            coupon_code=code,
            per_user_limit=per_user_limit,
        )


# Transaction / persistence


class TransactionConflictError(StorefrontError):
    code = "TRANSACTION_CONFLICT"
    status_code = 409
    retryable = True

    def __init__(self, message: str = "The order conflicted with a concurrent checkout, please retry"):
        super().__init__(message)


class PersistenceError(StorefrontError):
    code = "PERSISTENCE_FAILURE"
    status_code = 500

    def __init__(self, message: str = "The order could not be saved", **context: Any):
        super().__init__(message, **context)


class CheckoutTimeoutError(StorefrontError):
    code = "CHECKOUT_TIMEOUT"
    status_code = 503
    retryable = True

    def __init__(self, timeout: float):
        super().__init__(
            f"Checkout did not finish within {timeout:g} seconds and was rolled back",
            timeout=timeout,
        )
