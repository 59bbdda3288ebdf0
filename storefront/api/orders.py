"""Order API endpoints"""

from fastapi import APIRouter, Depends
import structlog

from storefront.api.deps import get_checkout_service, get_order_service
from storefront.schemas.order import (
    OrderCreate,
    OrderCreatedResponse,
    OrderDetailResponse,
    OrderLineResponse,
    OrderLookupRequest,
    OrderVerifyResponse,
)
from storefront.services import CartLine, CheckoutRequest, CheckoutService, OrderService
from storefront.services.orders import status_label

router = APIRouter()
logger = structlog.get_logger()


@router.post("", response_model=OrderCreatedResponse, status_code=201)
async def create_order(
    order_data: OrderCreate,
    service: CheckoutService = Depends(get_checkout_service),
):
    """Place an order: validate the cart, take stock, apply the coupon and persist"""
    logger.info(
        "Create order",
        customer=order_data.customer_phone[-4:],
        item_count=len(order_data.items),
        coupon=order_data.coupon_code,
    )
    
    placed = await service.place_order(
        CheckoutRequest(
            customer_name=order_data.customer_name,
            customer_phone=order_data.customer_phone,
            store_number=order_data.store_number,
            store_name=order_data.store_name,
            coupon_code=order_data.coupon_code,
            lines=[CartLine(**item.model_dump()) for item in order_data.items],
        )
    )
    
    return OrderCreatedResponse(
        order_id=placed.order_id,
        order_number=placed.order_number,
        verification_code=placed.verification_code,
        customer_name=placed.customer_name,
        store_number=placed.store_number,
        status=placed.status.value,
        subtotal_amount=placed.subtotal_amount,
        shipping_fee=placed.shipping_fee,
        discount_amount=placed.discount_amount,
        total_amount=placed.total_amount,
        coupon_code=placed.coupon_code,
        created_at=placed.created_at,
        items=[OrderLineResponse.model_validate(line) for line in placed.lines],
    )


@router.post("/verify", response_model=OrderVerifyResponse)
async def verify_order(
    request: OrderLookupRequest,
    service: OrderService = Depends(get_order_service),
):
    """Mark an order as verified by its customer"""
    order = await service.verify(request.order_number, request.verification_code)
    
    return OrderVerifyResponse(
        order_number=order.order_number,
        customer_name=order.customer_name,
        total_amount=order.total_amount,
    )


@router.post("/query", response_model=OrderDetailResponse)
async def query_order(
    request: OrderLookupRequest,
    service: OrderService = Depends(get_order_service),
):
    """Get order details and status"""
    order, items = await service.query(request.order_number, request.verification_code)
    status = order.status.value if order.status else None
    
    return OrderDetailResponse(
        order_number=order.order_number,
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        store_number=order.store_number,
        store_name=order.store_name,
        subtotal_amount=order.subtotal_amount,
        shipping_fee=order.shipping_fee,
        discount_amount=order.discount_amount,
        total_amount=order.total_amount,
        coupon_code=order.coupon_code,
        status=status or "unknown",
        status_text=status_label(status),
        is_verified=bool(order.is_verified),
        tracking_number=order.tracking_number,
        created_at=order.created_at,
        items=[OrderLineResponse.model_validate(item) for item in items],
    )
