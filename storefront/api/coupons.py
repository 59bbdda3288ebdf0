"""Coupon API endpoints"""

from fastapi import APIRouter, Depends
import structlog

from storefront.api.deps import get_coupon_ledger
from storefront.schemas.coupon import CouponSummary, CouponValidateRequest, CouponValidateResponse
from storefront.services import CouponLedger

router = APIRouter()
logger = structlog.get_logger()


@router.post("/validate", response_model=CouponValidateResponse)
async def validate_coupon(
    request: CouponValidateRequest,
    ledger: CouponLedger = Depends(get_coupon_ledger),
):
    """Preview a coupon against a cart subtotal; nothing is recorded"""
    logger.info("Validate coupon", code=request.code, subtotal=request.subtotal)
    
    applied = await ledger.preview(request.code, request.customer_phone, request.subtotal)
    
    return CouponValidateResponse(
        coupon=CouponSummary(
            id=applied.coupon_id,
            code=applied.code,
            name=applied.name,
            description=applied.description,
            type=applied.type.value,
            value=applied.value,
        ),
        discount_amount=applied.discount_amount,
        free_shipping=applied.free_shipping,
        message=f"Coupon {applied.name} applied",
    )
