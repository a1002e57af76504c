from fastapi import APIRouter, Depends, Query
import logging

from pricing_engine.api.dependencies import get_current_user_id, get_price_calculator_service
from pricing_engine.models.cart import CartPriceRequest, CartTotals, VariantPriceQuote
from pricing_engine.services.price_calculator_service import PriceCalculatorService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["计价"])


@router.post("/cart/price", response_model=CartTotals)
async def price_cart(
    request: CartPriceRequest,
    price_calculator: PriceCalculatorService = Depends(get_price_calculator_service)
):
    """结账前计价，含优惠券、运费和手续费"""
    return await price_calculator.price_cart(
        request.items,
        coupon_code=request.coupon_code,
        payment_method=request.payment_method
    )


@router.get("/cart", response_model=CartTotals)
async def get_cart(
    user_id: str = Depends(get_current_user_id),
    price_calculator: PriceCalculatorService = Depends(get_price_calculator_service)
):
    """当前用户购物车计价，不含优惠券"""
    return await price_calculator.price_user_cart(user_id)


@router.get("/products/variants/{variant_id}/price", response_model=VariantPriceQuote)
async def preview_variant_price(
    variant_id: str,
    quantity: int = Query(1, ge=1, description="购买数量"),
    price_calculator: PriceCalculatorService = Depends(get_price_calculator_service)
):
    """商品详情页单价预览"""
    return await price_calculator.preview_variant_price(variant_id, quantity)
