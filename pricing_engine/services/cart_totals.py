"""
购物车汇总计价
串联起订量校验、阶梯价、抢购价和优惠券，得到最终应付金额。
结账、购物车展示、优惠券应用都走这里，保证三处金额一致。
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Mapping, Optional, Sequence

from pricing_engine.config.pricing_rules import quantize_money
from pricing_engine.core.exceptions import PricingException, reject
from pricing_engine.models.cart import (
    CartLineItem,
    CartLineView,
    CartTotals,
    FlashSaleApplied,
    LineItemRequest,
)
from pricing_engine.models.catalog import FlashSale, Variant
from pricing_engine.models.coupon import AppliedCouponResult, Coupon, TargetMatch
from pricing_engine.models.pricing import PaymentMethod, PricingErrorKind, PricingPolicy
from pricing_engine.services.coupon_eligibility import CouponEligibilityChecker
from pricing_engine.services.coupon_target_matcher import CouponTargetMatcher
from pricing_engine.services.discount_calculator import DiscountCalculator
from pricing_engine.services.flash_sale import FlashSaleOverride
from pricing_engine.services.moq_gate import MOQGate
from pricing_engine.services.slab_price_resolver import SlabPriceResolver

logger = logging.getLogger(__name__)


class CartTotalsAggregator:
    """购物车汇总计价器 - 纯计算，不做任何IO"""

    def __init__(
        self,
        policy: Optional[PricingPolicy] = None,
        moq_gate: Optional[MOQGate] = None,
        resolver: Optional[SlabPriceResolver] = None,
        flash_sales: Optional[FlashSaleOverride] = None,
        matcher: Optional[CouponTargetMatcher] = None,
        calculator: Optional[DiscountCalculator] = None
    ):
        self.policy = policy or PricingPolicy()
        self.moq_gate = moq_gate or MOQGate()
        self.resolver = resolver or SlabPriceResolver()
        self.flash_sales = flash_sales or FlashSaleOverride()
        self.matcher = matcher or CouponTargetMatcher()
        self.calculator = calculator or DiscountCalculator()
        self.checker = CouponEligibilityChecker(
            enforce_dates=self.policy.enforce_coupon_dates,
            currency_symbol=self.policy.currency_symbol
        )

    @staticmethod
    def merge_requests(requests: Sequence[LineItemRequest]) -> List[LineItemRequest]:
        """同一规格的多行合并数量，起订量和库存按合并后的数量校验"""
        quantities = {}
        for request in requests:
            quantities[request.variant_id] = quantities.get(request.variant_id, 0) + request.quantity
        return [
            LineItemRequest(variant_id=variant_id, quantity=quantity)
            for variant_id, quantity in quantities.items()
        ]

    def price_line_items(
        self,
        requests: Sequence[LineItemRequest],
        variants: Mapping[str, Variant],
        flash_sales: Optional[Mapping[str, FlashSale]] = None,
        now: Optional[datetime] = None
    ) -> List[CartLineItem]:
        """逐行计价：起订量 -> 阶梯价 -> 抢购价"""
        now = now or datetime.now(timezone.utc)
        flash_sales = flash_sales or {}
        items = []

        for request in self.merge_requests(requests):
            variant = variants.get(request.variant_id)
            if variant is None:
                raise reject(
                    PricingErrorKind.VARIANT_NOT_FOUND,
                    f"商品规格 {request.variant_id} 不存在或已下架"
                )

            quantity = self.moq_gate.clamp(variant, request.quantity)
            resolution = self.resolver.resolve(variant, quantity)
            flash_sale = flash_sales.get(variant.product_id)
            resolution = self.flash_sales.apply(resolution, flash_sale, now)

            flash_sale_applied = None
            if resolution.flash_sale_id is not None:
                flash_sale_applied = FlashSaleApplied(
                    flash_sale_id=flash_sale.flash_sale_id,
                    name=flash_sale.name,
                    discount_percentage=flash_sale.discount_percentage,
                    end_time=flash_sale.end_time,
                    original_price=resolution.price_before_flash_sale
                )

            items.append(CartLineItem(
                variant_id=variant.variant_id,
                product_id=variant.product_id,
                category_ids=variant.category_ids,
                brand_id=variant.brand_id,
                quantity=quantity,
                unit_price=resolution.price,
                original_price=resolution.original_price,
                price_source=resolution.source,
                applied_slab=resolution.matched_slab,
                flash_sale=flash_sale_applied
            ))

        return items

    def apply_coupon(
        self,
        coupon: Coupon,
        line_items: Sequence[CartLineItem],
        now: Optional[datetime] = None,
        cart_total: Optional[Decimal] = None
    ) -> AppliedCouponResult:
        """
        对已计价的购物车行应用优惠券
        cart_total 为空时优惠后金额按整车小计计算
        """
        if not line_items:
            raise reject(PricingErrorKind.EMPTY_CART)

        # 先匹配定向：最低消费按适用小计判断，而不是整车小计
        match = self.matcher.match(coupon, line_items)
        if cart_total is None:
            cart_total = match.full_cart_subtotal
        return self.discount_for_match(coupon, match, cart_total, now)

    def discount_for_match(
        self,
        coupon: Coupon,
        match: TargetMatch,
        cart_total: Decimal,
        now: Optional[datetime] = None
    ) -> AppliedCouponResult:
        """校验可用性并计算折扣，cart_total 用于计算优惠后金额"""
        eligibility = self.checker.check(coupon, match.matched_subtotal, now)
        if not eligibility.is_valid:
            logger.info(f"优惠券 {coupon.code} 不可用: {eligibility.rejection.kind.value}")
            raise PricingException.from_rejection(eligibility.rejection)

        discount = self.calculator.compute(coupon, match.matched_subtotal)
        return AppliedCouponResult(
            coupon_id=coupon.coupon_id,
            code=coupon.code,
            discount_type=coupon.discount_type,
            discount_value=coupon.discount_value,
            discount_amount=discount,
            applicable_subtotal=quantize_money(match.matched_subtotal),
            matched_item_count=match.matched_count,
            final_amount=quantize_money(cart_total - discount)
        )

    def price_cart(
        self,
        requests: Sequence[LineItemRequest],
        variants: Mapping[str, Variant],
        coupon: Optional[Coupon] = None,
        flash_sales: Optional[Mapping[str, FlashSale]] = None,
        payment_method: PaymentMethod = PaymentMethod.PREPAID,
        now: Optional[datetime] = None
    ) -> CartTotals:
        """
        购物车汇总

        total = 小计 - 优惠券折扣 + 运费 + 附加费，非空购物车不低于最低应付金额
        """
        now = now or datetime.now(timezone.utc)
        items = self.price_line_items(requests, variants, flash_sales, now)
        subtotal = sum((item.line_subtotal for item in items), Decimal("0"))

        coupon_result = None
        discount = Decimal("0.00")
        if coupon is not None:
            coupon_result = self.apply_coupon(coupon, items, now)
            discount = coupon_result.discount_amount

        if not items:
            return CartTotals(
                items=[],
                subtotal=Decimal("0.00"),
                total=Decimal("0.00")
            )

        shipping = self.policy.shipping_for(subtotal)
        surcharge = self.policy.surcharge_for(payment_method)
        total = max(subtotal - discount + shipping + surcharge, self.policy.minimum_charge)

        return CartTotals(
            items=[self._view(item) for item in items],
            subtotal=quantize_money(subtotal),
            discount=quantize_money(discount),
            shipping_cost=quantize_money(shipping),
            surcharge=quantize_money(surcharge),
            total=quantize_money(total),
            coupon=coupon_result
        )

    @staticmethod
    def _view(item: CartLineItem) -> CartLineView:
        return CartLineView(
            variant_id=item.variant_id,
            product_id=item.product_id,
            quantity=item.quantity,
            unit_price=item.unit_price,
            original_price=item.original_price,
            line_subtotal=quantize_money(item.line_subtotal),
            price_source=item.price_source,
            applied_slab=item.applied_slab,
            flash_sale=item.flash_sale
        )

