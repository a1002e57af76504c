"""
折扣金额计算测试
"""

import pytest
from decimal import Decimal

from pricing_engine.models.coupon import DiscountType
from pricing_engine.services.discount_calculator import DiscountCalculator


class TestDiscountCalculator:
    """DiscountCalculator测试类"""

    @pytest.fixture
    def calculator(self):
        return DiscountCalculator()

    def test_percentage(self, calculator, coupon_factory):
        coupon = coupon_factory(discount_type=DiscountType.PERCENTAGE, discount_value=Decimal("10"))
        assert calculator.compute(coupon, Decimal("1000")) == Decimal("100.00")

    def test_percentage_capped_at_90(self, calculator, coupon_factory):
        coupon = coupon_factory(discount_type=DiscountType.PERCENTAGE, discount_value=Decimal("120"))
        assert calculator.compute(coupon, Decimal("1000")) == Decimal("900.00")

    def test_fixed_amount(self, calculator, coupon_factory):
        coupon = coupon_factory(discount_type=DiscountType.FIXED_AMOUNT, discount_value=Decimal("150"))
        assert calculator.compute(coupon, Decimal("1000")) == Decimal("150.00")

    def test_fixed_amount_capped_at_90_percent_of_subtotal(self, calculator, coupon_factory):
        coupon = coupon_factory(discount_type=DiscountType.FIXED_AMOUNT, discount_value=Decimal("5000"))
        assert calculator.compute(coupon, Decimal("1000")) == Decimal("900.00")

    def test_zero_subtotal(self, calculator, coupon_factory):
        coupon = coupon_factory(discount_type=DiscountType.FIXED_AMOUNT, discount_value=Decimal("50"))
        assert calculator.compute(coupon, Decimal("0")) == Decimal("0.00")

    def test_rounds_half_up(self, calculator, coupon_factory):
        coupon = coupon_factory(discount_type=DiscountType.PERCENTAGE, discount_value=Decimal("15"))
        # 33.30 * 15% = 4.995
        assert calculator.compute(coupon, Decimal("33.30")) == Decimal("5.00")

    @pytest.mark.parametrize("value,subtotal", [
        (Decimal("90"), Decimal("0.01")),
        (Decimal("100"), Decimal("12345.67")),
        (Decimal("1"), Decimal("3")),
    ])
    def test_discount_never_exceeds_cap(self, calculator, coupon_factory, value, subtotal):
        coupon = coupon_factory(discount_type=DiscountType.PERCENTAGE, discount_value=value)
        discount = calculator.compute(coupon, subtotal)
        assert Decimal("0") <= discount <= (subtotal * Decimal("0.9")).quantize(Decimal("0.01"))
