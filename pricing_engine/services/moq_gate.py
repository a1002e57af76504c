"""
起订量(MOQ)校验
"""

import logging
from typing import Iterable, Optional

from pricing_engine.core.exceptions import reject
from pricing_engine.models.catalog import MOQConfig, MOQScope, MOQSetting, Variant
from pricing_engine.models.pricing import PricingErrorKind, PricingRejection

logger = logging.getLogger(__name__)


def resolve_moq(
    settings: Iterable[MOQSetting],
    variant_id: str,
    product_id: str
) -> Optional[MOQConfig]:
    """
    选出规格最终生效的起订量配置
    优先级：规格级 > 商品级 > 全局，只看启用的配置
    """
    by_scope = {}
    for setting in settings:
        if not setting.is_active:
            continue
        if setting.scope == MOQScope.VARIANT and setting.variant_id == variant_id:
            by_scope.setdefault(MOQScope.VARIANT, setting)
        elif setting.scope == MOQScope.PRODUCT and setting.product_id == product_id:
            by_scope.setdefault(MOQScope.PRODUCT, setting)
        elif setting.scope == MOQScope.GLOBAL:
            by_scope.setdefault(MOQScope.GLOBAL, setting)

    for scope in (MOQScope.VARIANT, MOQScope.PRODUCT, MOQScope.GLOBAL):
        if scope in by_scope:
            return MOQConfig(is_active=True, min_quantity=by_scope[scope].min_quantity)
    return None


class MOQGate:
    """起订量与库存校验"""

    def effective_minimum(self, variant: Variant) -> int:
        if variant.moq is not None and variant.moq.is_active:
            return variant.moq.min_quantity
        return 1

    def check(self, variant: Variant, quantity: int) -> Optional[PricingRejection]:
        """返回拒绝原因，合法时返回None。库存为0视为不限量"""
        minimum = self.effective_minimum(variant)
        if quantity < minimum:
            return PricingRejection(
                kind=PricingErrorKind.INVALID_QUANTITY,
                message=f"最小起订量为 {minimum} 件"
            )
        if variant.stock > 0 and quantity > variant.stock:
            return PricingRejection(
                kind=PricingErrorKind.INVALID_QUANTITY,
                message=f"库存不足，当前最多可购买 {variant.stock} 件"
            )
        return None

    def is_valid(self, variant: Variant, quantity: int) -> bool:
        return self.check(variant, quantity) is None

    def clamp(self, variant: Variant, requested_quantity: int) -> int:
        """
        返回实际计价数量
        合法数量原样返回，不会自动抬高到起订量；不合法时抛出 INVALID_QUANTITY
        """
        rejection = self.check(variant, requested_quantity)
        if rejection is not None:
            logger.info(f"规格 {variant.variant_id} 数量 {requested_quantity} 被拒绝: {rejection.message}")
            raise reject(rejection.kind, rejection.message)
        return requested_quantity


moq_gate = MOQGate()
