"""
服务行建议

根据包装类型选择计价单位并匹配阶梯：
- pallets -> pallet（按重量）
- boxes -> kg
未命中且有体积时，回退到 m3 阶梯按体积匹配。

服务行的单位与数量由命中的阶梯决定：pallet 阶梯按件数计（палл），
kg 与 m3 阶梯按整单计一次（усл，数量 1）。
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Sequence

from pydantic import BaseModel, Field

from lc_core.models.enums import PackagingType, RateUnit, UNIT_LABELS
from lc_core.services.tiers import TierLike, find_tier, range_label
from lc_core.utils.logger import get_logger

logger = get_logger(__name__)

NOT_FOUND_MESSAGE = "Подходящий тариф не найден"

PACKAGING_TO_UNIT = {
    PackagingType.PALLETS: RateUnit.PALLET,
    PackagingType.BOXES: RateUnit.KG,
}

LINE_UNITS = {
    RateUnit.PALLET: "палл",
    RateUnit.KG: "усл",
    RateUnit.M3: "усл",
}


@dataclass
class ShipmentDescriptor:
    """建议输入：申请的货物描述"""
    city_id: Optional[int]
    packaging_type: str
    box_count: int
    weight: Optional[Decimal] = None
    volume: Optional[Decimal] = None


class ServiceSuggestion(BaseModel):
    """建议结果（found=False 时仅 message 有值）"""
    found: bool = Field(description="是否找到适用阶梯")
    description: Optional[str] = Field(default=None, description="服务描述")
    unit: Optional[str] = Field(default=None, description="单位标签")
    quantity: Optional[Decimal] = Field(default=None, description="数量")
    price: Optional[Decimal] = Field(default=None, description="单价")
    amount: Optional[Decimal] = Field(default=None, description="金额")
    rate_id: Optional[int] = Field(default=None, description="命中的阶梯ID")
    message: Optional[str] = Field(default=None, description="未找到时的提示")

    @classmethod
    def not_found(cls, message: str = NOT_FOUND_MESSAGE) -> "ServiceSuggestion":
        return cls(found=False, message=message)


def suggest(
    shipment: ShipmentDescriptor,
    city_full_name: str,
    tiers: Sequence[TierLike]
) -> ServiceSuggestion:
    """
    生成建议服务行

    Args:
        shipment: 货物描述
        city_full_name: 城市完整名称（用于描述）
        tiers: 该城市的阶梯（按下限升序）

    Returns:
        ServiceSuggestion，未命中时 found=False
    """
    packaging = PackagingType(shipment.packaging_type)
    unit = PACKAGING_TO_UNIT[packaging]

    tier = find_tier(tiers, unit, shipment.weight)
    if tier is None and shipment.volume is not None:
        tier = find_tier(tiers, RateUnit.M3, shipment.volume)

    if tier is None:
        logger.info(
            "No matching rate",
            city_id=shipment.city_id,
            packaging_type=packaging.value,
            weight=str(shipment.weight) if shipment.weight is not None else None,
            volume=str(shipment.volume) if shipment.volume is not None else None,
        )
        return ServiceSuggestion.not_found()

    matched_unit = RateUnit(tier.unit)
    quantity = Decimal(shipment.box_count) if matched_unit == RateUnit.PALLET else Decimal(1)

    price = Decimal(tier.price)
    amount = (quantity * price).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    return ServiceSuggestion(
        found=True,
        description=f"{city_full_name} — {UNIT_LABELS[matched_unit]} — {range_label(tier)}",
        unit=LINE_UNITS[matched_unit],
        quantity=quantity,
        price=price,
        amount=amount,
        rate_id=getattr(tier, "id", None),
    )
