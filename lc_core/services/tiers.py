"""
阶梯价格匹配

按计价单位筛选阶梯，再按闭区间 [min ?? 0, max ?? +∞] 匹配计量值；
kg 阶梯不带区间，存在即匹配。多条命中时取输入顺序中的第一条。
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Protocol, Sequence, Tuple, TypeVar, Union

from lc_core.models.enums import RateUnit
from lc_core.utils.decimals import MEASURE_PLACES, MONEY_PLACES, step, to_column_scale
from lc_core.utils.errors import ValidationError

BOUND_FIELDS = ("min_weight_kg", "max_weight_kg", "min_volume_m3", "max_volume_m3")

# 每种单位允许携带的区间字段
UNIT_BOUND_FIELDS = {
    RateUnit.PALLET: ("min_weight_kg", "max_weight_kg"),
    RateUnit.M3: ("min_volume_m3", "max_volume_m3"),
    RateUnit.KG: (),
}

UNIT_MEASURE_SUFFIX = {
    RateUnit.PALLET: "кг",
    RateUnit.KG: "кг",
    RateUnit.M3: "м³",
}


class TierLike(Protocol):
    unit: str
    min_weight_kg: Optional[Decimal]
    max_weight_kg: Optional[Decimal]
    min_volume_m3: Optional[Decimal]
    max_volume_m3: Optional[Decimal]
    price: Decimal


T = TypeVar("T", bound=TierLike)


def tier_bounds(tier: TierLike) -> Tuple[Optional[Decimal], Optional[Decimal]]:
    """返回阶梯对应单位的 (min, max)；kg 阶梯返回 (None, None)"""
    fields = UNIT_BOUND_FIELDS[RateUnit(tier.unit)]
    if not fields:
        return None, None
    return getattr(tier, fields[0]), getattr(tier, fields[1])


def find_tier(tiers: Sequence[T], unit: Union[RateUnit, str], measure: Optional[Decimal]) -> Optional[T]:
    """
    查找适用的阶梯

    Args:
        tiers: 同一城市的阶梯列表（调用方应按下限升序排列）
        unit: 计价单位
        measure: 重量（pallet）或体积（m3）；kg 单位忽略该值

    Returns:
        第一条命中的阶梯，未命中返回 None
    """
    unit = RateUnit(unit)
    if measure is not None and not isinstance(measure, Decimal):
        measure = Decimal(str(measure))

    for tier in tiers:
        if tier.unit != unit.value:
            continue

        if unit == RateUnit.KG:
            return tier

        # 区间单位必须有计量值才能匹配
        if measure is None:
            return None

        low, high = tier_bounds(tier)
        if measure < (low if low is not None else 0):
            continue
        if high is not None and measure > high:
            continue
        return tier

    return None


def format_number(value: Decimal) -> str:
    """Decimal 格式化为最短十进制表示：10.000 -> 10, 0.50 -> 0.5"""
    normalized = format(Decimal(value).normalize(), "f")
    return normalized


def range_label(tier: TierLike) -> str:
    """区间标签，例如 "10–50 кг"、"0–∞ м³" """
    low, high = tier_bounds(tier)
    low_text = format_number(low) if low is not None else "0"
    high_text = format_number(high) if high is not None else "∞"
    return f"{low_text}–{high_text} {UNIT_MEASURE_SUFFIX[RateUnit(tier.unit)]}"


def _to_decimal(value: Any, code: str, field: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(code, f"{field} must be a number", field=field)
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(code, f"{field} must be a number", field=field)
    if not result.is_finite():
        raise ValidationError(code, f"{field} must be a finite number", field=field)
    return result


def _scaled(value: Decimal, places: int, code: str, field: str) -> Decimal:
    scaled = to_column_scale(value, places)
    if scaled is None:
        raise ValidationError(code, f"{field} is too large", field=field)
    return scaled


def validate_tier_bounds(unit: Any, price: Any, bounds: dict) -> dict:
    """
    校验阶梯定义并返回规范化后的字段

    - unit 必须是 pallet/kg/m3
    - price 按分四舍五入后 > 0
    - 区间值按 0.001 四舍五入后 >= 0，且 min <= max
    - pallet 不可带体积区间，m3 不可带重量区间，kg 不可带任何区间
    """
    try:
        rate_unit = RateUnit(unit)
    except ValueError:
        raise ValidationError("INVALID_UNIT", f"unit must be one of pallet, kg, m3 (got {unit!r})", field="unit")

    if price is None:
        raise ValidationError("INVALID_PRICE", "price is required", field="price")
    price_value = _scaled(_to_decimal(price, "INVALID_PRICE", "price"), MONEY_PLACES, "INVALID_PRICE", "price")
    if price_value <= 0:
        raise ValidationError("INVALID_PRICE", f"price must be at least {step(MONEY_PLACES)}", field="price")

    allowed = UNIT_BOUND_FIELDS[rate_unit]
    normalized = {"unit": rate_unit.value, "price": price_value}

    for field in BOUND_FIELDS:
        value = bounds.get(field)
        if value is None:
            normalized[field] = None
            continue
        if field not in allowed:
            raise ValidationError(
                "BOUNDS_UNIT_MISMATCH",
                f"{field} is not allowed for unit {rate_unit.value}",
                field=field
            )
        decimal_value = _scaled(_to_decimal(value, "INVALID_RANGE", field), MEASURE_PLACES, "INVALID_RANGE", field)
        if decimal_value < 0:
            raise ValidationError("INVALID_RANGE", f"{field} must not be negative", field=field)
        normalized[field] = decimal_value

    if allowed:
        low, high = normalized[allowed[0]], normalized[allowed[1]]
        if low is not None and high is not None and low > high:
            raise ValidationError(
                "INVALID_RANGE",
                f"{allowed[0]} must not exceed {allowed[1]}",
                field=allowed[0]
            )

    return normalized
