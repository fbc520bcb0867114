"""
Numeric 列精度

写库前按列的小数位四舍五入，并检查整数部分位数，
保证校验通过的值与读回的值一致。
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

COLUMN_PRECISION = 12

# Numeric(12, 3)：重量、体积、数量、阶梯区间
MEASURE_PLACES = 3
# Numeric(12, 2)：单价
MONEY_PLACES = 2
# Numeric(14, 2)：金额、合计
AMOUNT_PRECISION = 14

# Integer 列上限
MAX_INT_COLUMN = 2 ** 31 - 1


def step(places: int) -> Decimal:
    """最小单位：3 -> 0.001"""
    return Decimal(1).scaleb(-places)


def to_column_scale(number: Decimal, places: int, precision: int = COLUMN_PRECISION) -> Optional[Decimal]:
    """
    按列小数位四舍五入（ROUND_HALF_UP）

    Args:
        number: 有限的 Decimal
        places: 小数位数
        precision: 总位数

    Returns:
        规范化后的值；整数部分超出列宽时返回 None
    """
    limit = Decimal(10) ** (precision - places)
    if abs(number) >= limit:
        return None
    scaled = number.quantize(step(places), rounding=ROUND_HALF_UP)
    if abs(scaled) >= limit:
        return None
    return scaled
