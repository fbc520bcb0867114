"""
枚举类型定义
"""

from enum import Enum


class RateUnit(str, Enum):
    """计价单位枚举"""

    PALLET = "pallet"  # 按重量区间（kg）计价的托盘
    KG = "kg"  # 无区间
    M3 = "m3"  # 按体积区间计价


class PackagingType(str, Enum):
    """包装类型枚举"""

    PALLETS = "pallets"
    BOXES = "boxes"


class RequestStatus(str, Enum):
    """运输申请状态枚举（任意状态之间可互相切换）"""

    NEW = "new"
    WAREHOUSE = "warehouse"
    SHIPPED = "shipped"
    DONE = "done"


class TrackedField(str, Enum):
    """字段历史追踪的字段（顺序即差异输出顺序）"""

    WEIGHT = "weight"
    BOX_COUNT = "box_count"
    VOLUME = "volume"
    PACKAGING_TYPE = "packaging_type"
    DELIVERY_DATE = "delivery_date"


# 面向用户的俄语标签
STATUS_LABELS = {
    RequestStatus.NEW: "Новый",
    RequestStatus.WAREHOUSE: "Склад",
    RequestStatus.SHIPPED: "Отгружен",
    RequestStatus.DONE: "Выполнена",
}

FIELD_LABELS = {
    TrackedField.WEIGHT: "Вес",
    TrackedField.BOX_COUNT: "Кол-во мест",
    TrackedField.VOLUME: "Объём",
    TrackedField.PACKAGING_TYPE: "Упаковка",
    TrackedField.DELIVERY_DATE: "Дата доставки",
}

UNIT_LABELS = {
    RateUnit.PALLET: "Паллет",
    RateUnit.KG: "Кг",
    RateUnit.M3: "м³",
}

PACKAGING_LABELS = {
    PackagingType.PALLETS: "Палеты",
    PackagingType.BOXES: "Коробки",
}
