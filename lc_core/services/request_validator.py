"""
运输申请修改校验

校验部分更新，返回需要写入的规范化字段以及字段历史差异。
本模块不做持久化，调用方需在同一事务中写入字段与历史记录。
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional, Union

from lc_core.models.enums import PackagingType, RequestStatus, TrackedField
from lc_core.utils.decimals import MAX_INT_COLUMN, MEASURE_PLACES, step, to_column_scale
from lc_core.utils.errors import ValidationError

EDITABLE_FIELDS = (
    "city", "delivery_date", "packaging_type", "volume", "box_count", "weight", "comment"
)

# 新建申请时必须提供的字段
REQUIRED_ON_CREATE = ("city", "delivery_date", "packaging_type", "box_count")

_REQUIRED_CODES = {
    "city": "INVALID_CITY",
    "delivery_date": "INVALID_DATE",
    "packaging_type": "INVALID_PACKAGING",
    "box_count": "INVALID_BOX_COUNT",
}


@dataclass
class FieldChange:
    field: str
    old_value: Optional[str]
    new_value: Optional[str]


@dataclass
class ValidatedPatch:
    values: Dict[str, Any] = field(default_factory=dict)
    changes: List[FieldChange] = field(default_factory=list)


def stringify_value(value: Any) -> Optional[str]:
    """历史记录中的值字符串化"""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return format(value.normalize(), "f")
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, PackagingType):
        return value.value
    return str(value)


def _finite_positive(value: Any, code: str, name: str) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ValidationError(code, f"{name} must be a number", field=name)
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(code, f"{name} must be a number", field=name)
    if not number.is_finite() or number <= 0:
        raise ValidationError(code, f"{name} must be a positive finite number", field=name)
    return number


def _positive_measure(value: Any, code: str, name: str) -> Decimal:
    """重量/体积：按 Numeric(12, 3) 规范化后仍须 > 0"""
    scaled = to_column_scale(_finite_positive(value, code, name), MEASURE_PLACES)
    if scaled is None:
        raise ValidationError(code, f"{name} is too large", field=name)
    if scaled <= 0:
        raise ValidationError(code, f"{name} must be at least {step(MEASURE_PLACES)}", field=name)
    return scaled


def _parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            pass
    raise ValidationError("INVALID_DATE", f"delivery_date is not a valid date: {value!r}", field="delivery_date")


def normalize_field(name: str, value: Any) -> Any:
    """按字段规则校验并规范化单个值"""
    if name == "city":
        if not isinstance(value, str) or not value.strip():
            raise ValidationError("INVALID_CITY", "city must be a non-empty string", field="city")
        return value.strip()

    if name == "delivery_date":
        return _parse_date(value)

    if name == "packaging_type":
        if value not in (PackagingType.PALLETS.value, PackagingType.BOXES.value):
            raise ValidationError(
                "INVALID_PACKAGING", "packaging_type must be 'pallets' or 'boxes'", field="packaging_type"
            )
        return PackagingType(value).value

    if name == "volume":
        if value is None:
            return None
        return _positive_measure(value, "INVALID_VOLUME", "volume")

    if name == "weight":
        if value is None:
            return None
        return _positive_measure(value, "INVALID_WEIGHT", "weight")

    if name == "box_count":
        if value is None:
            raise ValidationError("INVALID_BOX_COUNT", "box_count is required", field="box_count")
        number = _finite_positive(value, "INVALID_BOX_COUNT", "box_count")
        if number != number.to_integral_value():
            raise ValidationError("INVALID_BOX_COUNT", "box_count must be an integer", field="box_count")
        if number > MAX_INT_COLUMN:
            raise ValidationError("INVALID_BOX_COUNT", "box_count is too large", field="box_count")
        return int(number)

    if name == "comment":
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValidationError("INVALID_COMMENT", "comment must be a string", field="comment")
        return value.strip() or None

    raise ValidationError("UNKNOWN_FIELD", f"field {name!r} cannot be updated", field=name)


def _same(old: Any, new: Any) -> bool:
    if old is None or new is None:
        return old is None and new is None
    if isinstance(new, Decimal):
        return Decimal(str(old)) == new
    return old == new


def validate_request_patch(existing: Any, patch: Mapping[str, Any]) -> ValidatedPatch:
    """
    校验部分更新

    Args:
        existing: 当前申请（ORM 对象或任意带同名属性的快照）
        patch: 仅包含需要修改的字段

    Returns:
        ValidatedPatch: values 为需要写入的规范化字段，changes 为追踪字段的差异（固定顺序）
    """
    result = ValidatedPatch()
    for name, value in patch.items():
        result.values[name] = normalize_field(name, value)

    for tracked in TrackedField:
        name = tracked.value
        if name not in result.values:
            continue
        old = getattr(existing, name)
        new = result.values[name]
        if _same(old, new):
            continue
        result.changes.append(FieldChange(name, stringify_value(old), stringify_value(new)))

    return result


def validate_new_request(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """新建申请的字段校验：与修改使用同一套规则，另加必填检查"""
    for name in REQUIRED_ON_CREATE:
        if payload.get(name) is None:
            raise ValidationError(_REQUIRED_CODES[name], f"{name} is required", field=name)
    return {name: normalize_field(name, value) for name, value in payload.items()}


def resolve_status_transition(
    current: Union[RequestStatus, str],
    requested: Union[RequestStatus, str]
) -> Optional[RequestStatus]:
    """
    状态切换：任意状态之间都可以切换

    Returns:
        目标状态；与当前状态相同时返回 None（不写历史、不通知）
    """
    try:
        target = RequestStatus(requested)
    except ValueError:
        raise ValidationError(
            "INVALID_STATUS",
            f"status must be one of {', '.join(s.value for s in RequestStatus)}",
            field="status"
        )
    if RequestStatus(current) == target:
        return None
    return target
