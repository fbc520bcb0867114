"""
状态历史与字段历史合并为统一时间线
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, List, Literal

TimelineKind = Literal["status", "field"]


@dataclass(frozen=True)
class TimelineItem:
    kind: TimelineKind
    changed_at: datetime
    entry: Any


def _sort_key(changed_at: datetime) -> datetime:
    # sqlite 读回的是 naive 时间，按 UTC 处理
    if changed_at.tzinfo is None:
        return changed_at.replace(tzinfo=timezone.utc)
    return changed_at


def merge_history(status_entries: Iterable[Any], field_entries: Iterable[Any]) -> List[TimelineItem]:
    """
    合并两条历史日志

    按 changed_at 升序排列；时间相同时保持输入顺序（状态日志在前，各自内部顺序不变）。
    纯函数，重复调用结果一致。
    """
    items = [TimelineItem("status", entry.changed_at, entry) for entry in status_entries]
    items.extend(TimelineItem("field", entry.changed_at, entry) for entry in field_entries)

    # sorted 是稳定排序
    return sorted(items, key=lambda item: _sort_key(item.changed_at))
