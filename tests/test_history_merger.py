"""
状态历史与字段历史的时间线合并
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from lc_core.services.history_merger import merge_history

T0 = datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc)


@dataclass
class StatusEntry:
    changed_at: datetime
    new_status: str
    old_status: Optional[str] = None


@dataclass
class FieldEntry:
    changed_at: datetime
    field: str


def test_sorted_by_time():
    status = [StatusEntry(T0, "new"), StatusEntry(T0 + timedelta(hours=2), "warehouse", "new")]
    fields = [FieldEntry(T0 + timedelta(hours=1), "weight")]

    timeline = merge_history(status, fields)

    assert [item.kind for item in timeline] == ["status", "field", "status"]
    assert [item.changed_at for item in timeline] == sorted(item.changed_at for item in timeline)


def test_status_first_on_equal_timestamps():
    status = [StatusEntry(T0, "warehouse", "new")]
    fields = [FieldEntry(T0, "weight"), FieldEntry(T0, "box_count")]

    timeline = merge_history(status, fields)

    assert timeline[0].kind == "status"
    assert [item.entry.field for item in timeline[1:]] == ["weight", "box_count"]


def test_preserves_input_order_within_each_log():
    fields = [FieldEntry(T0, "weight"), FieldEntry(T0, "volume"), FieldEntry(T0, "delivery_date")]
    timeline = merge_history([], fields)
    assert [item.entry.field for item in timeline] == ["weight", "volume", "delivery_date"]


def test_naive_timestamps_treated_as_utc():
    status = [StatusEntry(T0.replace(tzinfo=None), "new")]
    fields = [FieldEntry(T0 - timedelta(minutes=5), "weight")]

    timeline = merge_history(status, fields)

    assert [item.kind for item in timeline] == ["field", "status"]


def test_empty_logs():
    assert merge_history([], []) == []


def test_is_deterministic():
    status = [StatusEntry(T0 + timedelta(minutes=i), "new") for i in range(3)]
    fields = [FieldEntry(T0 + timedelta(minutes=i), "weight") for i in range(3)]
    assert merge_history(status, fields) == merge_history(status, fields)
