"""
发运时刻表 API 路由
读取为公开接口，写入需要经理权限
"""
from datetime import date
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from lc_core.database import get_async_session
from lc_core.models import DeliverySchedule, Manager
from lc_core.services.schedule import ScheduleService
from .auth import get_current_manager
from .models import ApiResponse, ScheduleEntryOut

router = APIRouter(tags=["Schedule"])


class SchedulePayload(BaseModel):
    city_id: int = Field(..., description="城市ID")
    delivery_date: date = Field(..., description="交付日期")
    accept_days: str = Field(..., description="收货日，例如 \"пн, ср\"")


class UpdateSchedulePayload(BaseModel):
    city_id: Optional[int] = None
    delivery_date: Optional[date] = None
    accept_days: Optional[str] = None


def _entry_out(entry: DeliverySchedule) -> ScheduleEntryOut:
    return ScheduleEntryOut(
        id=entry.id,
        city_id=entry.city_id,
        destination=entry.city.full_name,
        delivery_date=entry.delivery_date,
        accept_days=entry.accept_days,
    )


# ========== 公开接口 ==========

@router.get("/schedule", response_model=ApiResponse[List[ScheduleEntryOut]])
async def list_schedule(
    date_from: Optional[date] = Query(default=None, description="只返回该日期之后的计划"),
    db: AsyncSession = Depends(get_async_session)
):
    entries = await ScheduleService().list_entries(db, date_from)
    return ApiResponse.success([_entry_out(e) for e in entries])


@router.get("/schedule/destinations", response_model=ApiResponse[List[str]])
async def list_destinations(db: AsyncSession = Depends(get_async_session)):
    return ApiResponse.success(await ScheduleService().list_destinations(db))


# ========== 后台维护 ==========

@router.post("/admin/schedule", response_model=ApiResponse[ScheduleEntryOut])
async def create_schedule_entry(
    payload: SchedulePayload,
    db: AsyncSession = Depends(get_async_session),
    current_manager: Manager = Depends(get_current_manager)
):
    entry = await ScheduleService().create_entry(db, payload.city_id, payload.delivery_date, payload.accept_days)
    return ApiResponse.success(_entry_out(entry))


@router.patch("/admin/schedule/{entry_id}", response_model=ApiResponse[ScheduleEntryOut])
async def update_schedule_entry(
    entry_id: int,
    payload: UpdateSchedulePayload,
    db: AsyncSession = Depends(get_async_session),
    current_manager: Manager = Depends(get_current_manager)
):
    entry = await ScheduleService().update_entry(db, entry_id, payload.model_dump(exclude_unset=True, exclude_none=True))
    return ApiResponse.success(_entry_out(entry))


@router.delete("/admin/schedule/{entry_id}", response_model=ApiResponse[Dict[str, int]])
async def delete_schedule_entry(
    entry_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_manager: Manager = Depends(get_current_manager)
):
    await ScheduleService().delete_entry(db, entry_id)
    return ApiResponse.success({"id": entry_id})
