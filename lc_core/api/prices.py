"""
价格目录 API 路由：城市与阶梯价格
"""
from decimal import Decimal
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from lc_core.database import get_async_session
from lc_core.models import Manager
from lc_core.services.pricing import PricingService
from .auth import get_current_manager
from .models import ApiResponse, CityOut, PriceRateOut

router = APIRouter(prefix="/admin", tags=["Prices"])


# ==================== 请求/响应模型 ====================

class CityPayload(BaseModel):
    short_name: str = Field(..., description="简称（唯一）")
    full_name: Optional[str] = Field(default=None, description="完整名称，默认同简称")


class UpdateCityPayload(BaseModel):
    short_name: Optional[str] = None
    full_name: Optional[str] = None


class RatePayload(BaseModel):
    """阶梯定义：pallet 只带重量区间，m3 只带体积区间，kg 不带区间"""
    city_id: int = Field(..., description="城市ID")
    unit: str = Field(..., description="pallet / kg / m3")
    price: Decimal = Field(..., description="价格（>0）")
    min_weight_kg: Optional[Decimal] = None
    max_weight_kg: Optional[Decimal] = None
    min_volume_m3: Optional[Decimal] = None
    max_volume_m3: Optional[Decimal] = None
    comment: Optional[str] = None


class UpdateRatePayload(BaseModel):
    city_id: Optional[int] = None
    unit: Optional[str] = None
    price: Optional[Decimal] = None
    min_weight_kg: Optional[Decimal] = None
    max_weight_kg: Optional[Decimal] = None
    min_volume_m3: Optional[Decimal] = None
    max_volume_m3: Optional[Decimal] = None
    comment: Optional[str] = None


# ========== 城市 ==========

@router.get("/cities", response_model=ApiResponse[List[CityOut]])
async def list_cities(
    db: AsyncSession = Depends(get_async_session),
    current_manager: Manager = Depends(get_current_manager)
):
    cities = await PricingService().list_cities(db)
    return ApiResponse.success([CityOut.model_validate(c) for c in cities])


@router.post("/cities", response_model=ApiResponse[CityOut])
async def create_city(
    payload: CityPayload,
    db: AsyncSession = Depends(get_async_session),
    current_manager: Manager = Depends(get_current_manager)
):
    city = await PricingService().create_city(db, payload.short_name, payload.full_name)
    return ApiResponse.success(CityOut.model_validate(city))


@router.patch("/cities/{city_id}", response_model=ApiResponse[CityOut])
async def update_city(
    city_id: int,
    payload: UpdateCityPayload,
    db: AsyncSession = Depends(get_async_session),
    current_manager: Manager = Depends(get_current_manager)
):
    city = await PricingService().update_city(db, city_id, payload.short_name, payload.full_name)
    return ApiResponse.success(CityOut.model_validate(city))


@router.delete("/cities/{city_id}", response_model=ApiResponse[Dict[str, int]])
async def delete_city(
    city_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_manager: Manager = Depends(get_current_manager)
):
    """删除城市；被阶梯/申请/时刻表引用时返回 422 CITY_IN_USE"""
    await PricingService().delete_city(db, city_id)
    return ApiResponse.success({"id": city_id})


# ========== 阶梯价格 ==========

@router.get("/rates", response_model=ApiResponse[List[PriceRateOut]])
async def list_rates(
    city_id: Optional[int] = Query(default=None, description="按城市过滤"),
    db: AsyncSession = Depends(get_async_session),
    current_manager: Manager = Depends(get_current_manager)
):
    rates = await PricingService().list_rates(db, city_id)
    return ApiResponse.success([PriceRateOut.model_validate(r) for r in rates])


@router.post("/rates", response_model=ApiResponse[PriceRateOut])
async def create_rate(
    payload: RatePayload,
    db: AsyncSession = Depends(get_async_session),
    current_manager: Manager = Depends(get_current_manager)
):
    bounds = payload.model_dump(include={"min_weight_kg", "max_weight_kg", "min_volume_m3", "max_volume_m3"})
    rate = await PricingService().create_rate(
        db, payload.city_id, payload.unit, payload.price, bounds, payload.comment
    )
    return ApiResponse.success(PriceRateOut.model_validate(rate))


@router.patch("/rates/{rate_id}", response_model=ApiResponse[PriceRateOut])
async def update_rate(
    rate_id: int,
    payload: UpdateRatePayload,
    db: AsyncSession = Depends(get_async_session),
    current_manager: Manager = Depends(get_current_manager)
):
    """只更新显式传入的字段；显式 null 清空区间"""
    rate = await PricingService().update_rate(db, rate_id, payload.model_dump(exclude_unset=True))
    return ApiResponse.success(PriceRateOut.model_validate(rate))


@router.delete("/rates/{rate_id}", response_model=ApiResponse[Dict[str, int]])
async def delete_rate(
    rate_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_manager: Manager = Depends(get_current_manager)
):
    await PricingService().delete_rate(db, rate_id)
    return ApiResponse.success({"id": rate_id})
