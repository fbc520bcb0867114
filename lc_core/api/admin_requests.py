"""
后台运输申请 API 路由
- 列表、详情（含合并时间线）
- 部分字段修改、状态切换
- 计费服务行与价格建议
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from lc_core.database import get_async_session
from lc_core.models import Manager
from lc_core.services.history_merger import TimelineItem
from lc_core.services.notifier import get_notifier
from lc_core.services.service_suggester import ServiceSuggestion
from lc_core.services.shipment_requests import RequestDetail, ShipmentRequestsService
from lc_core.utils.logger import get_logger
from .auth import get_current_manager
from .models import (
    ApiResponse, CityOut, ClientOut, RequestServiceOut, ShipmentRequestDetail,
    ShipmentRequestListItem, ShipmentRequestOut, TimelineEntryOut
)

router = APIRouter(prefix="/admin/requests", tags=["Admin Requests"])
logger = get_logger(__name__)


# ==================== 请求/响应模型 ====================

class UpdateRequestPayload(BaseModel):
    """部分更新：只处理显式传入的字段"""
    model_config = ConfigDict(extra="forbid")

    city: Any = Field(default=None, description="城市（非空字符串）")
    delivery_date: Any = Field(default=None, description="交付日期")
    packaging_type: Any = Field(default=None, description="pallets 或 boxes")
    volume: Any = Field(default=None, description="体积 m³，null 表示清空")
    box_count: Any = Field(default=None, description="件数（正整数）")
    weight: Any = Field(default=None, description="重量 kg，null 表示清空")
    comment: Any = Field(default=None, description="备注，null 表示清空")


class ChangeStatusPayload(BaseModel):
    status: str = Field(..., description="new / warehouse / shipped / done")
    comment: Optional[str] = Field(default=None, description="备注")


class ServicePayload(BaseModel):
    description: str = Field(..., description="服务描述")
    unit: Optional[str] = Field(default=None, description="单位标签，默认 шт")
    quantity: Decimal = Field(..., description="数量")
    price: Decimal = Field(..., description="单价")


class UpdateServicePayload(BaseModel):
    description: Optional[str] = None
    unit: Optional[str] = None
    quantity: Optional[Decimal] = None
    price: Optional[Decimal] = None


# ==================== 依赖 ====================

def get_requests_service() -> ShipmentRequestsService:
    return ShipmentRequestsService(notifier=get_notifier())


def _timeline_entry(item: TimelineItem) -> TimelineEntryOut:
    entry = item.entry
    if item.kind == "status":
        return TimelineEntryOut(
            kind="status",
            changed_at=item.changed_at,
            manager_id=entry.manager_id,
            old_status=entry.old_status,
            new_status=entry.new_status,
            comment=entry.comment,
        )
    return TimelineEntryOut(
        kind="field",
        changed_at=item.changed_at,
        manager_id=entry.manager_id,
        field=entry.field,
        old_value=entry.old_value,
        new_value=entry.new_value,
    )


def _detail_out(detail: RequestDetail) -> ShipmentRequestDetail:
    base = ShipmentRequestOut.model_validate(detail.request).model_dump()
    return ShipmentRequestDetail(
        **base,
        client=ClientOut.model_validate(detail.client),
        city_ref=CityOut.model_validate(detail.city) if detail.city else None,
        services=[RequestServiceOut.model_validate(s) for s in detail.services],
        timeline=[_timeline_entry(item) for item in detail.timeline],
    )


# ==================== API端点 ====================

@router.get("", response_model=ApiResponse[List[ShipmentRequestListItem]])
async def list_requests(
    status: Optional[str] = Query(default=None, description="按状态过滤"),
    db: AsyncSession = Depends(get_async_session),
    service: ShipmentRequestsService = Depends(get_requests_service),
    current_manager: Manager = Depends(get_current_manager)
):
    """申请列表"""
    requests = await service.list_requests(db, status)
    return ApiResponse.success(
        [ShipmentRequestListItem.model_validate(r) for r in requests],
        metadata={"total": len(requests)},
    )


@router.get("/{request_id}", response_model=ApiResponse[ShipmentRequestDetail])
async def get_request(
    request_id: int,
    db: AsyncSession = Depends(get_async_session),
    service: ShipmentRequestsService = Depends(get_requests_service),
    current_manager: Manager = Depends(get_current_manager)
):
    """申请详情（服务行 + 状态/字段合并时间线）"""
    detail = await service.get_request_detail(db, request_id)
    return ApiResponse.success(_detail_out(detail))


@router.patch("/{request_id}", response_model=ApiResponse[ShipmentRequestOut])
async def update_request(
    request_id: int,
    payload: UpdateRequestPayload,
    db: AsyncSession = Depends(get_async_session),
    service: ShipmentRequestsService = Depends(get_requests_service),
    current_manager: Manager = Depends(get_current_manager)
):
    """修改申请字段，变化的追踪字段写入字段历史"""
    request, history_rows = await service.update_request(
        db, request_id, payload.model_dump(exclude_unset=True), manager_id=current_manager.id
    )
    return ApiResponse.success(
        ShipmentRequestOut.model_validate(request),
        metadata={"history_rows": history_rows},
    )


@router.patch("/{request_id}/status", response_model=ApiResponse[ShipmentRequestOut])
async def change_status(
    request_id: int,
    payload: ChangeStatusPayload,
    db: AsyncSession = Depends(get_async_session),
    service: ShipmentRequestsService = Depends(get_requests_service),
    current_manager: Manager = Depends(get_current_manager)
):
    """切换状态；状态未变化时不写历史、不通知"""
    request, changed = await service.change_status(
        db, request_id, payload.status, manager_id=current_manager.id, comment=payload.comment
    )
    return ApiResponse.success(ShipmentRequestOut.model_validate(request), metadata={"changed": changed})


# ========== 计费服务行 ==========

@router.get("/{request_id}/services", response_model=ApiResponse[List[RequestServiceOut]])
async def list_services(
    request_id: int,
    db: AsyncSession = Depends(get_async_session),
    service: ShipmentRequestsService = Depends(get_requests_service),
    current_manager: Manager = Depends(get_current_manager)
):
    await service.get_request(db, request_id)
    services = await service.list_services(db, request_id)
    return ApiResponse.success([RequestServiceOut.model_validate(s) for s in services])


@router.post("/{request_id}/services", response_model=ApiResponse[RequestServiceOut])
async def add_service(
    request_id: int,
    payload: ServicePayload,
    db: AsyncSession = Depends(get_async_session),
    service: ShipmentRequestsService = Depends(get_requests_service),
    current_manager: Manager = Depends(get_current_manager)
):
    created = await service.add_service(db, request_id, payload.model_dump())
    return ApiResponse.success(RequestServiceOut.model_validate(created))


@router.patch("/{request_id}/services/{service_id}", response_model=ApiResponse[RequestServiceOut])
async def update_service(
    request_id: int,
    service_id: int,
    payload: UpdateServicePayload,
    db: AsyncSession = Depends(get_async_session),
    service: ShipmentRequestsService = Depends(get_requests_service),
    current_manager: Manager = Depends(get_current_manager)
):
    updated = await service.update_service(db, request_id, service_id, payload.model_dump(exclude_unset=True))
    return ApiResponse.success(RequestServiceOut.model_validate(updated))


@router.delete("/{request_id}/services/{service_id}", response_model=ApiResponse[Dict[str, int]])
async def delete_service(
    request_id: int,
    service_id: int,
    db: AsyncSession = Depends(get_async_session),
    service: ShipmentRequestsService = Depends(get_requests_service),
    current_manager: Manager = Depends(get_current_manager)
):
    await service.delete_service(db, request_id, service_id)
    return ApiResponse.success({"id": service_id})


@router.post("/{request_id}/services/suggest", response_model=ApiResponse[ServiceSuggestion])
async def suggest_service(
    request_id: int,
    db: AsyncSession = Depends(get_async_session),
    service: ShipmentRequestsService = Depends(get_requests_service),
    current_manager: Manager = Depends(get_current_manager)
):
    """
    按城市阶梯建议服务行

    未找到适用阶梯时返回 found=false（正常结果，非错误）
    """
    return ApiResponse.success(await service.suggest_service(db, request_id))
