"""
机器人 / 小程序 API 路由（公开接口）
- 个人数据处理同意
- 创建申请、查询自己的申请
- 会话草稿（Redis）
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from lc_core.database import get_async_session
from lc_core.services.bot_sessions import BotSessionStore
from lc_core.services.clients import ClientService
from lc_core.services.notifier import get_notifier
from lc_core.services.shipment_requests import ShipmentRequestsService
from lc_core.utils.logger import get_logger
from lc_core.utils.redis import get_redis
from .models import ApiResponse, ShipmentRequestOut

router = APIRouter(prefix="/bot", tags=["Bot"])
logger = get_logger(__name__)


# ==================== 请求/响应模型 ====================

class TelegramUser(BaseModel):
    """Telegram 用户信息"""
    telegram_id: int = Field(..., description="Telegram 用户ID")
    username: Optional[str] = Field(default=None, description="用户名")
    first_name: Optional[str] = Field(default=None, description="名")
    last_name: Optional[str] = Field(default=None, description="姓")


class ConsentResponse(BaseModel):
    consent_given: bool


class CreateRequestPayload(TelegramUser):
    """创建申请（字段规则与经理修改一致）"""
    model_config = ConfigDict(extra="forbid")

    city: Any = Field(default=None, description="目的地城市")
    delivery_date: Any = Field(default=None, description="交付日期 YYYY-MM-DD")
    packaging_type: Any = Field(default=None, description="pallets 或 boxes")
    box_count: Any = Field(default=None, description="件数（正整数）")
    volume: Any = Field(default=None, description="体积 m³")
    weight: Any = Field(default=None, description="重量 kg")
    comment: Any = Field(default=None, description="备注")


class SessionDraft(BaseModel):
    data: Dict[str, Any] = Field(default_factory=dict, description="对话草稿")


# ==================== 依赖 ====================

def get_requests_service() -> ShipmentRequestsService:
    return ShipmentRequestsService(notifier=get_notifier())


async def get_session_store() -> BotSessionStore:
    return BotSessionStore(await get_redis())


# ==================== API端点 ====================

@router.get("/consent/{telegram_id}", response_model=ConsentResponse)
async def check_consent(telegram_id: int, db: AsyncSession = Depends(get_async_session)):
    """是否已同意个人数据处理"""
    return ConsentResponse(consent_given=await ClientService().has_consent(db, telegram_id))


@router.post("/consent", response_model=ConsentResponse)
async def accept_consent(user: TelegramUser, db: AsyncSession = Depends(get_async_session)):
    """记录同意"""
    await ClientService().give_consent(
        db, user.telegram_id, user.username, user.first_name, user.last_name
    )
    return ConsentResponse(consent_given=True)


@router.post("/requests", response_model=ApiResponse[ShipmentRequestOut])
async def create_request(
    payload: CreateRequestPayload,
    db: AsyncSession = Depends(get_async_session),
    service: ShipmentRequestsService = Depends(get_requests_service)
):
    """客户提交运输申请"""
    fields = payload.model_dump(
        include={"city", "delivery_date", "packaging_type", "box_count", "volume", "weight", "comment"},
        exclude_unset=True,
    )
    request = await service.create_from_bot(
        db,
        telegram_id=payload.telegram_id,
        fields=fields,
        username=payload.username,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )
    return ApiResponse.success(ShipmentRequestOut.model_validate(request))


@router.get("/requests/{telegram_id}", response_model=ApiResponse[List[ShipmentRequestOut]])
async def list_my_requests(
    telegram_id: int,
    db: AsyncSession = Depends(get_async_session),
    service: ShipmentRequestsService = Depends(get_requests_service)
):
    """客户自己的申请（新到旧）"""
    requests = await service.list_client_requests(db, telegram_id)
    return ApiResponse.success([ShipmentRequestOut.model_validate(r) for r in requests])


# ========== 会话草稿 ==========

@router.get("/sessions/{telegram_id}", response_model=ApiResponse[Optional[SessionDraft]])
async def get_session_draft(telegram_id: int, store: BotSessionStore = Depends(get_session_store)):
    data = await store.get(telegram_id)
    return ApiResponse.success(SessionDraft(data=data) if data is not None else None)


@router.put("/sessions/{telegram_id}", response_model=ApiResponse[SessionDraft])
async def save_session_draft(
    telegram_id: int,
    draft: SessionDraft,
    store: BotSessionStore = Depends(get_session_store)
):
    await store.save(telegram_id, draft.data)
    return ApiResponse.success(draft, metadata={"ttl_seconds": store.ttl_seconds})


@router.delete("/sessions/{telegram_id}", response_model=ApiResponse[Dict[str, bool]])
async def clear_session_draft(telegram_id: int, store: BotSessionStore = Depends(get_session_store)):
    return ApiResponse.success({"cleared": await store.clear(telegram_id)})
