"""
系统 API 路由
"""
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from lc_core import __version__
from lc_core.config import get_settings
from lc_core.database import get_async_session
from lc_core.services.notifier import get_notifier
from lc_core.utils.logger import get_logger
from .models import ApiResponse

router = APIRouter()
logger = get_logger(__name__)


@router.get("/health", response_model=ApiResponse[dict])
async def health_check(db: AsyncSession = Depends(get_async_session)):
    """健康检查（含数据库连通性）"""
    await db.execute(text("SELECT 1"))
    return ApiResponse.success({
        "status": "healthy",
        "version": __version__,
    })


@router.get("/info", response_model=ApiResponse[dict])
async def system_info():
    """系统信息"""
    settings = get_settings()
    return ApiResponse.success({
        "name": "LogiCRM",
        "version": __version__,
        "api_version": settings.api_version,
        "telegram_enabled": get_notifier().enabled,
    })
