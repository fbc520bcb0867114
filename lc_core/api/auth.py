"""
认证API路由
后台接口使用 Bearer JWT；令牌由外部登录服务签发，这里只做校验
"""
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from lc_core.database import get_async_session
from lc_core.models import Manager
from lc_core.services.auth_service import get_auth_service
from lc_core.utils.errors import ForbiddenError, UnauthorizedError
from lc_core.utils.logger import get_logger, manager_id_var
from .models import ApiResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

# Bearer认证（缺失时由依赖统一返回 401）
security = HTTPBearer(auto_error=False)


class ManagerOut(BaseModel):
    id: int
    email: str
    name: str


async def get_current_manager(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: AsyncSession = Depends(get_async_session)
) -> Manager:
    """获取当前经理"""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError(code="MISSING_CREDENTIALS", detail="Missing authentication credentials")

    manager_id = get_auth_service().manager_id_from_token(credentials.credentials)
    manager = await session.get(Manager, manager_id)
    if manager is None:
        raise UnauthorizedError(code="MANAGER_NOT_FOUND", detail="Manager not found")
    if not manager.is_active:
        raise ForbiddenError(code="MANAGER_INACTIVE", detail="Manager account is disabled")

    manager_id_var.set(manager.id)
    return manager


@router.get("/me", response_model=ApiResponse[ManagerOut])
async def get_me(current_manager: Manager = Depends(get_current_manager)):
    """当前登录经理信息"""
    return ApiResponse.success(ManagerOut(
        id=current_manager.id,
        email=current_manager.email,
        name=current_manager.name,
    ))
