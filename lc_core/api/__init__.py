"""
LogiCRM API 路由模块
"""

from fastapi import APIRouter

from .auth import router as auth_router
from .bot import router as bot_router
from .admin_requests import router as admin_requests_router
from .prices import router as prices_router
from .clients import router as clients_router
from .counterparties import router as counterparties_router
from .invoices import router as invoices_router
from .schedule import router as schedule_router
from .system import router as system_router

# 创建主路由器
api_router = APIRouter()

# 注册路由（各路由自带 tags）
api_router.include_router(auth_router)
api_router.include_router(bot_router)
api_router.include_router(admin_requests_router)
api_router.include_router(prices_router)
api_router.include_router(clients_router)
api_router.include_router(counterparties_router)
api_router.include_router(invoices_router)
api_router.include_router(schedule_router)
api_router.include_router(system_router, prefix="/system", tags=["System"])
