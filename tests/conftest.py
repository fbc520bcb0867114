"""
Pytest 配置和 fixtures
"""
import os

# 必须在导入 lc_core 之前设置
os.environ["LC__DATABASE_URL_OVERRIDE"] = "sqlite+aiosqlite:///:memory:"
os.environ["LC__TELEGRAM_BOT_TOKEN"] = ""
os.environ.setdefault("LC__SECRET_KEY", "test-secret-key")

from datetime import date
from decimal import Decimal
from typing import Any, AsyncGenerator, Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from lc_core.app import app
from lc_core.api import admin_requests, bot, invoices
from lc_core.config import get_settings
from lc_core.database import DatabaseManager, get_async_session
from lc_core.models import City, Client, Manager, PriceRate, ShipmentRequest
from lc_core.services.auth_service import get_auth_service
from lc_core.services.bot_sessions import BotSessionStore
from lc_core.services.invoices import InvoiceService
from lc_core.services.notifier import TelegramNotifier
from lc_core.services.shipment_requests import ShipmentRequestsService


class RecordingNotifier(TelegramNotifier):
    """记录调用而不访问 Telegram 的通知服务"""

    def __init__(self, fail: bool = False):
        super().__init__(bot_token="test-token", api_base="http://telegram.invalid")
        self.fail = fail
        self.status_notifications: List[Tuple[int, int, str]] = []
        self.documents: List[Tuple[int, str, Optional[str]]] = []

    async def notify_status_changed(self, chat_id: int, request_id: int, status: str) -> bool:
        if self.fail:
            raise RuntimeError("telegram is down")
        self.status_notifications.append((chat_id, request_id, status))
        return True

    async def send_document(self, chat_id: int, content: bytes, filename: str, caption: Optional[str] = None) -> bool:
        self.documents.append((chat_id, filename, caption))
        return True


class FakeRedis:
    """会话存储测试用的最小 Redis 替身（get/set/delete）"""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, Optional[int]] = {}

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        self.data[key] = value
        self.ttls[key] = ex
        return True

    async def delete(self, key: str) -> int:
        self.ttls.pop(key, None)
        return 1 if self.data.pop(key, None) is not None else 0


@pytest_asyncio.fixture
async def db_manager() -> AsyncGenerator[DatabaseManager, None]:
    """每个测试独立的内存数据库"""
    manager = DatabaseManager("sqlite+aiosqlite:///:memory:")
    await manager.create_tables()
    yield manager
    await manager.drop_tables()
    await manager.close()


@pytest_asyncio.fixture
async def db_session(db_manager) -> AsyncGenerator[AsyncSession, None]:
    """数据库会话 fixture"""
    async with db_manager.get_session() as session:
        yield session


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def failing_notifier() -> RecordingNotifier:
    return RecordingNotifier(fail=True)


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest_asyncio.fixture
async def client(db_manager, notifier, fake_redis) -> AsyncGenerator[AsyncClient, None]:
    """HTTP 客户端：数据库、通知服务和 Redis 均替换为测试实现"""

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with db_manager.get_session() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_session
    app.dependency_overrides[admin_requests.get_requests_service] = lambda: ShipmentRequestsService(notifier=notifier)
    app.dependency_overrides[bot.get_requests_service] = lambda: ShipmentRequestsService(notifier=notifier)
    app.dependency_overrides[invoices.get_invoice_service] = lambda: InvoiceService(notifier=notifier)
    app.dependency_overrides[bot.get_session_store] = lambda: BotSessionStore(fake_redis, ttl_seconds=600)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client

    app.dependency_overrides.clear()


@pytest.fixture
def api_prefix() -> str:
    return get_settings().api_prefix


@pytest_asyncio.fixture
async def manager(db_session) -> Manager:
    """示例经理"""
    manager = Manager(
        email="manager@example.com",
        name="Test Manager",
        password_hash=get_auth_service().hash_password("secret"),
        is_active=True,
    )
    db_session.add(manager)
    await db_session.commit()
    await db_session.refresh(manager)
    return manager


def make_token(manager_id: int, token_type: str = "access") -> str:
    settings = get_settings()
    return jwt.encode({"sub": str(manager_id), "type": token_type}, settings.secret_key, algorithm=settings.algorithm)


@pytest.fixture
def token_factory():
    """按经理ID和令牌类型签发测试令牌"""
    return make_token


@pytest.fixture
def auth_headers(manager) -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token(manager.id)}"}


@pytest_asyncio.fixture
async def city(db_session) -> City:
    """带完整阶梯的示例城市"""
    city = City(short_name="Казань", full_name="Казань (склад Wildberries)")
    db_session.add(city)
    await db_session.flush()
    db_session.add_all([
        PriceRate(city_id=city.id, unit="pallet", min_weight_kg=Decimal("0"), max_weight_kg=Decimal("300"), price=Decimal("3500")),
        PriceRate(city_id=city.id, unit="pallet", min_weight_kg=Decimal("300"), max_weight_kg=Decimal("600"), price=Decimal("4500")),
        PriceRate(city_id=city.id, unit="kg", price=Decimal("25")),
        PriceRate(city_id=city.id, unit="m3", min_volume_m3=Decimal("0"), max_volume_m3=None, price=Decimal("2000")),
    ])
    await db_session.commit()
    await db_session.refresh(city)
    return city


@pytest_asyncio.fixture
async def shipment_client(db_session) -> Client:
    client = Client(telegram_id=555000111, username="ivan", first_name="Иван")
    db_session.add(client)
    await db_session.commit()
    await db_session.refresh(client)
    return client


@pytest_asyncio.fixture
async def shipment_request(db_session, shipment_client, city) -> ShipmentRequest:
    """状态为 new 的示例申请（托盘，重量 250 kg）"""
    service = ShipmentRequestsService(notifier=RecordingNotifier())
    return await service.create_from_bot(
        db_session,
        telegram_id=shipment_client.telegram_id,
        fields={
            "city": "Казань",
            "delivery_date": "2026-11-02",
            "packaging_type": "pallets",
            "box_count": 2,
            "weight": 250,
            "volume": Decimal("1.5"),
        },
    )


@pytest.fixture
def sample_request_payload() -> Dict[str, Any]:
    """机器人提交的示例申请"""
    return {
        "telegram_id": 777000222,
        "username": "olga",
        "first_name": "Ольга",
        "city": "Казань",
        "delivery_date": date(2026, 11, 9).isoformat(),
        "packaging_type": "boxes",
        "box_count": 4,
        "weight": 18.5,
    }
