"""
客户服务：个人数据处理同意、客户列表与详情
"""
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lc_core.models import Client, ShipmentRequest
from lc_core.models.base import utcnow
from lc_core.services.base import BaseService, RepositoryMixin


@dataclass
class ClientSummary:
    client: Client
    request_count: int


class ClientService(BaseService, RepositoryMixin):
    """客户服务"""

    async def has_consent(self, db: AsyncSession, telegram_id: int) -> bool:
        client = await self.get_by_field(db, Client, "telegram_id", telegram_id)
        return client is not None and client.consent_given_at is not None

    async def give_consent(
        self,
        db: AsyncSession,
        telegram_id: int,
        username: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None
    ) -> Client:
        """记录同意；客户不存在时创建。重复同意保留首次时间"""
        client = await self.get_by_field(db, Client, "telegram_id", telegram_id)
        if client is None:
            client = Client(telegram_id=telegram_id)
            db.add(client)
        for key, value in (("username", username), ("first_name", first_name), ("last_name", last_name)):
            if value is not None:
                setattr(client, key, value)
        if client.consent_given_at is None:
            client.consent_given_at = utcnow()
        await db.commit()
        await db.refresh(client)
        self.logger.info("Client consent recorded", client_id=client.id)
        return client

    async def list_clients(self, db: AsyncSession) -> List[ClientSummary]:
        """客户列表及申请数量"""
        result = await db.execute(
            select(Client, func.count(ShipmentRequest.id))
            .outerjoin(ShipmentRequest, ShipmentRequest.client_id == Client.id)
            .group_by(Client.id)
            .order_by(Client.created_at.desc(), Client.id.desc())
        )
        return [ClientSummary(client=row[0], request_count=row[1]) for row in result.all()]

    async def get_client_with_requests(self, db: AsyncSession, client_id: int) -> Tuple[Client, List[ShipmentRequest]]:
        client = await self.get_or_404(db, Client, client_id, "CLIENT_NOT_FOUND", "Client")
        result = await db.execute(
            select(ShipmentRequest)
            .where(ShipmentRequest.client_id == client_id)
            .order_by(ShipmentRequest.created_at.desc(), ShipmentRequest.id.desc())
        )
        return client, list(result.scalars().all())
