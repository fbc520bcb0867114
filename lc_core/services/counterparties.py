"""
交易对手服务
"""
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lc_core.models import Client, Counterparty, CounterpartyContact, Invoice
from lc_core.services.base import BaseService, RepositoryMixin
from lc_core.utils.errors import ConflictError, NotFoundError, ValidationError

COUNTERPARTY_FIELDS = (
    "name", "inn", "kpp", "ogrn", "address", "account", "bik",
    "correspondent_account", "bank", "director", "contract",
)


class CounterpartyService(BaseService, RepositoryMixin):
    """交易对手增删改查与联系人维护"""

    def _clean(self, data: Dict[str, Any]) -> Dict[str, Any]:
        values = {}
        for key in COUNTERPARTY_FIELDS:
            if key not in data:
                continue
            value = data[key]
            values[key] = value.strip() or None if isinstance(value, str) else value
        if "name" in values and not values["name"]:
            raise ValidationError("INVALID_NAME", "name is required", field="name")
        return values

    async def _load(self, db: AsyncSession, counterparty_id: int) -> Counterparty:
        result = await db.execute(
            select(Counterparty)
            .options(selectinload(Counterparty.contacts).selectinload(CounterpartyContact.client))
            .where(Counterparty.id == counterparty_id)
            .execution_options(populate_existing=True)
        )
        counterparty = result.scalar_one_or_none()
        if counterparty is None:
            raise NotFoundError("COUNTERPARTY_NOT_FOUND", f"Counterparty {counterparty_id}")
        return counterparty

    async def _ensure_inn_free(self, db: AsyncSession, inn: Optional[str], exclude_id: Optional[int] = None) -> None:
        if not inn:
            return
        existing = await self.get_by_field(db, Counterparty, "inn", inn)
        if existing is not None and existing.id != exclude_id:
            raise ConflictError("COUNTERPARTY_EXISTS", f"Counterparty with INN {inn} already exists")

    async def _set_contacts(self, db: AsyncSession, counterparty: Counterparty, client_ids: List[int]) -> None:
        unique_ids = list(dict.fromkeys(client_ids))
        if unique_ids:
            result = await db.execute(select(Client.id).where(Client.id.in_(unique_ids)))
            found = set(result.scalars().all())
            missing = [cid for cid in unique_ids if cid not in found]
            if missing:
                raise NotFoundError("CLIENT_NOT_FOUND", f"Client {missing[0]}")
        # 保留已有的联系人行，避免先插后删触发唯一约束
        current = {contact.client_id: contact for contact in counterparty.contacts}
        counterparty.contacts = [
            current.get(cid) or CounterpartyContact(client_id=cid) for cid in unique_ids
        ]

    async def list_counterparties(self, db: AsyncSession) -> List[Counterparty]:
        result = await db.execute(
            select(Counterparty)
            .options(selectinload(Counterparty.contacts).selectinload(CounterpartyContact.client))
            .order_by(Counterparty.name)
        )
        return list(result.scalars().all())

    async def get_counterparty(self, db: AsyncSession, counterparty_id: int) -> Counterparty:
        return await self._load(db, counterparty_id)

    async def create_counterparty(
        self,
        db: AsyncSession,
        data: Dict[str, Any],
        contact_client_ids: Optional[List[int]] = None
    ) -> Counterparty:
        values = self._clean(data)
        if not values.get("name"):
            raise ValidationError("INVALID_NAME", "name is required", field="name")
        await self._ensure_inn_free(db, values.get("inn"))

        counterparty = Counterparty(**values)
        counterparty.contacts = []
        db.add(counterparty)
        await self._set_contacts(db, counterparty, contact_client_ids or [])
        await self.commit(db, "COUNTERPARTY_EXISTS", "Counterparty already exists")
        self.logger.info("Counterparty created", counterparty_id=counterparty.id)
        return await self._load(db, counterparty.id)

    async def update_counterparty(
        self,
        db: AsyncSession,
        counterparty_id: int,
        data: Dict[str, Any],
        contact_client_ids: Optional[List[int]] = None
    ) -> Counterparty:
        counterparty = await self._load(db, counterparty_id)
        values = self._clean(data)
        if "inn" in values:
            await self._ensure_inn_free(db, values["inn"], exclude_id=counterparty_id)

        for key, value in values.items():
            setattr(counterparty, key, value)
        if contact_client_ids is not None:
            await self._set_contacts(db, counterparty, contact_client_ids)
        await self.commit(db, "COUNTERPARTY_EXISTS", "Counterparty already exists")
        return await self._load(db, counterparty_id)

    async def delete_counterparty(self, db: AsyncSession, counterparty_id: int) -> None:
        counterparty = await self._load(db, counterparty_id)
        if await self.exists(db, Invoice, counterparty_id=counterparty_id):
            raise ValidationError("COUNTERPARTY_IN_USE", "Counterparty has invoices", field="counterparty_id")
        await db.delete(counterparty)
        await db.commit()
        self.logger.info("Counterparty deleted", counterparty_id=counterparty_id)
