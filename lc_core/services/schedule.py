"""
发运时刻表服务
"""
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lc_core.models import City, DeliverySchedule
from lc_core.services.base import BaseService, RepositoryMixin
from lc_core.utils.errors import NotFoundError, ValidationError


class ScheduleService(BaseService, RepositoryMixin):
    """时刻表增删改查"""

    async def list_entries(self, db: AsyncSession, date_from: Optional[date] = None) -> List[DeliverySchedule]:
        """按交付日期、目的地排序"""
        stmt = (
            select(DeliverySchedule)
            .join(City, DeliverySchedule.city_id == City.id)
            .options(selectinload(DeliverySchedule.city))
            .order_by(DeliverySchedule.delivery_date, City.full_name, DeliverySchedule.id)
        )
        if date_from is not None:
            stmt = stmt.where(DeliverySchedule.delivery_date >= date_from)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def list_destinations(self, db: AsyncSession) -> List[str]:
        """时刻表中出现的目的地（去重、排序）"""
        result = await db.execute(
            select(City.full_name)
            .join(DeliverySchedule, DeliverySchedule.city_id == City.id)
            .distinct()
        )
        return sorted(result.scalars().all())

    async def _load(self, db: AsyncSession, entry_id: int) -> DeliverySchedule:
        result = await db.execute(
            select(DeliverySchedule)
            .options(selectinload(DeliverySchedule.city))
            .where(DeliverySchedule.id == entry_id)
            .execution_options(populate_existing=True)
        )
        entry = result.scalar_one_or_none()
        if entry is None:
            raise NotFoundError("SCHEDULE_NOT_FOUND", f"Schedule entry {entry_id}")
        return entry

    def _clean_accept_days(self, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError("INVALID_ACCEPT_DAYS", "accept_days must not be empty", field="accept_days")
        return value.strip()

    async def create_entry(self, db: AsyncSession, city_id: int, delivery_date: date, accept_days: str) -> DeliverySchedule:
        await self.get_or_404(db, City, city_id, "CITY_NOT_FOUND", "City")
        entry = DeliverySchedule(
            city_id=city_id,
            delivery_date=delivery_date,
            accept_days=self._clean_accept_days(accept_days),
        )
        db.add(entry)
        await db.commit()
        return await self._load(db, entry.id)

    async def update_entry(self, db: AsyncSession, entry_id: int, changes: Dict[str, Any]) -> DeliverySchedule:
        entry = await self._load(db, entry_id)
        if "city_id" in changes:
            await self.get_or_404(db, City, changes["city_id"], "CITY_NOT_FOUND", "City")
            entry.city_id = changes["city_id"]
        if "delivery_date" in changes:
            entry.delivery_date = changes["delivery_date"]
        if "accept_days" in changes:
            entry.accept_days = self._clean_accept_days(changes["accept_days"])
        await db.commit()
        return await self._load(db, entry_id)

    async def delete_entry(self, db: AsyncSession, entry_id: int) -> None:
        entry = await self._load(db, entry_id)
        await db.delete(entry)
        await db.commit()
