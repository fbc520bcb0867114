"""
价格目录服务：城市与阶梯价格的增删改查
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lc_core.models import City, DeliverySchedule, PriceRate, ShipmentRequest
from lc_core.models.enums import RateUnit
from lc_core.services.base import BaseService, RepositoryMixin
from lc_core.services.tiers import BOUND_FIELDS, validate_tier_bounds
from lc_core.utils.errors import ConflictError, ValidationError


def _tier_order():
    return (
        PriceRate.city_id,
        PriceRate.unit,
        func.coalesce(PriceRate.min_weight_kg, PriceRate.min_volume_m3, 0),
        PriceRate.id,
    )


class PricingService(BaseService, RepositoryMixin):
    """城市与阶梯价格服务"""

    # ========== 城市 ==========

    async def list_cities(self, db: AsyncSession) -> List[City]:
        result = await db.execute(select(City).order_by(City.short_name))
        return list(result.scalars().all())

    async def get_city(self, db: AsyncSession, city_id: int) -> City:
        return await self.get_or_404(db, City, city_id, "CITY_NOT_FOUND", "City")

    async def resolve_city(self, db: AsyncSession, name: str) -> Optional[City]:
        """按简称或全称匹配城市（不区分大小写）"""
        wanted = name.strip().casefold()
        if not wanted:
            return None
        for city in await self.list_cities(db):
            if city.short_name.casefold() == wanted or city.full_name.casefold() == wanted:
                return city
        return None

    def _clean_city_fields(self, short_name: Optional[str], full_name: Optional[str]) -> Dict[str, str]:
        values = {}
        for key, value in (("short_name", short_name), ("full_name", full_name)):
            if value is None:
                continue
            if not value.strip():
                raise ValidationError("INVALID_CITY", f"{key} must not be empty", field=key)
            values[key] = value.strip()
        return values

    async def create_city(self, db: AsyncSession, short_name: str, full_name: Optional[str] = None) -> City:
        values = self._clean_city_fields(short_name, full_name or short_name)
        if await self.exists(db, City, short_name=values["short_name"]):
            raise ConflictError("CITY_EXISTS", f"City '{values['short_name']}' already exists")

        city = City(**values)
        db.add(city)
        await self.commit(db, "CITY_EXISTS", f"City '{values['short_name']}' already exists")
        await db.refresh(city)
        self.logger.info("City created", city_id=city.id, short_name=city.short_name)
        return city

    async def update_city(
        self,
        db: AsyncSession,
        city_id: int,
        short_name: Optional[str] = None,
        full_name: Optional[str] = None
    ) -> City:
        city = await self.get_city(db, city_id)
        values = self._clean_city_fields(short_name, full_name)
        new_short = values.get("short_name")
        if new_short and new_short != city.short_name and await self.exists(db, City, short_name=new_short):
            raise ConflictError("CITY_EXISTS", f"City '{new_short}' already exists")

        await self.update(db, city, values)
        await self.commit(db, "CITY_EXISTS", f"City '{new_short}' already exists")
        return city

    async def delete_city(self, db: AsyncSession, city_id: int) -> None:
        """删除城市；被阶梯、申请或时刻表引用时拒绝"""
        city = await self.get_city(db, city_id)
        for model, what in (
            (PriceRate, "price rates"),
            (ShipmentRequest, "shipment requests"),
            (DeliverySchedule, "schedule entries"),
        ):
            if await self.exists(db, model, city_id=city_id):
                raise ValidationError("CITY_IN_USE", f"City is referenced by {what}", field="city_id")

        await db.delete(city)
        await db.commit()
        self.logger.info("City deleted", city_id=city_id)

    # ========== 阶梯价格 ==========

    async def list_rates(self, db: AsyncSession, city_id: Optional[int] = None) -> List[PriceRate]:
        """阶梯列表：按城市、单位、下限升序"""
        stmt = select(PriceRate).order_by(*_tier_order())
        if city_id is not None:
            stmt = stmt.where(PriceRate.city_id == city_id)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def get_rate(self, db: AsyncSession, rate_id: int) -> PriceRate:
        return await self.get_or_404(db, PriceRate, rate_id, "RATE_NOT_FOUND", "Price rate")

    async def _ensure_unique_tier(self, db: AsyncSession, city_id: int, values: Dict[str, Any], exclude_id: Optional[int] = None) -> None:
        for other in await self.list_rates(db, city_id):
            if other.id == exclude_id or other.unit != values["unit"]:
                continue
            if values["unit"] == RateUnit.KG.value:
                raise ConflictError("RATE_EXISTS", "City already has a kg rate")
            if all(_same_bound(getattr(other, f), values[f]) for f in BOUND_FIELDS):
                raise ConflictError("RATE_EXISTS", "Rate with the same unit and range already exists")

    async def create_rate(
        self,
        db: AsyncSession,
        city_id: int,
        unit: str,
        price: Any,
        bounds: Optional[Dict[str, Any]] = None,
        comment: Optional[str] = None
    ) -> PriceRate:
        await self.get_city(db, city_id)
        values = validate_tier_bounds(unit, price, bounds or {})
        await self._ensure_unique_tier(db, city_id, values)

        rate = PriceRate(city_id=city_id, comment=(comment or "").strip() or None, **values)
        db.add(rate)
        await self.commit(db, "RATE_EXISTS", "Rate with the same identity already exists")
        await db.refresh(rate)
        self.logger.info("Price rate created", rate_id=rate.id, city_id=city_id, unit=rate.unit)
        return rate

    async def update_rate(self, db: AsyncSession, rate_id: int, changes: Dict[str, Any]) -> PriceRate:
        """更新阶梯：与现有值合并后整体重新校验"""
        rate = await self.get_rate(db, rate_id)
        city_id = changes.get("city_id") or rate.city_id
        if city_id != rate.city_id:
            await self.get_city(db, city_id)

        merged_bounds = {f: changes.get(f, getattr(rate, f)) for f in BOUND_FIELDS}
        values = validate_tier_bounds(
            changes.get("unit", rate.unit),
            changes.get("price", rate.price),
            merged_bounds
        )
        await self._ensure_unique_tier(db, city_id, values, exclude_id=rate.id)

        values["city_id"] = city_id
        if "comment" in changes:
            values["comment"] = (changes["comment"] or "").strip() or None
        await self.update(db, rate, values)
        await self.commit(db, "RATE_EXISTS", "Rate with the same identity already exists")
        await db.refresh(rate)
        return rate

    async def delete_rate(self, db: AsyncSession, rate_id: int) -> None:
        rate = await self.get_rate(db, rate_id)
        await db.delete(rate)
        await db.commit()
        self.logger.info("Price rate deleted", rate_id=rate_id)


def _same_bound(a: Optional[Decimal], b: Optional[Decimal]) -> bool:
    if a is None or b is None:
        return a is None and b is None
    return Decimal(a) == Decimal(b)
