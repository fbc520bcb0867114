"""
城市与阶梯价格数据模型
遵循约束：UTC 时间、Decimal 金额、统一命名规范
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    String, Integer, Numeric, Text, DateTime, ForeignKey, CheckConstraint, Index
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lc_core.models.base import Base, utcnow


class City(Base):
    """目的地城市"""
    __tablename__ = "cities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    short_name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, comment="简称（唯一键）")
    full_name: Mapped[str] = mapped_column(String(255), nullable=False, comment="完整显示名称")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, comment="创建时间")

    rates: Mapped[List["PriceRate"]] = relationship(back_populates="city", order_by="PriceRate.id")

    def __repr__(self):
        return f"<City(id={self.id}, short_name={self.short_name})>"


class PriceRate(Base):
    """阶梯价格

    pallet 只允许重量区间，m3 只允许体积区间，kg 不带区间
    """
    __tablename__ = "price_rates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    city_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cities.id", ondelete="RESTRICT"), nullable=False, comment="城市ID"
    )
    unit: Mapped[str] = mapped_column(String(10), nullable=False, comment="计价单位 pallet/kg/m3")
    min_weight_kg: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 3), comment="最小重量（含）")
    max_weight_kg: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 3), comment="最大重量（含）")
    min_volume_m3: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 3), comment="最小体积（含）")
    max_volume_m3: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 3), comment="最大体积（含）")
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, comment="价格（RUB）")
    comment: Mapped[Optional[str]] = mapped_column(Text, comment="备注")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, comment="创建时间")
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow, comment="更新时间")

    city: Mapped["City"] = relationship(back_populates="rates")

    __table_args__ = (
        CheckConstraint("unit IN ('pallet', 'kg', 'm3')", name="ck_price_rates_unit"),
        CheckConstraint("price > 0", name="ck_price_rates_price_positive"),
        CheckConstraint(
            "unit != 'pallet' OR (min_volume_m3 IS NULL AND max_volume_m3 IS NULL)",
            name="ck_price_rates_pallet_bounds"
        ),
        CheckConstraint(
            "unit != 'm3' OR (min_weight_kg IS NULL AND max_weight_kg IS NULL)",
            name="ck_price_rates_m3_bounds"
        ),
        CheckConstraint(
            "unit != 'kg' OR (min_weight_kg IS NULL AND max_weight_kg IS NULL "
            "AND min_volume_m3 IS NULL AND max_volume_m3 IS NULL)",
            name="ck_price_rates_kg_bounds"
        ),
        Index("idx_price_rates_city_unit", "city_id", "unit"),
    )

    def __repr__(self):
        return f"<PriceRate(id={self.id}, city_id={self.city_id}, unit={self.unit}, price={self.price})>"
