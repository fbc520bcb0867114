"""
发运时刻表数据模型
"""
from datetime import date, datetime

from sqlalchemy import String, Integer, Date, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lc_core.models.base import Base, utcnow


class DeliverySchedule(Base):
    """发运计划：目的地、交付日期、收货日"""
    __tablename__ = "delivery_schedule"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    city_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cities.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    delivery_date: Mapped[date] = mapped_column(Date, nullable=False, comment="交付日期")
    accept_days: Mapped[str] = mapped_column(String(255), nullable=False, comment="收货日（自由文本）")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    city: Mapped["City"] = relationship()  # noqa: F821

    def __repr__(self):
        return f"<DeliverySchedule(id={self.id}, city_id={self.city_id}, date={self.delivery_date})>"
