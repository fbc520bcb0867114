"""
运输申请及其历史数据模型
状态历史与字段历史均为只追加日志
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    String, Integer, Numeric, Text, Date, DateTime, ForeignKey, CheckConstraint, Index
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lc_core.models.base import Base, utcnow


class ShipmentRequest(Base):
    """运输申请"""
    __tablename__ = "shipment_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    client_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False, index=True, comment="客户ID"
    )
    city_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("cities.id", ondelete="RESTRICT"), index=True, comment="城市ID（可能未匹配）"
    )
    city: Mapped[str] = mapped_column(String(255), nullable=False, comment="客户填写的城市")
    delivery_date: Mapped[date] = mapped_column(Date, nullable=False, comment="交付日期")
    packaging_type: Mapped[str] = mapped_column(String(20), nullable=False, comment="包装类型 pallets/boxes")
    box_count: Mapped[int] = mapped_column(Integer, nullable=False, comment="件数")
    volume: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 3), comment="体积（m³）")
    weight: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 3), comment="重量（kg）")
    comment: Mapped[Optional[str]] = mapped_column(Text, comment="备注")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="new", comment="状态")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, comment="创建时间")
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow, comment="更新时间")

    client: Mapped["Client"] = relationship(back_populates="requests")  # noqa: F821
    city_ref: Mapped[Optional["City"]] = relationship()  # noqa: F821
    status_history: Mapped[List["RequestStatusHistory"]] = relationship(
        back_populates="request", order_by="RequestStatusHistory.id"
    )
    field_history: Mapped[List["RequestFieldHistory"]] = relationship(
        back_populates="request", order_by="RequestFieldHistory.id"
    )
    services: Mapped[List["RequestService"]] = relationship(
        back_populates="request", order_by="RequestService.id"
    )

    __table_args__ = (
        CheckConstraint("status IN ('new', 'warehouse', 'shipped', 'done')", name="ck_shipment_requests_status"),
        CheckConstraint("packaging_type IN ('pallets', 'boxes')", name="ck_shipment_requests_packaging"),
        CheckConstraint("box_count > 0", name="ck_shipment_requests_box_count"),
        Index("idx_shipment_requests_status_created", "status", "created_at"),
    )

    def __repr__(self):
        return f"<ShipmentRequest(id={self.id}, status={self.status}, city={self.city})>"


class RequestStatusHistory(Base):
    """状态变更日志（只追加）"""
    __tablename__ = "request_status_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    request_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("shipment_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    old_status: Mapped[Optional[str]] = mapped_column(String(20), comment="原状态（创建时为空）")
    new_status: Mapped[str] = mapped_column(String(20), nullable=False, comment="新状态")
    manager_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("managers.id", ondelete="SET NULL"), comment="操作经理"
    )
    comment: Mapped[Optional[str]] = mapped_column(Text)
    changed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, comment="变更时间")

    request: Mapped["ShipmentRequest"] = relationship(back_populates="status_history")

    def __repr__(self):
        return f"<RequestStatusHistory(request_id={self.request_id}, {self.old_status}->{self.new_status})>"


class RequestFieldHistory(Base):
    """字段变更日志（只追加）"""
    __tablename__ = "request_field_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    request_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("shipment_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    field: Mapped[str] = mapped_column(String(30), nullable=False, comment="字段名")
    old_value: Mapped[Optional[str]] = mapped_column(Text, comment="旧值（字符串化）")
    new_value: Mapped[Optional[str]] = mapped_column(Text, comment="新值（字符串化）")
    manager_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("managers.id", ondelete="SET NULL"), comment="操作经理"
    )
    changed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, comment="变更时间")

    request: Mapped["ShipmentRequest"] = relationship(back_populates="field_history")

    def __repr__(self):
        return f"<RequestFieldHistory(request_id={self.request_id}, field={self.field})>"


class RequestService(Base):
    """申请的计费服务行（amount = quantity × price）"""
    __tablename__ = "request_services"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    request_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("shipment_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description: Mapped[str] = mapped_column(Text, nullable=False, comment="服务描述")
    unit: Mapped[str] = mapped_column(String(20), nullable=False, default="шт", comment="单位标签")
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, comment="数量")
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, comment="单价")
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, comment="金额")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, comment="创建时间")

    request: Mapped["ShipmentRequest"] = relationship(back_populates="services")

    def __repr__(self):
        return f"<RequestService(id={self.id}, request_id={self.request_id}, amount={self.amount})>"
