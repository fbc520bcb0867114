"""
发票数据模型
发票行在创建时冻结，与申请服务行不再关联
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import String, Integer, Numeric, Text, Date, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lc_core.models.base import Base, utcnow


class Invoice(Base):
    """发票"""
    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    number: Mapped[str] = mapped_column(String(30), nullable=False, unique=True, comment="发票编号 <序号>/<年>")
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False, comment="开票日期")
    counterparty_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("counterparties.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    request_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("shipment_requests.id", ondelete="SET NULL"), index=True
    )
    total: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, comment="合计")
    created_by_manager_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("managers.id", ondelete="SET NULL")
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, comment="创建时间")

    counterparty: Mapped["Counterparty"] = relationship()  # noqa: F821
    items: Mapped[List["InvoiceItem"]] = relationship(
        back_populates="invoice", cascade="all, delete-orphan", order_by="InvoiceItem.position"
    )

    def __repr__(self):
        return f"<Invoice(id={self.id}, number={self.number}, total={self.total})>"


class InvoiceItem(Base):
    """发票行（冻结副本）"""
    __tablename__ = "invoice_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    invoice_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, comment="行号（从1开始）")
    description: Mapped[str] = mapped_column(Text, nullable=False)
    unit: Mapped[str] = mapped_column(String(20), nullable=False, default="усл")
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    invoice: Mapped["Invoice"] = relationship(back_populates="items")
