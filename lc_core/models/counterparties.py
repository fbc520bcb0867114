"""
交易对手（开票主体）数据模型
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import String, Integer, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lc_core.models.base import Base, utcnow


class Counterparty(Base):
    """交易对手（公司/个体户）"""
    __tablename__ = "counterparties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, comment="名称")
    inn: Mapped[Optional[str]] = mapped_column(String(12), unique=True, comment="ИНН")
    kpp: Mapped[Optional[str]] = mapped_column(String(9), comment="КПП")
    ogrn: Mapped[Optional[str]] = mapped_column(String(15), comment="ОГРН")
    address: Mapped[Optional[str]] = mapped_column(Text, comment="地址")
    account: Mapped[Optional[str]] = mapped_column(String(20), comment="结算账户")
    bik: Mapped[Optional[str]] = mapped_column(String(9), comment="БИК")
    correspondent_account: Mapped[Optional[str]] = mapped_column(String(20), comment="代理账户")
    bank: Mapped[Optional[str]] = mapped_column(String(255), comment="银行")
    director: Mapped[Optional[str]] = mapped_column(String(255), comment="负责人")
    contract: Mapped[Optional[str]] = mapped_column(String(255), comment="合同")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, comment="创建时间")
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow, comment="更新时间")

    contacts: Mapped[List["CounterpartyContact"]] = relationship(
        back_populates="counterparty", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Counterparty(id={self.id}, name={self.name}, inn={self.inn})>"


class CounterpartyContact(Base):
    """交易对手联系人（关联客户）"""
    __tablename__ = "counterparty_contacts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    counterparty_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("counterparties.id", ondelete="CASCADE"), nullable=False
    )
    client_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False
    )

    counterparty: Mapped["Counterparty"] = relationship(back_populates="contacts")
    client: Mapped["Client"] = relationship()  # noqa: F821

    __table_args__ = (
        UniqueConstraint("counterparty_id", "client_id", name="uq_counterparty_contact"),
    )
