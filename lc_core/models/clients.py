"""
客户（Telegram 用户）与经理数据模型
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import String, Integer, BigInteger, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lc_core.models.base import Base, utcnow


class Client(Base):
    """通过 Telegram 机器人/小程序提交申请的客户"""
    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    telegram_id: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True, comment="Telegram 用户ID")
    username: Mapped[Optional[str]] = mapped_column(String(100), comment="Telegram 用户名")
    first_name: Mapped[Optional[str]] = mapped_column(String(100))
    last_name: Mapped[Optional[str]] = mapped_column(String(100))
    consent_given_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), comment="同意个人数据处理的时间")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, comment="创建时间")

    requests: Mapped[List["ShipmentRequest"]] = relationship(back_populates="client")  # noqa: F821

    @property
    def display_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        if parts:
            return " ".join(parts)
        return f"@{self.username}" if self.username else str(self.telegram_id)

    def __repr__(self):
        return f"<Client(id={self.id}, telegram_id={self.telegram_id})>"


class Manager(Base):
    """后台经理账号"""
    __tablename__ = "managers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, comment="登录邮箱")
    name: Mapped[str] = mapped_column(String(100), nullable=False, comment="显示名称")
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False, comment="bcrypt 哈希")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, comment="是否启用")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, comment="创建时间")

    def __repr__(self):
        return f"<Manager(id={self.id}, email={self.email})>"
