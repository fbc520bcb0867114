"""
API 响应模型
Decimal 字段在 JSON 中序列化为字符串
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar('T')


class ApiResponse(BaseModel, Generic[T]):
    """统一 API 响应格式"""
    ok: bool = Field(description="操作是否成功")
    data: Optional[T] = Field(default=None, description="响应数据")
    error: Optional[Dict[str, Any]] = Field(default=None, description="错误信息（RFC7807 Problem Details）")
    metadata: Optional[Dict[str, Any]] = Field(default=None, description="元数据")

    @classmethod
    def success(cls, data: T, metadata: Optional[Dict[str, Any]] = None) -> "ApiResponse[T]":
        """创建成功响应"""
        return cls(ok=True, data=data, metadata=metadata)


class OrmModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ========== 城市与价格 ==========

class CityOut(OrmModel):
    id: int
    short_name: str
    full_name: str


class PriceRateOut(OrmModel):
    id: int
    city_id: int
    unit: str
    min_weight_kg: Optional[Decimal] = None
    max_weight_kg: Optional[Decimal] = None
    min_volume_m3: Optional[Decimal] = None
    max_volume_m3: Optional[Decimal] = None
    price: Decimal
    comment: Optional[str] = None


# ========== 客户 ==========

class ClientOut(OrmModel):
    id: int
    telegram_id: int
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    display_name: str
    consent_given_at: Optional[datetime] = None
    created_at: datetime


# ========== 运输申请 ==========

class ShipmentRequestOut(OrmModel):
    id: int
    client_id: int
    city_id: Optional[int] = None
    city: str
    delivery_date: date
    packaging_type: str
    box_count: int
    volume: Optional[Decimal] = None
    weight: Optional[Decimal] = None
    comment: Optional[str] = None
    status: str
    created_at: datetime
    updated_at: datetime


class ShipmentRequestListItem(ShipmentRequestOut):
    client: ClientOut


class RequestServiceOut(OrmModel):
    id: int
    request_id: int
    description: str
    unit: str
    quantity: Decimal
    price: Decimal
    amount: Decimal


class TimelineEntryOut(BaseModel):
    """时间线条目：kind=status 时带 old/new_status，kind=field 时带 field/old/new_value"""
    kind: str
    changed_at: datetime
    manager_id: Optional[int] = None
    old_status: Optional[str] = None
    new_status: Optional[str] = None
    comment: Optional[str] = None
    field: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None


class ShipmentRequestDetail(ShipmentRequestOut):
    client: ClientOut
    city_ref: Optional[CityOut] = None
    services: List[RequestServiceOut]
    timeline: List[TimelineEntryOut]


# ========== 交易对手与发票 ==========

class CounterpartyOut(OrmModel):
    id: int
    name: str
    inn: Optional[str] = None
    kpp: Optional[str] = None
    ogrn: Optional[str] = None
    address: Optional[str] = None
    account: Optional[str] = None
    bik: Optional[str] = None
    correspondent_account: Optional[str] = None
    bank: Optional[str] = None
    director: Optional[str] = None
    contract: Optional[str] = None
    contacts: List[ClientOut] = Field(default_factory=list)


class InvoiceItemOut(OrmModel):
    position: int
    description: str
    unit: str
    quantity: Decimal
    price: Decimal
    amount: Decimal


class InvoiceOut(OrmModel):
    id: int
    number: str
    invoice_date: date
    counterparty_id: int
    request_id: Optional[int] = None
    total: Decimal
    items: List[InvoiceItemOut]


# ========== 时刻表 ==========

class ScheduleEntryOut(BaseModel):
    id: int
    city_id: int
    destination: str
    delivery_date: date
    accept_days: str
