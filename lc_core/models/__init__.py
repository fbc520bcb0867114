"""
LogiCRM 数据模型包
"""
from .base import Base
from .pricing import City, PriceRate
from .clients import Client, Manager
from .requests import ShipmentRequest, RequestStatusHistory, RequestFieldHistory, RequestService
from .counterparties import Counterparty, CounterpartyContact
from .invoices import Invoice, InvoiceItem
from .schedule import DeliverySchedule

__all__ = [
    "Base",
    "City",
    "PriceRate",
    "Client",
    "Manager",
    "ShipmentRequest",
    "RequestStatusHistory",
    "RequestFieldHistory",
    "RequestService",
    "Counterparty",
    "CounterpartyContact",
    "Invoice",
    "InvoiceItem",
    "DeliverySchedule",
]
