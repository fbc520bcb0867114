"""
LogiCRM 服务层
"""
from .pricing import PricingService
from .shipment_requests import ShipmentRequestsService
from .counterparties import CounterpartyService
from .invoices import InvoiceService
from .schedule import ScheduleService
from .clients import ClientService
from .notifier import TelegramNotifier, get_notifier

__all__ = [
    "PricingService",
    "ShipmentRequestsService",
    "CounterpartyService",
    "InvoiceService",
    "ScheduleService",
    "ClientService",
    "TelegramNotifier",
    "get_notifier",
]
