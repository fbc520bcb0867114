"""
发票服务
- 发票行在创建时从申请服务行复制（或直接传入），之后不再关联
- 编号为按年递增序号：<seq>/<yy>
"""
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lc_core.models import (
    Client, Counterparty, CounterpartyContact, Invoice, InvoiceItem, RequestService, ShipmentRequest
)
from lc_core.services.base import BaseService, RepositoryMixin
from lc_core.services.invoice_pdf import SellerRequisites, render_invoice_pdf
from lc_core.services.notifier import TelegramNotifier, get_notifier
from lc_core.utils.decimals import AMOUNT_PRECISION, MEASURE_PLACES, MONEY_PLACES, to_column_scale
from lc_core.utils.errors import BadRequestError, InternalServerError, NotFoundError, ValidationError

DEFAULT_ITEM_UNIT = "усл"


def format_invoice_number(sequence: int, invoice_date: date) -> str:
    return f"{sequence}/{invoice_date:%y}"


def _item_number(value: Any, places: int, code: str, label: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(code, f"{label} must be a number", field="items")
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(code, f"{label} must be a number", field="items")
    if not number.is_finite():
        raise ValidationError(code, f"{label} must be a finite number", field="items")
    scaled = to_column_scale(number, places)
    if scaled is None:
        raise ValidationError(code, f"{label} is too large", field="items")
    return scaled


def _clean_item(raw: Dict[str, Any], position: int) -> InvoiceItem:
    description = (raw.get("description") or "").strip()
    if not description:
        raise ValidationError("INVALID_DESCRIPTION", f"item {position}: description is required", field="items")
    quantity = _item_number(raw.get("quantity", 0), MEASURE_PLACES, "INVALID_QUANTITY", f"item {position}: quantity")
    price = _item_number(raw.get("price", 0), MONEY_PLACES, "INVALID_PRICE", f"item {position}: price")
    if quantity <= 0:
        raise ValidationError("INVALID_QUANTITY", f"item {position}: quantity must be positive", field="items")
    if price < 0:
        raise ValidationError("INVALID_PRICE", f"item {position}: price must not be negative", field="items")
    amount = to_column_scale(quantity * price, MONEY_PLACES, precision=AMOUNT_PRECISION)
    if amount is None:
        raise ValidationError("INVALID_AMOUNT", f"item {position}: amount is too large", field="items")
    return InvoiceItem(
        position=position,
        description=description,
        unit=(raw.get("unit") or "").strip() or DEFAULT_ITEM_UNIT,
        quantity=quantity,
        price=price,
        amount=amount,
    )


class InvoiceService(BaseService, RepositoryMixin):
    """发票服务"""

    def __init__(self, notifier: Optional[TelegramNotifier] = None):
        super().__init__()
        self.notifier = notifier or get_notifier()

    async def _next_sequence(self, db: AsyncSession, invoice_date: date) -> int:
        result = await db.execute(
            select(func.count(Invoice.id)).where(
                Invoice.invoice_date >= date(invoice_date.year, 1, 1),
                Invoice.invoice_date <= date(invoice_date.year, 12, 31),
            )
        )
        return (result.scalar_one() or 0) + 1

    async def create_invoice(
        self,
        db: AsyncSession,
        counterparty_id: int,
        request_id: Optional[int] = None,
        items: Optional[Sequence[Dict[str, Any]]] = None,
        invoice_date: Optional[date] = None,
        manager_id: Optional[int] = None
    ) -> Invoice:
        """
        创建发票

        未传 items 时复制申请的服务行；至少需要一行。
        """
        await self.get_or_404(db, Counterparty, counterparty_id, "COUNTERPARTY_NOT_FOUND", "Counterparty")
        if request_id is not None:
            await self.get_or_404(db, ShipmentRequest, request_id, "REQUEST_NOT_FOUND", "Shipment request")

        if items is None:
            items = []
            if request_id is not None:
                result = await db.execute(
                    select(RequestService)
                    .where(RequestService.request_id == request_id)
                    .order_by(RequestService.id)
                )
                items = [
                    {
                        "description": s.description,
                        "unit": s.unit,
                        "quantity": s.quantity,
                        "price": s.price,
                    }
                    for s in result.scalars().all()
                ]

        if not items:
            raise ValidationError("EMPTY_INVOICE", "Invoice must contain at least one item", field="items")

        invoice_items = [_clean_item(raw, position) for position, raw in enumerate(items, start=1)]
        total = to_column_scale(sum((item.amount for item in invoice_items), Decimal("0.00")), MONEY_PLACES, AMOUNT_PRECISION)
        if total is None:
            raise ValidationError("INVALID_AMOUNT", "Invoice total is too large", field="items")
        invoice_date = invoice_date or date.today()
        sequence = await self._next_sequence(db, invoice_date)

        invoice = Invoice(
            number=format_invoice_number(sequence, invoice_date),
            invoice_date=invoice_date,
            counterparty_id=counterparty_id,
            request_id=request_id,
            total=total,
            created_by_manager_id=manager_id,
            items=invoice_items,
        )
        db.add(invoice)
        await self.commit(db, "INVOICE_NUMBER_CONFLICT", "Invoice number already taken, retry")

        self.logger.info(
            "Invoice created",
            invoice_id=invoice.id,
            number=invoice.number,
            total=str(invoice.total),
            items=len(invoice_items),
        )
        return await self.get_invoice(db, invoice.id)

    async def get_invoice(self, db: AsyncSession, invoice_id: int) -> Invoice:
        result = await db.execute(
            select(Invoice)
            .options(selectinload(Invoice.items), selectinload(Invoice.counterparty))
            .where(Invoice.id == invoice_id)
            .execution_options(populate_existing=True)
        )
        invoice = result.scalar_one_or_none()
        if invoice is None:
            raise NotFoundError("INVOICE_NOT_FOUND", f"Invoice {invoice_id}")
        return invoice

    async def list_invoices(self, db: AsyncSession, request_id: Optional[int] = None) -> List[Invoice]:
        stmt = (
            select(Invoice)
            .options(selectinload(Invoice.items), selectinload(Invoice.counterparty))
            .order_by(Invoice.id.desc())
        )
        if request_id is not None:
            stmt = stmt.where(Invoice.request_id == request_id)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def render_pdf(
        self,
        db: AsyncSession,
        invoice_id: int,
        seller: Optional[SellerRequisites] = None
    ) -> Tuple[Invoice, bytes]:
        invoice = await self.get_invoice(db, invoice_id)
        try:
            content = render_invoice_pdf(invoice, invoice.items, invoice.counterparty, seller)
        except (OSError, ValueError) as e:
            self.logger.error("Invoice PDF rendering failed", invoice_id=invoice_id, exc_info=True)
            raise InternalServerError("PDF_RENDER_FAILED", f"Failed to render invoice: {e}")
        return invoice, content

    async def _recipients(self, db: AsyncSession, invoice: Invoice) -> List[int]:
        result = await db.execute(
            select(Client.telegram_id)
            .join(CounterpartyContact, CounterpartyContact.client_id == Client.id)
            .where(CounterpartyContact.counterparty_id == invoice.counterparty_id)
            .order_by(CounterpartyContact.id)
        )
        chat_ids = list(result.scalars().all())

        if invoice.request_id is not None:
            result = await db.execute(
                select(Client.telegram_id)
                .join(ShipmentRequest, ShipmentRequest.client_id == Client.id)
                .where(ShipmentRequest.id == invoice.request_id)
            )
            chat_ids.extend(result.scalars().all())

        return list(dict.fromkeys(chat_ids))

    async def send_invoice(self, db: AsyncSession, invoice_id: int) -> Dict[str, int]:
        """通过 Telegram 发送发票 PDF；单个收件人失败不影响其他收件人"""
        invoice, content = await self.render_pdf(db, invoice_id)
        chat_ids = await self._recipients(db, invoice)
        if not chat_ids:
            raise BadRequestError("NO_RECIPIENTS", "Invoice has no Telegram recipients")

        filename = f"invoice_{invoice.number.replace('/', '-')}.pdf"
        caption = f"Счёт № {invoice.number} от {invoice.invoice_date:%d.%m.%Y}"
        delivered = 0
        for chat_id in chat_ids:
            if await self.notifier.send_document(chat_id, content, filename, caption):
                delivered += 1

        self.logger.info("Invoice sent", invoice_id=invoice_id, recipients=len(chat_ids), delivered=delivered)
        return {"recipients": len(chat_ids), "delivered": delivered}
