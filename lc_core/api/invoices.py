"""
后台发票 API 路由
"""
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from lc_core.database import get_async_session
from lc_core.models import Manager
from lc_core.services.invoices import InvoiceService
from lc_core.services.notifier import get_notifier
from .auth import get_current_manager
from .models import ApiResponse, InvoiceOut

router = APIRouter(prefix="/admin/invoices", tags=["Invoices"])


class InvoiceItemPayload(BaseModel):
    description: str
    unit: Optional[str] = Field(default=None, description="单位，默认 усл")
    quantity: Decimal
    price: Decimal


class CreateInvoicePayload(BaseModel):
    counterparty_id: int = Field(..., description="交易对手ID")
    request_id: Optional[int] = Field(default=None, description="关联申请ID")
    invoice_date: Optional[date] = Field(default=None, description="开票日期，默认今天")
    items: Optional[List[InvoiceItemPayload]] = Field(
        default=None, description="发票行；为空时复制申请的服务行"
    )


def get_invoice_service() -> InvoiceService:
    return InvoiceService(notifier=get_notifier())


@router.get("", response_model=ApiResponse[List[InvoiceOut]])
async def list_invoices(
    request_id: Optional[int] = Query(default=None),
    db: AsyncSession = Depends(get_async_session),
    service: InvoiceService = Depends(get_invoice_service),
    current_manager: Manager = Depends(get_current_manager)
):
    invoices = await service.list_invoices(db, request_id)
    return ApiResponse.success([InvoiceOut.model_validate(i) for i in invoices])


@router.post("", response_model=ApiResponse[InvoiceOut])
async def create_invoice(
    payload: CreateInvoicePayload,
    db: AsyncSession = Depends(get_async_session),
    service: InvoiceService = Depends(get_invoice_service),
    current_manager: Manager = Depends(get_current_manager)
):
    items = [item.model_dump() for item in payload.items] if payload.items is not None else None
    invoice = await service.create_invoice(
        db,
        counterparty_id=payload.counterparty_id,
        request_id=payload.request_id,
        items=items,
        invoice_date=payload.invoice_date,
        manager_id=current_manager.id,
    )
    return ApiResponse.success(InvoiceOut.model_validate(invoice))


@router.get("/{invoice_id}", response_model=ApiResponse[InvoiceOut])
async def get_invoice(
    invoice_id: int,
    db: AsyncSession = Depends(get_async_session),
    service: InvoiceService = Depends(get_invoice_service),
    current_manager: Manager = Depends(get_current_manager)
):
    return ApiResponse.success(InvoiceOut.model_validate(await service.get_invoice(db, invoice_id)))


@router.get("/{invoice_id}/pdf")
async def download_invoice_pdf(
    invoice_id: int,
    db: AsyncSession = Depends(get_async_session),
    service: InvoiceService = Depends(get_invoice_service),
    current_manager: Manager = Depends(get_current_manager)
):
    invoice, content = await service.render_pdf(db, invoice_id)
    filename = f"invoice_{invoice.number.replace('/', '-')}.pdf"
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/{invoice_id}/send", response_model=ApiResponse[Dict[str, int]])
async def send_invoice(
    invoice_id: int,
    db: AsyncSession = Depends(get_async_session),
    service: InvoiceService = Depends(get_invoice_service),
    current_manager: Manager = Depends(get_current_manager)
):
    """通过 Telegram 发送发票 PDF 给交易对手联系人与申请客户"""
    return ApiResponse.success(await service.send_invoice(db, invoice_id))
