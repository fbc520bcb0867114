"""
后台交易对手 API 路由
"""
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from lc_core.database import get_async_session
from lc_core.models import Counterparty, Manager
from lc_core.services.counterparties import CounterpartyService
from .auth import get_current_manager
from .models import ApiResponse, ClientOut, CounterpartyOut

router = APIRouter(prefix="/admin/counterparties", tags=["Counterparties"])


class CounterpartyPayload(BaseModel):
    name: Optional[str] = Field(default=None, description="名称（创建时必填）")
    inn: Optional[str] = Field(default=None, description="ИНН")
    kpp: Optional[str] = None
    ogrn: Optional[str] = None
    address: Optional[str] = None
    account: Optional[str] = None
    bik: Optional[str] = None
    correspondent_account: Optional[str] = None
    bank: Optional[str] = None
    director: Optional[str] = None
    contract: Optional[str] = None
    contact_client_ids: Optional[List[int]] = Field(default=None, description="联系人（客户ID）")


def _counterparty_out(counterparty: Counterparty) -> CounterpartyOut:
    data = {
        key: getattr(counterparty, key)
        for key in CounterpartyOut.model_fields
        if key != "contacts"
    }
    return CounterpartyOut(
        **data,
        contacts=[ClientOut.model_validate(contact.client) for contact in counterparty.contacts],
    )


@router.get("", response_model=ApiResponse[List[CounterpartyOut]])
async def list_counterparties(
    db: AsyncSession = Depends(get_async_session),
    current_manager: Manager = Depends(get_current_manager)
):
    items = await CounterpartyService().list_counterparties(db)
    return ApiResponse.success([_counterparty_out(c) for c in items])


@router.get("/{counterparty_id}", response_model=ApiResponse[CounterpartyOut])
async def get_counterparty(
    counterparty_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_manager: Manager = Depends(get_current_manager)
):
    counterparty = await CounterpartyService().get_counterparty(db, counterparty_id)
    return ApiResponse.success(_counterparty_out(counterparty))


@router.post("", response_model=ApiResponse[CounterpartyOut])
async def create_counterparty(
    payload: CounterpartyPayload,
    db: AsyncSession = Depends(get_async_session),
    current_manager: Manager = Depends(get_current_manager)
):
    data = payload.model_dump(exclude={"contact_client_ids"}, exclude_unset=True)
    counterparty = await CounterpartyService().create_counterparty(db, data, payload.contact_client_ids)
    return ApiResponse.success(_counterparty_out(counterparty))


@router.patch("/{counterparty_id}", response_model=ApiResponse[CounterpartyOut])
async def update_counterparty(
    counterparty_id: int,
    payload: CounterpartyPayload,
    db: AsyncSession = Depends(get_async_session),
    current_manager: Manager = Depends(get_current_manager)
):
    data = payload.model_dump(exclude={"contact_client_ids"}, exclude_unset=True)
    counterparty = await CounterpartyService().update_counterparty(
        db, counterparty_id, data, payload.contact_client_ids
    )
    return ApiResponse.success(_counterparty_out(counterparty))


@router.delete("/{counterparty_id}", response_model=ApiResponse[Dict[str, int]])
async def delete_counterparty(
    counterparty_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_manager: Manager = Depends(get_current_manager)
):
    await CounterpartyService().delete_counterparty(db, counterparty_id)
    return ApiResponse.success({"id": counterparty_id})
