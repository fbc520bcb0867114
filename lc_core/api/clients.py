"""
后台客户 API 路由
"""
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from lc_core.database import get_async_session
from lc_core.models import Manager
from lc_core.services.clients import ClientService
from .auth import get_current_manager
from .models import ApiResponse, ClientOut, ShipmentRequestOut

router = APIRouter(prefix="/admin/clients", tags=["Clients"])


class ClientListItem(ClientOut):
    request_count: int


class ClientDetail(ClientOut):
    requests: List[ShipmentRequestOut]


@router.get("", response_model=ApiResponse[List[ClientListItem]])
async def list_clients(
    db: AsyncSession = Depends(get_async_session),
    current_manager: Manager = Depends(get_current_manager)
):
    summaries = await ClientService().list_clients(db)
    return ApiResponse.success([
        ClientListItem(
            **ClientOut.model_validate(s.client).model_dump(),
            request_count=s.request_count,
        )
        for s in summaries
    ])


@router.get("/{client_id}", response_model=ApiResponse[ClientDetail])
async def get_client(
    client_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_manager: Manager = Depends(get_current_manager)
):
    client, requests = await ClientService().get_client_with_requests(db, client_id)
    return ApiResponse.success(ClientDetail(
        **ClientOut.model_validate(client).model_dump(),
        requests=[ShipmentRequestOut.model_validate(r) for r in requests],
    ))
