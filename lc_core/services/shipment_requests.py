"""
运输申请服务
- 机器人端创建申请（客户 upsert）
- 经理端修改字段（写字段历史）与切换状态（写状态历史，提交后通知客户）
- 计费服务行与价格建议
"""
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lc_core.models import (
    City, Client, RequestFieldHistory, RequestService, RequestStatusHistory, ShipmentRequest
)
from lc_core.models.base import utcnow
from lc_core.models.enums import RequestStatus
from lc_core.services.base import BaseService, RepositoryMixin
from lc_core.services.history_merger import TimelineItem, merge_history
from lc_core.services.notifier import TelegramNotifier, get_notifier
from lc_core.services.pricing import PricingService
from lc_core.services.request_validator import (
    resolve_status_transition, validate_new_request, validate_request_patch
)
from lc_core.services.service_suggester import ServiceSuggestion, ShipmentDescriptor, suggest
from lc_core.utils.decimals import AMOUNT_PRECISION, MEASURE_PLACES, MONEY_PLACES, step, to_column_scale
from lc_core.utils.errors import ValidationError

DEFAULT_SERVICE_UNIT = "шт"


@dataclass
class RequestDetail:
    request: ShipmentRequest
    client: Client
    city: Optional[City]
    services: List[RequestService] = field(default_factory=list)
    timeline: List[TimelineItem] = field(default_factory=list)


def _line_amount(quantity: Decimal, price: Decimal) -> Decimal:
    """金额 = 数量 × 单价，按分四舍五入；须放得下 Numeric(14, 2)"""
    amount = to_column_scale(Decimal(quantity) * Decimal(price), MONEY_PLACES, precision=AMOUNT_PRECISION)
    if amount is None:
        raise ValidationError("INVALID_AMOUNT", "amount is too large", field="amount")
    return amount


def _decimal(value: Any, code: str, name: str, places: int, allow_zero: bool) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(code, f"{name} must be a number", field=name)
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(code, f"{name} must be a number", field=name)
    if not number.is_finite() or number < 0:
        raise ValidationError(code, f"{name} is out of range", field=name)
    scaled = to_column_scale(number, places)
    if scaled is None:
        raise ValidationError(code, f"{name} is too large", field=name)
    if scaled == 0 and not allow_zero:
        raise ValidationError(code, f"{name} must be at least {step(places)}", field=name)
    return scaled


class ShipmentRequestsService(BaseService, RepositoryMixin):
    """运输申请服务"""

    def __init__(self, notifier: Optional[TelegramNotifier] = None, pricing: Optional[PricingService] = None):
        super().__init__()
        self.notifier = notifier or get_notifier()
        self.pricing = pricing or PricingService()

    # ========== 客户 ==========

    async def upsert_client(
        self,
        db: AsyncSession,
        telegram_id: int,
        username: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None
    ) -> Client:
        """按 telegram_id 创建或刷新客户资料（不提交）"""
        client = await self.get_by_field(db, Client, "telegram_id", telegram_id)
        if client is None:
            client = Client(telegram_id=telegram_id)
            db.add(client)
        for key, value in (("username", username), ("first_name", first_name), ("last_name", last_name)):
            if value is not None:
                setattr(client, key, value)
        await db.flush()
        return client

    # ========== 查询 ==========

    async def get_request(self, db: AsyncSession, request_id: int) -> ShipmentRequest:
        return await self.get_or_404(db, ShipmentRequest, request_id, "REQUEST_NOT_FOUND", "Shipment request")

    async def list_requests(self, db: AsyncSession, status: Optional[str] = None) -> List[ShipmentRequest]:
        """申请列表（新到旧），可按状态过滤"""
        stmt = (
            select(ShipmentRequest)
            .options(selectinload(ShipmentRequest.client))
            .order_by(ShipmentRequest.created_at.desc(), ShipmentRequest.id.desc())
        )
        if status:
            try:
                stmt = stmt.where(ShipmentRequest.status == RequestStatus(status).value)
            except ValueError:
                raise ValidationError("INVALID_STATUS", f"Unknown status: {status}", field="status")
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def list_client_requests(self, db: AsyncSession, telegram_id: int) -> List[ShipmentRequest]:
        """客户自己的申请；客户不存在时返回空列表"""
        stmt = (
            select(ShipmentRequest)
            .join(Client, ShipmentRequest.client_id == Client.id)
            .where(Client.telegram_id == telegram_id)
            .order_by(ShipmentRequest.created_at.desc(), ShipmentRequest.id.desc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def get_request_detail(self, db: AsyncSession, request_id: int) -> RequestDetail:
        """申请详情：服务行与合并后的时间线"""
        request = await self.get_request(db, request_id)
        client = await db.get(Client, request.client_id)
        city = await db.get(City, request.city_id) if request.city_id else None

        status_rows = await db.execute(
            select(RequestStatusHistory)
            .where(RequestStatusHistory.request_id == request_id)
            .order_by(RequestStatusHistory.id)
        )
        field_rows = await db.execute(
            select(RequestFieldHistory)
            .where(RequestFieldHistory.request_id == request_id)
            .order_by(RequestFieldHistory.id)
        )

        return RequestDetail(
            request=request,
            client=client,
            city=city,
            services=await self.list_services(db, request_id),
            timeline=merge_history(status_rows.scalars().all(), field_rows.scalars().all()),
        )

    # ========== 创建与修改 ==========

    async def create_from_bot(
        self,
        db: AsyncSession,
        telegram_id: int,
        fields: Dict[str, Any],
        username: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None
    ) -> ShipmentRequest:
        """客户通过机器人/小程序创建申请，同一事务写入初始状态历史"""
        values = validate_new_request(fields)
        client = await self.upsert_client(db, telegram_id, username, first_name, last_name)
        city = await self.pricing.resolve_city(db, values["city"])

        request = ShipmentRequest(
            client_id=client.id,
            city_id=city.id if city else None,
            status=RequestStatus.NEW.value,
            **values
        )
        db.add(request)
        await db.flush()
        db.add(RequestStatusHistory(
            request_id=request.id,
            old_status=None,
            new_status=RequestStatus.NEW.value,
        ))
        await db.commit()
        await db.refresh(request)

        self.logger.info(
            "Shipment request created",
            request_id=request.id,
            client_id=client.id,
            city_matched=city is not None,
        )
        return request

    async def update_request(
        self,
        db: AsyncSession,
        request_id: int,
        patch: Dict[str, Any],
        manager_id: Optional[int] = None
    ) -> Tuple[ShipmentRequest, int]:
        """
        经理修改申请字段

        Returns:
            (申请, 新写入的字段历史条数)
        """
        request = await self.get_request(db, request_id)
        validated = validate_request_patch(request, patch)

        values = dict(validated.values)
        if "city" in values:
            city = await self.pricing.resolve_city(db, values["city"])
            values["city_id"] = city.id if city else None

        changed_at = utcnow()
        await self.update(db, request, values)
        for change in validated.changes:
            db.add(RequestFieldHistory(
                request_id=request.id,
                field=change.field,
                old_value=change.old_value,
                new_value=change.new_value,
                manager_id=manager_id,
                changed_at=changed_at,
            ))
        await db.commit()
        await db.refresh(request)

        self.logger.info(
            "Shipment request updated",
            request_id=request_id,
            fields=sorted(values),
            history_rows=len(validated.changes),
        )
        return request, len(validated.changes)

    async def change_status(
        self,
        db: AsyncSession,
        request_id: int,
        status: str,
        manager_id: Optional[int] = None,
        comment: Optional[str] = None
    ) -> Tuple[ShipmentRequest, bool]:
        """
        切换状态

        状态与历史记录在同一事务提交；提交后通知客户。
        与当前状态相同时不做任何操作。

        Returns:
            (申请, 是否发生变更)
        """
        request = await self.get_request(db, request_id)
        target = resolve_status_transition(request.status, status)
        if target is None:
            return request, False

        old_status = request.status
        request.status = target.value
        db.add(RequestStatusHistory(
            request_id=request.id,
            old_status=old_status,
            new_status=target.value,
            manager_id=manager_id,
            comment=(comment or "").strip() or None,
        ))
        await db.commit()
        await db.refresh(request)

        self.logger.info(
            "Shipment request status changed",
            request_id=request_id,
            old_status=old_status,
            new_status=target.value,
        )

        client = await db.get(Client, request.client_id)
        await self._after_commit(
            "status_notification",
            self.notifier.notify_status_changed,
            client.telegram_id,
            request.id,
            target.value,
        )
        return request, True

    async def _after_commit(self, name: str, hook: Callable[..., Awaitable[Any]], *args) -> None:
        """提交后的副作用：失败只记录日志"""
        try:
            await hook(*args)
        except Exception:
            self.logger.error("Post-commit hook failed", hook=name, exc_info=True)

    # ========== 计费服务行 ==========

    async def list_services(self, db: AsyncSession, request_id: int) -> List[RequestService]:
        result = await db.execute(
            select(RequestService)
            .where(RequestService.request_id == request_id)
            .order_by(RequestService.id)
        )
        return list(result.scalars().all())

    async def _get_service(self, db: AsyncSession, request_id: int, service_id: int) -> RequestService:
        service = await self.get_or_404(db, RequestService, service_id, "SERVICE_NOT_FOUND", "Request service")
        if service.request_id != request_id:
            raise ValidationError("SERVICE_NOT_IN_REQUEST", "Service does not belong to this request")
        return service

    def _clean_service(self, data: Dict[str, Any]) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        if "description" in data:
            description = (data["description"] or "").strip()
            if not description:
                raise ValidationError("INVALID_DESCRIPTION", "description is required", field="description")
            values["description"] = description
        if "unit" in data:
            values["unit"] = (data["unit"] or "").strip() or DEFAULT_SERVICE_UNIT
        if "quantity" in data:
            values["quantity"] = _decimal(data["quantity"], "INVALID_QUANTITY", "quantity", MEASURE_PLACES, allow_zero=False)
        if "price" in data:
            values["price"] = _decimal(data["price"], "INVALID_PRICE", "price", MONEY_PLACES, allow_zero=True)
        return values

    async def add_service(self, db: AsyncSession, request_id: int, data: Dict[str, Any]) -> RequestService:
        await self.get_request(db, request_id)
        values = self._clean_service(data)
        for required in ("description", "quantity", "price"):
            if required not in values:
                raise ValidationError("MISSING_FIELD", f"{required} is required", field=required)
        values.setdefault("unit", DEFAULT_SERVICE_UNIT)

        service = RequestService(
            request_id=request_id,
            amount=_line_amount(values["quantity"], values["price"]),
            **values
        )
        db.add(service)
        await db.commit()
        await db.refresh(service)
        return service

    async def update_service(
        self,
        db: AsyncSession,
        request_id: int,
        service_id: int,
        data: Dict[str, Any]
    ) -> RequestService:
        """修改服务行；数量或单价变化时重算金额"""
        service = await self._get_service(db, request_id, service_id)
        values = self._clean_service(data)
        values["amount"] = _line_amount(
            values.get("quantity", service.quantity), values.get("price", service.price)
        )
        await self.update(db, service, values)
        await db.commit()
        await db.refresh(service)
        return service

    async def delete_service(self, db: AsyncSession, request_id: int, service_id: int) -> None:
        service = await self._get_service(db, request_id, service_id)
        await db.delete(service)
        await db.commit()

    async def suggest_service(self, db: AsyncSession, request_id: int) -> ServiceSuggestion:
        """按城市阶梯生成建议服务行（不写库）"""
        request = await self.get_request(db, request_id)
        city = await db.get(City, request.city_id) if request.city_id else None
        if city is None:
            city = await self.pricing.resolve_city(db, request.city)
        if city is None:
            return ServiceSuggestion.not_found(f"Город «{request.city}» не найден в справочнике")

        tiers = await self.pricing.list_rates(db, city.id)
        descriptor = ShipmentDescriptor(
            city_id=city.id,
            packaging_type=request.packaging_type,
            box_count=request.box_count,
            weight=request.weight,
            volume=request.volume,
        )
        return suggest(descriptor, city.full_name, tiers)
