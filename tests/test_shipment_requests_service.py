"""
运输申请服务：创建、修改、状态切换、服务行与建议
"""
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from lc_core.models import RequestFieldHistory, RequestStatusHistory, ShipmentRequest
from lc_core.services.shipment_requests import ShipmentRequestsService
from lc_core.utils.errors import NotFoundError, ValidationError


async def _count(db, model, request_id):
    result = await db.execute(select(func.count(model.id)).where(model.request_id == request_id))
    return result.scalar_one()


@pytest.fixture
def service(notifier) -> ShipmentRequestsService:
    return ShipmentRequestsService(notifier=notifier)


class TestCreate:

    async def test_create_links_city_and_writes_initial_status(self, db_session, service, city, sample_request_payload):
        payload = dict(sample_request_payload)
        telegram_id = payload.pop("telegram_id")
        for key in ("username", "first_name"):
            payload.pop(key)

        request = await service.create_from_bot(db_session, telegram_id, payload, username="olga")

        assert request.status == "new"
        assert request.city_id == city.id
        assert request.delivery_date == date(2026, 11, 9)
        history = (await db_session.execute(
            select(RequestStatusHistory).where(RequestStatusHistory.request_id == request.id)
        )).scalars().all()
        assert [(h.old_status, h.new_status) for h in history] == [(None, "new")]

    async def test_unknown_city_is_kept_as_text(self, db_session, service):
        request = await service.create_from_bot(db_session, 1001, {
            "city": "Пермь",
            "delivery_date": "2026-11-02",
            "packaging_type": "boxes",
            "box_count": 1,
        })
        assert request.city == "Пермь"
        assert request.city_id is None

    async def test_invalid_payload_creates_nothing(self, db_session, service):
        with pytest.raises(ValidationError) as exc:
            await service.create_from_bot(db_session, 1001, {
                "city": "Казань",
                "delivery_date": "2026-11-02",
                "packaging_type": "barrels",
                "box_count": 1,
            })
        assert exc.value.code == "INVALID_PACKAGING"
        total = (await db_session.execute(select(func.count(ShipmentRequest.id)))).scalar_one()
        assert total == 0

    async def test_client_requests_newest_first(self, db_session, service, shipment_request, shipment_client):
        second = await service.create_from_bot(db_session, shipment_client.telegram_id, {
            "city": "Казань",
            "delivery_date": "2026-11-20",
            "packaging_type": "boxes",
            "box_count": 1,
        })
        requests = await service.list_client_requests(db_session, shipment_client.telegram_id)
        assert [r.id for r in requests] == [second.id, shipment_request.id]
        assert await service.list_client_requests(db_session, 42) == []


class TestUpdate:

    async def test_same_weight_writes_no_history(self, db_session, service, shipment_request):
        _, rows = await service.update_request(db_session, shipment_request.id, {"weight": 250})
        assert rows == 0
        assert await _count(db_session, RequestFieldHistory, shipment_request.id) == 0

    async def test_changes_written_with_one_timestamp(self, db_session, service, shipment_request, manager):
        request, rows = await service.update_request(
            db_session,
            shipment_request.id,
            {"weight": 320, "box_count": 3, "comment": "хрупкое"},
            manager_id=manager.id,
        )

        assert rows == 2
        assert request.weight == Decimal("320")
        assert request.box_count == 3
        assert request.comment == "хрупкое"
        history = (await db_session.execute(
            select(RequestFieldHistory)
            .where(RequestFieldHistory.request_id == shipment_request.id)
            .order_by(RequestFieldHistory.id)
        )).scalars().all()
        assert [(h.field, h.old_value, h.new_value) for h in history] == [
            ("weight", "250", "320"),
            ("box_count", "2", "3"),
        ]
        assert len({h.changed_at for h in history}) == 1
        assert all(h.manager_id == manager.id for h in history)

    async def test_invalid_patch_leaves_request_untouched(self, db_session, service, shipment_request):
        with pytest.raises(ValidationError) as exc:
            await service.update_request(db_session, shipment_request.id, {"weight": 300, "volume": -1})
        assert exc.value.code == "INVALID_VOLUME"

        reloaded = await service.get_request(db_session, shipment_request.id)
        assert reloaded.weight == Decimal("250")
        assert await _count(db_session, RequestFieldHistory, shipment_request.id) == 0

    async def test_weight_rounded_to_stored_scale(self, db_session, service, shipment_request):
        _, rows = await service.update_request(db_session, shipment_request.id, {"weight": Decimal("250.0004")})
        assert rows == 0

        _, rows = await service.update_request(db_session, shipment_request.id, {"weight": Decimal("320.1235")})
        assert rows == 1
        stored = await db_session.get(ShipmentRequest, shipment_request.id, populate_existing=True)
        assert stored.weight == Decimal("320.124")
        history = (await db_session.execute(
            select(RequestFieldHistory).where(RequestFieldHistory.request_id == shipment_request.id)
        )).scalars().all()
        assert [(h.field, h.old_value, h.new_value) for h in history] == [("weight", "250", "320.124")]

    async def test_delivery_date_from_timestamp(self, db_session, service, shipment_request):
        _, rows = await service.update_request(
            db_session, shipment_request.id, {"delivery_date": "2026-12-01T00:00:00Z"}
        )
        assert rows == 1

        stored = await db_session.get(ShipmentRequest, shipment_request.id, populate_existing=True)
        assert stored.delivery_date == date(2026, 12, 1)
        assert stored.delivery_date.isoformat() == "2026-12-01"
        history = (await db_session.execute(
            select(RequestFieldHistory).where(RequestFieldHistory.request_id == shipment_request.id)
        )).scalars().all()
        assert [(h.field, h.old_value, h.new_value) for h in history] == [
            ("delivery_date", "2026-11-02", "2026-12-01"),
        ]

    async def test_city_change_relinks_city(self, db_session, service, shipment_request):
        request, rows = await service.update_request(db_session, shipment_request.id, {"city": "Пермь"})
        assert rows == 0
        assert request.city == "Пермь"
        assert request.city_id is None

    async def test_missing_request(self, db_session, service):
        with pytest.raises(NotFoundError) as exc:
            await service.update_request(db_session, 404, {"weight": 1})
        assert exc.value.code == "REQUEST_NOT_FOUND"


class TestStatus:

    async def test_change_writes_history_and_notifies(self, db_session, service, notifier, shipment_request, shipment_client):
        request, changed = await service.change_status(db_session, shipment_request.id, "warehouse", comment=" принят ")

        assert changed is True
        assert request.status == "warehouse"
        history = (await db_session.execute(
            select(RequestStatusHistory)
            .where(RequestStatusHistory.request_id == shipment_request.id)
            .order_by(RequestStatusHistory.id)
        )).scalars().all()
        assert [(h.old_status, h.new_status) for h in history] == [(None, "new"), ("new", "warehouse")]
        assert history[-1].comment == "принят"
        assert notifier.status_notifications == [(shipment_client.telegram_id, shipment_request.id, "warehouse")]

    async def test_same_status_is_noop(self, db_session, service, notifier, shipment_request):
        _, changed = await service.change_status(db_session, shipment_request.id, "new")
        assert changed is False
        assert await _count(db_session, RequestStatusHistory, shipment_request.id) == 1
        assert notifier.status_notifications == []

    async def test_unknown_status(self, db_session, service, shipment_request):
        with pytest.raises(ValidationError) as exc:
            await service.change_status(db_session, shipment_request.id, "archived")
        assert exc.value.code == "INVALID_STATUS"

    async def test_notification_failure_does_not_roll_back(self, db_session, failing_notifier, shipment_request):
        service = ShipmentRequestsService(notifier=failing_notifier)

        request, changed = await service.change_status(db_session, shipment_request.id, "shipped")

        assert changed is True
        assert request.status == "shipped"
        assert await _count(db_session, RequestStatusHistory, shipment_request.id) == 2

    async def test_list_filters_by_status(self, db_session, service, shipment_request):
        assert [r.id for r in await service.list_requests(db_session, "new")] == [shipment_request.id]
        assert await service.list_requests(db_session, "done") == []
        with pytest.raises(ValidationError):
            await service.list_requests(db_session, "lost")


class TestDetail:

    async def test_timeline_merges_both_logs(self, db_session, service, shipment_request):
        await service.update_request(db_session, shipment_request.id, {"weight": 400})
        await service.change_status(db_session, shipment_request.id, "warehouse")

        detail = await service.get_request_detail(db_session, shipment_request.id)

        assert [item.kind for item in detail.timeline] == ["status", "field", "status"]
        assert detail.client.id == shipment_request.client_id
        assert detail.city.short_name == "Казань"


class TestServices:

    async def test_add_update_delete(self, db_session, service, shipment_request):
        line = await service.add_service(db_session, shipment_request.id, {
            "description": "Доставка", "quantity": Decimal("2"), "price": Decimal("3500.50")
        })
        assert line.unit == "шт"
        assert line.amount == Decimal("7001.00")

        line = await service.update_service(db_session, shipment_request.id, line.id, {"quantity": Decimal("3")})
        assert line.amount == Decimal("10501.50")

        await service.delete_service(db_session, shipment_request.id, line.id)
        assert await service.list_services(db_session, shipment_request.id) == []

    async def test_quantity_must_be_positive(self, db_session, service, shipment_request):
        with pytest.raises(ValidationError) as exc:
            await service.add_service(db_session, shipment_request.id, {
                "description": "Доставка", "quantity": 0, "price": 100
            })
        assert exc.value.code == "INVALID_QUANTITY"

    @pytest.mark.parametrize("values, code", [
        ({"quantity": Decimal("0.0004"), "price": 100}, "INVALID_QUANTITY"),
        ({"quantity": Decimal("1e9"), "price": 100}, "INVALID_QUANTITY"),
        ({"quantity": 1, "price": Decimal("1e10")}, "INVALID_PRICE"),
        ({"quantity": Decimal("999999999"), "price": Decimal("9999999999")}, "INVALID_AMOUNT"),
    ])
    async def test_values_outside_column_are_rejected(self, db_session, service, shipment_request, values, code):
        with pytest.raises(ValidationError) as exc:
            await service.add_service(db_session, shipment_request.id, dict(values, description="Доставка"))
        assert exc.value.code == code
        assert await service.list_services(db_session, shipment_request.id) == []

    async def test_values_rounded_to_stored_scale(self, db_session, service, shipment_request):
        line = await service.add_service(db_session, shipment_request.id, {
            "description": "Доставка", "quantity": Decimal("1.0004"), "price": Decimal("100.005")
        })
        assert line.quantity == Decimal("1.000")
        assert line.price == Decimal("100.01")
        assert line.amount == Decimal("100.01")

        line = await service.update_service(db_session, shipment_request.id, line.id, {"price": Decimal("0.004")})
        assert line.price == Decimal("0")
        assert line.amount == Decimal("0")

    async def test_service_of_other_request(self, db_session, service, shipment_request, shipment_client):
        other = await service.create_from_bot(db_session, shipment_client.telegram_id, {
            "city": "Казань", "delivery_date": "2026-11-20", "packaging_type": "boxes", "box_count": 1,
        })
        line = await service.add_service(db_session, other.id, {"description": "Упаковка", "quantity": 1, "price": 300})
        with pytest.raises(ValidationError) as exc:
            await service.delete_service(db_session, shipment_request.id, line.id)
        assert exc.value.code == "SERVICE_NOT_IN_REQUEST"


class TestSuggest:

    async def test_suggests_pallet_tier(self, db_session, service, shipment_request):
        suggestion = await service.suggest_service(db_session, shipment_request.id)
        assert suggestion.found is True
        assert suggestion.quantity == Decimal("2")
        assert suggestion.amount == Decimal("7000.00")
        assert suggestion.description == "Казань (склад Wildberries) — Паллет — 0–300 кг"

    async def test_unknown_city(self, db_session, service):
        request = await service.create_from_bot(db_session, 1001, {
            "city": "Пермь", "delivery_date": "2026-11-02", "packaging_type": "boxes", "box_count": 1,
        })
        suggestion = await service.suggest_service(db_session, request.id)
        assert suggestion.found is False
        assert "Пермь" in suggestion.message

    async def test_suggestion_does_not_create_lines(self, db_session, service, shipment_request):
        await service.suggest_service(db_session, shipment_request.id)
        assert await service.list_services(db_session, shipment_request.id) == []
