"""
交易对手与时刻表服务
"""
from datetime import date

import pytest

from lc_core.models import Client, Invoice
from lc_core.services.counterparties import CounterpartyService
from lc_core.services.pricing import PricingService
from lc_core.services.schedule import ScheduleService
from lc_core.utils.errors import ConflictError, NotFoundError, ValidationError


class TestCounterparties:

    async def test_create_strips_values(self, db_session):
        counterparty = await CounterpartyService().create_counterparty(db_session, {
            "name": "  ООО Ромашка ", "inn": "7701234567", "kpp": "  ",
        })
        assert counterparty.name == "ООО Ромашка"
        assert counterparty.kpp is None
        assert counterparty.contacts == []

    async def test_name_required(self, db_session):
        with pytest.raises(ValidationError) as exc:
            await CounterpartyService().create_counterparty(db_session, {"name": " ", "inn": "1"})
        assert exc.value.code == "INVALID_NAME"

    async def test_inn_unique(self, db_session):
        service = CounterpartyService()
        await service.create_counterparty(db_session, {"name": "А", "inn": "7701234567"})
        with pytest.raises(ConflictError) as exc:
            await service.create_counterparty(db_session, {"name": "Б", "inn": "7701234567"})
        assert exc.value.code == "COUNTERPARTY_EXISTS"

    async def test_contacts_replaced(self, db_session, shipment_client):
        other = Client(telegram_id=888000333)
        db_session.add(other)
        await db_session.commit()
        service = CounterpartyService()
        counterparty = await service.create_counterparty(
            db_session, {"name": "ООО Лютик"}, contact_client_ids=[shipment_client.id]
        )

        updated = await service.update_counterparty(
            db_session, counterparty.id, {"director": "Петров П.П."}, contact_client_ids=[other.id, shipment_client.id]
        )
        assert updated.director == "Петров П.П."
        assert sorted(c.client_id for c in updated.contacts) == sorted([other.id, shipment_client.id])

        updated = await service.update_counterparty(db_session, counterparty.id, {}, contact_client_ids=[other.id])
        assert [c.client_id for c in updated.contacts] == [other.id]

    async def test_unknown_contact(self, db_session):
        with pytest.raises(NotFoundError) as exc:
            await CounterpartyService().create_counterparty(db_session, {"name": "ООО"}, contact_client_ids=[404])
        assert exc.value.code == "CLIENT_NOT_FOUND"

    async def test_delete_with_invoices(self, db_session):
        service = CounterpartyService()
        counterparty = await service.create_counterparty(db_session, {"name": "ООО Ромашка"})
        db_session.add(Invoice(number="1/26", invoice_date=date(2026, 1, 5), counterparty_id=counterparty.id, total=0))
        await db_session.commit()

        with pytest.raises(ValidationError) as exc:
            await service.delete_counterparty(db_session, counterparty.id)
        assert exc.value.code == "COUNTERPARTY_IN_USE"

    async def test_delete(self, db_session):
        service = CounterpartyService()
        counterparty = await service.create_counterparty(db_session, {"name": "ООО Ромашка"})
        await service.delete_counterparty(db_session, counterparty.id)
        with pytest.raises(NotFoundError):
            await service.get_counterparty(db_session, counterparty.id)


class TestSchedule:

    async def test_entries_ordered_by_date_then_destination(self, db_session, city):
        schedule = ScheduleService()
        samara = await PricingService().create_city(db_session, "Самара", "Самара (склад Ozon)")
        await schedule.create_entry(db_session, samara.id, date(2026, 11, 10), "пн, вт")
        await schedule.create_entry(db_session, city.id, date(2026, 11, 10), "ср")
        await schedule.create_entry(db_session, samara.id, date(2026, 11, 3), "пт")

        entries = await schedule.list_entries(db_session)
        assert [(e.delivery_date.day, e.city.short_name) for e in entries] == [
            (3, "Самара"), (10, "Казань"), (10, "Самара"),
        ]

        later = await schedule.list_entries(db_session, date_from=date(2026, 11, 5))
        assert len(later) == 2

        assert await schedule.list_destinations(db_session) == ["Казань (склад Wildberries)", "Самара (склад Ozon)"]

    async def test_accept_days_required(self, db_session, city):
        with pytest.raises(ValidationError) as exc:
            await ScheduleService().create_entry(db_session, city.id, date(2026, 11, 3), "   ")
        assert exc.value.code == "INVALID_ACCEPT_DAYS"

    async def test_update_and_delete(self, db_session, city):
        schedule = ScheduleService()
        entry = await schedule.create_entry(db_session, city.id, date(2026, 11, 3), "пн")

        entry = await schedule.update_entry(db_session, entry.id, {"accept_days": " пн, ср ", "delivery_date": date(2026, 11, 4)})
        assert entry.accept_days == "пн, ср"
        assert entry.delivery_date == date(2026, 11, 4)

        await schedule.delete_entry(db_session, entry.id)
        with pytest.raises(NotFoundError) as exc:
            await schedule.update_entry(db_session, entry.id, {"accept_days": "вт"})
        assert exc.value.code == "SCHEDULE_NOT_FOUND"

    async def test_unknown_city(self, db_session):
        with pytest.raises(NotFoundError) as exc:
            await ScheduleService().create_entry(db_session, 999, date(2026, 11, 3), "пн")
        assert exc.value.code == "CITY_NOT_FOUND"
