"""
HTTP API：认证、机器人接口、后台申请、发票与时刻表
"""
from decimal import Decimal

import pytest


class TestAuth:

    async def test_missing_credentials(self, client, api_prefix):
        response = await client.get(f"{api_prefix}/admin/requests")
        assert response.status_code == 401
        body = response.json()
        assert body["ok"] is False
        assert body["error"]["code"] == "MISSING_CREDENTIALS"

    async def test_invalid_token(self, client, api_prefix):
        response = await client.get(
            f"{api_prefix}/admin/requests", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_TOKEN"

    async def test_wrong_token_type(self, client, api_prefix, manager, token_factory):
        token = token_factory(manager.id, token_type="refresh")
        response = await client.get(f"{api_prefix}/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_TOKEN_TYPE"

    async def test_me(self, client, api_prefix, auth_headers):
        response = await client.get(f"{api_prefix}/auth/me", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["data"]["email"] == "manager@example.com"


class TestBot:

    async def test_consent_flow(self, client, api_prefix):
        response = await client.get(f"{api_prefix}/bot/consent/777000222")
        assert response.json() == {"consent_given": False}

        response = await client.post(f"{api_prefix}/bot/consent", json={"telegram_id": 777000222, "first_name": "Ольга"})
        assert response.json() == {"consent_given": True}

        response = await client.get(f"{api_prefix}/bot/consent/777000222")
        assert response.json() == {"consent_given": True}

    async def test_create_and_list_own_requests(self, client, api_prefix, city, sample_request_payload):
        response = await client.post(f"{api_prefix}/bot/requests", json=sample_request_payload)
        assert response.status_code == 200
        created = response.json()["data"]
        assert created["status"] == "new"
        assert created["city_id"] == city.id
        assert isinstance(created["weight"], str)
        assert Decimal(created["weight"]) == Decimal("18.5")

        response = await client.get(f"{api_prefix}/bot/requests/{sample_request_payload['telegram_id']}")
        assert [r["id"] for r in response.json()["data"]] == [created["id"]]

    async def test_create_missing_fields(self, client, api_prefix):
        response = await client.post(f"{api_prefix}/bot/requests", json={
            "telegram_id": 1, "city": "Казань", "packaging_type": "boxes", "box_count": 1,
        })
        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "INVALID_DATE"
        assert error["field"] == "delivery_date"

    async def test_session_drafts(self, client, api_prefix, fake_redis):
        url = f"{api_prefix}/bot/sessions/42"
        assert (await client.get(url)).json()["data"] is None

        response = await client.put(url, json={"data": {"step": "weight", "city": "Казань"}})
        assert response.json()["metadata"] == {"ttl_seconds": 600}
        assert (await client.get(url)).json()["data"] == {"data": {"step": "weight", "city": "Казань"}}

        assert (await client.delete(url)).json()["data"] == {"cleared": True}
        assert fake_redis.data == {}


class TestAdminRequests:

    async def test_list_with_client(self, client, api_prefix, auth_headers, shipment_request):
        response = await client.get(f"{api_prefix}/admin/requests", params={"status": "new"}, headers=auth_headers)
        body = response.json()
        assert body["metadata"] == {"total": 1}
        assert body["data"][0]["client"]["telegram_id"] == 555000111

    async def test_patch_validation_error(self, client, api_prefix, auth_headers, shipment_request):
        response = await client.patch(
            f"{api_prefix}/admin/requests/{shipment_request.id}",
            json={"weight": -5},
            headers=auth_headers,
        )
        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "INVALID_WEIGHT"
        assert error["field"] == "weight"

    @pytest.mark.parametrize("patch, code", [
        ({"box_count": 0}, "INVALID_BOX_COUNT"),
        ({"packaging_type": "barrels"}, "INVALID_PACKAGING"),
        ({"delivery_date": "02.11.2026"}, "INVALID_DATE"),
        ({"city": "   "}, "INVALID_CITY"),
    ])
    async def test_patch_invalid_values(self, client, api_prefix, auth_headers, shipment_request, patch, code):
        response = await client.patch(
            f"{api_prefix}/admin/requests/{shipment_request.id}", json=patch, headers=auth_headers
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == code

    async def test_patch_reports_history_rows(self, client, api_prefix, auth_headers, shipment_request):
        response = await client.patch(
            f"{api_prefix}/admin/requests/{shipment_request.id}",
            json={"weight": 250, "box_count": 5},
            headers=auth_headers,
        )
        body = response.json()
        assert body["metadata"] == {"history_rows": 1}
        assert body["data"]["box_count"] == 5

    async def test_status_change_notifies_client(self, client, api_prefix, auth_headers, notifier, shipment_request):
        url = f"{api_prefix}/admin/requests/{shipment_request.id}/status"

        response = await client.patch(url, json={"status": "warehouse"}, headers=auth_headers)
        assert response.json()["metadata"] == {"changed": True}
        assert response.json()["data"]["status"] == "warehouse"

        response = await client.patch(url, json={"status": "warehouse"}, headers=auth_headers)
        assert response.json()["metadata"] == {"changed": False}
        assert notifier.status_notifications == [(555000111, shipment_request.id, "warehouse")]

    async def test_detail_timeline(self, client, api_prefix, auth_headers, shipment_request):
        await client.patch(
            f"{api_prefix}/admin/requests/{shipment_request.id}", json={"box_count": 3}, headers=auth_headers
        )
        response = await client.get(f"{api_prefix}/admin/requests/{shipment_request.id}", headers=auth_headers)
        data = response.json()["data"]
        assert data["city_ref"]["short_name"] == "Казань"
        assert [(e["kind"], e.get("field")) for e in data["timeline"]] == [("status", None), ("field", "box_count")]

    async def test_missing_request(self, client, api_prefix, auth_headers):
        response = await client.get(f"{api_prefix}/admin/requests/999", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "REQUEST_NOT_FOUND"

    async def test_suggest(self, client, api_prefix, auth_headers, shipment_request):
        response = await client.post(
            f"{api_prefix}/admin/requests/{shipment_request.id}/services/suggest", headers=auth_headers
        )
        data = response.json()["data"]
        assert data["found"] is True
        assert data["unit"] == "палл"
        assert Decimal(data["amount"]) == Decimal("7000")

    async def test_suggest_unknown_city(self, client, api_prefix, auth_headers, sample_request_payload):
        payload = dict(sample_request_payload, city="Пермь")
        created = (await client.post(f"{api_prefix}/bot/requests", json=payload)).json()["data"]

        response = await client.post(
            f"{api_prefix}/admin/requests/{created['id']}/services/suggest", headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["found"] is False

    async def test_service_lines(self, client, api_prefix, auth_headers, shipment_request):
        url = f"{api_prefix}/admin/requests/{shipment_request.id}/services"
        response = await client.post(
            url, json={"description": "Доставка", "quantity": "2", "price": "3500.50"}, headers=auth_headers
        )
        line = response.json()["data"]
        assert Decimal(line["amount"]) == Decimal("7001.00")

        response = await client.get(url, headers=auth_headers)
        assert [s["id"] for s in response.json()["data"]] == [line["id"]]

        response = await client.delete(f"{url}/{line['id']}", headers=auth_headers)
        assert response.json()["data"] == {"id": line["id"]}


class TestCatalogAndSchedule:

    async def test_city_and_rate(self, client, api_prefix, auth_headers):
        response = await client.post(f"{api_prefix}/admin/cities", json={"short_name": "Самара"}, headers=auth_headers)
        city_id = response.json()["data"]["id"]

        response = await client.post(f"{api_prefix}/admin/rates", json={
            "city_id": city_id, "unit": "pallet", "price": "4000", "min_weight_kg": "0", "max_weight_kg": "300",
        }, headers=auth_headers)
        assert response.status_code == 200
        assert Decimal(response.json()["data"]["price"]) == Decimal("4000")

        response = await client.post(f"{api_prefix}/admin/rates", json={
            "city_id": city_id, "unit": "pallet", "price": "4000", "min_volume_m3": "0",
        }, headers=auth_headers)
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "BOUNDS_UNIT_MISMATCH"

    async def test_public_schedule(self, client, api_prefix, auth_headers, city):
        response = await client.post(f"{api_prefix}/admin/schedule", json={
            "city_id": city.id, "delivery_date": "2026-11-10", "accept_days": "пн, вт",
        }, headers=auth_headers)
        assert response.status_code == 200

        response = await client.get(f"{api_prefix}/schedule")
        assert response.json()["data"][0]["destination"] == "Казань (склад Wildberries)"
        response = await client.get(f"{api_prefix}/schedule/destinations")
        assert response.json()["data"] == ["Казань (склад Wildberries)"]


class TestInvoices:

    async def test_create_and_download_pdf(self, client, api_prefix, auth_headers):
        response = await client.post(
            f"{api_prefix}/admin/counterparties", json={"name": "ООО Ромашка", "inn": "7701234567"}, headers=auth_headers
        )
        counterparty_id = response.json()["data"]["id"]

        response = await client.post(f"{api_prefix}/admin/invoices", json={
            "counterparty_id": counterparty_id,
            "invoice_date": "2026-11-03",
            "items": [{"description": "Доставка", "quantity": "1", "price": "1200.50"}],
        }, headers=auth_headers)
        invoice = response.json()["data"]
        assert invoice["number"] == "1/26"
        assert Decimal(invoice["total"]) == Decimal("1200.50")

        response = await client.get(f"{api_prefix}/admin/invoices/{invoice['id']}/pdf", headers=auth_headers)
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert "invoice_1-26.pdf" in response.headers["content-disposition"]
        assert response.content.startswith(b"%PDF")


class TestSystem:

    async def test_healthz(self, client):
        response = await client.get("/healthz")
        assert response.status_code == 200

    async def test_info(self, client, api_prefix):
        response = await client.get(f"{api_prefix}/system/info")
        assert response.json()["data"]["name"]
