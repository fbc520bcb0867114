"""
Telegram 通知服务
"""
import json

import httpx
import pytest

from lc_core.services.notifier import TelegramNotifier


def _notifier(handler, token="123:abc") -> TelegramNotifier:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return TelegramNotifier(bot_token=token, api_base="https://api.telegram.test", client=client)


async def test_status_message_format():
    sent = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append((request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={"ok": True, "result": {}})

    notifier = _notifier(handler)
    assert await notifier.notify_status_changed(42, 7, "shipped") is True
    await notifier.close()

    path, body = sent[0]
    assert path == "/bot123:abc/sendMessage"
    assert body["chat_id"] == 42
    assert body["parse_mode"] == "HTML"
    assert body["text"] == "Статус заявки <b>#7</b> изменён: <b>Отгружен</b>"


async def test_send_document_is_multipart():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["content_type"] = request.headers["content-type"]
        captured["body"] = request.content
        return httpx.Response(200, json={"ok": True})

    notifier = _notifier(handler)
    assert await notifier.send_document(42, b"%PDF-1.4 test", "invoice_1-26.pdf", "Счёт") is True

    assert captured["content_type"].startswith("multipart/form-data")
    assert b"invoice_1-26.pdf" in captured["body"]
    assert b"%PDF-1.4 test" in captured["body"]


async def test_api_error_returns_false():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"ok": False, "description": "Forbidden: bot was blocked by the user"})

    notifier = _notifier(handler)
    assert await notifier.send_message(42, "hi") is False


async def test_network_error_returns_false():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    notifier = _notifier(handler)
    assert await notifier.send_message(42, "hi") is False


async def test_disabled_without_token():
    def handler(request: httpx.Request) -> httpx.Response:
        pytest.fail("no request expected")

    notifier = _notifier(handler, token="")
    assert notifier.enabled is False
    assert await notifier.send_message(42, "hi") is False
