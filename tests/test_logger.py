"""
日志处理器：打码与请求上下文
"""
from lc_core.utils.logger import (
    LogContext, add_request_context, manager_id_var, mask_pii, mask_text, trace_id_var
)


class TestMasking:

    def test_phone_and_email(self):
        assert mask_text("+7 9123456789") == "+7 912****789"
        assert mask_text("ivan.petrov@example.ru") == "i***@example.ru"

    def test_bot_token_in_url(self):
        url = "https://api.telegram.org/bot123456:AAH-secret_value/sendMessage"
        assert mask_text(url) == "https://api.telegram.org/bot***MASKED***/sendMessage"

    def test_secret_assignment(self):
        assert mask_text("password=hunter2") == "password=***MASKED***"

    def test_nested_values(self):
        event = {
            "event": "Sent",
            "recipient": {"email": "olga@example.com"},
            "urls": ["/bot1:abc", 42],
            "count": 3,
        }
        masked = mask_pii(None, "info", event)
        assert masked["recipient"] == {"email": "o***@example.com"}
        assert masked["urls"] == ["/bot***MASKED***", 42]
        assert masked["count"] == 3


class TestRequestContext:

    def test_event_renamed_to_action(self):
        event = add_request_context(None, "info", {"event": "Request created", "exception": ValueError("boom")})
        assert event["action"] == "Request created"
        assert event["err"] == "boom"
        assert "event" not in event
        assert "trace_id" not in event
        assert event["ts"].endswith("+00:00")

    def test_log_context_sets_and_restores(self):
        with LogContext(trace_id="abc123", manager_id=7):
            event = add_request_context(None, "info", {"event": "x"})
            assert event["trace_id"] == "abc123"
            assert event["manager_id"] == 7
        assert trace_id_var.get() is None
        assert manager_id_var.get() is None
