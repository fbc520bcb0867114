"""
Telegram 通知服务

通知在业务事务提交之后发送，失败只记录日志，不影响主流程。
"""
from typing import Optional

import httpx

from lc_core.config import get_settings
from lc_core.models.enums import RequestStatus, STATUS_LABELS
from lc_core.utils.logger import get_logger

logger = get_logger(__name__)


class TelegramNotifier:
    """Telegram Bot API 客户端（sendMessage / sendDocument）"""

    def __init__(
        self,
        bot_token: Optional[str] = None,
        api_base: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        settings = get_settings()
        self.bot_token = settings.telegram_bot_token if bot_token is None else bot_token
        self.api_base = (api_base or settings.telegram_api_base).rstrip("/")
        self.timeout = timeout or settings.telegram_timeout_seconds
        self._client = client

    @property
    def enabled(self) -> bool:
        return bool(self.bot_token)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _call(self, method: str, **kwargs) -> bool:
        if not self.enabled:
            logger.debug("Telegram notifications disabled, skipping", method=method)
            return False

        url = f"{self.api_base}/bot{self.bot_token}/{method}"
        try:
            response = await self._get_client().post(url, **kwargs)
            payload = response.json()
            if response.status_code != 200 or not payload.get("ok"):
                logger.warning(
                    "Telegram API rejected request",
                    method=method,
                    status_code=response.status_code,
                    description=payload.get("description"),
                )
                return False
            return True
        except (httpx.HTTPError, ValueError) as e:
            # 通知失败不影响主流程
            logger.error("Telegram request failed", method=method, err=str(e))
            return False

    async def send_message(self, chat_id: int, text: str) -> bool:
        """发送 HTML 文本消息"""
        return await self._call(
            "sendMessage",
            json={"chat_id": chat_id, "text": text, "parse_mode": "HTML"},
        )

    async def send_document(
        self,
        chat_id: int,
        content: bytes,
        filename: str,
        caption: Optional[str] = None
    ) -> bool:
        """发送文件（multipart）"""
        data = {"chat_id": str(chat_id)}
        if caption:
            data["caption"] = caption
        return await self._call(
            "sendDocument",
            data=data,
            files={"document": (filename, content, "application/pdf")},
        )

    async def notify_status_changed(self, chat_id: int, request_id: int, status: str) -> bool:
        """申请状态变更通知"""
        label = STATUS_LABELS.get(RequestStatus(status), status)
        text = f"Статус заявки <b>#{request_id}</b> изменён: <b>{label}</b>"
        return await self.send_message(chat_id, text)


_notifier: Optional[TelegramNotifier] = None


def get_notifier() -> TelegramNotifier:
    """依赖注入：获取通知服务单例"""
    global _notifier
    if _notifier is None:
        _notifier = TelegramNotifier()
    return _notifier
