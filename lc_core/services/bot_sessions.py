"""
机器人会话草稿存储

按 Telegram 用户ID 保存对话中的申请草稿（Redis，带 TTL），
机器人进程重启或多实例部署时不会丢失进行中的对话。
"""
import json
from typing import Any, Dict, Optional

import redis.asyncio as redis

from lc_core.config import get_settings
from lc_core.utils.logger import get_logger

logger = get_logger(__name__)

KEY_PREFIX = "lc:bot:session:"


class BotSessionStore:
    """Redis 会话草稿存储"""

    def __init__(self, client: redis.Redis, ttl_seconds: Optional[int] = None):
        self.client = client
        self.ttl_seconds = ttl_seconds or get_settings().bot_session_ttl_seconds

    @staticmethod
    def _key(telegram_id: int) -> str:
        return f"{KEY_PREFIX}{telegram_id}"

    async def get(self, telegram_id: int) -> Optional[Dict[str, Any]]:
        raw = await self.client.get(self._key(telegram_id))
        if raw is None:
            return None
        return json.loads(raw)

    async def save(self, telegram_id: int, data: Dict[str, Any]) -> None:
        """保存草稿并刷新 TTL"""
        await self.client.set(
            self._key(telegram_id),
            json.dumps(data, ensure_ascii=False, default=str),
            ex=self.ttl_seconds,
        )
        logger.debug("Bot session saved", telegram_id=telegram_id, ttl=self.ttl_seconds)

    async def clear(self, telegram_id: int) -> bool:
        deleted = await self.client.delete(self._key(telegram_id))
        return bool(deleted)
