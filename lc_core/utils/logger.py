"""
结构化日志

structlog 输出 JSON 行：action（原 event）、ts、level，
请求内附带 trace_id 和 manager_id。
手机号、邮箱、密钥和 Bot Token 在渲染前打码。
"""
import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, List, Optional, Pattern, Tuple

import structlog
from structlog.processors import JSONRenderer, TimeStamper, add_log_level

trace_id_var: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)
manager_id_var: ContextVar[Optional[int]] = ContextVar("manager_id", default=None)

# (规则, 替换) 按顺序应用
MASK_RULES: List[Tuple[Pattern[str], str]] = [
    # +7 912 3456789 -> +7 912****789
    (re.compile(r"(\+\d{1,3}\s?\d{3})\d{4,8}(\d{3})"), r"\1****\2"),
    (re.compile(r"([a-zA-Z0-9])[a-zA-Z0-9._-]*@([a-zA-Z0-9.-]+\.[a-zA-Z]{2,})"), r"\1***@\2"),
    # api.telegram.org/bot<id>:<secret>/sendMessage
    (re.compile(r"/bot\d+:[A-Za-z0-9_-]+"), "/bot***MASKED***"),
    (re.compile(r"(token|key|secret|password)[\"']?\s*[:=]\s*[\"']?([^\"'\s,}]+)"), r"\1=***MASKED***"),
]

QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "uvicorn.access", "sqlalchemy.engine")


def mask_text(text: str) -> str:
    for pattern, replacement in MASK_RULES:
        text = pattern.sub(replacement, text)
    return text


def _masked(value: Any) -> Any:
    if isinstance(value, str):
        return mask_text(value)
    if isinstance(value, dict):
        return {key: _masked(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_masked(item) for item in value]
    return value


def mask_pii(logger, method_name, event_dict):
    """structlog 处理器：逐字段打码"""
    return {key: _masked(value) for key, value in event_dict.items()}


def add_request_context(logger, method_name, event_dict):
    """structlog 处理器：时间戳、请求上下文、字段改名"""
    event_dict["ts"] = datetime.now(timezone.utc).isoformat()

    trace_id = trace_id_var.get()
    if trace_id:
        event_dict["trace_id"] = trace_id
    manager_id = manager_id_var.get()
    if manager_id:
        event_dict["manager_id"] = manager_id

    if "event" in event_dict:
        event_dict["action"] = event_dict.pop("event")
    if "exception" in event_dict:
        event_dict["err"] = str(event_dict.pop("exception"))
    return event_dict


def _stdout_handler(level: int, log_format: str) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if log_format == "json":
        # 消息已由 structlog 渲染
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
    return handler


def setup_logging(log_level: str = "INFO", log_format: str = "json", enable_pii_masking: bool = True) -> None:
    """
    配置 structlog 与标准 logging

    Args:
        log_level: DEBUG/INFO/WARNING/ERROR
        log_format: json 或 console
        enable_pii_masking: 是否打码敏感信息
    """
    level = getattr(logging, log_level.upper())

    processors: list = [TimeStamper(fmt="iso"), add_log_level, add_request_context]
    if enable_pii_masking:
        processors.append(mask_pii)
    if log_format == "json":
        processors.append(JSONRenderer(ensure_ascii=False))
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_stdout_handler(level, log_format))
    root.setLevel(level)
    logging.getLogger("lc_core").setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


class LogContext:
    """在 with 块内设置 trace_id / manager_id，退出时还原"""

    def __init__(self, trace_id: Optional[str] = None, manager_id: Optional[int] = None):
        self._values = [(trace_id_var, trace_id), (manager_id_var, manager_id)]
        self._tokens: list = []

    def __enter__(self):
        self._tokens = [var.set(value) for var, value in self._values if value]
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        while self._tokens:
            token = self._tokens.pop()
            token.var.reset(token)
