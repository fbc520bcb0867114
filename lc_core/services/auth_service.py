"""
认证服务

本服务只负责校验：令牌由外部登录服务签发（HS256，sub = 经理ID，type = access）。
"""
from functools import lru_cache
from typing import Any, Dict

import bcrypt
from jose import JWTError, jwt

from lc_core.config import get_settings
from lc_core.utils.logger import get_logger
from lc_core.utils.errors import UnauthorizedError

logger = get_logger(__name__)


class AuthService:
    """认证服务"""

    def __init__(self):
        self.settings = get_settings()
        self.algorithm = self.settings.algorithm

    def hash_password(self, password: str) -> str:
        """哈希密码"""
        # 确保密码不超过72字节（bcrypt限制）
        password_bytes = password.encode("utf-8")[:72]
        hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt())
        return hashed.decode("utf-8")

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """验证密码"""
        password_bytes = plain_password.encode("utf-8")[:72]
        try:
            return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
        except ValueError:
            return False

    def decode_token(self, token: str) -> Dict[str, Any]:
        """解码JWT令牌"""
        try:
            return jwt.decode(token, self.settings.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            logger.warning("Invalid access token", err=str(e))
            raise UnauthorizedError(code="INVALID_TOKEN", detail="Invalid or expired token")

    def manager_id_from_token(self, token: str) -> int:
        """校验令牌类型并返回经理ID"""
        payload = self.decode_token(token)
        if payload.get("type") != "access":
            raise UnauthorizedError(code="INVALID_TOKEN_TYPE", detail="Invalid token type")
        try:
            return int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            raise UnauthorizedError(code="INVALID_TOKEN", detail="Token subject is missing")


@lru_cache()
def get_auth_service() -> AuthService:
    """获取认证服务单例"""
    return AuthService()
