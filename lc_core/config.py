"""
LogiCRM Configuration Management
遵循约束：环境变量前缀 LC__
"""
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache


class Settings(BaseSettings):
    """全局配置类"""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="LC__",
        case_sensitive=False
    )

    # Database
    db_host: str = Field(default="localhost")
    db_port: int = Field(default=5432)
    db_name: str = Field(default="logicrm")
    db_user: str = Field(default="logicrm")
    db_password: str = Field(default="")
    db_pool_size: int = Field(default=10)
    db_max_overflow: int = Field(default=20)
    # 直接指定连接串（测试/脚本可指向 sqlite+aiosqlite）
    database_url_override: Optional[str] = Field(default=None)

    # Redis
    redis_host: str = Field(default="localhost")
    redis_port: int = Field(default=6379)
    redis_db: int = Field(default=0)
    redis_password: Optional[str] = Field(default=None)
    bot_session_ttl_seconds: int = Field(default=86400)

    # API Settings
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    api_prefix: str = Field(default="/api/lc/v1")
    api_title: str = Field(default="LogiCRM API")
    api_version: str = Field(default="1.0.0")
    api_debug: bool = Field(default=False)
    cors_origins: list[str] = Field(default=["http://localhost:5173", "http://localhost:5174"])

    # Security
    secret_key: str = Field(default="change-me-in-production")
    algorithm: str = Field(default="HS256")

    # Telegram
    telegram_bot_token: str = Field(default="")
    telegram_api_base: str = Field(default="https://api.telegram.org")
    telegram_timeout_seconds: float = Field(default=10.0)

    # Monitoring
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")  # json or text

    # 发票卖方信息
    seller_name: str = Field(default="ИП Иванов Иван Иванович")
    seller_inn: str = Field(default="")
    seller_address: str = Field(default="")
    seller_account: str = Field(default="")
    seller_bank: str = Field(default="")
    seller_bik: str = Field(default="")
    seller_correspondent_account: str = Field(default="")

    # PDF 字体（需包含西里尔字符）
    pdf_font_path: Optional[str] = Field(default=None)

    @field_validator("api_prefix")
    @classmethod
    def validate_api_prefix(cls, v):
        """确保 API 前缀符合规范"""
        if not v.startswith("/api/lc/"):
            raise ValueError("API prefix must start with /api/lc/")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        if v not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return v

    @property
    def database_url(self) -> str:
        """构建数据库连接字符串"""
        if self.database_url_override:
            return self.database_url_override
        return f"postgresql+asyncpg://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    @property
    def sync_database_url(self) -> str:
        """构建同步数据库连接字符串（用于 Alembic 离线模式）"""
        return f"postgresql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    @property
    def redis_url(self) -> str:
        """构建 Redis 连接字符串"""
        password = f":{self.redis_password}@" if self.redis_password else ""
        return f"redis://{password}{self.redis_host}:{self.redis_port}/{self.redis_db}"

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.telegram_bot_token)


@lru_cache()
def get_settings() -> Settings:
    """获取配置单例"""
    return Settings()
