"""
基础服务类
"""
from typing import Any, Dict, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lc_core.utils.logger import get_logger
from lc_core.utils.errors import ConflictError, NotFoundError

M = TypeVar("M")


class BaseService:
    """基础服务类"""

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    async def commit(self, db: AsyncSession, conflict_code: str, conflict_detail: str) -> None:
        """提交事务，唯一约束冲突转换为 ConflictError"""
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            self.logger.warning("Integrity conflict on commit", code=conflict_code, err=str(e.orig))
            raise ConflictError(conflict_code, conflict_detail)


class RepositoryMixin:
    """仓储混入类 - 提供常用的数据库操作"""

    async def get_or_404(
        self,
        session: AsyncSession,
        model_class: Type[M],
        record_id: int,
        code: str,
        resource: str
    ) -> M:
        """根据ID获取记录，不存在时抛出 NotFoundError"""
        instance = await session.get(model_class, record_id)
        if instance is None:
            raise NotFoundError(code, f"{resource} {record_id}")
        return instance

    async def get_by_field(
        self,
        session: AsyncSession,
        model_class,
        field_name: str,
        field_value: Any
    ) -> Optional[Any]:
        """根据字段获取记录"""
        stmt = select(model_class).where(getattr(model_class, field_name) == field_value)
        result = await session.execute(stmt)
        return result.scalars().first()

    async def update(
        self,
        session: AsyncSession,
        instance: Any,
        data: Dict[str, Any]
    ) -> Any:
        """更新记录"""
        for key, value in data.items():
            if hasattr(instance, key):
                setattr(instance, key, value)

        await session.flush()
        return instance

    async def exists(
        self,
        session: AsyncSession,
        model_class,
        **filters
    ) -> bool:
        """检查记录是否存在"""
        stmt = select(model_class.id)
        for field, value in filters.items():
            stmt = stmt.where(getattr(model_class, field) == value)

        stmt = stmt.limit(1)
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None
