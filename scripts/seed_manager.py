#!/usr/bin/env python3
"""
创建或更新后台经理账号

使用方法：
    PYTHONPATH=. python scripts/seed_manager.py --email admin@example.com --name Admin --password secret
"""
import argparse
import asyncio
import sys
from pathlib import Path

# 添加项目根目录到 Python 路径
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select

from lc_core.database import get_db_manager
from lc_core.models import Manager
from lc_core.services.auth_service import get_auth_service


async def seed_manager(email: str, name: str, password: str, inactive: bool = False) -> None:
    """按邮箱 upsert 经理；密码使用 bcrypt 存储"""
    auth = get_auth_service()
    email = email.strip().lower()

    db_manager = get_db_manager()
    async with db_manager.get_session() as db:
        result = await db.execute(select(Manager).where(Manager.email == email))
        manager = result.scalar_one_or_none()

        if manager is None:
            manager = Manager(email=email, name=name, password_hash=auth.hash_password(password))
            db.add(manager)
            action = "创建"
        else:
            manager.name = name
            if not auth.verify_password(password, manager.password_hash):
                manager.password_hash = auth.hash_password(password)
            action = "更新"
        manager.is_active = not inactive
        await db.commit()
        await db.refresh(manager)

    await db_manager.close()
    print(f"已{action}经理: id={manager.id} email={manager.email} active={manager.is_active}")


def main() -> None:
    parser = argparse.ArgumentParser(description="创建或更新后台经理账号")
    parser.add_argument("--email", required=True, help="登录邮箱")
    parser.add_argument("--name", required=True, help="显示名称")
    parser.add_argument("--password", required=True, help="明文密码")
    parser.add_argument("--inactive", action="store_true", help="创建为停用状态")
    args = parser.parse_args()

    asyncio.run(seed_manager(args.email, args.name, args.password, args.inactive))


if __name__ == "__main__":
    main()
