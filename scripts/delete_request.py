#!/usr/bin/env python3
"""
删除运输申请及其历史、服务行（单一事务）

关联发票保留，request_id 置空。

使用方法：
    PYTHONPATH=. python scripts/delete_request.py 42 [--yes]
"""
import argparse
import asyncio
import sys
from pathlib import Path

# 添加项目根目录到 Python 路径
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import delete, select, update

from lc_core.database import get_db_manager
from lc_core.models import (
    Invoice, RequestFieldHistory, RequestService, RequestStatusHistory, ShipmentRequest
)


async def delete_request(request_id: int) -> bool:
    db_manager = get_db_manager()
    try:
        async with db_manager.get_transaction() as db:
            request = (await db.execute(
                select(ShipmentRequest).where(ShipmentRequest.id == request_id)
            )).scalar_one_or_none()
            if request is None:
                print(f"申请 #{request_id} 不存在")
                return False

            print(f"申请: {request.to_dict()}")
            await db.execute(update(Invoice).where(Invoice.request_id == request_id).values(request_id=None))
            for model in (RequestStatusHistory, RequestFieldHistory, RequestService):
                result = await db.execute(delete(model).where(model.request_id == request_id))
                print(f"删除 {model.__tablename__}: {result.rowcount} 行")
            await db.execute(delete(ShipmentRequest).where(ShipmentRequest.id == request_id))

        print(f"已删除申请 #{request_id}")
        return True
    finally:
        await db_manager.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="删除运输申请及其依赖数据")
    parser.add_argument("request_id", type=int, help="申请ID")
    parser.add_argument("--yes", action="store_true", help="跳过确认")
    args = parser.parse_args()

    if not args.yes:
        answer = input(f"确认删除申请 #{args.request_id}? [y/N] ")
        if answer.strip().lower() != "y":
            print("已取消")
            return

    ok = asyncio.run(delete_request(args.request_id))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
