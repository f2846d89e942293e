"""
价格相关的 CRUD 操作
"""

from datetime import datetime
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func
from sommelier.database.models import GamePrice
from sommelier.database.upsert import build_upsert
import logging

logger = logging.getLogger(__name__)


async def get_latest_price(
    db: AsyncSession,
    game_id: int,
    store_name: Optional[str] = None
) -> Optional[GamePrice]:
    """
    获取某个游戏最近更新的价格记录

    Args:
        db: 数据库会话
        game_id: 游戏 id
        store_name: 商店名称，为空时不限商店

    Returns:
        价格记录或 None
    """
    stmt = select(GamePrice).where(GamePrice.game_id == game_id)
    if store_name:
        stmt = stmt.where(GamePrice.store_name == store_name)
    stmt = stmt.order_by(GamePrice.last_updated.desc()).limit(1)

    result = await db.execute(stmt)
    return result.scalars().first()


async def upsert_price(
    db: AsyncSession,
    game_id: int,
    store_name: str,
    price: Optional[float],
    currency: str,
    url: Optional[str],
    last_updated: datetime
) -> None:
    """写入价格，(game_id, store_name) 冲突时覆盖"""
    row = {
        "game_id": game_id,
        "store_name": store_name,
        "price": price,
        "currency": currency,
        "url": url,
        "last_updated": last_updated,
    }
    stmt = build_upsert(
        db,
        GamePrice,
        [row],
        conflict_columns=("game_id", "store_name"),
        update_columns=("price", "currency", "url", "last_updated"),
    )
    await db.execute(stmt)
    await db.commit()


async def delete_prices_older_than(db: AsyncSession, cutoff: datetime) -> int:
    """删除 last_updated 早于 cutoff 的价格记录，返回删除条数"""
    result = await db.execute(delete(GamePrice).where(GamePrice.last_updated < cutoff))
    await db.commit()
    return result.rowcount or 0


async def get_price_statistics(db: AsyncSession, fresh_after: datetime) -> dict:
    """
    统计价格记录

    Args:
        db: 数据库会话
        fresh_after: 新鲜度分界时间，晚于该时间的记录视为新鲜

    Returns:
        {"total": ..., "fresh": ..., "average_price": ...}
    """
    total_result = await db.execute(select(func.count(GamePrice.id)))
    total = int(total_result.scalar() or 0)

    fresh_result = await db.execute(
        select(func.count(GamePrice.id)).where(GamePrice.last_updated >= fresh_after)
    )
    fresh = int(fresh_result.scalar() or 0)

    avg_result = await db.execute(
        select(func.avg(GamePrice.price)).where(GamePrice.price.isnot(None))
    )
    average = avg_result.scalar()

    return {
        "total": total,
        "fresh": fresh,
        "average_price": round(float(average), 2) if average is not None else None,
    }
