"""
分享记录相关的 CRUD 操作
"""

from datetime import datetime
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, update, func
from sommelier.database.models import SharedRecommendation
import logging

logger = logging.getLogger(__name__)


async def create_share(db: AsyncSession, **fields) -> SharedRecommendation:
    """插入一条分享记录"""
    share = SharedRecommendation(**fields)
    db.add(share)
    await db.commit()
    await db.refresh(share)
    return share


async def get_share(db: AsyncSession, share_id: str) -> Optional[SharedRecommendation]:
    """根据 share_id 获取分享记录"""
    stmt = select(SharedRecommendation).where(SharedRecommendation.share_id == share_id)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def increment_view_count(db: AsyncSession, share_id: str) -> None:
    """浏览次数 +1（在数据库内原子更新）"""
    stmt = (
        update(SharedRecommendation)
        .where(SharedRecommendation.share_id == share_id)
        .values(view_count=SharedRecommendation.view_count + 1)
    )
    await db.execute(stmt)
    await db.commit()


async def delete_share(db: AsyncSession, share_id: str) -> None:
    await db.execute(delete(SharedRecommendation).where(SharedRecommendation.share_id == share_id))
    await db.commit()


async def delete_shares_created_before(db: AsyncSession, cutoff: datetime) -> int:
    """删除创建时间早于 cutoff 的分享"""
    result = await db.execute(
        delete(SharedRecommendation).where(SharedRecommendation.created_at < cutoff)
    )
    await db.commit()
    return result.rowcount or 0


async def delete_oldest_beyond(db: AsyncSession, max_stored: int) -> int:
    """
    仅保留最新的 max_stored 条分享，删除更早的记录

    Returns:
        删除条数
    """
    total_result = await db.execute(select(func.count(SharedRecommendation.id)))
    total = int(total_result.scalar() or 0)
    excess = total - max_stored
    if excess <= 0:
        return 0

    oldest_stmt = (
        select(SharedRecommendation.id)
        .order_by(SharedRecommendation.created_at.asc(), SharedRecommendation.id.asc())
        .limit(excess)
    )
    oldest_ids = list((await db.execute(oldest_stmt)).scalars().all())
    result = await db.execute(
        delete(SharedRecommendation).where(SharedRecommendation.id.in_(oldest_ids))
    )
    await db.commit()
    return result.rowcount or 0
