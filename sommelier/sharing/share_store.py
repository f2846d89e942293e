"""
推荐结果分享

分享记录以随机短 id 保存，过期（默认 30 天）后读取时删除并返回 expired；
浏览次数在后台任务中原子 +1，失败不影响读取。
"""

import secrets
import string
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from sommelier.config import settings
from sommelier.database.crud import share_crud
from sommelier.database.models import SharedRecommendation
from sommelier.logging_config import get_logger
from sommelier.utils.clock import Clock, as_utc, utcnow
from sommelier.utils.task_queue import BackgroundTaskQueue

logger = get_logger(__name__)

SHARE_ID_ALPHABET = string.ascii_letters + string.digits

STATUS_FOUND = "found"
STATUS_NOT_FOUND = "not_found"
STATUS_EXPIRED = "expired"


def generate_share_id(length: int) -> str:
    return "".join(secrets.choice(SHARE_ID_ALPHABET) for _ in range(length))


@dataclass
class ShareLookup:
    status: str
    share: Optional[SharedRecommendation] = None
    view_count: int = 0


class ShareStore:
    """
    Args:
        session_maker: 会话工厂
        task_queue: 后台任务队列
        clock: 当前时间，测试时可替换
    """

    def __init__(
        self,
        session_maker: async_sessionmaker,
        task_queue: BackgroundTaskQueue,
        clock: Clock = utcnow,
        expiry_days: Optional[int] = None,
        max_stored: Optional[int] = None,
        id_length: Optional[int] = None
    ):
        self.session_maker = session_maker
        self.task_queue = task_queue
        self.clock = clock
        self.expiry = timedelta(days=expiry_days or settings.SHARE_EXPIRY_DAYS)
        self.max_stored = max_stored or settings.SHARE_MAX_STORED
        self.id_length = id_length or settings.SHARE_ID_LENGTH

    async def create(
        self,
        prompt: str,
        recommendations: List[Dict[str, Any]],
        title: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> SharedRecommendation:
        """保存一份推荐结果，持久化失败直接抛出"""
        now = self.clock()
        async with self.session_maker() as db:
            share = await share_crud.create_share(
                db,
                share_id=generate_share_id(self.id_length),
                title=title,
                prompt=prompt,
                recommendations=recommendations,
                share_metadata=metadata or {},
                view_count=0,
                created_at=now,
                expires_at=now + self.expiry,
            )
        share.created_at = as_utc(share.created_at)
        share.expires_at = as_utc(share.expires_at)
        logger.info(f"Created share {share.share_id} with {len(recommendations)} recommendations")
        return share

    async def get(self, share_id: str) -> ShareLookup:
        """
        读取分享

        Returns:
            ShareLookup，status 为 found / not_found / expired
        """
        async with self.session_maker() as db:
            share = await share_crud.get_share(db, share_id)
            if share is None:
                return ShareLookup(STATUS_NOT_FOUND)

            created_at = as_utc(share.created_at)
            if self.clock() - created_at > self.expiry:
                await share_crud.delete_share(db, share_id)
                logger.info(f"Share {share_id} expired and was removed")
                return ShareLookup(STATUS_EXPIRED)

        share.created_at = created_at
        share.expires_at = created_at + self.expiry
        self.task_queue.submit(f"share-view:{share_id}", lambda: self._increment_views(share_id))
        return ShareLookup(STATUS_FOUND, share, share.view_count + 1)

    async def _increment_views(self, share_id: str) -> None:
        async with self.session_maker() as db:
            await share_crud.increment_view_count(db, share_id)

    async def cleanup_expired_shares(self) -> int:
        """删除过期分享，并把总数限制在 max_stored 以内"""
        cutoff = self.clock() - self.expiry
        async with self.session_maker() as db:
            expired = await share_crud.delete_shares_created_before(db, cutoff)
            excess = await share_crud.delete_oldest_beyond(db, self.max_stored)
        logger.info(f"Share cleanup removed {expired} expired and {excess} excess shares")
        return expired + excess
