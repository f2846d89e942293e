"""
定期清理：过期分享与陈旧价格

使用示例：
    python -m sommelier.tasks.cleanup
"""

import asyncio
import logging
from typing import Dict, Optional

import sommelier.database.connection as db_conn
from sommelier.config import settings
from sommelier.pricing.price_resolver import PriceResolver
from sommelier.sharing.share_store import ShareStore
from sommelier.utils.task_queue import BackgroundTaskQueue

logger = logging.getLogger(__name__)


async def cleanup_expired_shares() -> int:
    store = ShareStore(db_conn.get_session_maker(), BackgroundTaskQueue())
    return await store.cleanup_expired_shares()


async def cleanup_stale_prices(max_age_days: Optional[int] = None) -> int:
    # 清理只读写数据库，不需要商城客户端
    resolver = PriceResolver(db_conn.get_session_maker())
    return await resolver.cleanup_stale_prices(max_age_days)


async def run_cleanup(max_age_days: Optional[int] = None) -> Dict[str, int]:
    """依次执行两项清理，单项失败不影响另一项"""
    results = {"shares": 0, "prices": 0}
    try:
        results["shares"] = await cleanup_expired_shares()
    except Exception as e:
        logger.error("Share cleanup failed: %s", e, exc_info=True)
    try:
        results["prices"] = await cleanup_stale_prices(max_age_days)
    except Exception as e:
        logger.error("Price cleanup failed: %s", e, exc_info=True)
    return results


async def main() -> None:
    logging.basicConfig(level=logging.INFO)
    await db_conn.init_db()
    try:
        results = await run_cleanup(settings.PRICE_RETENTION_DAYS)
    finally:
        await db_conn.close_db()
    logger.info("Cleanup finished. shares=%d, prices=%d", results["shares"], results["prices"])


if __name__ == "__main__":
    asyncio.run(main())
