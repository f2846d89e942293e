"""
批量刷新热门游戏价格

使用示例：
    python -m sommelier.tasks.refresh_prices

环境变量（可选）：
    PRICE_REFRESH_LIMIT   默认 100
"""

import asyncio
import logging
import os

import httpx

import sommelier.database.connection as db_conn
from sommelier.config import settings
from sommelier.pricing.amazon_client import AmazonClient
from sommelier.pricing.bgg_client import BggClient
from sommelier.pricing.price_resolver import PriceResolver
from sommelier.pricing.throttle import RequestThrottle
from sommelier.schemas.prices import BulkPriceUpdate

logger = logging.getLogger(__name__)

PRICE_REFRESH_LIMIT = int(os.getenv("PRICE_REFRESH_LIMIT", "100"))


async def refresh_prices(limit: int = PRICE_REFRESH_LIMIT) -> BulkPriceUpdate:
    """按 BGG 排名刷新前 limit 个游戏的价格"""
    throttle = RequestThrottle(settings.MARKETPLACE_MIN_INTERVAL_SECONDS)
    async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as http_client:
        amazon = AmazonClient(http_client, throttle)
        resolver = PriceResolver(
            db_conn.get_session_maker(),
            amazon=amazon if amazon.enabled else None,
            bgg=BggClient(http_client, throttle),
        )
        return await resolver.refresh_prices(limit)


async def main() -> None:
    logging.basicConfig(level=logging.INFO)
    await db_conn.init_db()
    try:
        summary = await refresh_prices()
    finally:
        await db_conn.close_db()

    logger.info("Refresh finished. total=%d, updated=%d, failed=%d", summary.total, summary.updated, summary.failed)
    for error in summary.errors[:20]:
        logger.info("  %s", error)


if __name__ == "__main__":
    asyncio.run(main())
