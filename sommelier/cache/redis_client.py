"""
Redis客户端管理

Redis 是可选组件，仅在 REDIS_ENABLED 时用于多进程共享限流状态。
"""

import redis.asyncio as redis
from typing import Optional
import logging

from sommelier.config import get_redis_url, settings

logger = logging.getLogger(__name__)

# 全局Redis连接池
redis_pool: Optional[redis.ConnectionPool] = None
redis_client: Optional[redis.Redis] = None


async def init_redis() -> None:
    """初始化Redis连接"""
    global redis_pool, redis_client

    redis_url = get_redis_url()
    logger.info(f"Connecting to Redis: {redis_url}")

    redis_pool = redis.ConnectionPool.from_url(
        redis_url,
        max_connections=settings.REDIS_MAX_CONNECTIONS,
        retry_on_timeout=True,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
    )
    redis_client = redis.Redis(connection_pool=redis_pool)

    try:
        await redis_client.ping()
        logger.info("Redis connection established successfully")
    except Exception as e:
        logger.error(f"Failed to connect to Redis: {e}")
        raise


async def close_redis() -> None:
    """关闭Redis连接"""
    global redis_pool, redis_client

    if redis_client:
        await redis_client.aclose()
        redis_client = None
        logger.info("Redis client closed")

    if redis_pool:
        await redis_pool.disconnect()
        redis_pool = None


def get_redis_client() -> Optional[redis.Redis]:
    """获取Redis客户端，未启用时返回 None"""
    return redis_client


class RedisKeyManager:
    """Redis键管理器"""

    RATE_LIMIT_PREFIX = "rate_limit"

    @staticmethod
    def rate_limit_key(scope: str, client_id: str) -> str:
        """限流计数键"""
        return f"{RedisKeyManager.RATE_LIMIT_PREFIX}:{scope}:{client_id}"
