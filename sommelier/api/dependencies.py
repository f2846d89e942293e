"""
FastAPI依赖注入

进程内共享的组件（推荐编排器、价格解析器、分享存储、限流器等）在第一次使用时创建，
测试中通过 app.dependency_overrides 替换。
"""

from typing import Optional

import httpx
from fastapi import Depends, HTTPException, Request, status

from sommelier.cache.redis_client import get_redis_client
from sommelier.config import settings
from sommelier.database.connection import get_session_maker
from sommelier.logging_config import get_logger, mask_secret
from sommelier.pricing.amazon_client import AmazonClient
from sommelier.pricing.bgg_client import BggClient
from sommelier.pricing.price_resolver import PriceResolver
from sommelier.pricing.throttle import RequestThrottle
from sommelier.recommend.llm_client import LLMClient
from sommelier.recommend.orchestrator import RecommendationOrchestrator
from sommelier.sharing.share_store import ShareStore
from sommelier.utils.rate_limiter import (
    InMemoryRateLimitStore,
    RateLimiter,
    RedisRateLimitStore,
    client_identifier,
)
from sommelier.utils.task_queue import BackgroundTaskQueue

logger = get_logger(__name__)

_http_client: Optional[httpx.AsyncClient] = None
_throttle: Optional[RequestThrottle] = None
_task_queue: Optional[BackgroundTaskQueue] = None
_price_resolver: Optional[PriceResolver] = None
_orchestrator: Optional[RecommendationOrchestrator] = None
_share_store: Optional[ShareStore] = None
_rate_limiters: dict = {}


def get_http_client() -> httpx.AsyncClient:
    """共享的出站 HTTP 客户端"""
    global _http_client
    if _http_client is None:
        _http_client = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)
    return _http_client


def get_task_queue() -> BackgroundTaskQueue:
    global _task_queue
    if _task_queue is None:
        _task_queue = BackgroundTaskQueue()
    return _task_queue


def get_price_resolver() -> PriceResolver:
    """获取价格解析器（懒加载）"""
    global _price_resolver, _throttle
    if _price_resolver is None:
        http_client = get_http_client()
        # 所有商城请求共用一个节流器
        _throttle = RequestThrottle(settings.MARKETPLACE_MIN_INTERVAL_SECONDS)
        amazon = AmazonClient(http_client, _throttle)
        if not amazon.enabled:
            logger.info("Amazon credentials not configured, primary marketplace lookups disabled")
            amazon = None
        _price_resolver = PriceResolver(
            get_session_maker(),
            amazon=amazon,
            bgg=BggClient(http_client, _throttle),
        )
    return _price_resolver


def get_orchestrator() -> RecommendationOrchestrator:
    """获取推荐编排器（懒加载）"""
    global _orchestrator
    if _orchestrator is None:
        llm = LLMClient() if settings.llm_enabled else None
        if llm is None:
            logger.info("OpenAI API key not configured, using keyword ranking only")
        else:
            logger.info(f"LLM enabled: model={settings.LLM_MODEL}, key={mask_secret(settings.OPENAI_API_KEY)}")
        _orchestrator = RecommendationOrchestrator(
            get_session_maker(),
            llm=llm,
            price_resolver=get_price_resolver(),
        )
    return _orchestrator


def get_share_store() -> ShareStore:
    """获取分享存储（懒加载）"""
    global _share_store
    if _share_store is None:
        _share_store = ShareStore(get_session_maker(), get_task_queue())
    return _share_store


def _build_limiter(name: str, max_requests: int, window_seconds: int, block_seconds: int) -> RateLimiter:
    redis_client = get_redis_client()
    store = RedisRateLimitStore(redis_client, name) if redis_client is not None else InMemoryRateLimitStore()
    return RateLimiter(name, max_requests, window_seconds, block_seconds, store=store)


def get_recommend_limiter() -> RateLimiter:
    if "recommend" not in _rate_limiters:
        _rate_limiters["recommend"] = _build_limiter(
            "recommend",
            settings.RECOMMEND_RATE_LIMIT,
            settings.RECOMMEND_RATE_WINDOW_SECONDS,
            settings.RECOMMEND_RATE_BLOCK_SECONDS,
        )
    return _rate_limiters["recommend"]


def get_share_limiter() -> RateLimiter:
    if "share" not in _rate_limiters:
        _rate_limiters["share"] = _build_limiter(
            "share",
            settings.SHARE_RATE_LIMIT,
            settings.SHARE_RATE_WINDOW_SECONDS,
            settings.SHARE_RATE_BLOCK_SECONDS,
        )
    return _rate_limiters["share"]


async def _enforce(limiter: RateLimiter, request: Request) -> None:
    identifier = client_identifier(request.headers, request.client.host if request.client else None)
    decision = await limiter.check(identifier)
    if not decision.allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests, please slow down",
            headers={"Retry-After": str(decision.retry_after)},
        )


async def recommend_rate_limit(
    request: Request,
    limiter: RateLimiter = Depends(get_recommend_limiter)
) -> None:
    """
    推荐接口限流

    Raises:
        HTTPException: 超出限制时返回 429，并带 Retry-After 头
    """
    await _enforce(limiter, request)


async def share_rate_limit(
    request: Request,
    limiter: RateLimiter = Depends(get_share_limiter)
) -> None:
    """分享接口限流"""
    await _enforce(limiter, request)


async def close_dependencies() -> None:
    """应用关闭时等待后台任务并释放出站连接"""
    global _http_client, _throttle, _task_queue, _price_resolver, _orchestrator, _share_store

    if _task_queue is not None:
        await _task_queue.drain()
    if _http_client is not None:
        await _http_client.aclose()

    _http_client = None
    _throttle = None
    _task_queue = None
    _price_resolver = None
    _orchestrator = None
    _share_store = None
    _rate_limiters.clear()
