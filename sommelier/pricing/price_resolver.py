"""
价格解析

按以下顺序查找价格，前一步没有可用结果才进入下一步：
1. 主商店的缓存记录，未超过新鲜期直接返回（source=cache）
2. BoardGameGeek 市场页链接，没有价格（source=api）
3. Amazon 商品搜索并打分筛选（source=api）
4. 过期的缓存记录（source=cache）
5. Amazon 搜索链接占位（source=fallback）

整个流程不会抛出异常；缓存写入失败只记录日志。
"""

import asyncio
from datetime import timedelta
from typing import List, Optional, Sequence, Tuple
from urllib.parse import quote

from sqlalchemy.ext.asyncio import async_sessionmaker

from sommelier.config import settings
from sommelier.database.crud import game_crud, price_crud
from sommelier.logging_config import get_logger
from sommelier.pricing.amazon_client import AmazonClient, MarketplaceError
from sommelier.pricing.bgg_client import BggClient, BGG_STORE_NAME, marketplace_url
from sommelier.pricing.product_scoring import select_best_product
from sommelier.schemas.prices import BulkPriceUpdate, PriceResult, PriceStatistics
from sommelier.utils.clock import Clock, as_utc, utcnow
from sommelier.utils.logger import log_price_lookup

logger = get_logger(__name__)

SOURCE_CACHE = "cache"
SOURCE_API = "api"
SOURCE_FALLBACK = "fallback"


def fallback_search_url(title: str, partner_tag: str) -> str:
    """Amazon 搜索页链接"""
    return f"https://www.amazon.com/s?k={quote(f'{title} board game', safe='')}&tag={partner_tag}"


class PriceResolver:
    """
    Args:
        session_maker: 会话工厂，每次查询使用独立会话
        amazon: Amazon 客户端，None 表示不查询
        bgg: BGG 客户端，None 表示不查询
        clock: 当前时间，测试时可替换
    """

    def __init__(
        self,
        session_maker: async_sessionmaker,
        amazon: Optional[AmazonClient] = None,
        bgg: Optional[BggClient] = None,
        clock: Clock = utcnow,
        freshness_hours: Optional[int] = None,
        primary_store: Optional[str] = None,
        partner_tag: Optional[str] = None,
        concurrency: Optional[int] = None
    ):
        self.session_maker = session_maker
        self.amazon = amazon
        self.bgg = bgg
        self.clock = clock
        self.freshness = timedelta(hours=freshness_hours or settings.PRICE_FRESHNESS_HOURS)
        self.primary_store = primary_store or settings.PRICE_PRIMARY_STORE
        self.partner_tag = partner_tag or settings.AMAZON_PARTNER_TAG
        self.concurrency = concurrency or settings.PRICE_BULK_CONCURRENCY

    def is_fresh(self, last_updated) -> bool:
        """记录年龄不超过新鲜期即视为新鲜"""
        if last_updated is None:
            return False
        return self.clock() - as_utc(last_updated) <= self.freshness

    async def _read_cache(self, game_id: int):
        try:
            async with self.session_maker() as db:
                return await price_crud.get_latest_price(db, game_id, self.primary_store)
        except Exception as e:
            logger.warning(f"Price cache read failed for game {game_id}: {e}")
            return None

    async def _persist(self, result: PriceResult) -> None:
        try:
            async with self.session_maker() as db:
                await price_crud.upsert_price(
                    db,
                    game_id=result.game_id,
                    store_name=result.store_name,
                    price=result.price,
                    currency=result.currency,
                    url=result.url,
                    last_updated=result.last_updated,
                )
        except Exception as e:
            logger.warning(f"Failed to persist price for game {result.game_id}: {e}")

    async def _from_bgg(self, game_id: int, title: str, bgg_id: Optional[int]) -> Optional[PriceResult]:
        if self.bgg is None:
            return None
        try:
            resolved_id = bgg_id or await self.bgg.search_game_id(title)
        except MarketplaceError as e:
            logger.warning(f"BGG lookup failed for '{title}': {e}")
            return None
        if not resolved_id:
            return None
        return PriceResult(
            game_id=game_id,
            store_name=BGG_STORE_NAME,
            price=None,
            currency="USD",
            url=marketplace_url(resolved_id),
            last_updated=self.clock(),
            source=SOURCE_API,
        )

    async def _from_amazon(self, game_id: int, title: str) -> Optional[PriceResult]:
        if self.amazon is None or not self.amazon.enabled:
            return None
        try:
            products = await self.amazon.search_products(f"{title} board game")
        except MarketplaceError as e:
            logger.warning(f"Amazon lookup failed for '{title}': {e}")
            return None

        best = select_best_product(title, products)
        if best is None:
            logger.info(f"No acceptable Amazon product for '{title}' among {len(products)} results")
            return None
        return PriceResult(
            game_id=game_id,
            store_name=self.primary_store,
            price=best.price,
            currency=best.currency,
            url=best.url,
            last_updated=self.clock(),
            source=SOURCE_API,
        )

    @staticmethod
    def _from_record(record, source: str) -> PriceResult:
        return PriceResult(
            game_id=record.game_id,
            store_name=record.store_name,
            price=record.price,
            currency=record.currency or "USD",
            url=record.url,
            last_updated=as_utc(record.last_updated),
            source=source,
        )

    async def resolve_price(
        self,
        game_id: int,
        title: str,
        bgg_id: Optional[int] = None,
        use_cache: bool = True
    ) -> PriceResult:
        """
        解析单个游戏的价格

        Args:
            game_id: 游戏 id
            title: 游戏标题
            bgg_id: 已知的 BGG id，可省去一次搜索
            use_cache: 为 False 时跳过新鲜缓存（批量刷新使用）

        Returns:
            PriceResult
        """
        cached = await self._read_cache(game_id)
        if use_cache and cached is not None and self.is_fresh(cached.last_updated):
            result = self._from_record(cached, SOURCE_CACHE)
            log_price_lookup(game_id, SOURCE_CACHE, result.store_name, result.price is not None)
            return result

        for lookup in (lambda: self._from_bgg(game_id, title, bgg_id), lambda: self._from_amazon(game_id, title)):
            try:
                result = await lookup()
            except Exception as e:
                logger.error(f"Unexpected price lookup failure for game {game_id}: {e}", exc_info=True)
                result = None
            if result is not None:
                await self._persist(result)
                log_price_lookup(game_id, SOURCE_API, result.store_name, result.price is not None)
                return result

        if cached is not None:
            result = self._from_record(cached, SOURCE_CACHE)
            log_price_lookup(game_id, SOURCE_CACHE, result.store_name, result.price is not None, stale=True)
            return result

        result = PriceResult(
            game_id=game_id,
            store_name=self.primary_store,
            price=None,
            currency="USD",
            url=fallback_search_url(title, self.partner_tag),
            last_updated=None,
            source=SOURCE_FALLBACK,
        )
        log_price_lookup(game_id, SOURCE_FALLBACK, result.store_name, False)
        return result

    async def resolve_prices(self, games: Sequence[Tuple[int, str]]) -> List[PriceResult]:
        """并发解析多个游戏的价格，结果顺序与输入一致；商城请求仍由节流器串行化"""
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _resolve(game_id: int, title: str) -> PriceResult:
            async with semaphore:
                return await self.resolve_price(game_id, title)

        return list(await asyncio.gather(*[_resolve(game_id, title) for game_id, title in games]))

    async def refresh_prices(self, limit: int = 100) -> BulkPriceUpdate:
        """
        刷新排名靠前的游戏价格（忽略新鲜缓存）

        Args:
            limit: 刷新的游戏数量

        Returns:
            BulkPriceUpdate
        """
        async with self.session_maker() as db:
            games = await game_crud.get_games_for_price_refresh(db, limit)

        summary = BulkPriceUpdate(total=len(games))
        for game in games:
            try:
                result = await self.resolve_price(game.id, game.title, bgg_id=game.bgg_id, use_cache=False)
            except Exception as e:
                summary.failed += 1
                summary.errors.append(f"{game.title}: {e}")
                continue

            if result.source == SOURCE_API:
                summary.updated += 1
            else:
                summary.failed += 1
                summary.errors.append(f"{game.title}: no marketplace result")

        logger.info(
            f"Price refresh finished: total={summary.total}, updated={summary.updated}, failed={summary.failed}"
        )
        return summary

    async def cleanup_stale_prices(self, max_age_days: Optional[int] = None) -> int:
        """删除超过 max_age_days 天未更新的价格记录"""
        days = max_age_days if max_age_days is not None else settings.PRICE_RETENTION_DAYS
        cutoff = self.clock() - timedelta(days=days)
        async with self.session_maker() as db:
            deleted = await price_crud.delete_prices_older_than(db, cutoff)
        logger.info(f"Deleted {deleted} price records older than {days} days")
        return deleted

    async def price_statistics(self) -> PriceStatistics:
        """价格缓存统计"""
        async with self.session_maker() as db:
            stats = await price_crud.get_price_statistics(db, fresh_after=self.clock() - self.freshness)
        return PriceStatistics(
            total=stats["total"],
            fresh=stats["fresh"],
            stale=stats["total"] - stats["fresh"],
            average_price=stats["average_price"],
        )
