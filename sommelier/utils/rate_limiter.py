"""
按客户端限流

规则：
- 窗口内最多 max_requests 次请求，窗口从第一次请求开始计时
- 超出后本次拒绝，并把重置时间推迟 block_seconds
- 窗口内累计超过 2 * max_requests 次视为滥用，封禁到重置时间为止
状态存放在可替换的存储中（进程内字典或 Redis），时钟可注入。
"""

import hashlib
import json
import time
from dataclasses import dataclass, asdict
from typing import Callable, Dict, Optional

from sommelier.cache.redis_client import RedisKeyManager
from sommelier.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class RateLimitEntry:
    count: int
    reset_at: float
    first_request: float


@dataclass
class RateLimitDecision:
    allowed: bool
    remaining: int
    reset_at: float
    retry_after: int = 0


class InMemoryRateLimitStore:
    """进程内存储"""

    def __init__(self):
        self._entries: Dict[str, RateLimitEntry] = {}

    async def get(self, key: str) -> Optional[RateLimitEntry]:
        return self._entries.get(key)

    async def set(self, key: str, entry: RateLimitEntry, ttl_seconds: int) -> None:
        self._entries[key] = entry

    async def purge(self, now: float) -> int:
        """删除已过重置时间的记录"""
        expired = [key for key, entry in self._entries.items() if now >= entry.reset_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


class RedisRateLimitStore:
    """Redis 存储，多个进程共享计数"""

    def __init__(self, client, scope: str):
        self.client = client
        self.scope = scope

    async def get(self, key: str) -> Optional[RateLimitEntry]:
        raw = await self.client.get(RedisKeyManager.rate_limit_key(self.scope, key))
        if not raw:
            return None
        return RateLimitEntry(**json.loads(raw))

    async def set(self, key: str, entry: RateLimitEntry, ttl_seconds: int) -> None:
        await self.client.set(
            RedisKeyManager.rate_limit_key(self.scope, key),
            json.dumps(asdict(entry)),
            ex=max(int(ttl_seconds), 1),
        )


class RateLimiter:
    """
    Args:
        name: 限流器名称（日志与 Redis 键使用）
        max_requests: 窗口内最大请求数
        window_seconds: 窗口长度
        block_seconds: 超限后的封禁时长
        store: 状态存储
        clock: 返回秒级时间戳的时钟
        purge_interval: 清理过期记录的最小间隔（秒），仅对支持 purge 的存储生效
    """

    def __init__(
        self,
        name: str,
        max_requests: int,
        window_seconds: int,
        block_seconds: int,
        store=None,
        clock: Callable[[], float] = time.time,
        purge_interval: int = 300
    ):
        self.name = name
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.block_seconds = block_seconds
        self.store = store if store is not None else InMemoryRateLimitStore()
        self.clock = clock
        self.purge_interval = purge_interval
        self._last_purge = clock()

    def _decision(self, allowed: bool, remaining: int, reset_at: float, now: float) -> RateLimitDecision:
        retry_after = 0 if allowed else max(int(reset_at - now + 0.999), 1)
        return RateLimitDecision(allowed, max(remaining, 0), reset_at, retry_after)

    async def _maybe_purge(self, now: float) -> None:
        purge = getattr(self.store, "purge", None)
        if purge is None or now - self._last_purge < self.purge_interval:
            return
        self._last_purge = now
        removed = await purge(now)
        if removed:
            logger.debug(f"Rate limit '{self.name}' purged {removed} expired entries")

    async def check(self, identifier: str) -> RateLimitDecision:
        """记录一次请求并判断是否放行"""
        now = self.clock()
        await self._maybe_purge(now)
        entry = await self.store.get(identifier)

        if entry is None or now >= entry.reset_at:
            entry = RateLimitEntry(count=1, reset_at=now + self.window_seconds, first_request=now)
            await self.store.set(identifier, entry, self.window_seconds)
            return self._decision(True, self.max_requests - 1, entry.reset_at, now)

        if entry.count > self.max_requests * 2:
            return self._decision(False, 0, entry.reset_at, now)

        if entry.count >= self.max_requests:
            entry.reset_at = now + self.block_seconds
            entry.count += 1
            await self.store.set(identifier, entry, self.block_seconds)
            logger.warning(f"Rate limit '{self.name}' exceeded for {identifier} ({entry.count} requests)")
            return self._decision(False, 0, entry.reset_at, now)

        entry.count += 1
        await self.store.set(identifier, entry, int(entry.reset_at - now) + 1)
        return self._decision(True, self.max_requests - entry.count, entry.reset_at, now)


def client_identifier(headers, fallback_ip: Optional[str] = None) -> str:
    """
    由代理头中的客户端 IP 与 User-Agent 摘要组成客户端标识

    Args:
        headers: 请求头（大小写不敏感的映射）
        fallback_ip: 没有代理头时使用的连接地址
    """
    forwarded_for = headers.get("x-forwarded-for")
    ip = (
        (forwarded_for.split(",")[0].strip() if forwarded_for else None)
        or headers.get("x-real-ip")
        or headers.get("cf-connecting-ip")
        or fallback_ip
        or "unknown"
    )
    user_agent = headers.get("user-agent") or ""
    agent_hash = hashlib.sha1(user_agent.encode("utf-8")).hexdigest()[:8] if user_agent else "no-agent"
    return f"{ip}-{agent_hash}"
