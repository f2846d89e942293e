"""
商城接口请求节流

同一进程内所有商城请求共享一个节流器：请求按顺序进入，相邻两次请求的开始时间
至少间隔 min_interval 秒。
"""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, Optional

from sommelier.logging_config import get_logger

logger = get_logger(__name__)


class RequestThrottle:
    """
    Args:
        min_interval: 最小请求间隔（秒）
        clock: 单调时钟，测试时可替换
        sleep: 等待函数，测试时可替换
    """

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_request: Optional[float] = None

    @asynccontextmanager
    async def slot(self):
        """获取一次请求机会，持有期间其他请求等待"""
        async with self._lock:
            if self._last_request is not None:
                wait = self.min_interval - (self._clock() - self._last_request)
                if wait > 0:
                    logger.debug(f"Throttling marketplace request for {wait:.3f}s")
                    await self._sleep(wait)
            self._last_request = self._clock()
            yield
