"""
后台任务队列

用于不阻塞响应的附带操作（例如分享浏览次数 +1）。任务失败只记录日志并计数。
"""

import asyncio
from typing import Awaitable, Callable, Set

from sommelier.logging_config import get_logger

logger = get_logger(__name__)


class BackgroundTaskQueue:
    """跟踪已提交的任务，关闭时可等待全部完成"""

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()
        self.completed = 0
        self.failed = 0

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, name: str, factory: Callable[[], Awaitable[None]]) -> asyncio.Task:
        """
        提交任务

        Args:
            name: 任务名称（用于日志）
            factory: 返回协程的可调用对象
        """
        task = asyncio.get_running_loop().create_task(factory(), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning(f"Background task {task.get_name()} cancelled")
            self.failed += 1
            return
        error = task.exception()
        if error is not None:
            self.failed += 1
            logger.error(f"Background task {task.get_name()} failed: {error}")
        else:
            self.completed += 1

    async def drain(self) -> None:
        """等待所有已提交任务结束"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
