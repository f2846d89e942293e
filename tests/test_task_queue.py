"""
后台任务队列测试
"""

import asyncio

import pytest

from sommelier.utils.task_queue import BackgroundTaskQueue


class TestBackgroundTaskQueue:
    """BackgroundTaskQueue 测试"""

    @pytest.mark.asyncio
    async def test_drain_waits_for_tasks(self):
        queue = BackgroundTaskQueue()
        done = []

        async def work(value):
            await asyncio.sleep(0)
            done.append(value)

        queue.submit("one", lambda: work(1))
        queue.submit("two", lambda: work(2))
        assert queue.pending == 2

        await queue.drain()

        assert sorted(done) == [1, 2]
        assert queue.pending == 0
        assert queue.completed == 2

    @pytest.mark.asyncio
    async def test_failure_counted_not_raised(self):
        queue = BackgroundTaskQueue()

        async def broken():
            raise RuntimeError("database is locked")

        queue.submit("broken", broken)
        await queue.drain()

        assert queue.failed == 1
        assert queue.completed == 0
