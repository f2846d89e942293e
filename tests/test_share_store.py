"""
分享存储测试
"""

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from sommelier.database.models import SharedRecommendation
from sommelier.sharing.share_store import (
    SHARE_ID_ALPHABET,
    STATUS_EXPIRED,
    STATUS_FOUND,
    STATUS_NOT_FOUND,
    ShareStore,
    generate_share_id,
)
from sommelier.utils.task_queue import BackgroundTaskQueue
from conftest import NOW

RECOMMENDATIONS = [{"id": 3, "title": "Wingspan", "pitch": "Birds, but competitive."}]


@pytest_asyncio.fixture
async def task_queue():
    queue = BackgroundTaskQueue()
    yield queue
    await queue.drain()


@pytest.fixture
def store(session_maker, task_queue, clock):
    return ShareStore(session_maker, task_queue, clock=clock, expiry_days=30, max_stored=2, id_length=8)


async def _count(session_maker):
    async with session_maker() as db:
        return (await db.execute(select(func.count(SharedRecommendation.id)))).scalar()


def test_generate_share_id():
    share_id = generate_share_id(8)
    assert len(share_id) == 8
    assert set(share_id) <= set(SHARE_ID_ALPHABET)


class TestShareStore:
    """ShareStore 测试"""

    @pytest.mark.asyncio
    async def test_create_and_read(self, store, task_queue):
        share = await store.create("calm games", RECOMMENDATIONS, title="Sunday", metadata={"strategy": "fallback"})

        assert len(share.share_id) == 8
        assert share.created_at == NOW
        assert (share.expires_at - share.created_at).days == 30

        lookup = await store.get(share.share_id)
        assert lookup.status == STATUS_FOUND
        assert lookup.view_count == 1
        assert lookup.share.prompt == "calm games"
        assert lookup.share.recommendations == RECOMMENDATIONS
        assert lookup.share.share_metadata == {"strategy": "fallback"}

        await task_queue.drain()
        assert task_queue.completed == 1

        second = await store.get(share.share_id)
        assert second.view_count == 2

    @pytest.mark.asyncio
    async def test_unknown_id(self, store):
        assert (await store.get("missing1")).status == STATUS_NOT_FOUND

    @pytest.mark.asyncio
    async def test_expired_share_deleted(self, store, session_maker, clock):
        share = await store.create("calm games", RECOMMENDATIONS)

        clock.advance(days=30)
        assert (await store.get(share.share_id)).status == STATUS_FOUND

        clock.advance(seconds=1)
        assert (await store.get(share.share_id)).status == STATUS_EXPIRED
        assert (await store.get(share.share_id)).status == STATUS_NOT_FOUND

    @pytest.mark.asyncio
    async def test_cleanup_removes_expired_and_excess(self, store, session_maker, clock):
        await store.create("oldest", RECOMMENDATIONS)
        clock.advance(days=20)
        second = await store.create("second", RECOMMENDATIONS)
        clock.advance(days=1)
        third = await store.create("third", RECOMMENDATIONS)
        clock.advance(days=1)
        fourth = await store.create("fourth", RECOMMENDATIONS)
        clock.advance(days=9)

        removed = await store.cleanup_expired_shares()

        # 第一条已过期，剩下三条超出上限一条
        assert removed == 2
        assert await _count(session_maker) == 2
        assert (await store.get(second.share_id)).status == STATUS_NOT_FOUND
        assert (await store.get(third.share_id)).status == STATUS_FOUND
        assert (await store.get(fourth.share_id)).status == STATUS_FOUND
