"""
测试公共夹具
"""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from sommelier.database.connection import Base
from sommelier.database import models  # noqa
from sommelier.database.models import Game

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """可手动推进的时钟"""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def make_game(game_id: int, title: str, **fields) -> Game:
    """构造一个未持久化的游戏对象"""
    defaults = {
        "players": "2-4",
        "playtime": "30-60 min",
        "complexity": 2.5,
        "mechanics": "hand-management",
        "theme": None,
        "tags": None,
    }
    defaults.update(fields)
    return Game(id=game_id, title=title, **defaults)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def game_factory():
    return make_game


@pytest_asyncio.fixture
async def session_maker():
    """每个测试独立的内存 SQLite 数据库"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def add_games(session_maker):
    """写入游戏并返回写入的对象"""

    async def _add(*games: Game):
        async with session_maker() as db:
            db.add_all(games)
            await db.commit()
        return list(games)

    return _add
