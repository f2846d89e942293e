"""
数据库连接管理
"""

from typing import AsyncGenerator, Optional
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from sommelier.config import get_database_url, settings
from sommelier.logging_config import get_logger

logger = get_logger(__name__)

# 创建基础模型类
Base = declarative_base()

# 全局变量
engine = None
async_session_maker = None


def _engine_options(database_url: str) -> dict:
    """按数据库方言生成引擎参数"""
    if database_url.startswith("sqlite"):
        # SQLite 不支持连接池参数；内存库需要共享同一连接
        options = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url.rstrip("/").endswith("sqlite+aiosqlite:"):
            options["poolclass"] = StaticPool
        return options

    return {
        "pool_size": settings.MAX_CONNECTIONS_COUNT,
        "max_overflow": 20,
        "pool_pre_ping": True,  # 连接前验证
        "pool_recycle": 3600,   # 1小时后回收连接
    }


async def init_db(database_url: Optional[str] = None) -> None:
    """初始化数据库连接"""
    global engine, async_session_maker

    database_url = database_url or get_database_url()
    # 脱敏数据库URL（隐藏密码）
    safe_url = database_url.split('@')[1] if '@' in database_url else database_url
    logger.info(f"Connecting to database: {safe_url}")

    try:
        engine = create_async_engine(
            database_url,
            echo=settings.DEBUG,
            **_engine_options(database_url),
        )

        async_session_maker = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        logger.info("Database connection initialized successfully")

    except Exception as e:
        logger.error(f"Failed to initialize database connection: {e}", exc_info=True)
        raise


async def close_db() -> None:
    """关闭数据库连接"""
    global engine, async_session_maker

    if engine:
        await engine.dispose()
        engine = None
        async_session_maker = None
        logger.info("Database connection closed")


def get_session_maker() -> async_sessionmaker:
    """获取会话工厂（供后台任务、价格批量刷新等独立会话使用）"""
    if not async_session_maker:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return async_session_maker


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    获取数据库会话

    Yields:
        数据库会话
    """
    if not async_session_maker:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def create_tables() -> None:
    """创建数据库表"""
    if not engine:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    # 导入所有模型以确保它们被注册
    from sommelier.database import models  # noqa

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database tables created successfully")


async def drop_tables() -> None:
    """删除数据库表（仅用于测试）"""
    if not engine:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    from sommelier.database import models  # noqa

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    logger.info("Database tables dropped successfully")
