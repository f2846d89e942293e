"""
数据库初始化脚本
"""

import asyncio
import sys
import logging
from pathlib import Path

# 添加项目根目录到Python路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sommelier.database.connection import init_db, create_tables, drop_tables, close_db

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def init_database(reset: bool = False):
    """初始化数据库，reset 为 True 时先删除已有表"""
    try:
        logger.info("Initializing database connection...")
        await init_db()

        if reset:
            logger.warning("Dropping existing tables...")
            await drop_tables()

        logger.info("Creating database tables...")
        await create_tables()

        logger.info("Database initialization completed successfully!")

    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise
    finally:
        await close_db()


async def main():
    """主函数"""
    try:
        await init_database(reset="--reset" in sys.argv)
    except Exception as e:
        logger.error(f"Initialization failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
