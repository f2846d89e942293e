"""
开发环境启动脚本
"""

import os
import sys
import asyncio
import subprocess
import logging
from pathlib import Path

# 添加项目根目录到Python路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sommelier.database.connection import init_db, create_tables, close_db

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def check_environment():
    """检查环境配置"""
    logger.info("Checking environment configuration...")

    # 检查.env文件
    env_file = project_root / ".env"
    if not env_file.exists():
        logger.warning(".env file not found, copying from .env.example")
        example_file = project_root / ".env.example"
        if example_file.exists():
            import shutil
            shutil.copy(example_file, env_file)
            logger.info("Please edit .env file with your configuration")
        else:
            logger.error(".env.example file not found")
            return False

    # 加载.env文件
    from dotenv import load_dotenv
    load_dotenv(env_file)

    if not os.getenv("DATABASE_URL") and not os.getenv("DB_HOST"):
        logger.error("Missing database configuration: set DATABASE_URL or DB_* variables")
        return False

    # 以下配置缺失时服务仍可运行，只是功能降级
    optional_vars = {
        "OPENAI_API_KEY": "recommendations will use keyword ranking",
        "AMAZON_ACCESS_KEY": "prices will come from BoardGameGeek links and search placeholders",
    }
    for var, effect in optional_vars.items():
        if not os.getenv(var):
            logger.warning(f"{var} not set, {effect}")

    logger.info("Environment configuration OK")
    return True


def check_dependencies():
    """检查依赖是否安装"""
    logger.info("Checking dependencies...")

    try:
        import fastapi
        import uvicorn
        import sqlalchemy
        import httpx
        import openai
        import pydantic
        logger.info("All dependencies are installed")
        return True
    except ImportError as e:
        logger.error(f"Missing dependency: {e}")
        logger.info("Please run: pip install -e .")
        return False


async def setup_database():
    """检查数据库连接并建表"""
    logger.info("Setting up database...")

    try:
        await init_db()
        await create_tables()
        logger.info("Database tables created successfully")
        return True

    except Exception as e:
        logger.error(f"Database setup failed: {e}")
        return False

    finally:
        await close_db()


def start_server():
    """启动开发服务器"""
    logger.info("Starting development server...")

    # 启动uvicorn服务器
    cmd = [
        "uvicorn",
        "sommelier.main:app",
        "--reload",
        "--host", "0.0.0.0",
        "--port", "8000",
        "--log-level", "info"
    ]

    try:
        subprocess.run(cmd, cwd=project_root)
    except KeyboardInterrupt:
        logger.info("Server stopped by user")


async def prepare():
    # 1. 检查环境
    if not check_environment():
        logger.error("Environment check failed")
        return False

    # 2. 检查依赖
    if not check_dependencies():
        logger.error("Dependencies check failed")
        return False

    # 3. 设置数据库
    if not await setup_database():
        logger.error("Database setup failed")
        logger.info("Please make sure the database is running")
        return False

    return True


def main():
    """主函数"""
    logger.info("Starting Board Game Sommelier Development Server...")

    if not asyncio.run(prepare()):
        return

    logger.info("All checks passed! Starting server...")
    logger.info("Server will be available at: http://localhost:8000")
    logger.info("API documentation: http://localhost:8000/docs")
    logger.info("Press Ctrl+C to stop the server")

    # 4. 启动服务器
    start_server()


if __name__ == "__main__":
    main()
