"""
Board Game Sommelier - 主应用入口
"""

import uuid
import time
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from sommelier.config import settings
from sommelier.api.v1.api import api_router
from sommelier.api.dependencies import close_dependencies
from sommelier.database.connection import init_db, close_db
from sommelier.cache.redis_client import init_redis, close_redis
from sommelier.logging_config import setup_logging, get_logger
from sommelier.utils.logger import log_request, log_slow_request

# 初始化日志系统
setup_logging(
    log_dir=settings.LOG_DIR,
    log_level=settings.LOG_LEVEL,
    enable_file_logging=settings.ENABLE_FILE_LOGGING,
    enable_console_logging=settings.ENABLE_CONSOLE_LOGGING
)

logger = get_logger(__name__)

APP_VERSION = "1.0.0"


def create_application() -> FastAPI:
    """创建FastAPI应用"""

    app = FastAPI(
        title="Board Game Sommelier API",
        description="桌游推荐服务API",
        version=APP_VERSION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    # 添加中间件
    setup_middleware(app)

    # 添加路由
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    # 添加事件处理器
    setup_event_handlers(app)

    # 添加异常处理器
    setup_exception_handlers(app)

    return app


def setup_middleware(app: FastAPI) -> None:
    """设置中间件"""

    # CORS中间件
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 信任主机中间件
    if not settings.DEBUG:
        app.add_middleware(
            TrustedHostMiddleware,
            allowed_hosts=["*"]  # 生产环境应该配置具体的主机
        )

    # 请求日志中间件
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """记录所有HTTP请求"""
        start_time = time.time()
        request_id = getattr(request.state, "request_id", None)

        # 获取客户端IP
        client_ip = request.client.host if request.client else None
        if "x-forwarded-for" in request.headers:
            client_ip = request.headers["x-forwarded-for"].split(",")[0].strip()

        try:
            response = await call_next(request)
            process_time = (time.time() - start_time) * 1000  # 转换为毫秒

            # 添加处理时间头
            response.headers["X-Process-Time"] = f"{process_time:.2f}"

            # 记录请求日志
            log_request(
                method=request.method,
                path=str(request.url.path),
                status_code=response.status_code,
                duration_ms=process_time,
                ip=client_ip,
                request_id=request_id,
                query_params=str(request.query_params) if request.query_params else None
            )

            # 记录慢请求
            log_slow_request(
                method=request.method,
                path=str(request.url.path),
                duration_ms=process_time,
                threshold=settings.SLOW_REQUEST_THRESHOLD * 1000,
                request_id=request_id
            )

            return response

        except Exception as e:
            process_time = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.url.path} - {str(e)}",
                exc_info=True,
                extra={
                    'method': request.method,
                    'path': str(request.url.path),
                    'duration_ms': process_time,
                    'ip': client_ip,
                    'request_id': request_id
                }
            )
            raise

    # 请求ID中间件（最后注册，最先执行）
    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        """为每个请求添加唯一ID"""
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


def setup_event_handlers(app: FastAPI) -> None:
    """设置事件处理器"""

    @app.on_event("startup")
    async def startup_event():
        """应用启动事件"""
        logger.info("Starting Board Game Sommelier...")

        # 初始化数据库连接
        await init_db()
        logger.info("Database connection initialized")

        # Redis 只用于共享限流状态，连接失败时退回进程内限流
        if settings.REDIS_ENABLED:
            try:
                await init_redis()
                logger.info("Redis connection initialized")
            except (RedisError, OSError) as e:
                logger.warning(f"Redis unavailable, using in-process rate limiting: {e}")
                await close_redis()

        if not settings.llm_enabled:
            logger.warning("OPENAI_API_KEY not set, recommendations will use keyword ranking")

        logger.info("Board Game Sommelier started successfully!")

    @app.on_event("shutdown")
    async def shutdown_event():
        """应用关闭事件"""
        logger.info("Shutting down Board Game Sommelier...")

        # 等待后台任务并关闭出站连接
        await close_dependencies()

        # 关闭数据库连接
        await close_db()
        logger.info("Database connection closed")

        # 关闭Redis连接
        await close_redis()

        logger.info("Board Game Sommelier shutdown complete")


def setup_exception_handlers(app: FastAPI) -> None:
    """设置异常处理器"""

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """全局异常处理器"""
        request_id = getattr(request.state, "request_id", None)
        client_ip = request.client.host if request.client else None

        logger.error(
            f"Unhandled exception: {type(exc).__name__}: {str(exc)}",
            exc_info=True,
            extra={
                'method': request.method,
                'path': str(request.url.path),
                'ip': client_ip,
                'request_id': request_id
            }
        )

        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": "An unexpected error occurred",
                "request_id": request_id
            }
        )


# 创建应用实例
app = create_application()


# 健康检查端点
@app.get("/health")
async def health_check():
    """健康检查"""
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "version": APP_VERSION,
        "llm_enabled": settings.llm_enabled,
        "amazon_enabled": settings.amazon_enabled,
    }


@app.get("/")
async def root():
    """根路径"""
    return {
        "message": "Welcome to Board Game Sommelier API",
        "docs": "/docs",
        "version": APP_VERSION
    }
