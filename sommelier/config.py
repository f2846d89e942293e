"""
应用配置管理
"""

from typing import List, Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings


# .env.example 中的占位值，视为未配置
PLACEHOLDER_API_KEYS = {"", "your_openai_api_key_here", "sk-your-key-here"}


class Settings(BaseSettings):
    """应用配置"""

    # API配置
    API_V1_PREFIX: str = "/api/v1"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    PUBLIC_BASE_URL: str = "http://localhost:8000"  # 分享链接的前缀

    # 日志配置
    LOG_DIR: Optional[str] = None  # 日志目录，默认为项目根目录下的 logs
    ENABLE_FILE_LOGGING: bool = True
    ENABLE_CONSOLE_LOGGING: bool = True
    SLOW_REQUEST_THRESHOLD: float = 1.0  # 慢请求阈值（秒）

    # 数据库配置
    DATABASE_URL: Optional[str] = None  # 如果设置了 DATABASE_URL，将优先使用，忽略其他 DB_* 配置
    DB_TYPE: str = "postgresql"  # postgresql 或 mysql
    DB_HOST: str = "localhost"
    DB_PORT: Optional[int] = None  # 如果未设置，将根据 DB_TYPE 自动选择默认端口
    DB_NAME: str = "sommelier"
    DB_USER: str = "user"
    DB_PASSWORD: str = "password"

    # 连接池配置
    MAX_CONNECTIONS_COUNT: int = 10
    CATALOG_PAGE_SIZE: int = 1000  # 分页读取游戏库时每页条数

    # Redis配置（仅用于多进程共享限流状态）
    REDIS_ENABLED: bool = False
    REDIS_URL: str = "redis://localhost:6379"
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_MAX_CONNECTIONS: int = 20

    # CORS配置
    ALLOWED_ORIGINS: List[str] = ["*"]

    # LLM配置
    OPENAI_API_KEY: Optional[str] = None
    LLM_MODEL: str = "gpt-4o-mini"
    LLM_TEMPERATURE: float = 0.8
    LLM_MAX_TOKENS: int = 1500
    LLM_TIMEOUT_SECONDS: float = 30.0

    # 推荐配置
    FULL_CATALOG_THRESHOLD: int = 500  # 游戏库不超过该值时整库发送给 LLM
    SAMPLE_TARGET_SIZE: int = 300
    FULL_CATALOG_REQUEST_COUNT: int = 5
    SAMPLE_REQUEST_COUNT: int = 10
    RECOMMENDATION_COUNT: int = 3
    MATCH_ACCEPTANCE_THRESHOLD: float = 0.7
    FALLBACK_SEED: int = 42
    MAX_PROMPT_LENGTH: int = 1000

    # 商城价格配置
    AMAZON_ACCESS_KEY: Optional[str] = None
    AMAZON_SECRET_KEY: Optional[str] = None
    AMAZON_PARTNER_TAG: str = "boardgamesommelier-20"
    AMAZON_HOST: str = "webservices.amazon.com"
    AMAZON_REGION: str = "us-east-1"
    AMAZON_MARKETPLACE: str = "www.amazon.com"
    MARKETPLACE_MIN_INTERVAL_SECONDS: float = 1.2  # 商城接口最小请求间隔
    HTTP_TIMEOUT_SECONDS: float = 10.0
    BGG_USER_AGENT: str = "BoardGameSommelier/1.0"
    PRICE_PRIMARY_STORE: str = "Amazon"
    PRICE_FRESHNESS_HOURS: int = 72
    PRICE_RETENTION_DAYS: int = 30
    PRICE_BULK_CONCURRENCY: int = 4

    # 分享配置
    SHARE_EXPIRY_DAYS: int = 30
    SHARE_MAX_STORED: int = 1000
    SHARE_ID_LENGTH: int = 8

    # 限流配置
    RECOMMEND_RATE_LIMIT: int = 6
    RECOMMEND_RATE_WINDOW_SECONDS: int = 60
    RECOMMEND_RATE_BLOCK_SECONDS: int = 300
    SHARE_RATE_LIMIT: int = 10
    SHARE_RATE_WINDOW_SECONDS: int = 300
    SHARE_RATE_BLOCK_SECONDS: int = 900

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):
        if isinstance(v, str):
            return [i.strip() for i in v.split(",")]
        return v

    @property
    def llm_enabled(self) -> bool:
        """是否配置了可用的 LLM 密钥"""
        return bool(self.OPENAI_API_KEY) and self.OPENAI_API_KEY.strip() not in PLACEHOLDER_API_KEYS

    @property
    def amazon_enabled(self) -> bool:
        """是否配置了 Amazon PA-API 凭证"""
        return bool(self.AMAZON_ACCESS_KEY and self.AMAZON_SECRET_KEY and self.AMAZON_PARTNER_TAG)

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore"
    }


# 全局配置实例
settings = Settings()


def get_database_url() -> str:
    """
    获取数据库连接URL

    优先级：
    1. 如果设置了 DATABASE_URL，直接使用（忽略其他 DB_* 配置）
    2. 否则根据 DB_TYPE 和 DB_* 配置构建连接字符串
    """
    if settings.DATABASE_URL:
        return settings.DATABASE_URL

    db_type = settings.DB_TYPE.lower()
    default_port = 3306 if db_type == "mysql" else 5432
    db_port = settings.DB_PORT if settings.DB_PORT is not None else default_port

    if db_type == "mysql":
        return (
            f"mysql+aiomysql://{settings.DB_USER}:{settings.DB_PASSWORD}"
            f"@{settings.DB_HOST}:{db_port}/{settings.DB_NAME}"
        )
    else:  # 默认使用 PostgreSQL
        return (
            f"postgresql+asyncpg://{settings.DB_USER}:{settings.DB_PASSWORD}"
            f"@{settings.DB_HOST}:{db_port}/{settings.DB_NAME}"
        )


def get_redis_url() -> str:
    """获取Redis连接URL"""
    if settings.REDIS_URL:
        return settings.REDIS_URL

    return f"redis://{settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}"
