"""
统一日志配置模块
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime, timezone

from sommelier.config import settings


class ColoredFormatter(logging.Formatter):
    """带颜色的日志格式化器（用于控制台输出）"""

    COLORS = {
        'DEBUG': '\033[36m',      # 青色
        'INFO': '\033[32m',       # 绿色
        'WARNING': '\033[33m',    # 黄色
        'ERROR': '\033[31m',      # 红色
        'CRITICAL': '\033[35m',   # 紫色
    }
    RESET = '\033[0m'

    def format(self, record):
        log_color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{log_color}{record.levelname}{self.RESET}"
        return super().format(record)


class StructuredFormatter(logging.Formatter):
    """结构化日志格式化器（用于文件输出）"""

    EXTRA_FIELDS = ('request_id', 'ip', 'duration_ms', 'strategy', 'game_id', 'source')

    def format(self, record):
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        for field in self.EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        parts = [f"{k}={v}" for k, v in log_data.items()]
        return " | ".join(parts)


def _rotating_handler(path: Path, level: int, backup_count: int = 10) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=str(path),
        maxBytes=100 * 1024 * 1024,  # 100MB
        backupCount=backup_count,
        encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(StructuredFormatter())
    return handler


def setup_logging(
    log_dir: Optional[str] = None,
    log_level: Optional[str] = None,
    enable_file_logging: bool = True,
    enable_console_logging: bool = True
) -> None:
    """
    设置日志系统

    Args:
        log_dir: 日志目录路径，默认为项目根目录下的 logs 目录
        log_level: 日志级别，默认从配置读取
        enable_file_logging: 是否启用文件日志
        enable_console_logging: 是否启用控制台日志
    """
    level = log_level or settings.LOG_LEVEL
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    # 控制台处理器
    if enable_console_logging:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)

        if settings.DEBUG:
            # 开发环境使用彩色格式
            console_formatter = ColoredFormatter(
                '%(asctime)s | %(levelname)s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
        else:
            console_formatter = logging.Formatter(
                '%(asctime)s | %(levelname)s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )

        console_handler.setFormatter(console_formatter)
        root_logger.addHandler(console_handler)

    # 文件处理器
    if enable_file_logging:
        if log_dir is None:
            log_path = Path(__file__).parent.parent / "logs"
        else:
            log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        # 访问日志
        access_handler = _rotating_handler(log_path / "access.log", logging.INFO)
        access_handler.addFilter(lambda record: record.name.startswith('sommelier.api'))
        root_logger.addHandler(access_handler)

        # 业务日志
        root_logger.addHandler(_rotating_handler(log_path / "business.log", logging.INFO))

        # 错误日志保留更多
        root_logger.addHandler(_rotating_handler(log_path / "error.log", logging.ERROR, backup_count=20))

        # 性能日志
        performance_handler = _rotating_handler(log_path / "performance.log", logging.INFO)
        performance_handler.addFilter(lambda record: hasattr(record, 'duration_ms'))
        root_logger.addHandler(performance_handler)

        # 价格查询日志（商城接口调用、缓存命中）
        pricing_handler = _rotating_handler(log_path / "pricing.log", logging.INFO)
        pricing_handler.addFilter(lambda record: record.name.startswith('sommelier.pricing'))
        root_logger.addHandler(pricing_handler)

    # 设置第三方库日志级别
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    获取日志记录器

    Args:
        name: 日志记录器名称，通常使用 __name__

    Returns:
        日志记录器实例
    """
    return logging.getLogger(name)


def mask_secret(value: Optional[str]) -> str:
    """脱敏密钥，仅保留首尾各4位"""
    if not value:
        return "<unset>"
    if len(value) > 8:
        return value[:4] + "****" + value[-4:]
    return "****"
