"""
日志工具类
提供便捷的日志记录方法
"""

import logging
import time
from typing import Optional
from contextlib import contextmanager

from sommelier.logging_config import get_logger


@contextmanager
def log_performance(operation_name: str, logger: Optional[logging.Logger] = None, **extra_fields):
    """
    性能日志上下文管理器

    Usage:
        with log_performance("catalog_load", strategy="full_catalog"):
            games = await game_crud.get_all_games(db)
    """
    if logger is None:
        logger = get_logger(__name__)

    start_time = time.time()
    logger.debug(f"Starting {operation_name}", extra=extra_fields)

    try:
        yield
    except Exception as e:
        duration = (time.time() - start_time) * 1000
        logger.error(
            f"{operation_name} failed after {duration:.2f}ms: {str(e)}",
            extra={**extra_fields, 'duration_ms': duration}
        )
        raise
    else:
        duration = (time.time() - start_time) * 1000
        logger.info(
            f"{operation_name} completed in {duration:.2f}ms",
            extra={**extra_fields, 'duration_ms': duration}
        )


def log_request(
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    ip: Optional[str] = None,
    request_id: Optional[str] = None,
    **kwargs
):
    """
    记录HTTP请求日志

    Args:
        method: HTTP方法
        path: 请求路径
        status_code: 响应状态码
        duration_ms: 请求耗时（毫秒）
        ip: 客户端IP
        request_id: 请求ID
        **kwargs: 其他字段
    """
    logger = get_logger('sommelier.api.request')

    extra = {
        'method': method,
        'path': path,
        'status_code': status_code,
        'duration_ms': duration_ms,
        **kwargs
    }

    if ip:
        extra['ip'] = ip
    if request_id:
        extra['request_id'] = request_id

    if status_code >= 500:
        logger.error(f"{method} {path} - {status_code} - {duration_ms:.2f}ms", extra=extra)
    elif status_code >= 400:
        logger.warning(f"{method} {path} - {status_code} - {duration_ms:.2f}ms", extra=extra)
    else:
        logger.info(f"{method} {path} - {status_code} - {duration_ms:.2f}ms", extra=extra)


def log_slow_request(
    method: str,
    path: str,
    duration_ms: float,
    threshold: float = 1000.0,
    **kwargs
):
    """
    记录慢请求日志

    Args:
        method: HTTP方法
        path: 请求路径
        duration_ms: 请求耗时（毫秒）
        threshold: 慢请求阈值（毫秒）
    """
    if duration_ms > threshold:
        logger = get_logger('sommelier.api.slow_request')
        logger.warning(
            f"Slow request: {method} {path} took {duration_ms:.2f}ms (threshold: {threshold}ms)",
            extra={'method': method, 'path': path, 'duration_ms': duration_ms, **kwargs}
        )


def log_recommendation(
    strategy: str,
    catalog_size: int,
    recommendations_count: int,
    total_time_ms: float,
    llm_time_ms: Optional[float] = None,
    pricing_time_ms: Optional[float] = None,
    **kwargs
):
    """
    记录推荐日志

    Args:
        strategy: 推荐策略（full_catalog / sample_and_match / fallback / empty）
        catalog_size: 游戏库大小
        recommendations_count: 推荐结果数量
        total_time_ms: 总耗时（毫秒）
        llm_time_ms: LLM 调用耗时（毫秒）
        pricing_time_ms: 价格补全耗时（毫秒）
    """
    logger = get_logger('sommelier.recommendation')

    extra = {
        'strategy': strategy,
        'catalog_size': catalog_size,
        'recommendations_count': recommendations_count,
        'total_time_ms': total_time_ms,
        **kwargs
    }

    if llm_time_ms is not None:
        extra['llm_time_ms'] = llm_time_ms
    if pricing_time_ms is not None:
        extra['pricing_time_ms'] = pricing_time_ms

    logger.info(
        f"Recommendation using {strategy} over {catalog_size} games: "
        f"{recommendations_count} items in {total_time_ms:.2f}ms",
        extra=extra
    )


def log_price_lookup(
    game_id: int,
    source: str,
    store_name: Optional[str] = None,
    has_price: bool = False,
    **kwargs
):
    """记录价格查询结果"""
    logger = get_logger('sommelier.pricing.lookup')
    logger.info(
        f"Price for game {game_id} from {source} ({store_name or 'n/a'}), has_price={has_price}",
        extra={'game_id': game_id, 'source': source, 'store_name': store_name, 'has_price': has_price, **kwargs}
    )
