"""
时间工具

数据库中统一存储 UTC 时间；SQLite 读回的是不带时区的 datetime，需要补齐时区后再比较。
"""

from datetime import datetime, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """当前 UTC 时间（带时区）"""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """将数据库读出的时间统一为带时区的 UTC 时间"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
