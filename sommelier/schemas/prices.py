"""
价格相关的 Pydantic 模型
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class PriceResult(BaseModel):
    """单个游戏的价格查询结果"""
    game_id: int
    store_name: Optional[str] = None
    price: Optional[float] = None
    currency: str = "USD"
    url: Optional[str] = None
    last_updated: Optional[datetime] = None
    source: str = Field(..., description="cache / api / fallback")


class PriceLookupItem(BaseModel):
    id: int = Field(..., description="游戏 id")
    title: str = Field(..., min_length=1, description="游戏名称")


class BulkPriceRequest(BaseModel):
    """批量价格查询请求"""
    games: List[PriceLookupItem] = Field(..., min_length=1, max_length=50)


class BulkPriceUpdate(BaseModel):
    """批量刷新价格结果"""
    total: int = 0
    updated: int = 0
    failed: int = 0
    errors: List[str] = Field(default_factory=list)


class PriceStatistics(BaseModel):
    """价格缓存统计"""
    total: int = 0
    fresh: int = 0
    stale: int = 0
    average_price: Optional[float] = None
