"""
分享相关的 Pydantic 模型
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator


class CreateShareRequest(BaseModel):
    """创建分享请求"""
    prompt: str = Field(..., description="生成推荐时的提示词")
    recommendations: List[Dict[str, Any]] = Field(..., min_length=1)
    metadata: Optional[Dict[str, Any]] = None
    title: Optional[str] = Field(None, max_length=255)

    @field_validator('prompt')
    @classmethod
    def validate_prompt(cls, v):
        if not v or not v.strip():
            raise ValueError('prompt must not be empty')
        return v


class CreateShareResponse(BaseModel):
    share_id: str
    share_url: str
    created_at: datetime
    expires_at: datetime


class SharedRecommendationPayload(BaseModel):
    """分享内容"""
    share_id: str
    title: Optional[str] = None
    prompt: str
    recommendations: List[Dict[str, Any]]
    metadata: Dict[str, Any] = Field(default_factory=dict)
    view_count: int
    created_at: datetime
    expires_at: datetime

    @classmethod
    def from_share(cls, share, view_count: Optional[int] = None) -> "SharedRecommendationPayload":
        return cls(
            share_id=share.share_id,
            title=share.title,
            prompt=share.prompt,
            recommendations=share.recommendations or [],
            metadata=share.share_metadata or {},
            view_count=share.view_count if view_count is None else view_count,
            created_at=share.created_at,
            expires_at=share.expires_at,
        )
