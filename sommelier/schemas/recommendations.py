"""
推荐相关的Pydantic模式
"""

from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


class RecommendRequest(BaseModel):
    """推荐请求模式"""
    prompt: str = Field(..., description="用户对想玩的游戏的描述")

    @field_validator('prompt')
    @classmethod
    def validate_prompt(cls, v):
        if not v or not v.strip():
            raise ValueError('prompt must not be empty')
        return v.strip()


class Specs(BaseModel):
    """游戏规格"""
    players: Optional[str] = None
    playtime: Optional[str] = None
    complexity: Optional[float] = None


class PriceBlock(BaseModel):
    """价格信息，没有价格时全部为空"""
    amount: Optional[float] = None
    currency: Optional[str] = None
    store: Optional[str] = None
    url: Optional[str] = None
    source: Optional[str] = None


class Recommendation(BaseModel):
    """单条推荐"""
    id: Optional[int] = None
    title: str
    pitch: str = Field(..., min_length=1, description="一句话推荐语")
    why_it_fits: List[str] = Field(..., min_length=2, max_length=4)
    specs: Specs
    mechanics: List[str] = Field(default_factory=list)
    theme: str = ""
    price: PriceBlock = Field(default_factory=PriceBlock)
    alternates: List[int] = Field(default_factory=list, max_length=3)

    @field_validator('pitch')
    @classmethod
    def validate_pitch(cls, v):
        if not v.strip():
            raise ValueError('pitch must not be blank')
        return v


class ResponseMetadata(BaseModel):
    """推荐响应附加信息"""
    interpreted_needs: List[str] = Field(default_factory=list)
    notes: str = ""
    strategy: str = ""
    catalog_size: int = 0
    validation_issues: List[str] = Field(default_factory=list)


class RecommendationResponse(BaseModel):
    """推荐响应模式"""
    recommendations: List[Recommendation]
    follow_ups: List[str] = Field(default_factory=list, max_length=3)
    metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)
