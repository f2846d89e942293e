"""
推荐相关API端点
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from sommelier.api.dependencies import get_orchestrator, recommend_rate_limit
from sommelier.recommend.orchestrator import InvalidPromptError, RecommendationOrchestrator
from sommelier.schemas.recommendations import RecommendRequest, RecommendationResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=RecommendationResponse, dependencies=[Depends(recommend_rate_limit)])
async def create_recommendations(
    request: RecommendRequest,
    orchestrator: RecommendationOrchestrator = Depends(get_orchestrator)
):
    """
    根据自由文本描述推荐桌游

    - **prompt**: 对想玩的游戏的描述，例如 "family game night, 4 players, nothing too heavy"

    返回的 metadata.strategy 表示实际使用的策略：
    - full_catalog: 游戏库较小，LLM 直接从整个游戏库中挑选
    - sample_and_match: 游戏库较大，LLM 参考抽样结果推荐，再模糊匹配回游戏库
    - fallback: 未配置 LLM 或 LLM 结果不可用，按关键词打分
    - empty: 游戏库为空
    """
    try:
        return await orchestrator.recommend(request.prompt)
    except InvalidPromptError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
