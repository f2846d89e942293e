"""
推荐分享 API 端点
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from sommelier.api.dependencies import get_share_store, share_rate_limit
from sommelier.config import settings
from sommelier.schemas.share import CreateShareRequest, CreateShareResponse, SharedRecommendationPayload
from sommelier.sharing.share_store import STATUS_EXPIRED, STATUS_NOT_FOUND, ShareStore

logger = logging.getLogger(__name__)

router = APIRouter()


def build_share_url(share_id: str) -> str:
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/share/{share_id}"


@router.post(
    "",
    response_model=CreateShareResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(share_rate_limit)]
)
async def create_share(
    request: CreateShareRequest,
    store: ShareStore = Depends(get_share_store)
):
    """
    保存一组推荐结果并返回分享链接

    - **prompt**: 生成推荐时的提示词
    - **recommendations**: 推荐结果
    - **metadata**: 可选，interpreted_needs / notes 等
    - **title**: 可选标题
    """
    try:
        share = await store.create(
            prompt=request.prompt,
            recommendations=request.recommendations,
            title=request.title,
            metadata=request.metadata,
        )
    except SQLAlchemyError as e:
        logger.error(f"Failed to create share: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create share"
        )

    return CreateShareResponse(
        share_id=share.share_id,
        share_url=build_share_url(share.share_id),
        created_at=share.created_at,
        expires_at=share.expires_at,
    )


@router.get("/{share_id}", response_model=SharedRecommendationPayload)
async def get_share(
    share_id: str,
    store: ShareStore = Depends(get_share_store)
):
    """
    读取分享内容

    - 不存在返回 404
    - 已过期返回 410（同时删除记录）
    """
    try:
        lookup = await store.get(share_id)
    except SQLAlchemyError as e:
        logger.error(f"Failed to load share {share_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load share"
        )

    if lookup.status == STATUS_NOT_FOUND:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Share not found")
    if lookup.status == STATUS_EXPIRED:
        raise HTTPException(status_code=status.HTTP_410_GONE, detail="Share has expired")

    return SharedRecommendationPayload.from_share(lookup.share, lookup.view_count)
