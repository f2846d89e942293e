"""
价格相关的 API 端点
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from sommelier.api.dependencies import get_price_resolver
from sommelier.database.connection import get_db_session
from sommelier.database.crud import game_crud
from sommelier.pricing.price_resolver import PriceResolver
from sommelier.schemas.common import ResponseModel
from sommelier.schemas.prices import BulkPriceRequest, PriceResult

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/stats", response_model=ResponseModel)
async def get_price_statistics(
    resolver: PriceResolver = Depends(get_price_resolver)
):
    """价格缓存统计：总数、新鲜、过期、平均价格"""
    stats = await resolver.price_statistics()
    return ResponseModel(code=200, message="success", data=stats)


@router.post("/bulk", response_model=ResponseModel)
async def get_bulk_prices(
    request: BulkPriceRequest,
    resolver: PriceResolver = Depends(get_price_resolver)
):
    """
    批量查询价格

    - **games**: [{id, title}]，最多 50 个

    每个游戏都会得到一条结果，查不到价格时返回搜索链接（source=fallback）。
    """
    results = await resolver.resolve_prices([(item.id, item.title) for item in request.games])
    return ResponseModel(
        code=200,
        message="success",
        data={"prices": results, "total": len(results)}
    )


@router.get("/{game_id}", response_model=PriceResult)
async def get_game_price(
    game_id: int,
    db: AsyncSession = Depends(get_db_session),
    resolver: PriceResolver = Depends(get_price_resolver)
):
    """
    查询单个游戏价格

    **路径参数**:
    - **game_id**: 游戏 id
    """
    game = await game_crud.get_game_by_id(db, game_id)
    if not game:
        raise HTTPException(status_code=404, detail="Game not found")

    return await resolver.resolve_price(game.id, game.title, bgg_id=game.bgg_id)
