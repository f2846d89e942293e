"""
游戏目录相关的 API 端点
"""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from sommelier.database.connection import get_db_session
from sommelier.database.crud import game_crud
from sommelier.schemas.games import GameDetail, GameItem, GameListResponse
from sommelier.schemas.common import PaginationModel, ResponseModel
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=ResponseModel)
async def get_games_list(
    search: Optional[str] = Query(None, description="按名称搜索"),
    page: int = Query(1, ge=1, description="页码"),
    limit: int = Query(20, ge=1, le=50, description="每页数量"),
    db: AsyncSession = Depends(get_db_session)
):
    """
    获取游戏列表

    **查询参数**:
    - **search**: 名称关键词
    - **page**: 页码（默认1）
    - **limit**: 每页数量（默认20，最大50）

    **返回**: 游戏列表和分页信息（按 BGG 排名）
    """
    games, total = await game_crud.search_games(db, keyword=search, page=page, limit=limit)

    total_pages = (total + limit - 1) // limit
    response_data = GameListResponse(
        games=[GameItem.from_game(game) for game in games],
        pagination=PaginationModel(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_more=page < total_pages,
        ).model_dump(),
    )

    return ResponseModel(
        code=200,
        message="success",
        data=response_data
    )


@router.get("/{game_id}", response_model=ResponseModel)
async def get_game_detail(
    game_id: int,
    db: AsyncSession = Depends(get_db_session)
):
    """
    获取单个游戏的详情信息

    **路径参数**:
    - **game_id**: 游戏 id
    """
    game = await game_crud.get_game_by_id(db, game_id)

    if not game:
        raise HTTPException(status_code=404, detail="Game not found")

    return ResponseModel(
        code=200,
        message="success",
        data=GameDetail.from_game(game)
    )
