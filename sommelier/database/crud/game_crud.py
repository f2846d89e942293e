"""
游戏目录相关的 CRUD 操作
"""

from typing import Iterable, List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_, and_
from sommelier.database.models import Game
import logging

logger = logging.getLogger(__name__)


async def count_games(db: AsyncSession) -> int:
    """统计游戏库大小"""
    result = await db.execute(select(func.count(Game.id)))
    return int(result.scalar() or 0)


async def get_all_games(db: AsyncSession, page_size: int = 1000) -> List[Game]:
    """
    分页读取整个游戏库

    游戏库可能超过单次查询的默认上限，因此按 id 顺序分页读取直到取完。
    读取失败直接抛出，由调用方决定降级策略。

    Args:
        db: 数据库会话
        page_size: 每页条数

    Returns:
        全部游戏
    """
    games: List[Game] = []
    offset = 0
    while True:
        stmt = select(Game).order_by(Game.id).offset(offset).limit(page_size)
        result = await db.execute(stmt)
        page = list(result.scalars().all())
        games.extend(page)
        if len(page) < page_size:
            break
        offset += page_size

    logger.debug(f"Loaded {len(games)} games from catalog")
    return games


async def get_game_by_id(db: AsyncSession, game_id: int) -> Optional[Game]:
    """
    根据 id 获取游戏详情

    Args:
        db: 数据库会话
        game_id: 游戏 id

    Returns:
        游戏对象或 None
    """
    try:
        stmt = select(Game).where(Game.id == game_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()
    except Exception as e:
        logger.error(f"Error getting game {game_id}: {e}")
        return None


async def get_games_by_criteria(
    db: AsyncSession,
    min_complexity: Optional[float] = None,
    max_complexity: Optional[float] = None,
    themes: Iterable[str] = (),
    mechanics: Iterable[str] = (),
    exclude_ids: Iterable[int] = (),
    limit: int = 10
) -> List[Game]:
    """
    按提示词解析出的条件查询游戏，用于补足推荐数量

    Args:
        db: 数据库会话
        min_complexity: 最低复杂度
        max_complexity: 最高复杂度
        themes: 主题（任一匹配即可）
        mechanics: 机制标识（任一匹配即可）
        exclude_ids: 需要排除的游戏 id
        limit: 返回数量

    Returns:
        游戏列表，按 BGG 排名优先
    """
    conditions = []

    if min_complexity is not None:
        conditions.append(Game.complexity >= min_complexity)
    if max_complexity is not None:
        conditions.append(Game.complexity <= max_complexity)

    theme_list = [t for t in themes if t]
    if theme_list:
        conditions.append(or_(*[Game.theme.ilike(f"%{theme}%") for theme in theme_list]))

    mechanic_list = [m for m in mechanics if m]
    if mechanic_list:
        conditions.append(or_(*[Game.mechanics.ilike(f"%{mechanic}%") for mechanic in mechanic_list]))

    excluded = list(exclude_ids)
    if excluded:
        conditions.append(Game.id.notin_(excluded))

    stmt = select(Game)
    if conditions:
        stmt = stmt.where(and_(*conditions))
    # NULL 排名排在最后
    stmt = stmt.order_by(Game.bgg_rank.is_(None), Game.bgg_rank, Game.id).limit(limit)

    result = await db.execute(stmt)
    return list(result.scalars().all())


async def search_games(
    db: AsyncSession,
    keyword: Optional[str] = None,
    page: int = 1,
    limit: int = 20
) -> Tuple[List[Game], int]:
    """
    搜索游戏

    Args:
        db: 数据库会话
        keyword: 搜索关键词（标题、主题、标签）
        page: 页码
        limit: 每页数量

    Returns:
        (游戏列表, 总数)
    """
    try:
        stmt = select(Game)
        count_stmt = select(func.count(Game.id))

        if keyword:
            condition = or_(
                Game.title.ilike(f"%{keyword}%"),
                Game.theme.ilike(f"%{keyword}%"),
                Game.tags.ilike(f"%{keyword}%")
            )
            stmt = stmt.where(condition)
            count_stmt = count_stmt.where(condition)

        offset = (page - 1) * limit
        stmt = stmt.order_by(Game.bgg_rank.is_(None), Game.bgg_rank, Game.title).offset(offset).limit(limit)

        result = await db.execute(stmt)
        games = list(result.scalars().all())

        count_result = await db.execute(count_stmt)
        total = count_result.scalar() or 0

        return games, total

    except Exception as e:
        logger.error(f"Error searching games: {e}")
        return [], 0


async def get_games_for_price_refresh(db: AsyncSession, limit: int = 100) -> List[Game]:
    """获取需要刷新价格的热门游戏（按 BGG 排名）"""
    stmt = (
        select(Game)
        .order_by(Game.bgg_rank.is_(None), Game.bgg_rank, Game.id)
        .limit(limit)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())
