"""
加载示例数据脚本

写入一小份桌游目录，便于本地试用推荐接口（整库模式）。
"""

import asyncio
import json
import sys
import logging
from pathlib import Path

# 添加项目根目录到Python路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sommelier.database.connection import init_db, create_tables, close_db, get_session_maker
from sommelier.database.crud import game_crud
from sommelier.tasks.import_games import import_lines

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SAMPLE_GAMES = [
    {"title": "Wingspan", "bgg_id": 266192, "bgg_rank": 25, "min_players": 1, "max_players": 5,
     "min_playtime": 40, "max_playtime": 70, "complexity": 2.45, "theme": "Nature",
     "mechanics": ["Engine Building", "Hand Management", "Set Collection"], "tags": ["award-winner", "family"]},
    {"title": "Ticket to Ride", "bgg_id": 9209, "bgg_rank": 220, "min_players": 2, "max_players": 5,
     "min_playtime": 30, "max_playtime": 60, "complexity": 1.83, "theme": "Trains",
     "mechanics": ["Set Collection", "Route Building"], "tags": ["family", "gateway", "award-winner"]},
    {"title": "Codenames", "bgg_id": 178900, "bgg_rank": 150, "min_players": 2, "max_players": 8,
     "min_playtime": 15, "max_playtime": 15, "complexity": 1.27, "theme": "Spies",
     "mechanics": ["Team Based Game", "Communication Limits"], "tags": ["party", "word-game"]},
    {"title": "Azul", "bgg_id": 230802, "bgg_rank": 80, "min_players": 2, "max_players": 4,
     "min_playtime": 30, "max_playtime": 45, "complexity": 1.76, "theme": "Abstract",
     "mechanics": ["Pattern Building", "Tile Placement"], "tags": ["family", "abstract", "award-winner"]},
    {"title": "Pandemic", "bgg_id": 30549, "bgg_rank": 140, "min_players": 2, "max_players": 4,
     "min_playtime": 45, "max_playtime": 45, "complexity": 2.41, "theme": "Medical",
     "mechanics": ["Cooperative Game", "Hand Management", "Action Points"], "tags": ["cooperative"]},
    {"title": "Terraforming Mars", "bgg_id": 167791, "bgg_rank": 7, "min_players": 1, "max_players": 5,
     "min_playtime": 120, "max_playtime": 120, "complexity": 3.26, "theme": "Space",
     "mechanics": ["Engine Building", "Tile Placement", "Hand Management"], "tags": ["strategy", "solo"]},
    {"title": "Brass: Birmingham", "bgg_id": 224517, "bgg_rank": 1, "min_players": 2, "max_players": 4,
     "min_playtime": 60, "max_playtime": 120, "complexity": 3.87, "theme": "Economic",
     "mechanics": ["Hand Management", "Network Building", "Loans"], "tags": ["strategy", "heavy"]},
    {"title": "Patchwork", "bgg_id": 163412, "bgg_rank": 130, "min_players": 2, "max_players": 2,
     "min_playtime": 15, "max_playtime": 30, "complexity": 1.61, "theme": "Quilting",
     "mechanics": ["Tile Placement", "Time Track"], "tags": ["two-player", "couples"]},
    {"title": "Spirit Island", "bgg_id": 162886, "bgg_rank": 12, "min_players": 1, "max_players": 4,
     "min_playtime": 90, "max_playtime": 120, "complexity": 4.07, "theme": "Fantasy",
     "mechanics": ["Cooperative Game", "Area Control", "Variable Player Powers"], "tags": ["cooperative", "heavy"]},
    {"title": "Sushi Go Party!", "bgg_id": 192291, "bgg_rank": 600, "min_players": 2, "max_players": 8,
     "min_playtime": 20, "max_playtime": 20, "complexity": 1.23, "theme": "Food",
     "mechanics": ["Card Drafting", "Set Collection"], "tags": ["party", "family", "quick"]},
]


async def load_sample_games():
    """写入示例游戏"""
    lines = [json.dumps(game) for game in SAMPLE_GAMES]
    async with get_session_maker()() as session:
        stats = await import_lines(session, lines)
        total = await game_crud.count_games(session)
    logger.info(f"Loaded sample games: {stats}, catalog now has {total} games")


async def main():
    """主函数"""
    try:
        await init_db()
        await create_tables()
        await load_sample_games()
        logger.info("Sample data loaded successfully!")

    except Exception as e:
        logger.error(f"Failed to load sample data: {e}")
        sys.exit(1)

    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
