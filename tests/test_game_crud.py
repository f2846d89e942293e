"""
游戏查询测试
"""

import pytest
import pytest_asyncio

from sommelier.database.crud import game_crud
from conftest import make_game


@pytest_asyncio.fixture
async def seeded(add_games):
    return await add_games(
        make_game(1, "Iron Ledger", complexity=4.5, theme="Economic", mechanics="worker-placement"),
        make_game(2, "Coal Baron", complexity=3.9, theme="Economic", mechanics="worker-placement", bgg_rank=50),
        make_game(3, "Merchant Guild", complexity=2.0, theme="Economic", mechanics="set-collection", bgg_rank=10),
        make_game(4, "Salt Road", complexity=3.7, theme="Trade Economic", mechanics="pick-up-and-deliver", bgg_rank=30),
        make_game(5, "Star Lanes", complexity=3.8, theme="Space", mechanics="worker-placement", bgg_rank=5),
    )


class TestGetGamesByCriteria:
    """get_games_by_criteria 测试"""

    @pytest.mark.asyncio
    async def test_complexity_and_theme(self, session_maker, seeded):
        async with session_maker() as db:
            games = await game_crud.get_games_by_criteria(db, min_complexity=3.5, themes=["economic"])

        # 有排名的按排名，无排名的排在最后
        assert [game.id for game in games] == [4, 2, 1]

    @pytest.mark.asyncio
    async def test_excluded_ids_and_limit(self, session_maker, seeded):
        async with session_maker() as db:
            games = await game_crud.get_games_by_criteria(
                db, min_complexity=3.5, themes=["economic"], exclude_ids={4}, limit=1
            )

        assert [game.id for game in games] == [2]

    @pytest.mark.asyncio
    async def test_mechanics_any_match(self, session_maker, seeded):
        async with session_maker() as db:
            games = await game_crud.get_games_by_criteria(
                db, mechanics=["set-collection", "pick-up-and-deliver"]
            )

        assert {game.id for game in games} == {3, 4}

    @pytest.mark.asyncio
    async def test_max_complexity(self, session_maker, seeded):
        async with session_maker() as db:
            games = await game_crud.get_games_by_criteria(db, max_complexity=2.5)

        assert [game.id for game in games] == [3]
