"""
游戏库抽样测试
"""

import random

import pytest

from sommelier.matching.catalog_sampler import STRATEGY_ALL_GAMES, STRATEGY_STRATEGIC, sample
from conftest import make_game

THEMES = ["Fantasy", "Space", "Nature", "Economic", "Horror", "Trains", "Pirates", "Farming", "Medieval", "Abstract"]


@pytest.fixture
def large_catalog():
    games = []
    for index in range(1000):
        games.append(make_game(
            index + 1,
            f"Game {index + 1}",
            complexity=round(1.0 + (index % 40) * 0.1, 1),
            theme=THEMES[index % len(THEMES)],
            mechanics="dice-rolling" if index % 50 else "worker-placement",
        ))
    return games


class TestSmallCatalog:
    """游戏库不超过目标大小"""

    def test_returns_every_game(self):
        catalog = [make_game(i, f"Game {i}") for i in range(1, 11)]
        result = sample("anything", catalog, target_size=300)
        assert result.strategy == STRATEGY_ALL_GAMES
        assert [g.id for g in result.games] == list(range(1, 11))

    def test_duplicates_removed(self):
        game = make_game(1, "Wingspan")
        result = sample("anything", [game, game, make_game(2, "Azul")], target_size=300)
        assert [g.id for g in result.games] == [1, 2]


class TestStrategicSample:
    """策略抽样"""

    def test_size_and_uniqueness(self, large_catalog):
        result = sample("a fantasy adventure", large_catalog, target_size=300, rng=random.Random(1))
        ids = [g.id for g in result.games]
        assert result.strategy == STRATEGY_STRATEGIC
        assert len(ids) == 300
        assert len(set(ids)) == len(ids)
        assert sum(result.pool_sizes.values()) == len(ids)

    def test_targeted_games_included(self, large_catalog):
        result = sample("worker placement", large_catalog, target_size=300, rng=random.Random(1))
        ids = {g.id for g in result.games}
        worker_placement = {g.id for g in large_catalog if g.mechanics == "worker-placement"}
        assert worker_placement <= ids
        assert result.pool_sizes["targeted"] >= len(worker_placement)

    def test_deterministic_with_seed(self, large_catalog):
        first = sample("space", large_catalog, target_size=200, rng=random.Random(7))
        second = sample("space", large_catalog, target_size=200, rng=random.Random(7))
        assert [g.id for g in first.games] == [g.id for g in second.games]

    def test_covers_complexity_bands(self, large_catalog):
        result = sample("anything", large_catalog, target_size=100, rng=random.Random(3))
        complexities = [g.complexity for g in result.games]
        assert any(c <= 2.5 for c in complexities)
        assert any(c >= 3.5 for c in complexities)
        assert any(2.5 < c < 3.5 for c in complexities)
