"""
确定性推荐测试
"""

import random

from sommelier.recommend.fallback import (
    DEFAULT_PITCHES,
    FallbackRecommender,
    build_recommendation,
    generate_pitch,
)
from conftest import make_game


def _catalog():
    return [
        make_game(1, "Happy Meadow", complexity=1.8, players="2-4", tags="family", theme="Nature"),
        make_game(2, "Iron Ledger", complexity=4.5, players="1-4", tags="strategy", theme="Economic"),
        make_game(3, "Wingspan", complexity=2.4, players="1-5", tags="award-winner"),
        make_game(4, "Quick Draw", complexity=1.2, players="3-8", tags="party"),
        make_game(5, "Star Lanes", complexity=3.0, players="2-5", theme="Space"),
    ]


class TestFallbackRecommender:
    """FallbackRecommender 测试"""

    def test_family_game_ranked_above_heavy_game(self):
        recommender = FallbackRecommender(seed=42)
        recs = recommender.recommend("family game night, 4 players, nothing too heavy", _catalog(), 3)
        titles = [r.title for r in recs]
        assert "Happy Meadow" in titles
        if "Iron Ledger" in titles:
            assert titles.index("Happy Meadow") < titles.index("Iron Ledger")

    def test_returns_requested_count(self):
        recs = FallbackRecommender(seed=42).recommend("something", _catalog(), 3)
        assert len(recs) == 3

    def test_small_catalog_returns_everything(self):
        recs = FallbackRecommender(seed=42).recommend("something", _catalog()[:2], 3)
        assert len(recs) == 2

    def test_ties_sorted_by_title(self):
        catalog = [make_game(1, "Zeta", complexity=None), make_game(2, "Alpha", complexity=None)]
        ranked = FallbackRecommender(seed=42).rank("nothing matches", catalog)
        assert [game.title for _, game in ranked] == ["Alpha", "Zeta"]

    def test_alternates_are_next_ranked_games(self):
        recommender = FallbackRecommender(seed=42)
        prompt = "I want something like 'Wingspan'"
        ranked_ids = [game.id for _, game in recommender.rank(prompt, _catalog())]
        recs = recommender.recommend(prompt, _catalog(), 2)
        assert recs[0].title == "Wingspan"
        assert recs[0].alternates == ranked_ids[2:5]

    def test_deterministic(self):
        recommender = FallbackRecommender(seed=42)
        first = recommender.recommend("a board game please", _catalog(), 3)
        second = recommender.recommend("a board game please", _catalog(), 3)
        assert [r.model_dump() for r in first] == [r.model_dump() for r in second]

    def test_recommendations_are_complete(self):
        for rec in FallbackRecommender(seed=42).recommend("something", _catalog(), 3):
            assert rec.pitch.strip()
            assert 2 <= len(rec.why_it_fits) <= 4
            assert rec.specs is not None
            assert rec.id is not None


class TestPitch:
    """推荐语模板"""

    def test_family_context(self):
        game = make_game(1, "Happy Meadow")
        pitch = generate_pitch(game, "Family night with the kids", random.Random(1))
        assert pitch.startswith("Happy Meadow:")
        assert "family" in pitch

    def test_theme_template(self):
        game = make_game(1, "Forest Walk", theme="Nature", complexity=3.0)
        assert "eco-friendly" in generate_pitch(game, "something nice", random.Random(1))

    def test_heavy_template(self):
        game = make_game(1, "Iron Ledger", complexity=4.5)
        assert "complexity" in generate_pitch(game, "something nice", random.Random(1))

    def test_default_rotation_is_seeded(self):
        game = make_game(1, "Middle Road", complexity=3.0)
        first = generate_pitch(game, "something nice", random.Random(42))
        second = generate_pitch(game, "something nice", random.Random(42))
        assert first == second
        assert first in [template.format(title="Middle Road") for template in DEFAULT_PITCHES]


class TestBuildRecommendation:
    """推荐项组装"""

    def test_uses_catalog_data(self):
        game = make_game(7, "Star Lanes", mechanics="pick-up-and-deliver,dice-rolling", theme="Space")
        rec = build_recommendation(game, pitch="Go explore.", lead="Fits your request", alternates=[1, 2, 3, 4])
        assert rec.mechanics == ["pick-up-and-deliver", "dice-rolling"]
        assert rec.why_it_fits[0] == "Fits your request"
        assert rec.why_it_fits[1] == "Mechanics: pick-up-and-deliver, dice-rolling"
        assert rec.why_it_fits[2] == "Complexity: 2.5 | 2-4 | 30-60 min"
        assert rec.alternates == [1, 2, 3]
        assert rec.theme == "Space"

    def test_missing_mechanics(self):
        game = make_game(7, "Bare Box", mechanics=None, players=None, playtime=None, complexity=None)
        rec = build_recommendation(game, pitch="Fine.", lead="Because")
        assert rec.why_it_fits[1] == "Mechanics: Various"
        assert rec.why_it_fits[2] == "Variable players | Variable time"
