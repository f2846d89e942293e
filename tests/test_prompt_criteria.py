"""
提示词解析与打分测试
"""

from sommelier.matching.prompt_criteria import (
    PromptCriteria,
    extract_criteria,
    parse_player_range,
    relevance_score,
    score_game,
)
from conftest import make_game


class TestExtractCriteria:
    """extract_criteria 测试"""

    def test_light_prompt(self):
        criteria = extract_criteria("an easy game for a casual evening")
        assert criteria.complexity_max == 2.5
        assert criteria.complexity_min is None

    def test_heavy_prompt(self):
        criteria = extract_criteria("something heavy with lots of decisions")
        assert criteria.complexity_min == 3.5

    def test_conflicting_complexity_keywords_cancel(self):
        criteria = extract_criteria("family game night, 4 players, nothing too heavy")
        assert criteria.complexity_min is None
        assert criteria.complexity_max is None
        assert criteria.player_min == 4
        assert criteria.player_max == 4
        assert "family" in criteria.categories

    def test_themes_and_mechanics(self):
        criteria = extract_criteria("a quick worker placement game about farming")
        assert "farming" in criteria.themes
        assert "worker-placement" in criteria.mechanics
        assert "quick" in criteria.categories

    def test_solo(self):
        criteria = extract_criteria("best solo game")
        assert (criteria.player_min, criteria.player_max) == (1, 1)

    def test_party_means_large_group(self):
        criteria = extract_criteria("party game for tonight")
        assert criteria.player_min == 6
        assert criteria.player_max is None

    def test_empty_prompt(self):
        assert extract_criteria("").is_empty

    def test_query_filters(self):
        assert extract_criteria("heavy economic game").has_query_filters
        assert extract_criteria("worker placement please").has_query_filters
        player_only = extract_criteria("something for 6 players")
        assert not player_only.is_empty
        assert not player_only.has_query_filters
        assert not extract_criteria("something calm").has_query_filters


class TestDescribe:
    """interpreted_needs 文本"""

    def test_describe(self):
        criteria = PromptCriteria(complexity_max=2.5, player_min=4, player_max=4, themes=["nature"])
        assert criteria.describe() == ["complexity 1.0-2.5", "4 players", "theme: nature"]

    def test_open_ended_players(self):
        criteria = PromptCriteria(player_min=6)
        assert criteria.describe() == ["6+ players"]


class TestScoreGame:
    """score_game 测试"""

    def test_base_score(self):
        game = make_game(1, "Plain Game", players=None, complexity=None, mechanics=None)
        assert score_game(game, "anything at all") == 1.0

    def test_family_game_beats_heavy_game(self):
        prompt = "family game night, 4 players, nothing too heavy"
        family = make_game(1, "Happy Meadow", complexity=1.8, players="2-4", tags="family")
        heavy = make_game(2, "Iron Ledger", complexity=4.5, players="1-4", tags="strategy")
        assert score_game(family, prompt) > score_game(heavy, prompt)

    def test_title_mention(self):
        game = make_game(1, "Wingspan", players=None, complexity=None)
        assert score_game(game, "I want something like 'Wingspan'") == 6.0

    def test_title_mention_needs_whole_words(self):
        game = make_game(1, "Go", players=None, complexity=None)
        assert score_game(game, "a good game") == 1.0

    def test_award_winner(self):
        game = make_game(1, "Prize Game", players=None, complexity=None, tags="award-winner")
        # 提示词提到标签时另加 2 分
        assert score_game(game, "anything") == 3.0
        assert score_game(game, "an award winner please") == 5.0

    def test_theme_mention(self):
        game = make_game(1, "Forest Walk", players=None, complexity=None, theme="Nature")
        assert score_game(game, "something about nature") == 4.0

    def test_explicit_player_count(self):
        game = make_game(1, "Four Friends", players="3-5", complexity=None)
        assert score_game(game, "for 4 players") == 3.0
        assert score_game(game, "for 6 players") == 1.0

    def test_relevance_adds_mechanics(self):
        game = make_game(1, "Meeple Farm", players=None, complexity=None, mechanics="worker-placement", theme="Farming")
        prompt = "worker placement about farming"
        criteria = extract_criteria(prompt)
        # 主题 +3（score_game），机制 +2，主题条件 +2
        assert relevance_score(game, prompt, criteria) == score_game(game, prompt) + 4


class TestParsePlayerRange:
    """人数范围解析"""

    def test_range(self):
        assert parse_player_range("2-4") == (2, 4)

    def test_single(self):
        assert parse_player_range("5") == (5, 5)

    def test_open(self):
        assert parse_player_range("2+") == (2, 99)

    def test_unknown(self):
        assert parse_player_range("Variable") is None
        assert parse_player_range(None) is None
