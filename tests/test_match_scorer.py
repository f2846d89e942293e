"""
标题匹配测试
"""

import pytest

from sommelier.matching.match_scorer import (
    MatchConfig,
    MatchKind,
    TitleMatcher,
    match_title,
    match_titles,
)
from conftest import make_game


@pytest.fixture
def catalog():
    titles = [
        "Wingspan",
        "Ticket to Ride",
        "Ticket to Ride: Europe",
        "The Castles of Burgundy",
        "Brass: Birmingham",
        "Terraforming Mars",
        "7 Wonders Duel",
        "Pandemic Legacy: Season 1",
        "Spirit Island",
    ]
    return [make_game(index + 1, title) for index, title in enumerate(titles)]


class TestExactMatch:
    """完全匹配"""

    def test_case_insensitive(self, catalog):
        result = match_title("WINGSPAN", catalog)
        assert result.kind == MatchKind.EXACT
        assert result.confidence == 1.0
        assert result.game.title == "Wingspan"

    def test_punctuation_ignored(self, catalog):
        result = match_title("Brass Birmingham", catalog)
        assert result.kind == MatchKind.EXACT
        assert result.game.title == "Brass: Birmingham"

    def test_leading_article(self, catalog):
        result = match_title("Castles of Burgundy", catalog)
        assert result.kind == MatchKind.EXACT
        assert result.confidence == 1.0
        assert result.game.title == "The Castles of Burgundy"


class TestFuzzyMatch:
    """模糊匹配"""

    def test_prefix(self, catalog):
        result = match_title("Pandemic Legacy", catalog)
        assert result.kind == MatchKind.FUZZY
        assert result.game.title == "Pandemic Legacy: Season 1"
        # 0.7 + 0.25 * (2 / 3)
        assert result.confidence == pytest.approx(0.7 + 0.25 * 2 / 3)

    def test_word_overlap(self, catalog):
        result = match_title("Mars Terraforming", catalog)
        assert result.kind == MatchKind.FUZZY
        assert result.game.title == "Terraforming Mars"
        assert 0.0 < result.confidence < 1.0

    def test_single_long_word(self, catalog):
        result = match_title("Burgundy", catalog)
        assert result.kind == MatchKind.FUZZY
        assert result.game.title == "The Castles of Burgundy"
        assert result.confidence == pytest.approx(0.75)

    def test_single_word_tie_prefers_shorter_title(self, catalog):
        result = match_title("Ticket", catalog)
        assert result.kind == MatchKind.FUZZY
        assert result.game.title == "Ticket to Ride"


class TestNoMatch:
    """未匹配"""

    def test_unknown_title(self, catalog):
        result = match_title("Gloomhaven", catalog)
        assert result.kind == MatchKind.NONE
        assert result.confidence == 0.0
        assert result.game is None
        assert not result.matched

    def test_short_single_word(self, catalog):
        # 少于 5 个字符的单词不做单词匹配
        result = match_title("Duel", catalog)
        assert result.kind == MatchKind.NONE

    def test_empty_candidate(self, catalog):
        assert match_title("  ", catalog).kind == MatchKind.NONE

    def test_empty_catalog(self):
        assert match_title("Wingspan", []).kind == MatchKind.NONE


class TestMatcher:
    """批量匹配与配置"""

    def test_match_titles_keeps_order(self, catalog):
        results = match_titles(["Spirit Island", "Gloomhaven", "wingspan"], catalog)
        assert [r.proposed_title for r in results] == ["Spirit Island", "Gloomhaven", "wingspan"]
        assert [r.kind for r in results] == [MatchKind.EXACT, MatchKind.NONE, MatchKind.EXACT]

    def test_confidence_ranges(self, catalog):
        matcher = TitleMatcher(catalog)
        candidates = ["Wingspan", "Pandemic Legacy", "Mars Terraforming", "Burgundy", "Gloomhaven", "Ticket"]
        for result in (matcher.match(candidate) for candidate in candidates):
            if result.kind == MatchKind.EXACT:
                assert result.confidence == 1.0
            elif result.kind == MatchKind.FUZZY:
                assert 0.0 < result.confidence < 1.0
            else:
                assert result.confidence == 0.0

    def test_injected_config(self, catalog):
        strict = MatchConfig(single_word_min_length=10)
        assert match_title("Burgundy", catalog, strict).kind == MatchKind.NONE


class TestManyWordOverlap:
    """多词标题的重叠阈值"""

    def test_three_of_four_words_accepted(self):
        result = match_title("Alpha Bravo Charlie Foxtrot", [make_game(1, "Alpha Bravo Charlie Delta")])
        assert result.kind == MatchKind.FUZZY
        assert result.confidence == pytest.approx(0.75)

    def test_three_of_five_words_rejected(self):
        result = match_title("Alpha Bravo Charlie Foxtrot Golf", [make_game(1, "Alpha Bravo Charlie Delta Echo")])
        assert result.kind == MatchKind.NONE
        assert result.confidence == 0.0

    def test_relaxed_threshold_tunable(self):
        loose = MatchConfig(overlap_threshold=0.9, relaxed_overlap_threshold=0.6)
        result = match_title("Alpha Bravo Charlie Foxtrot Golf", [make_game(1, "Alpha Bravo Charlie Delta Echo")], loose)
        assert result.kind == MatchKind.FUZZY
        assert result.confidence == pytest.approx(0.6)
