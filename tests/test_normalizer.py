"""
标题规范化测试
"""

import pytest

from sommelier.matching.normalizer import normalize, strip_articles, significant_words


class TestNormalize:
    """normalize 测试"""

    def test_lowercases_and_strips_punctuation(self):
        assert normalize("  Brass: Birmingham!  ") == "brass birmingham"

    def test_collapses_whitespace(self):
        assert normalize("Ticket \t to\n\nRide") == "ticket to ride"

    def test_underscores_are_removed(self):
        assert normalize("dead_of_winter") == "deadofwinter"

    def test_empty_input(self):
        assert normalize("") == ""
        assert normalize("!!!") == ""

    @pytest.mark.parametrize("title", [
        "The Castles of Burgundy",
        "7 Wonders: Duel",
        "  Sushi Go Party!  ",
        "Pandemic Legacy: Season 1",
        "",
    ])
    def test_idempotent(self, title):
        once = normalize(title)
        assert normalize(once) == once


class TestStripArticles:
    """strip_articles 测试"""

    def test_removes_one_leading_article(self):
        assert strip_articles("The Castles of Burgundy") == "castles of burgundy"
        assert strip_articles("An Infamous Traffic") == "infamous traffic"
        assert strip_articles("A Feast for Odin") == "feast for odin"

    def test_only_first_article(self):
        assert strip_articles("The A Team") == "a team"

    def test_single_article_word_kept(self):
        assert strip_articles("A") == "a"

    def test_article_inside_title_kept(self):
        assert strip_articles("Ticket to the Moon") == "ticket to the moon"


class TestSignificantWords:
    """significant_words 测试"""

    def test_drops_short_words(self):
        assert significant_words("7 Wonders: Duel") == ["wonders", "duel"]

    def test_keeps_order(self):
        assert significant_words("Ticket to Ride: Europe") == ["ticket", "ride", "europe"]

    def test_empty(self):
        assert significant_words("") == []
