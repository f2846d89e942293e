"""
LLM 推荐标题与游戏库的模糊匹配

匹配按以下顺序逐级尝试，命中即停止：
1. 规范化后完全相等（exact, 1.0）
2. 去掉开头冠词后相等（exact, 1.0）
3. 一方的有效词序列是另一方的严格前缀（fuzzy, 0.7 + 0.25 * overlap）
4. 有效词重叠率达到阈值（fuzzy, overlap）
5. 单个长词作为游戏标题中的完整单词出现（fuzzy, 0.75）
6. 未匹配（none, 0.0）

同一级别内取置信度最高的游戏，置信度相同时取标题更短的游戏。
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple

from sommelier.matching.normalizer import normalize, strip_articles, significant_words


class MatchKind(str, Enum):
    EXACT = "exact"
    FUZZY = "fuzzy"
    NONE = "none"


@dataclass(frozen=True)
class MatchConfig:
    """匹配阈值，由调用方按场景注入"""
    overlap_threshold: float = 0.7
    min_shared_words: int = 2
    relaxed_overlap_threshold: float = 0.7
    relaxed_min_words: int = 3
    prefix_min_words: int = 2
    prefix_base_confidence: float = 0.7
    prefix_overlap_weight: float = 0.25
    single_word_min_length: int = 5
    single_word_confidence: float = 0.75
    max_fuzzy_confidence: float = 0.99


DEFAULT_MATCH_CONFIG = MatchConfig()


@dataclass
class MatchResult:
    proposed_title: str
    game: Optional[Any]
    confidence: float
    kind: MatchKind

    @property
    def matched(self) -> bool:
        return self.kind != MatchKind.NONE


@dataclass
class _IndexedTitle:
    game: Any
    raw_lower: str
    normalized: str
    stripped: str
    words: List[str]
    word_set: frozenset


def _overlap(a: frozenset, b: frozenset) -> Tuple[float, int]:
    """返回 (重叠率, 共同词数)，重叠率 = 共同词数 / 较大词集大小"""
    if not a or not b:
        return 0.0, 0
    shared = len(a & b)
    return shared / max(len(a), len(b)), shared


def _is_strict_prefix(shorter: List[str], longer: List[str]) -> bool:
    return len(shorter) < len(longer) and longer[:len(shorter)] == shorter


class TitleMatcher:
    """
    对同一份游戏库重复匹配时复用预处理结果

    Args:
        catalog: 游戏列表，元素需有 title 属性
        config: 匹配阈值
    """

    def __init__(self, catalog: Sequence[Any], config: Optional[MatchConfig] = None):
        self.config = config or DEFAULT_MATCH_CONFIG
        self._entries = [
            _IndexedTitle(
                game=game,
                raw_lower=(game.title or "").lower().strip(),
                normalized=normalize(game.title),
                stripped=strip_articles(game.title),
                words=significant_words(game.title),
                word_set=frozenset(significant_words(game.title)),
            )
            for game in catalog
        ]

    def match(self, candidate: str) -> MatchResult:
        """匹配单个候选标题"""
        cfg = self.config
        normalized = normalize(candidate)
        if not normalized:
            return MatchResult(candidate, None, 0.0, MatchKind.NONE)

        # 1. 完全相等
        for entry in self._entries:
            if entry.normalized == normalized:
                return MatchResult(candidate, entry.game, 1.0, MatchKind.EXACT)

        # 2. 去掉冠词后相等
        stripped = strip_articles(candidate)
        for entry in self._entries:
            if entry.stripped and entry.stripped == stripped:
                return MatchResult(candidate, entry.game, 1.0, MatchKind.EXACT)

        words = significant_words(candidate)
        word_set = frozenset(words)

        # 3. 有序前缀
        best = None
        if len(words) >= cfg.prefix_min_words:
            for entry in self._entries:
                if len(entry.words) < cfg.prefix_min_words:
                    continue
                if _is_strict_prefix(words, entry.words) or _is_strict_prefix(entry.words, words):
                    overlap, _ = _overlap(word_set, entry.word_set)
                    confidence = cfg.prefix_base_confidence + cfg.prefix_overlap_weight * overlap
                    best = self._better(best, entry, confidence)
        if best:
            return self._fuzzy(candidate, best)

        # 4. 词重叠
        for entry in self._entries:
            overlap, shared = _overlap(word_set, entry.word_set)
            accepted = overlap >= cfg.overlap_threshold and shared >= cfg.min_shared_words
            if not accepted and len(word_set) >= cfg.relaxed_min_words and len(entry.word_set) >= cfg.relaxed_min_words:
                accepted = shared >= cfg.relaxed_min_words and overlap >= cfg.relaxed_overlap_threshold
            if accepted:
                best = self._better(best, entry, min(overlap, cfg.max_fuzzy_confidence))
        if best:
            return self._fuzzy(candidate, best)

        # 5. 单个长词
        tokens = normalized.split(" ")
        if len(tokens) == 1 and len(tokens[0]) >= cfg.single_word_min_length:
            word = tokens[0]
            for entry in self._entries:
                in_title = word in entry.normalized.split(" ")
                starts_title = entry.raw_lower.startswith(f"{word} ") or entry.raw_lower.startswith(f"{word}:")
                if in_title or starts_title:
                    best = self._better(best, entry, cfg.single_word_confidence)
            if best:
                return self._fuzzy(candidate, best)

        return MatchResult(candidate, None, 0.0, MatchKind.NONE)

    @staticmethod
    def _better(best, entry: _IndexedTitle, confidence: float):
        if best is None:
            return (entry, confidence)
        best_entry, best_confidence = best
        if confidence > best_confidence:
            return (entry, confidence)
        if confidence == best_confidence and len(entry.normalized) < len(best_entry.normalized):
            return (entry, confidence)
        return best

    def _fuzzy(self, candidate: str, best) -> MatchResult:
        entry, confidence = best
        confidence = min(confidence, self.config.max_fuzzy_confidence)
        return MatchResult(candidate, entry.game, confidence, MatchKind.FUZZY)


def match_title(candidate: str, catalog: Sequence[Any], config: Optional[MatchConfig] = None) -> MatchResult:
    """将一个候选标题匹配到游戏库中的游戏"""
    return TitleMatcher(catalog, config).match(candidate)


def match_titles(candidates: Sequence[str], catalog: Sequence[Any], config: Optional[MatchConfig] = None) -> List[MatchResult]:
    """批量匹配，只预处理一次游戏库"""
    matcher = TitleMatcher(catalog, config)
    return [matcher.match(candidate) for candidate in candidates]
