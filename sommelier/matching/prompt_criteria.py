"""
从用户提示词中提取筛选条件，并按提示词给游戏打分

关键词表同时被抽样器（定向池）、补位查询和降级推荐使用。
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from sommelier.matching.normalizer import normalize

# 复杂度关键词
LIGHT_KEYWORDS = ("simple", "easy", "family", "casual")
HEAVY_KEYWORDS = ("complex", "heavy", "strategic", "brain burn")
MEDIUM_KEYWORDS = ("medium", "moderate")

LIGHT_MAX_COMPLEXITY = 2.5
HEAVY_MIN_COMPLEXITY = 3.5
MEDIUM_RANGE = (2.0, 3.5)

CATEGORY_KEYWORDS: Dict[str, tuple] = {
    "family": ("family", "kids", "children", "parents", "casual"),
    "party": ("party", "social", "group", "crowd", "laughs"),
    "strategy": ("strategy", "strategic", "thinking", "brain", "deep"),
    "puzzly": ("puzzle", "puzzly", "logic", "brain teaser"),
    "competitive": ("competitive", "contest", "tournament", "serious"),
    "cooperative": ("cooperative", "coop", "team", "together"),
    "quick": ("quick", "fast", "short", "filler"),
    "relaxing": ("relaxing", "chill", "peaceful", "zen", "calm"),
    "date": ("date", "romantic", "couple", "two player", "2 player"),
    "gateway": ("gateway", "beginner", "new", "introduction", "starter"),
}

THEME_KEYWORDS: Dict[str, tuple] = {
    "nature": ("nature", "wildlife", "forest", "ocean", "environment"),
    "fantasy": ("fantasy", "magic", "dragons", "medieval", "adventure"),
    "sci-fi": ("space", "sci-fi", "science fiction", "alien", "robot", "futuristic"),
    "historical": ("historical", "history", "ancient", "war", "civilization"),
    "economic": ("economic", "business", "trade", "money", "investment"),
    "abstract": ("abstract", "puzzle", "mathematical"),
    "horror": ("horror", "zombie", "scary", "dark"),
    "nautical": ("pirate", "sailing", "naval", "ocean"),
    "farming": ("farming", "agriculture", "harvest", "crop"),
}

# 用户说法 -> 游戏库中的机制标识
MECHANIC_MAPPINGS: Dict[str, tuple] = {
    "simultaneous": ("simultaneous-action-selection", "real-time"),
    "worker placement": ("worker-placement", "worker-placement-different-worker-types"),
    "deck building": ("deck-building", "deckbuilding"),
    "area control": ("area-majority-influence", "area-control"),
    "tile laying": ("tile-laying", "tile-placement"),
    "pattern building": ("pattern-building", "pattern-recognition"),
    "set collection": ("set-collection",),
    "engine building": ("engine-building",),
    "tableau building": ("tableau-building",),
    "drafting": ("card-drafting", "drafting"),
    "auction": ("auction-bidding", "auction"),
    "negotiation": ("negotiation", "trading"),
    "coop": ("cooperative-game", "cooperative"),
    "cooperative": ("cooperative-game", "cooperative"),
    "trick taking": ("trick-taking",),
    "roll and write": ("roll-and-write", "roll-write"),
    "dice rolling": ("dice-rolling",),
    "resource management": ("resource-management",),
    "hand management": ("hand-management",),
}

_PLAYER_COUNT = re.compile(r"\b(\d+)\s*(?:player|person|people)s?\b")

AWARD_TAG = "award-winner"


@dataclass
class PromptCriteria:
    """提示词中解析出的偏好"""
    complexity_min: Optional[float] = None
    complexity_max: Optional[float] = None
    player_min: Optional[int] = None
    player_max: Optional[int] = None
    themes: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    mechanics: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return (
            self.complexity_min is None and self.complexity_max is None
            and self.player_min is None and not self.themes
            and not self.categories and not self.mechanics
        )

    @property
    def has_query_filters(self) -> bool:
        """是否有可转成 SQL 条件的偏好（复杂度、主题、机制）"""
        return (
            self.complexity_min is not None or self.complexity_max is not None
            or bool(self.themes) or bool(self.mechanics)
        )

    def describe(self) -> List[str]:
        """转成响应 metadata 中的 interpreted_needs 文本"""
        needs = []
        if self.complexity_min is not None or self.complexity_max is not None:
            low = self.complexity_min if self.complexity_min is not None else 1.0
            high = self.complexity_max if self.complexity_max is not None else 5.0
            needs.append(f"complexity {low:.1f}-{high:.1f}")
        if self.player_min is not None:
            if self.player_max is not None and self.player_max != self.player_min:
                needs.append(f"{self.player_min}-{self.player_max} players")
            elif self.player_max is None:
                needs.append(f"{self.player_min}+ players")
            else:
                needs.append(f"{self.player_min} players")
        needs.extend(f"theme: {theme}" for theme in self.themes)
        needs.extend(f"style: {category}" for category in self.categories)
        needs.extend(f"mechanic: {mechanic}" for mechanic in self.mechanics)
        return needs


def parse_player_range(players: Optional[str]) -> Optional[Tuple[int, int]]:
    """解析人数范围，例如 "2-4" -> (2, 4)，"5" -> (5, 5)，"2+" -> (2, 99)"""
    numbers = [int(value) for value in re.findall(r"\d+", players or "")]
    if not numbers:
        return None
    if len(numbers) == 1:
        return (numbers[0], 99) if "+" in players else (numbers[0], numbers[0])
    return min(numbers), max(numbers)


def _contains_any(text: str, keywords) -> bool:
    return any(keyword in text for keyword in keywords)


def extract_criteria(prompt: str) -> PromptCriteria:
    """
    解析提示词

    Args:
        prompt: 用户原始提示词

    Returns:
        PromptCriteria
    """
    text = (prompt or "").lower()
    criteria = PromptCriteria()

    if _contains_any(text, LIGHT_KEYWORDS):
        criteria.complexity_max = LIGHT_MAX_COMPLEXITY
    if _contains_any(text, HEAVY_KEYWORDS):
        criteria.complexity_min = HEAVY_MIN_COMPLEXITY
    if _contains_any(text, MEDIUM_KEYWORDS):
        criteria.complexity_min, criteria.complexity_max = MEDIUM_RANGE
    if (
        criteria.complexity_min is not None and criteria.complexity_max is not None
        and criteria.complexity_min > criteria.complexity_max
    ):
        # 同时出现轻度和重度关键词时不做复杂度过滤
        criteria.complexity_min = criteria.complexity_max = None

    counts = [int(value) for value in _PLAYER_COUNT.findall(text)]
    if counts:
        criteria.player_min, criteria.player_max = min(counts), max(counts)
    if "solo" in text or "single player" in text:
        criteria.player_min = criteria.player_max = 1
    if "two player" in text or "2 player" in text or "couples" in text:
        criteria.player_min = criteria.player_max = 2
    if "party" in text or "large group" in text:
        criteria.player_min, criteria.player_max = 6, None

    criteria.themes = [theme for theme, keywords in THEME_KEYWORDS.items() if _contains_any(text, keywords)]
    criteria.categories = [name for name, keywords in CATEGORY_KEYWORDS.items() if _contains_any(text, keywords)]

    mechanics: List[str] = []
    for term, slugs in MECHANIC_MAPPINGS.items():
        if term in text:
            mechanics.extend(slug for slug in slugs if slug not in mechanics)
    criteria.mechanics = mechanics

    return criteria


def score_game(game: Any, prompt: str) -> float:
    """
    按提示词给游戏打分，基础分 1

    - 提示词提到游戏主题 +3
    - 复杂度与轻度/重度关键词吻合 +3，与中等关键词吻合 +2
    - 每个出现在提示词中的标签 +2
    - 人数关键词与游戏人数吻合 +2，明确的人数落在游戏人数范围内再 +2
    - 提示词直接提到游戏标题 +5
    - 获奖游戏 +2
    """
    score = 1.0
    p = (prompt or "").lower()

    theme = (game.theme or "").lower()
    if theme and theme in p:
        score += 3

    complexity = game.complexity
    if complexity:
        if re.search(r"family|easy|light|simple|casual", p) and complexity <= LIGHT_MAX_COMPLEXITY:
            score += 3
        if re.search(r"heavy|complex|strategic|deep", p) and complexity >= HEAVY_MIN_COMPLEXITY:
            score += 3
        if re.search(r"medium|moderate", p) and MEDIUM_RANGE[0] <= complexity <= MEDIUM_RANGE[1]:
            score += 2

    tags = game.tag_list
    for tag in tags:
        if tag.lower().replace("-", " ") in p:
            score += 2

    players = game.players or ""
    if players:
        if re.search(r"solo|single", p) and "1" in players:
            score += 2
        if re.search(r"two player|2 player|couple|date", p) and "2" in players:
            score += 2
        if re.search(r"party|group", p) and re.search(r"[6-9]", players):
            score += 2
        player_range = parse_player_range(players)
        wanted = [int(value) for value in _PLAYER_COUNT.findall(p)]
        if player_range and any(player_range[0] <= count <= player_range[1] for count in wanted):
            score += 2

    title = normalize(game.title)
    if title and f" {title} " in f" {normalize(prompt)} ":
        score += 5

    if AWARD_TAG in tags:
        score += 2

    return score


def relevance_score(game: Any, prompt: str, criteria: PromptCriteria) -> float:
    """定向抽样用的相关度：在 score_game 基础上叠加机制与主题条件命中"""
    score = score_game(game, prompt)

    mechanics = set(game.mechanic_list)
    score += 2 * sum(1 for mechanic in criteria.mechanics if mechanic in mechanics)

    theme = (game.theme or "").lower()
    if theme and any(wanted in theme for wanted in criteria.themes):
        score += 2

    tags = {tag.lower() for tag in game.tag_list}
    score += sum(1 for category in criteria.categories if category in tags)

    return score
