"""
大型游戏库的策略抽样

游戏库超过目标大小时，从四个互不重叠的池中抽取：
- 定向池（40%）：与提示词相关度最高的游戏
- 复杂度分层池（30%）：轻度 / 中度 / 重度各取一份
- 主题多样池（20%）：最常见的若干主题各取一份
- 随机补足：剩余名额以及前面各池的缺口
"""

import random
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set

from sommelier.matching.prompt_criteria import extract_criteria, relevance_score, LIGHT_MAX_COMPLEXITY, HEAVY_MIN_COMPLEXITY
from sommelier.logging_config import get_logger

logger = get_logger(__name__)

STRATEGY_ALL_GAMES = "all_games"
STRATEGY_STRATEGIC = "strategic_sample"

TARGETED_SHARE = 0.4
STRATIFIED_SHARE = 0.3
THEME_SHARE = 0.2
MAX_THEMES = 8

BASE_RELEVANCE = 1.0


@dataclass
class SampleResult:
    games: List[Any]
    strategy: str
    pool_sizes: Dict[str, int] = field(default_factory=dict)


def _complexity_band(game: Any) -> Optional[str]:
    complexity = game.complexity
    if not complexity:
        return None
    if complexity <= LIGHT_MAX_COMPLEXITY:
        return "light"
    if complexity >= HEAVY_MIN_COMPLEXITY:
        return "heavy"
    return "medium"


def _split_quota(total: int, parts: int) -> List[int]:
    """将名额尽量平均地分成若干份"""
    if parts <= 0:
        return []
    base, extra = divmod(total, parts)
    return [base + (1 if i < extra else 0) for i in range(parts)]


class _Selection:
    """保持各池之间不重复"""

    def __init__(self):
        self.games: List[Any] = []
        self.seen: Set[int] = set()

    def take(self, candidates: Sequence[Any], limit: int) -> int:
        taken = 0
        for game in candidates:
            if taken >= limit:
                break
            if game.id in self.seen:
                continue
            self.seen.add(game.id)
            self.games.append(game)
            taken += 1
        return taken


def sample(
    prompt: str,
    catalog: Sequence[Any],
    target_size: int,
    rng: Optional[random.Random] = None
) -> SampleResult:
    """
    从游戏库中抽取不超过 target_size 个互不重复的游戏

    Args:
        prompt: 用户提示词
        catalog: 完整游戏库
        target_size: 目标数量
        rng: 随机数生成器，测试时可传入固定种子

    Returns:
        SampleResult
    """
    if len(catalog) <= target_size:
        unique = _Selection()
        unique.take(catalog, len(catalog))
        return SampleResult(unique.games, STRATEGY_ALL_GAMES, {"all": len(unique.games)})

    rng = rng or random.Random()
    selection = _Selection()
    pools: Dict[str, int] = {}

    # 定向池
    criteria = extract_criteria(prompt)
    scored = [(relevance_score(game, prompt, criteria), game) for game in catalog]
    relevant = [game for score, game in sorted(scored, key=lambda item: (-item[0], item[1].id)) if score > BASE_RELEVANCE]
    pools["targeted"] = selection.take(relevant, int(target_size * TARGETED_SHARE))

    # 复杂度分层池
    bands: Dict[str, List[Any]] = {"light": [], "medium": [], "heavy": []}
    for game in catalog:
        band = _complexity_band(game)
        if band and game.id not in selection.seen:
            bands[band].append(game)
    stratified = 0
    for band_games, quota in zip(bands.values(), _split_quota(int(target_size * STRATIFIED_SHARE), len(bands))):
        rng.shuffle(band_games)
        stratified += selection.take(band_games, quota)
    pools["stratified"] = stratified

    # 主题多样池
    by_theme: Dict[str, List[Any]] = {}
    for game in catalog:
        if game.theme and game.id not in selection.seen:
            by_theme.setdefault(game.theme, []).append(game)
    counts = Counter({theme: len(games) for theme, games in by_theme.items()})
    top_themes = sorted(counts, key=lambda theme: (-counts[theme], theme))[:MAX_THEMES]
    themed = 0
    for theme, quota in zip(top_themes, _split_quota(int(target_size * THEME_SHARE), len(top_themes))):
        theme_games = by_theme[theme]
        rng.shuffle(theme_games)
        themed += selection.take(theme_games, quota)
    pools["themed"] = themed

    # 随机补足
    remaining = [game for game in catalog if game.id not in selection.seen]
    rng.shuffle(remaining)
    pools["random"] = selection.take(remaining, target_size - len(selection.games))

    logger.debug(f"Sampled {len(selection.games)} of {len(catalog)} games: {pools}")
    return SampleResult(selection.games, STRATEGY_STRATEGIC, pools)
