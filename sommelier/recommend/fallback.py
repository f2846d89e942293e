"""
不依赖 LLM 的确定性推荐

按提示词关键词给每个游戏打分，取分数最高的若干个，推荐语从按场景划分的模板中选取。
给定相同的游戏库、提示词和随机种子，输出完全一致。
"""

import random
import re
from typing import Any, List, Optional, Sequence, Tuple

from sommelier.config import settings
from sommelier.matching.prompt_criteria import score_game
from sommelier.schemas.recommendations import Recommendation, Specs

MAX_ALTERNATES = 3

# (提示词正则, 模板)
CONTEXT_PITCHES = (
    (r"family|kids", "{title}: family game night without the usual chaos and tears."),
    (r"date|couple|romantic", "{title}: perfect for when dinner conversation reaches its limits."),
    (r"party|social|group", "{title}: turns your social gathering into actual fun instead of small talk."),
    (r"strategy|strategic|thinking", "{title}: for when you want your brain to actually work for its entertainment."),
    (r"quick|fast|short", "{title}: maximum gaming satisfaction with minimum time commitment."),
)
THEME_PITCHES = (
    ("nature", "{title}: eco-friendly gaming without the environmental guilt trips."),
    ("economic", "{title}: capitalism simulation for people who understand actual economics."),
)
LIGHT_PITCH = "{title}: elegantly simple without being insulting to your intelligence."
HEAVY_PITCH = "{title}: brain-melting complexity for those who think they're ready."
DEFAULT_PITCHES = (
    "{title}: solid choice that won't disappoint your gaming standards.",
    "{title}: the kind of game that earns its spot on your shelf.",
    "{title}: quality gaming that respects both your time and intelligence.",
    "{title}: delivers exactly what you're looking for without the filler.",
)


def generate_pitch(game: Any, prompt: str, rng: random.Random) -> str:
    """按提示词场景、主题、复杂度选择推荐语模板"""
    p = (prompt or "").lower()
    for pattern, template in CONTEXT_PITCHES:
        if re.search(pattern, p):
            return template.format(title=game.title)

    theme = (game.theme or "").lower()
    for keyword, template in THEME_PITCHES:
        if keyword in theme:
            return template.format(title=game.title)

    if game.complexity and game.complexity <= 2.0:
        return LIGHT_PITCH.format(title=game.title)
    if game.complexity and game.complexity >= 4.0:
        return HEAVY_PITCH.format(title=game.title)

    return rng.choice(DEFAULT_PITCHES).format(title=game.title)


def specs_line(game: Any) -> str:
    parts = []
    if game.complexity:
        parts.append(f"Complexity: {game.complexity}")
    parts.append(game.players or "Variable players")
    parts.append(game.playtime or "Variable time")
    return " | ".join(parts)


def build_recommendation(
    game: Any,
    pitch: str,
    lead: str,
    alternates: Sequence[int] = ()
) -> Recommendation:
    """
    用游戏库中的数据组装推荐项（机制、规格一律取自游戏库）

    Args:
        game: 游戏
        pitch: 推荐语
        lead: 第一条推荐理由
        alternates: 备选游戏 id
    """
    mechanics = game.mechanic_list
    return Recommendation(
        id=game.id,
        title=game.title,
        pitch=pitch,
        why_it_fits=[
            lead,
            f"Mechanics: {', '.join(mechanics[:3]) or 'Various'}",
            specs_line(game),
        ],
        specs=Specs(players=game.players, playtime=game.playtime, complexity=game.complexity),
        mechanics=mechanics,
        theme=game.theme or "Various",
        alternates=list(alternates)[:MAX_ALTERNATES],
    )


class FallbackRecommender:
    """
    Args:
        seed: 推荐语轮换使用的随机种子
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = settings.FALLBACK_SEED if seed is None else seed

    def rank(self, prompt: str, catalog: Sequence[Any]) -> List[Tuple[float, Any]]:
        """按分数降序排列，同分按标题"""
        scored = [(score_game(game, prompt), game) for game in catalog]
        scored.sort(key=lambda item: (-item[0], item[1].title.lower(), item[1].id))
        return scored

    def recommend(self, prompt: str, catalog: Sequence[Any], count: int) -> List[Recommendation]:
        """
        取分数最高的 count 个游戏

        游戏库非空时返回 min(count, 游戏数) 条推荐，备选为排名紧随其后的游戏。
        """
        rng = random.Random(self.seed)
        ranked = self.rank(prompt, catalog)
        top = ranked[:count]
        alternates = [game.id for _, game in ranked[count:count + MAX_ALTERNATES]]

        return [
            build_recommendation(
                game,
                pitch=generate_pitch(game, prompt, rng),
                lead=f"Score: {score:.1f} - good match for your request",
                alternates=alternates,
            )
            for score, game in top
        ]
