"""
LLM 提示词模板
"""

import json
from typing import Any, Dict, List, Sequence

SYSTEM_PROMPT = """You are The Board Game Sommelier: a sharp-tongued, honest and deeply knowledgeable tabletop game recommender.

Rules:
- Read the request for mood, group, time and complexity constraints before choosing.
- When a game list is provided as the complete database, recommend ONLY titles from that list, spelled exactly as listed.
- Only mention mechanics that appear in the provided data for that game. Never invent mechanics.
- Players, playtime and complexity must come from the provided data when it is available.

The "sommelierPitch" is a witty one-liner written for THIS user and THIS game. Reference real elements of the game. No generic templates.

Respond with a single JSON object in exactly this shape:
{
  "recommendations": [
    {
      "title": "Exact game title",
      "sommelierPitch": "Witty, game-specific, user-specific one-liner",
      "reasoning": "Why this game fits the request",
      "mechanics": ["mechanic-slug"],
      "players": "player count",
      "playtime": "playtime",
      "complexity": 2.5
    }
  ],
  "honestAssessment": "Short note if the options do not fit the request perfectly, otherwise empty"
}"""


def catalog_context(games: Sequence[Any]) -> List[Dict[str, Any]]:
    """只保留 LLM 需要的字段"""
    return [
        {
            "title": game.title,
            "mechanics": game.mechanic_list,
            "theme": game.theme,
            "players": game.players,
            "playtime": game.playtime,
            "complexity": game.complexity,
            "tags": game.tag_list,
        }
        for game in games
    ]


def full_catalog_prompt(user_prompt: str, games: Sequence[Any], count: int) -> str:
    """整库模式：游戏库就是全部候选"""
    return (
        f'User request: "{user_prompt}"\n\n'
        "AVAILABLE GAMES (this is the complete database, choose ONLY from it):\n"
        f"{json.dumps(catalog_context(games), ensure_ascii=False)}\n\n"
        f"Recommend {count} games from the list above that best match the request. "
        "Use the exact titles and only the mechanics listed for each game."
    )


def sample_prompt(user_prompt: str, games: Sequence[Any], count: int) -> str:
    """抽样模式：样本只是参考，可以推荐样本以外的游戏"""
    lines = "\n".join(
        f"- {game.title} ({game.players or '?'} players, {game.playtime or '?'}, "
        f"complexity {game.complexity if game.complexity is not None else '?'}, {game.theme or 'various'})"
        for game in games
    )
    return (
        f'User request: "{user_prompt}"\n\n'
        f"Recommend {count} board games that are excellent fits for this request. "
        "You may pick from the curated selection below or suggest other well-known games you are confident about. "
        "Use the full official title of each game.\n\n"
        f"Curated selection:\n{lines}"
    )
