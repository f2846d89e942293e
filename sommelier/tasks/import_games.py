"""
导入桌游目录到数据库的脚本。

功能：
- 逐行读取 JSON Lines 文件（每行一个游戏）。
- 有 bgg_id 的记录按 bgg_id upsert，没有的直接插入。
- 机制、标签统一转成逗号分隔的小写标识。

每行字段：
    title (必填), bgg_id, bgg_rank, players 或 min_players/max_players,
    playtime 或 min_playtime/max_playtime, complexity, mechanics, theme,
    tags, description, image_url

使用示例：
    python -m sommelier.tasks.import_games

环境变量（可选）：
    GAME_JSON_PATH   默认 data/games.jsonl
    DB_BATCH_SIZE    默认 500
"""

import asyncio
import json
import logging
import os
import re
from typing import Dict, Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

import sommelier.database.connection as db_conn
from sommelier.database.models import Game
from sommelier.database.upsert import build_upsert
from sommelier.utils.clock import utcnow

logger = logging.getLogger(__name__)

GAME_JSON_PATH = os.getenv("GAME_JSON_PATH", "data/games.jsonl")
DB_BATCH_SIZE = int(os.getenv("DB_BATCH_SIZE", "500"))

UPDATE_COLUMNS = (
    "title", "bgg_rank", "players", "playtime", "complexity", "mechanics",
    "theme", "tags", "description", "image_url", "updated_at",
)


def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.strip().lower()).strip("-")


def _to_csv(value) -> Optional[str]:
    """列表或逗号分隔字符串 -> 逗号分隔的标识"""
    if not value:
        return None
    items = value.split(",") if isinstance(value, str) else value
    slugs = [_slug(str(item)) for item in items if str(item).strip()]
    return ",".join(slug for slug in slugs if slug) or None


def _to_int(value) -> Optional[int]:
    try:
        return int(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


def _range_text(low, high, suffix: str = "") -> Optional[str]:
    low, high = _to_int(low), _to_int(high)
    if low is None and high is None:
        return None
    if low is None or high is None or low == high:
        return f"{low if low is not None else high}{suffix}"
    return f"{low}-{high}{suffix}"


def _parse_complexity(value) -> Optional[float]:
    try:
        complexity = round(float(value), 2)
    except (TypeError, ValueError):
        return None
    # BGG 的权重范围是 1-5，0 表示没有评分
    if not 1.0 <= complexity <= 5.0:
        return None
    return complexity


def normalize_record(raw: Dict) -> Optional[Dict]:
    """
    将原始行转换为 Game 可接受的字段字典，标题为空时返回 None。
    """
    title = str(raw.get("title") or raw.get("name") or "").strip()
    if not title:
        return None

    now = utcnow()
    players = raw.get("players") or _range_text(raw.get("min_players"), raw.get("max_players"))
    playtime = raw.get("playtime") or _range_text(raw.get("min_playtime"), raw.get("max_playtime"), " min")

    return {
        "title": title[:255],
        "bgg_id": _to_int(raw.get("bgg_id")),
        "bgg_rank": _to_int(raw.get("bgg_rank")),
        "players": str(players) if players else None,
        "playtime": str(playtime) if playtime else None,
        "complexity": _parse_complexity(raw.get("complexity")),
        "mechanics": _to_csv(raw.get("mechanics")),
        "theme": (raw.get("theme") or None),
        "tags": _to_csv(raw.get("tags")),
        "description": raw.get("description"),
        "image_url": raw.get("image_url"),
        "created_at": now,
        "updated_at": now,
    }


async def _write_batch(session: AsyncSession, rows: List[Dict]) -> int:
    if not rows:
        return 0
    with_id = [row for row in rows if row["bgg_id"] is not None]
    without_id = [row for row in rows if row["bgg_id"] is None]

    if with_id:
        await session.execute(build_upsert(session, Game, with_id, ["bgg_id"], UPDATE_COLUMNS))
    if without_id:
        session.add_all([Game(**row) for row in without_id])
    await session.commit()
    return len(rows)


async def import_lines(session: AsyncSession, lines: Iterable[str], batch_size: int = DB_BATCH_SIZE) -> Dict[str, int]:
    """
    导入 JSON Lines

    Returns:
        {"written": ..., "skipped": ..., "parse_errors": ...}
    """
    stats = {"written": 0, "skipped": 0, "parse_errors": 0}
    batch: List[Dict] = []
    seen_bgg_ids = set()

    for line in lines:
        line = line.strip()
        if not line:
            continue
        try:
            raw = json.loads(line)
        except json.JSONDecodeError:
            stats["parse_errors"] += 1
            continue

        record = normalize_record(raw) if isinstance(raw, dict) else None
        if not record:
            stats["skipped"] += 1
            continue

        # 同一批次里重复的 bgg_id 会让 upsert 语句报错
        if record["bgg_id"] is not None:
            if record["bgg_id"] in seen_bgg_ids:
                stats["skipped"] += 1
                continue
            seen_bgg_ids.add(record["bgg_id"])

        batch.append(record)
        if len(batch) >= batch_size:
            stats["written"] += await _write_batch(session, batch)
            batch = []
            seen_bgg_ids.clear()

    stats["written"] += await _write_batch(session, batch)
    return stats


async def main() -> None:
    logging.basicConfig(level=logging.INFO)
    logger.info("Starting import from %s", GAME_JSON_PATH)
    await db_conn.init_db()
    await db_conn.create_tables()

    try:
        async with db_conn.get_session_maker()() as session:
            with open(GAME_JSON_PATH, "r", encoding="utf-8") as f:
                stats = await import_lines(session, f)
    finally:
        await db_conn.close_db()

    logger.info(
        "Import finished. written=%d, skipped=%d, parse_errors=%d",
        stats["written"],
        stats["skipped"],
        stats["parse_errors"],
    )


if __name__ == "__main__":
    asyncio.run(main())
