"""
按数据库方言构造 INSERT ... ON CONFLICT / ON DUPLICATE KEY UPDATE 语句
"""

from typing import Dict, List, Sequence

from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession


def build_upsert(
    session: AsyncSession,
    model,
    rows: List[Dict],
    conflict_columns: Sequence[str],
    update_columns: Sequence[str]
):
    """
    构造批量 upsert 语句

    Args:
        session: 数据库会话（用于判断方言）
        model: ORM 模型
        rows: 待写入的行
        conflict_columns: 唯一约束列
        update_columns: 冲突时需要更新的列

    Returns:
        可直接 execute 的语句
    """
    dialect = session.get_bind().dialect.name

    if dialect == "mysql":
        stmt = mysql_insert(model).values(rows)
        return stmt.on_duplicate_key_update(
            **{name: stmt.inserted[name] for name in update_columns}
        )

    if dialect == "postgresql":
        stmt = pg_insert(model).values(rows)
    elif dialect == "sqlite":
        stmt = sqlite_insert(model).values(rows)
    else:
        raise NotImplementedError(f"Upsert not supported for dialect {dialect}")

    return stmt.on_conflict_do_update(
        index_elements=list(conflict_columns),
        set_={name: stmt.excluded[name] for name in update_columns}
    )
