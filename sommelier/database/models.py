"""
SQLAlchemy数据库模型
"""

from typing import List

from sqlalchemy import (
    Column, Integer, String, Float, Numeric, Text, DateTime, JSON,
    ForeignKey, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship

from sommelier.database.connection import Base
from sommelier.utils.clock import utcnow


def split_csv(value) -> List[str]:
    """拆分逗号分隔字段，去掉空白与空项"""
    if not value:
        return []
    return [item.strip() for item in str(value).split(",") if item.strip()]


class Game(Base):
    """桌游目录表"""
    __tablename__ = 'games'

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    bgg_id = Column(Integer, unique=True, nullable=True)  # BoardGameGeek ID
    bgg_rank = Column(Integer, nullable=True)
    players = Column(String(50))       # 例如 "2-4"
    playtime = Column(String(50))      # 例如 "30-60 min"
    complexity = Column(Float)         # 1.0 - 5.0
    mechanics = Column(Text)           # 逗号分隔的机制标识，例如 "worker-placement,engine-building"
    theme = Column(String(100))
    tags = Column(Text)                # 逗号分隔
    description = Column(Text)
    image_url = Column(String(500))
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    prices = relationship("GamePrice", back_populates="game", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_game_title', 'title'),
        Index('idx_game_theme', 'theme'),
        Index('idx_game_complexity', 'complexity'),
        Index('idx_game_bgg_rank', 'bgg_rank'),
    )

    @property
    def mechanic_list(self) -> List[str]:
        return split_csv(self.mechanics)

    @property
    def tag_list(self) -> List[str]:
        return split_csv(self.tags)

    def __repr__(self):
        return f"<Game(id={self.id}, title='{self.title}')>"


class GamePrice(Base):
    """游戏价格表，每个游戏每个商店一条记录"""
    __tablename__ = 'game_prices'

    id = Column(Integer, primary_key=True, index=True)
    game_id = Column(Integer, ForeignKey('games.id', ondelete='CASCADE'), nullable=False)
    store_name = Column(String(100), nullable=False)
    price = Column(Numeric(10, 2, asdecimal=False), nullable=True)  # 允许只有链接没有价格
    currency = Column(String(3), default="USD")
    url = Column(String(1000))
    last_updated = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    game = relationship("Game", back_populates="prices")

    __table_args__ = (
        UniqueConstraint('game_id', 'store_name', name='uq_game_price_store'),
        Index('idx_price_game', 'game_id'),
        Index('idx_price_last_updated', 'last_updated'),
    )

    def __repr__(self):
        return f"<GamePrice(game_id={self.game_id}, store='{self.store_name}', price={self.price})>"


class SharedRecommendation(Base):
    """分享的推荐结果表"""
    __tablename__ = 'shared_recommendations'

    id = Column(Integer, primary_key=True, index=True)
    share_id = Column(String(16), unique=True, nullable=False, index=True)
    title = Column(String(255))
    prompt = Column(Text, nullable=False)
    recommendations = Column(JSON, nullable=False)
    share_metadata = Column("metadata", JSON)  # metadata 是 Declarative 保留属性名
    view_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index('idx_share_created_at', 'created_at'),
    )

    def __repr__(self):
        return f"<SharedRecommendation(share_id='{self.share_id}', views={self.view_count})>"
