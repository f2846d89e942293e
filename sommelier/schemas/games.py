"""
游戏相关的 Pydantic 模型
"""

from typing import List, Optional
from pydantic import BaseModel, Field


class GameItem(BaseModel):
    """游戏目录条目"""
    id: int = Field(..., description="游戏 id")
    title: str = Field(..., description="游戏名称")
    bgg_id: Optional[int] = Field(None, description="BoardGameGeek ID")
    players: Optional[str] = Field(None, description="人数")
    playtime: Optional[str] = Field(None, description="时长")
    complexity: Optional[float] = Field(None, description="复杂度 1-5")
    mechanics: List[str] = Field(default_factory=list, description="机制")
    theme: Optional[str] = Field(None, description="主题")
    tags: List[str] = Field(default_factory=list, description="标签")
    image_url: Optional[str] = Field(None, description="封面")

    @classmethod
    def from_game(cls, game) -> "GameItem":
        return cls(
            id=game.id,
            title=game.title,
            bgg_id=game.bgg_id,
            players=game.players,
            playtime=game.playtime,
            complexity=game.complexity,
            mechanics=game.mechanic_list,
            theme=game.theme,
            tags=game.tag_list,
            image_url=game.image_url,
        )


class GameDetail(GameItem):
    """游戏详情模型"""
    description: Optional[str] = Field(None, description="详细描述")

    @classmethod
    def from_game(cls, game) -> "GameDetail":
        item = GameItem.from_game(game)
        return cls(**item.model_dump(), description=game.description)


class GameListResponse(BaseModel):
    """游戏列表响应模型"""
    games: List[GameItem]
    pagination: dict = Field(..., description="分页信息")
