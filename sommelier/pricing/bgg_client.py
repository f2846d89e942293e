"""
BoardGameGeek 客户端

BGG 没有公开价格接口，这里只解析游戏 id 并生成市场页链接（没有价格）。
"""

from typing import Optional
from xml.etree import ElementTree

import httpx

from sommelier.config import settings
from sommelier.logging_config import get_logger
from sommelier.pricing.amazon_client import MarketplaceError
from sommelier.pricing.throttle import RequestThrottle

logger = get_logger(__name__)

BGG_SEARCH_URL = "https://boardgamegeek.com/xmlapi2/search"
BGG_STORE_NAME = "BoardGameGeek Marketplace"


def marketplace_url(bgg_id: int) -> str:
    """BGG 市场页链接"""
    return f"https://boardgamegeek.com/boardgame/{bgg_id}#buyacopy"


def parse_first_item_id(xml_text: str) -> Optional[int]:
    """取搜索结果中第一个 item 的 id"""
    try:
        root = ElementTree.fromstring(xml_text)
    except ElementTree.ParseError as e:
        raise MarketplaceError("BoardGameGeek returned invalid XML") from e

    for item in root.iter("item"):
        raw_id = item.get("id")
        if raw_id and raw_id.isdigit():
            return int(raw_id)
    return None


class BggClient:
    """
    Args:
        http_client: 共享的 httpx 客户端
        throttle: 请求节流器
        user_agent: 请求 User-Agent
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        throttle: RequestThrottle,
        user_agent: Optional[str] = None
    ):
        self.http_client = http_client
        self.throttle = throttle
        self.user_agent = user_agent or settings.BGG_USER_AGENT

    async def _search(self, title: str, exact: bool) -> Optional[int]:
        params = {"query": title, "type": "boardgame"}
        if exact:
            params["exact"] = "1"

        async with self.throttle.slot():
            try:
                response = await self.http_client.get(
                    BGG_SEARCH_URL, params=params, headers={"User-Agent": self.user_agent}
                )
            except httpx.HTTPError as e:
                raise MarketplaceError(f"BoardGameGeek request failed: {e}") from e

        if response.status_code >= 400:
            raise MarketplaceError(f"BoardGameGeek HTTP {response.status_code}")
        return parse_first_item_id(response.text)

    async def search_game_id(self, title: str) -> Optional[int]:
        """先精确搜索，没有结果再宽泛搜索"""
        bgg_id = await self._search(title, exact=True)
        if bgg_id is None:
            logger.debug(f"No exact BGG match for '{title}', trying broad search")
            bgg_id = await self._search(title, exact=False)
        return bgg_id
