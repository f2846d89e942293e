"""
BoardGameGeek 客户端测试
"""

import httpx
import pytest

from sommelier.pricing.amazon_client import MarketplaceError
from sommelier.pricing.bgg_client import BggClient, marketplace_url, parse_first_item_id
from sommelier.pricing.throttle import RequestThrottle

WINGSPAN_XML = (
    '<?xml version="1.0" encoding="utf-8"?>'
    '<items total="1" termsofuse="https://boardgamegeek.com/xmlapi/termsofuse">'
    '<item type="boardgame" id="266192"><name type="primary" value="Wingspan"/></item>'
    '</items>'
)
EMPTY_XML = '<?xml version="1.0" encoding="utf-8"?><items total="0"></items>'


def test_parse_first_item_id():
    assert parse_first_item_id(WINGSPAN_XML) == 266192
    assert parse_first_item_id(EMPTY_XML) is None


def test_parse_invalid_xml():
    with pytest.raises(MarketplaceError):
        parse_first_item_id("<items><item")


def test_marketplace_url():
    assert marketplace_url(13) == "https://boardgamegeek.com/boardgame/13#buyacopy"


class TestBggClient:
    """BggClient 测试"""

    @pytest.mark.asyncio
    async def test_exact_search_first(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, text=WINGSPAN_XML)

        client = BggClient(httpx.AsyncClient(transport=httpx.MockTransport(handler)), RequestThrottle(0), user_agent="test-agent")

        assert await client.search_game_id("Wingspan") == 266192
        assert len(requests) == 1
        assert requests[0].url.params["exact"] == "1"
        assert requests[0].headers["User-Agent"] == "test-agent"

    @pytest.mark.asyncio
    async def test_broad_search_when_exact_misses(self):
        requests = []

        def handler(request):
            requests.append(request)
            if request.url.params.get("exact") == "1":
                return httpx.Response(200, text=EMPTY_XML)
            return httpx.Response(200, text=WINGSPAN_XML)

        client = BggClient(httpx.AsyncClient(transport=httpx.MockTransport(handler)), RequestThrottle(0))

        assert await client.search_game_id("wingspan birds") == 266192
        assert len(requests) == 2
        assert "exact" not in requests[1].url.params

    @pytest.mark.asyncio
    async def test_http_error(self):
        client = BggClient(
            httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(503))),
            RequestThrottle(0),
        )
        with pytest.raises(MarketplaceError, match="503"):
            await client.search_game_id("Wingspan")
