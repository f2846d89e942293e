"""
API接口测试
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from sommelier.api.dependencies import (
    get_orchestrator,
    get_price_resolver,
    get_recommend_limiter,
    get_share_limiter,
    get_share_store,
)
from sommelier.database.connection import get_db_session
from sommelier.database.crud import game_crud
from sommelier.main import app
from sommelier.recommend.orchestrator import InvalidPromptError
from sommelier.schemas.prices import PriceResult, PriceStatistics
from sommelier.schemas.recommendations import RecommendationResponse, ResponseMetadata
from sommelier.sharing.share_store import STATUS_EXPIRED, STATUS_FOUND, STATUS_NOT_FOUND, ShareLookup
from sommelier.utils.rate_limiter import RateLimiter
from conftest import make_game

client = TestClient(app)

CREATED_AT = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _limiter(max_requests=100):
    return RateLimiter("test", max_requests=max_requests, window_seconds=60, block_seconds=300, clock=lambda: 1000.0)


async def _no_db():
    yield None


@pytest.fixture(autouse=True)
def overrides():
    """每个测试使用独立的限流器，结束后清理依赖替换"""
    app.dependency_overrides[get_recommend_limiter] = lambda: _limiter()
    app.dependency_overrides[get_share_limiter] = lambda: _limiter()
    app.dependency_overrides[get_db_session] = _no_db
    yield app.dependency_overrides
    app.dependency_overrides.clear()


def _share(view_count=0):
    return SimpleNamespace(
        share_id="AbCd1234",
        title="Sunday",
        prompt="calm games",
        recommendations=[{"id": 3, "title": "Wingspan"}],
        share_metadata={"strategy": "fallback"},
        view_count=view_count,
        created_at=CREATED_AT,
        expires_at=CREATED_AT + timedelta(days=30),
    )


def test_root():
    """测试根路径"""
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["message"] == "Welcome to Board Game Sommelier API"


def test_health_check():
    """测试健康检查"""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "timestamp" in data
    assert "version" in data
    assert "llm_enabled" in data


def test_request_id_header():
    response = client.get("/health")
    assert len(response.headers["X-Request-ID"]) == 8
    assert "X-Process-Time" in response.headers


class TestRecommendations:
    """推荐接口"""

    def test_success(self, overrides):
        orchestrator = MagicMock()
        orchestrator.recommend = AsyncMock(return_value=RecommendationResponse(
            recommendations=[],
            metadata=ResponseMetadata(strategy="empty"),
        ))
        overrides[get_orchestrator] = lambda: orchestrator

        response = client.post("/api/v1/recommendations", json={"prompt": "  family night  "})

        assert response.status_code == 200
        assert response.json()["metadata"]["strategy"] == "empty"
        orchestrator.recommend.assert_awaited_once_with("family night")

    def test_blank_prompt_rejected(self, overrides):
        orchestrator = MagicMock()
        orchestrator.recommend = AsyncMock()
        overrides[get_orchestrator] = lambda: orchestrator

        response = client.post("/api/v1/recommendations", json={"prompt": "   "})

        assert response.status_code == 422
        orchestrator.recommend.assert_not_awaited()

    def test_invalid_prompt_maps_to_400(self, overrides):
        orchestrator = MagicMock()
        orchestrator.recommend = AsyncMock(side_effect=InvalidPromptError("Prompt must be at most 1000 characters"))
        overrides[get_orchestrator] = lambda: orchestrator

        response = client.post("/api/v1/recommendations", json={"prompt": "x" * 1001})

        assert response.status_code == 400
        assert "1000" in response.json()["detail"]

    def test_rate_limited(self, overrides):
        limiter = _limiter(max_requests=1)
        overrides[get_recommend_limiter] = lambda: limiter
        orchestrator = MagicMock()
        orchestrator.recommend = AsyncMock(return_value=RecommendationResponse(recommendations=[]))
        overrides[get_orchestrator] = lambda: orchestrator

        first = client.post("/api/v1/recommendations", json={"prompt": "anything"})
        second = client.post("/api/v1/recommendations", json={"prompt": "anything"})

        assert first.status_code == 200
        assert second.status_code == 429
        assert second.headers["Retry-After"] == "300"
        assert orchestrator.recommend.await_count == 1


class TestShare:
    """分享接口"""

    def test_create(self, overrides):
        store = MagicMock()
        store.create = AsyncMock(return_value=_share())
        overrides[get_share_store] = lambda: store

        response = client.post("/api/v1/share", json={
            "prompt": "calm games",
            "recommendations": [{"id": 3, "title": "Wingspan"}],
            "title": "Sunday",
        })

        assert response.status_code == 201
        data = response.json()
        assert data["share_id"] == "AbCd1234"
        assert data["share_url"].endswith("/share/AbCd1234")

    def test_create_requires_recommendations(self, overrides):
        overrides[get_share_store] = lambda: MagicMock()
        response = client.post("/api/v1/share", json={"prompt": "calm games", "recommendations": []})
        assert response.status_code == 422

    def test_get_found(self, overrides):
        store = MagicMock()
        store.get = AsyncMock(return_value=ShareLookup(STATUS_FOUND, _share(view_count=4), 5))
        overrides[get_share_store] = lambda: store

        response = client.get("/api/v1/share/AbCd1234")

        assert response.status_code == 200
        data = response.json()
        assert data["view_count"] == 5
        assert data["metadata"] == {"strategy": "fallback"}

    def test_get_missing(self, overrides):
        store = MagicMock()
        store.get = AsyncMock(return_value=ShareLookup(STATUS_NOT_FOUND))
        overrides[get_share_store] = lambda: store
        assert client.get("/api/v1/share/missing1").status_code == 404

    def test_get_expired(self, overrides):
        store = MagicMock()
        store.get = AsyncMock(return_value=ShareLookup(STATUS_EXPIRED))
        overrides[get_share_store] = lambda: store
        assert client.get("/api/v1/share/AbCd1234").status_code == 410


class TestGames:
    """游戏目录接口"""

    def test_list(self, monkeypatch):
        games = [make_game(3, "Wingspan", mechanics="engine-building,hand-management")]
        monkeypatch.setattr(game_crud, "search_games", AsyncMock(return_value=(games, 41)))

        response = client.get("/api/v1/games?search=wing&page=2&limit=20")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["games"][0]["mechanics"] == ["engine-building", "hand-management"]
        assert data["pagination"]["total_pages"] == 3
        assert data["pagination"]["has_more"] is True

    def test_limit_validated(self):
        assert client.get("/api/v1/games?limit=500").status_code == 422

    def test_detail_not_found(self, monkeypatch):
        monkeypatch.setattr(game_crud, "get_game_by_id", AsyncMock(return_value=None))
        assert client.get("/api/v1/games/999").status_code == 404


class TestPrices:
    """价格接口"""

    def test_single_price(self, overrides, monkeypatch):
        monkeypatch.setattr(game_crud, "get_game_by_id", AsyncMock(return_value=make_game(3, "Wingspan")))
        resolver = MagicMock()
        resolver.resolve_price = AsyncMock(return_value=PriceResult(
            game_id=3, store_name="Amazon", price=None, url="https://www.amazon.com/s?k=Wingspan", source="fallback"
        ))
        overrides[get_price_resolver] = lambda: resolver

        response = client.get("/api/v1/prices/3")

        assert response.status_code == 200
        assert response.json()["source"] == "fallback"
        resolver.resolve_price.assert_awaited_once_with(3, "Wingspan", bgg_id=None)

    def test_bulk(self, overrides):
        resolver = MagicMock()
        resolver.resolve_prices = AsyncMock(return_value=[
            PriceResult(game_id=1, source="fallback"),
            PriceResult(game_id=2, source="cache", price=20.0),
        ])
        overrides[get_price_resolver] = lambda: resolver

        response = client.post("/api/v1/prices/bulk", json={"games": [{"id": 1, "title": "Azul"}, {"id": 2, "title": "Catan"}]})

        assert response.status_code == 200
        assert response.json()["data"]["total"] == 2
        resolver.resolve_prices.assert_awaited_once_with([(1, "Azul"), (2, "Catan")])

    def test_stats(self, overrides):
        resolver = MagicMock()
        resolver.price_statistics = AsyncMock(return_value=PriceStatistics(total=3, fresh=2, stale=1, average_price=35.0))
        overrides[get_price_resolver] = lambda: resolver

        response = client.get("/api/v1/prices/stats")

        assert response.status_code == 200
        assert response.json()["data"]["fresh"] == 2
