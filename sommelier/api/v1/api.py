"""
API v1 路由汇总
"""

from fastapi import APIRouter

from sommelier.api.v1.endpoints import games, prices, recommendations, share

api_router = APIRouter()

# 包含各个模块的路由
api_router.include_router(recommendations.router, prefix="/recommendations", tags=["recommendations"])
api_router.include_router(games.router, prefix="/games", tags=["games"])
api_router.include_router(prices.router, prefix="/prices", tags=["prices"])
api_router.include_router(share.router, prefix="/share", tags=["share"])
