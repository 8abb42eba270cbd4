"""Chat Aggregator API Router - aggregates the route families."""

from fastapi import APIRouter

from chat_aggregator.api import health, mobile, web

api_router = APIRouter()

# /api/mobile is registered ahead of /api so its paths never reach the web family
api_router.include_router(mobile.router)
api_router.include_router(web.router)
api_router.include_router(health.router)
