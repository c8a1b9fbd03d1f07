"""
API Router
Combines all endpoint routers
"""
from fastapi import APIRouter
from voice_campaigns.api.v1.endpoints import (
    campaigns,
    calls,
    webhooks,
    dashboard,
    voices,
)

api_router = APIRouter()

# Include all routers
api_router.include_router(campaigns.router)
api_router.include_router(calls.router)
api_router.include_router(webhooks.router)
api_router.include_router(dashboard.router)
api_router.include_router(voices.router)
