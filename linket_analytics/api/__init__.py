"""
API router package for the Linket analytics backend.

Aggregates the endpoint routers into `api_router`:
- analytics: per-tenant reports and CSV export, mounted at /analytics
"""

from fastapi import APIRouter

from linket_analytics.api.analytics import router as analytics_router

api_router = APIRouter()

api_router.include_router(analytics_router, prefix="/analytics", tags=["analytics"])

__all__ = [
    "api_router",
    "analytics_router",
]
