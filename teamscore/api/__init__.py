"""
Scorecard API package initialization.

FastAPI router modules:
- reports: scored reports per granularity and the weighted top ranking
- data: months, month deletion, uploads, single entry, alias maintenance
- config: scoring configuration, weights and score matrices
"""

from fastapi import APIRouter

from teamscore.api.reports import router as reports_router
from teamscore.api.data import router as data_router
from teamscore.api.config import router as config_router

# Create main API router
api_router = APIRouter()

api_router.include_router(reports_router, prefix="/reports", tags=["reports"])
api_router.include_router(data_router, prefix="/data", tags=["data"])
api_router.include_router(config_router, prefix="/config", tags=["config"])

__all__ = [
    "api_router",
    "reports_router",
    "data_router",
    "config_router",
]
