"""
Backend API package initialization.

This package contains FastAPI router modules for the Search Interplay backend:
- reports: Report creation, polling, traces and per-client lookups
"""

from fastapi import APIRouter

# Import router modules
from backend.api.reports import router as reports_router

# Create main API router
api_router = APIRouter()

api_router.include_router(reports_router, prefix="/reports", tags=["reports"])

# Export all routers for selective imports
__all__ = [
    "api_router",
    "reports_router",
]
