"""API v1 router aggregation.

Includes all endpoint modules with consistent prefix and tags. All routes
use dependencies from tasksearch.api.v1.dependencies.
"""

from fastapi import APIRouter

from tasksearch.api.v1.endpoints import admin, health, history, search

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(history.router, prefix="/search", tags=["search-history"])
api_router.include_router(admin.router, prefix="/search", tags=["search-admin"])
api_router.include_router(search.router, prefix="/search", tags=["search"])
