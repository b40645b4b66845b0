"""Health check endpoints for liveness and readiness checks."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from tasksearch.core.config import get_settings
from tasksearch.schemas.health import HealthResponse, ReadinessResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return simple ok status for liveness."""
    return HealthResponse()


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"description": "Search engine or Redis unreachable", "model": ReadinessResponse}},
)
async def readiness_check(request: Request) -> ReadinessResponse | JSONResponse:
    """Return 200 when the search engine answers and Redis (if enabled) is connected."""
    settings = get_settings()
    engine_ok = await request.app.state.search_engine.ping()
    redis_ok = request.app.state.history_store.is_available()
    ready = engine_ok and (redis_ok or not settings.redis_enabled)
    body = ReadinessResponse(
        status="ok" if ready else "not_ready",
        search_engine=engine_ok,
        redis=redis_ok,
    )
    if ready:
        return body
    return JSONResponse(status_code=503, content=body.model_dump())
