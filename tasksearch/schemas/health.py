"""Health check API schemas."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response for GET /health (liveness)."""

    status: str = Field(default="ok", description="Service status")


class ReadinessResponse(BaseModel):
    """Response for GET /health/ready."""

    status: str = Field(default="ok", description="ok or not_ready")
    search_engine: bool = Field(..., description="Search engine answered a ping")
    redis: bool = Field(..., description="History store connected (always False when Redis is disabled)")
