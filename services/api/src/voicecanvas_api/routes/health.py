"""Health check endpoints."""

from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError

from voicecanvas_shared.db.connection import get_db
from voicecanvas_shared.db.models import utcnow

router = APIRouter()


class HealthStatus(BaseModel):
    """Health check response model."""

    status: Literal["healthy", "degraded"] = Field(description="Overall health status")
    timestamp: datetime = Field(default_factory=utcnow, description="Current server time (UTC)")
    version: str = Field(description="Service version")
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual component health checks",
    )
    in_flight: dict[str, int] = Field(
        default_factory=dict,
        description="Synthesis requests currently holding a slot, per identity",
    )


class ReadinessStatus(BaseModel):
    """Readiness check response model."""

    ready: bool = Field(description="Whether the service is ready to accept requests")
    timestamp: datetime = Field(default_factory=utcnow, description="Current server time (UTC)")
    checks: dict[str, bool] = Field(default_factory=dict, description="Individual readiness checks")


async def _database_reachable() -> bool:
    try:
        await get_db().connect()
    except (SQLAlchemyError, OSError, ValueError):
        return False
    return True


@router.get(
    "/health",
    response_model=HealthStatus,
    summary="Health Check",
    description="Check if the service is running and get version info",
)
async def health_check(request: Request) -> HealthStatus:
    """Liveness endpoint. Reports degraded, never fails, when the database is down."""
    checks = {
        "api": True,
        "database": getattr(request.app.state, "db_initialized", False),
    }
    gate = getattr(request.app.state, "concurrency_gate", None)
    return HealthStatus(
        status="healthy" if all(checks.values()) else "degraded",
        version=request.app.version,
        checks=checks,
        in_flight=gate.snapshot() if gate else {},
    )


@router.get(
    "/health/ready",
    response_model=ReadinessStatus,
    summary="Readiness Check",
    description="Check if the service is ready to accept requests",
)
async def readiness_check() -> ReadinessStatus:
    """Readiness endpoint for load balancers: checks the database connection."""
    database = await _database_reachable()
    return ReadinessStatus(ready=database, checks={"api": True, "database_connection": database})
