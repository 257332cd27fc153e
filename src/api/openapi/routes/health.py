"""Liveness, readiness and dependency health checks."""

from enum import Enum

from fastapi import APIRouter
from pydantic import BaseModel, Field

from src.api.dependencies import FactoryDep, SettingsDep

router = APIRouter()


class HealthStatus(str, Enum):
    """Check outcome, for one component or overall."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """Check result for the document store or the streaming provider."""

    name: str = Field(description="Component name")
    status: HealthStatus = Field(description="Component health status")
    latency_ms: float | None = Field(default=None, description="Check latency")
    message: str | None = Field(default=None, description="Additional details")


class HealthResponse(BaseModel):
    """Overall status plus per-component results."""

    status: HealthStatus = Field(description="Overall health status")
    version: str = Field(description="Application version")
    environment: str = Field(description="Deployment environment")
    components: list[ComponentHealth] = Field(
        default_factory=list,
        description="Individual component health",
    )


class LivenessResponse(BaseModel):
    """Process is up."""

    status: str = Field(default="ok")


class ReadinessResponse(BaseModel):
    """Whether requests can be served yet."""

    ready: bool = Field(description="Whether the service is ready to accept requests")
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual readiness checks",
    )


async def _check_component(name: str, factory: FactoryDep) -> ComponentHealth:
    try:
        if name == "document_db":
            result = await factory.get_document_db().health_check()
        else:
            result = await factory.get_streaming_provider().health_check()
    except Exception as e:
        return ComponentHealth(name=name, status=HealthStatus.UNHEALTHY, message=str(e))

    return ComponentHealth(
        name=name,
        status=HealthStatus.HEALTHY if result.healthy else HealthStatus.UNHEALTHY,
        latency_ms=result.latency_ms,
        message=result.message,
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check the document store and the streaming provider.",
)
async def health_check(
    settings: SettingsDep,
    factory: FactoryDep,
) -> HealthResponse:
    """Check health of the document store and the streaming provider.

    The document store is critical; a streaming provider outage only
    degrades the service since stored videos remain readable.
    """
    components = [
        await _check_component("document_db", factory),
        await _check_component("streaming_provider", factory),
    ]

    by_name = {c.name: c.status for c in components}
    if by_name["document_db"] == HealthStatus.UNHEALTHY:
        overall_status = HealthStatus.UNHEALTHY
    elif HealthStatus.UNHEALTHY in by_name.values():
        overall_status = HealthStatus.DEGRADED
    else:
        overall_status = HealthStatus.HEALTHY

    return HealthResponse(
        status=overall_status,
        version=settings.app.version,
        environment=settings.app.environment,
        components=components,
    )


@router.get(
    "/health/live",
    response_model=LivenessResponse,
    summary="Liveness check",
    description="Answers as long as the process is running.",
)
async def liveness() -> LivenessResponse:
    """Always ok; touches no dependency."""
    return LivenessResponse(status="ok")


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Ready once the document store and job queue are usable.",
)
async def readiness(
    factory: FactoryDep,
) -> ReadinessResponse:
    """Ready once the document store answers and the work queue exists."""
    checks: dict[str, bool] = {}

    document_db = await _check_component("document_db", factory)
    checks["document_db"] = document_db.status == HealthStatus.HEALTHY

    try:
        factory.get_work_queue()
        checks["work_queue"] = True
    except Exception:
        checks["work_queue"] = False

    return ReadinessResponse(ready=all(checks.values()), checks=checks)
