import platform
import time
from datetime import datetime, timezone
from typing import Optional

import psutil
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel


router = APIRouter(prefix="/health", tags=["Health"])

_START_TIME = time.time()


# ── Schemas ──────────────────────────────────────────────────────────────────

class ComponentHealth(BaseModel):
    status: str  # "healthy" | "unhealthy"
    detail: Optional[str] = None


class SystemMetrics(BaseModel):
    cpu_percent: float
    memory_percent: float
    memory_available_mb: float
    python_version: str
    os: str


class HealthResponse(BaseModel):
    status: str
    site: str
    version: str
    environment: str
    uptime_seconds: float
    timestamp: str
    components: dict[str, ComponentHealth]
    system: SystemMetrics


# ── Checks ───────────────────────────────────────────────────────────────────

def check_static_files(request: Request) -> ComponentHealth:
    static_dir = request.app.state.site.static_dir
    if static_dir.is_dir():
        return ComponentHealth(status="healthy")
    return ComponentHealth(status="unhealthy", detail=f"missing {static_dir.name} wwwroot")


def get_system_metrics() -> SystemMetrics:
    mem = psutil.virtual_memory()
    return SystemMetrics(
        cpu_percent=psutil.cpu_percent(interval=None),
        memory_percent=mem.percent,
        memory_available_mb=round(mem.available / 1_048_576, 1),
        python_version=platform.python_version(),
        os=platform.system(),
    )


def _aggregate_status(components: dict[str, ComponentHealth]) -> str:
    if any(c.status == "unhealthy" for c in components.values()):
        return "unhealthy"
    return "healthy"


# ── Endpoints ────────────────────────────────────────────────────────────────

@router.get("", summary="Quick health check")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/live",
    summary="Liveness probe",
    description="Lightweight liveness probe — confirms the process is running.",
)
async def liveness() -> dict:
    return {"status": "alive", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get(
    "/ready",
    summary="Readiness probe",
    responses={
        200: {"description": "Site is ready"},
        503: {"description": "Site is not ready"},
    },
)
async def readiness(request: Request) -> JSONResponse:
    static_files = check_static_files(request)
    if static_files.status == "unhealthy":
        return JSONResponse(
            content={"status": "not_ready", "detail": static_files.detail},
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    return JSONResponse(
        content={"status": "ready", "timestamp": datetime.now(timezone.utc).isoformat()}
    )


@router.get("/details", summary="Full health check", response_model=HealthResponse)
async def health_details(request: Request) -> JSONResponse:
    """
    Returns site, version, uptime and host metrics.
    Responds with **200** when healthy, **503** when a component is unhealthy.
    """
    settings = request.app.state.settings
    components = {"static_files": check_static_files(request)}
    overall = _aggregate_status(components)

    payload = HealthResponse(
        status=overall,
        site=request.app.state.site.name,
        version=settings.version,
        environment=settings.environment,
        uptime_seconds=round(time.time() - _START_TIME, 2),
        timestamp=datetime.now(timezone.utc).isoformat(),
        components=components,
        system=get_system_metrics(),
    )

    http_status = (
        status.HTTP_503_SERVICE_UNAVAILABLE
        if overall == "unhealthy"
        else status.HTTP_200_OK
    )
    return JSONResponse(content=payload.model_dump(), status_code=http_status)
