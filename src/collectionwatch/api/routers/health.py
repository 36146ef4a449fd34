"""Health check endpoints for Docker/Kubernetes probes."""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy import text

router = APIRouter(prefix="/health")


class HealthStatus(BaseModel):
    """Overall health status response."""

    status: str = Field(description="healthy or unhealthy")
    timestamp: str = Field(description="ISO timestamp of health check")
    version: str = Field(description="Application version")
    checks: dict[str, Any] = Field(default_factory=dict)


class LivenessStatus(BaseModel):
    status: str
    timestamp: str


@router.get("/live")
async def liveness_probe() -> LivenessStatus:
    """Returns 200 while the process is running; no dependency checks."""
    return LivenessStatus(status="alive", timestamp=datetime.now(UTC).isoformat())


@router.get("", response_model=HealthStatus)
async def health_check(request: Request) -> JSONResponse:
    """Database and format registry status. 503 if the database is unreachable."""
    checks: dict[str, Any] = {}

    db = getattr(request.app.state, "db", None)
    if db is None:
        checks["database"] = {"status": "error", "error": "Not initialized"}
    else:
        # A failing probe is the answer here, not an error to propagate
        try:
            async with db.session_scope() as session:
                await session.execute(text("SELECT 1"))
            checks["database"] = {"status": "ok"}
        except Exception as e:
            checks["database"] = {"status": "error", "error": str(e)}

    negotiator = getattr(request.app.state, "negotiator", None)
    checks["webservice"] = {
        "status": "ok" if negotiator else "error",
        "formats": [s.fmt for s in negotiator.serializers] if negotiator else [],
    }

    healthy = all(check["status"] == "ok" for check in checks.values())
    body = HealthStatus(
        status="healthy" if healthy else "unhealthy",
        timestamp=datetime.now(UTC).isoformat(),
        version=request.app.version,
        checks=checks,
    )
    return JSONResponse(
        content=body.model_dump(),
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
    )
