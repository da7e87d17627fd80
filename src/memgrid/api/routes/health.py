from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from memgrid.api.deps import get_runtime
from memgrid.app.runtime import AppRuntime

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """
    Minimal health check response. Side-effect free.
    """

    status: str
    environment: str


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
def health(runtime: AppRuntime = Depends(get_runtime)) -> HealthResponse:
    return HealthResponse(
        status="ok",
        environment=runtime.settings.env,
    )
