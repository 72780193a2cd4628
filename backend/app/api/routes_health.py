"""Health check endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Request

from app.schemas.common import HealthStatus

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthStatus, response_model_exclude_none=True)
def health(request: Request) -> HealthStatus:
    return HealthStatus(**request.app.state.database.health())
