from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from ..models.donor import HealthResponse

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def healthcheck() -> HealthResponse:
    return HealthResponse(timestamp=datetime.now(timezone.utc))
