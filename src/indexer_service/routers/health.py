"""Health check endpoint."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from indexer_service.core.state import AppState, get_app_state
from indexer_service.schemas import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(state: AppState = Depends(get_app_state)) -> HealthResponse:
    """Check service health. Never triggers a rebuild."""
    last_build_at = None
    snapshot_age_seconds = None
    rebuild_count = 0

    cache = state.projection_cache
    snapshot = cache.snapshot if cache is not None else None
    if cache is not None and snapshot is not None:
        built = datetime.fromtimestamp(snapshot.built_at, UTC)
        last_build_at = built.isoformat(timespec="seconds").replace("+00:00", "Z")
        snapshot_age_seconds = cache.age_seconds()
    if cache is not None:
        rebuild_count = cache.rebuild_count

    return HealthResponse(
        status="ok",
        uptime_seconds=state.uptime_seconds,
        started_at=state.started_at,
        last_build_at=last_build_at,
        snapshot_age_seconds=snapshot_age_seconds,
        rebuild_count=rebuild_count,
    )
