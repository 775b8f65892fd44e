"""Leaderboard and aggregate statistics."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from indexer_service.core.state import AppState, current_snapshot, get_app_state
from indexer_service.routers.agents import cache_headers
from indexer_service.schemas import LeaderboardEntry, StatsResponse
from indexer_service.services import summary as summary_service

router = APIRouter()


@router.get("/leaderboard")
async def get_leaderboard(
    limit: int | None = Query(None, ge=1, le=1000),
    state: AppState = Depends(get_app_state),
) -> JSONResponse:
    """Return agents ranked by composite reputation score."""
    snapshot = await current_snapshot(state)
    entries = summary_service.rank_agents(snapshot, limit)
    content = [LeaderboardEntry(**entry).model_dump(by_alias=True) for entry in entries]
    return JSONResponse(content=content, headers=cache_headers(state))


@router.get("/stats")
async def get_stats(state: AppState = Depends(get_app_state)) -> JSONResponse:
    """Return totals over the index, preferring on-chain counters when available."""
    assert state.ledger_client is not None
    ledger = state.ledger_client
    snapshot, registry_stats, task_stats, launchpad_stats = await asyncio.gather(
        current_snapshot(state),
        ledger.get_registry_stats(),
        ledger.get_task_stats(),
        ledger.get_launchpad_stats(),
    )
    data = summary_service.summarize(snapshot, registry_stats, task_stats, launchpad_stats)
    return JSONResponse(
        content=StatsResponse(**data).model_dump(by_alias=True),
        headers=cache_headers(state),
    )
