"""Agents route handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from indexer_service.core.state import AppState, current_snapshot, get_app_state
from indexer_service.schemas import AgentDetail, AgentItem, ReputationItem
from indexer_service.services import details as details_service

if TYPE_CHECKING:
    from indexer_service.models import Agent

router = APIRouter()


def cache_headers(state: AppState) -> dict[str, str]:
    """Shared-cache header matching the projection's time-to-live."""
    ttl = int(state.projection_cache.ttl_seconds) if state.projection_cache else 0
    return {"Cache-Control": f"public, max-age={ttl}"}


def agent_item(agent: Agent) -> AgentItem:
    reputation = agent.reputation
    return AgentItem(
        principal=agent.principal,
        name=agent.name,
        status=agent.status,
        registered_at=agent.registered_at,
        price_per_task=str(agent.price_per_task),
        reputation=(
            ReputationItem(
                total_score=reputation.total_score,
                rating_count=reputation.rating_count,
                tasks_completed=reputation.tasks_completed,
                tasks_disputed=reputation.tasks_disputed,
                endorsement_count=reputation.endorsement_count,
            )
            if reputation is not None
            else None
        ),
        has_vault=agent.has_vault,
    )


@router.get("/agents")
async def list_agents(state: AppState = Depends(get_app_state)) -> JSONResponse:
    """Return every indexed agent."""
    snapshot = await current_snapshot(state)
    content = [agent_item(agent).model_dump(by_alias=True) for agent in snapshot.agent_list()]
    return JSONResponse(content=content, headers=cache_headers(state))


@router.get("/agents/{principal}")
async def get_agent(principal: str, state: AppState = Depends(get_app_state)) -> JSONResponse:
    """Return one agent read live from the registry, reputation, vault and launchpad."""
    assert state.ledger_client is not None
    data = await details_service.get_agent_detail(state.ledger_client, principal)
    return JSONResponse(content=AgentDetail(**data).model_dump(by_alias=True))
