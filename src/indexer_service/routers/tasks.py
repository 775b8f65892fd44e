"""Tasks route handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Path
from fastapi.responses import JSONResponse

from indexer_service.core.state import AppState, current_snapshot, get_app_state
from indexer_service.routers.agents import cache_headers
from indexer_service.schemas import TaskDetail, TaskItem
from indexer_service.services import details as details_service

if TYPE_CHECKING:
    from indexer_service.models import Task

router = APIRouter()


def task_item(task: Task) -> TaskItem:
    return TaskItem(
        id=task.id,
        poster=task.poster,
        title=task.title,
        bounty=str(task.bounty),
        status=task.status,
        created_at=task.created_at,
        deadline=task.deadline,
        assigned_to=task.assigned_to,
        bid_count=task.bid_count,
    )


@router.get("/tasks")
async def list_tasks(state: AppState = Depends(get_app_state)) -> JSONResponse:
    """Return every indexed task."""
    snapshot = await current_snapshot(state)
    content = [task_item(task).model_dump(by_alias=True) for task in snapshot.task_list()]
    return JSONResponse(content=content, headers=cache_headers(state))


@router.get("/tasks/{task_id}")
async def get_task(
    task_id: int = Path(ge=0),
    state: AppState = Depends(get_app_state),
) -> JSONResponse:
    """Return one task and its bids, read live from the task board."""
    assert state.ledger_client is not None
    data = await details_service.get_task_detail(state.ledger_client, task_id)
    return JSONResponse(content=TaskDetail(**data).model_dump(by_alias=True))
