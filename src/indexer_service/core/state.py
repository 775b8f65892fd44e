"""Application state management."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from fastapi import Request

from indexer_service.core.exceptions import ServiceError
from indexer_service.logging import get_logger

if TYPE_CHECKING:
    from fastapi import FastAPI

    from indexer_service.services.bonding_curve import CurveParams
    from indexer_service.services.indexer import ProjectionCache
    from indexer_service.services.ledger_client import LedgerClient
    from indexer_service.services.projection import ProjectionSnapshot


@dataclass
class AppState:
    """Runtime application state, owned by the app instance."""

    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    ledger_client: LedgerClient | None = None
    projection_cache: ProjectionCache | None = None
    curve_params: CurveParams | None = None

    @property
    def uptime_seconds(self) -> float:
        """Calculate uptime in seconds."""
        return (datetime.now(UTC) - self.start_time).total_seconds()

    @property
    def started_at(self) -> str:
        """ISO format start time."""
        return self.start_time.isoformat(timespec="seconds").replace("+00:00", "Z")


def init_app_state(app: FastAPI) -> AppState:
    """Attach a fresh state container to the app. Called during startup."""
    state = AppState()
    app.state.indexer = state
    return state


def get_app_state(request: Request) -> AppState:
    """Dependency returning the state of the app serving the request."""
    state = getattr(request.app.state, "indexer", None)
    if state is None:
        msg = "Application state not initialized"
        raise RuntimeError(msg)
    return state


async def current_snapshot(state: AppState) -> ProjectionSnapshot:
    """
    Return the cached projection, rebuilding it first if it has expired.

    Raises:
        ServiceError: INDEX_UNAVAILABLE when no snapshot has ever been built
            and the rebuild fails.
    """
    if state.projection_cache is None:
        msg = "Projection cache not initialized"
        raise RuntimeError(msg)
    try:
        return await state.projection_cache.get_or_rebuild()
    except Exception as exc:
        get_logger(__name__).exception("Initial projection build failed")
        raise ServiceError(
            "INDEX_UNAVAILABLE",
            "The event index is not available yet",
            503,
            {},
        ) from exc
