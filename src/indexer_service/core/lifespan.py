"""Application lifecycle management."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from indexer_service.config import get_settings
from indexer_service.core.state import init_app_state
from indexer_service.logging import get_logger, setup_logging
from indexer_service.services.bonding_curve import CurveParams
from indexer_service.services.indexer import IndexBuilder, ProjectionCache
from indexer_service.services.ledger_client import ContractNames, LedgerClient

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle."""
    # === STARTUP ===
    settings = get_settings()

    setup_logging(settings.logging.level, settings.service.name, settings.logging.directory)
    logger = get_logger(__name__)

    state = init_app_state(app)

    ledger = settings.ledger
    state.ledger_client = LedgerClient(
        base_url=ledger.base_url,
        deployer=ledger.deployer,
        sender=ledger.sender,
        contracts=ContractNames(**settings.contracts.model_dump()),
        timeout_seconds=ledger.timeout_seconds,
        page_size=ledger.page_size,
    )
    state.projection_cache = ProjectionCache(
        rebuild=IndexBuilder(state.ledger_client).build,
        ttl_seconds=settings.cache.ttl_seconds,
    )
    state.curve_params = CurveParams(**settings.launchpad.model_dump())

    logger.info(
        "Service starting",
        extra={
            "version": settings.service.version,
            "port": settings.server.port,
            "ledger_url": ledger.base_url,
            "deployer": ledger.deployer,
        },
    )

    yield  # Application runs here

    # === SHUTDOWN ===
    await state.ledger_client.close()
    logger.info("Ledger client closed")
    logger.info("Service shutting down", extra={"uptime_seconds": state.uptime_seconds})
