"""Router test fixtures -- app with lifespan, a fake ledger and an async client."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient

from indexer_service.app import create_app
from indexer_service.core.lifespan import lifespan
from tests.helpers import FakeLedger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

    from fastapi import FastAPI


@pytest.fixture
async def app(config_path: Path) -> AsyncIterator[FastAPI]:
    """Create a test app with its lifespan running."""
    test_app = create_app()
    async with lifespan(test_app):
        yield test_app


@pytest.fixture
def ledger(app: FastAPI) -> FakeLedger:
    """Route the app's ledger traffic to an in-memory fake."""
    fake = FakeLedger()
    fake.install(app.state.indexer.ledger_client)
    return fake


@pytest.fixture
async def client(app: FastAPI, ledger: FakeLedger) -> AsyncIterator[AsyncClient]:
    """Create an async HTTP client for the test app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
