"""Integration test fixtures."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient

from indexer_service.app import create_app
from indexer_service.config import clear_settings_cache
from tests.helpers import (
    ALICE,
    BOB,
    CAROL,
    FakeLedger,
    config_yaml,
    event_record,
    p,
    s,
    u,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator
    from pathlib import Path

    from fastapi import FastAPI


@pytest.fixture(autouse=True)
def _isolate_test(tmp_path: Path) -> Iterator[None]:
    """Isolate each test with its own temp config; the projection never caches."""
    config_path = tmp_path / "config.yaml"
    config_path.write_text(config_yaml(str(tmp_path / "logs"), ttl_seconds=0, page_size=2))

    old_config = os.environ.get("CONFIG_PATH")
    os.environ["CONFIG_PATH"] = str(config_path)
    clear_settings_cache()

    yield

    if old_config is None:
        os.environ.pop("CONFIG_PATH", None)
    else:
        os.environ["CONFIG_PATH"] = old_config
    clear_settings_cache()


@pytest.fixture
def ledger() -> FakeLedger:
    """A small economy: three agents, two tasks and one traded curve."""
    fake = FakeLedger()
    fake.add_events(
        "agent-registry",
        event_record("agent-registered", owner=p(ALICE), name=s("Alpha"), price_per_task=u(10)),
        event_record("agent-registered", owner=p(BOB), name=s("Bravo"), price_per_task=u(20)),
        event_record("agent-registered", owner=p(CAROL), name=s("Charlie")),
        event_record("status-changed", owner=p(CAROL), status=u(3)),
    )
    fake.add_events(
        "task-board",
        event_record("task-posted", task_id=u(0), poster=p(CAROL), bounty=u(5_000_000)),
        event_record("bid-placed", task_id=u(0)),
        event_record("bid-placed", task_id=u(0)),
        event_record("task-assigned", task_id=u(0), agent=p(ALICE)),
        event_record("work-submitted", task_id=u(0)),
        event_record("task-approved", task_id=u(0)),
        event_record("task-posted", task_id=u(1), poster=p(CAROL), bounty=u(700)),
    )
    fake.add_events("agent-vault", event_record("vault-created", owner=p(ALICE)))
    fake.add_events(
        "reputation",
        event_record("agent-rated", agent=p(ALICE), score=u(5)),
        event_record("task-completed-recorded", agent=p(ALICE)),
        event_record("agent-endorsed", agent=p(BOB)),
        event_record("dispute-recorded", agent=p(BOB)),
    )
    fake.add_events(
        "agent-launchpad",
        event_record("curve-launched", curve_id=u(0), creator=p(ALICE), symbol=s("ALPHA")),
        event_record(
            "token-bought",
            curve_id=u(0),
            new_stx_reserve=u(99_000_000),
            new_tokens_sold=u(9_802_950_787_207),
        ),
    )
    return fake


@pytest.fixture
def app() -> FastAPI:
    """Create the FastAPI application."""
    return create_app()


@pytest.fixture
async def client(app: FastAPI, ledger: FakeLedger) -> AsyncIterator[AsyncClient]:
    """Create an async HTTP test client with lifespan management."""
    async with app.router.lifespan_context(app):
        ledger.install(app.state.indexer.ledger_client)
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            yield c
