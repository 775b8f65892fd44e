"""Integration tests: full request/response cycles through the app."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tests.helpers import ALICE, BOB, CAROL, event_record, u

if TYPE_CHECKING:
    from httpx import AsyncClient

    from tests.helpers import FakeLedger


@pytest.mark.integration
class TestHealthEndpoint:
    """Test health endpoint through the full app stack."""

    async def test_health_reports_last_build(self, client: AsyncClient) -> None:
        assert (await client.get("/health")).json()["last_build_at"] is None

        await client.get("/api/agents")
        data = (await client.get("/health")).json()

        assert data["status"] == "ok"
        assert data["last_build_at"] is not None
        assert data["rebuild_count"] == 1
        assert "uptime_seconds" in data


@pytest.mark.integration
class TestIndexedCollections:
    """Test the projection endpoints against a seeded ledger."""

    async def test_agents(self, client: AsyncClient) -> None:
        response = await client.get("/api/agents")
        assert response.status_code == 200
        agents = {agent["principal"]: agent for agent in response.json()}

        assert agents[ALICE]["hasVault"] is True
        assert agents[ALICE]["pricePerTask"] == "10"
        assert agents[ALICE]["reputation"]["tasksCompleted"] == 1
        assert agents[BOB]["reputation"]["endorsementCount"] == 1
        assert agents[BOB]["reputation"]["tasksDisputed"] == 1
        assert agents[CAROL]["status"] == 3
        assert agents[CAROL]["reputation"] is None

    async def test_tasks(self, client: AsyncClient) -> None:
        tasks = {task["id"]: task for task in (await client.get("/api/tasks")).json()}

        assert tasks[0]["status"] == 4
        assert tasks[0]["bidCount"] == 2
        assert tasks[0]["assignedTo"] == ALICE
        assert tasks[1]["status"] == 1
        assert tasks[1]["assignedTo"] is None

    async def test_leaderboard(self, client: AsyncClient) -> None:
        entries = (await client.get("/api/leaderboard")).json()

        assert [entry["principal"] for entry in entries] == [ALICE, CAROL, BOB]
        assert [entry["compositeScore"] for entry in entries] == [110, 0, -10]

    async def test_stats(self, client: AsyncClient) -> None:
        data = (await client.get("/api/stats")).json()

        assert data["totalAgents"] == 3
        assert data["activeAgents"] == 2
        assert data["agentsWithVault"] == 1
        assert data["tasksByStatus"]["completed"] == 1
        assert data["tasksByStatus"]["open"] == 1
        assert data["openBountyTotal"] == "700"
        assert data["totalCurves"] == 1
        assert data["totalStxLocked"] == "99000000"
        assert data["totalTrades"] == 1
        assert data["fold"]["eventsApplied"] == 18

    async def test_index_quote_uses_indexed_reserves(self, client: AsyncClient) -> None:
        response = await client.get(
            "/api/curves/0/quote",
            params={"side": "sell", "amount": 1_000_000_000},
        )

        assert response.status_code == 200
        data = response.json()
        assert int(data["amountOut"]) > 0
        assert int(data["priceBefore"]) > 0


@pytest.mark.integration
class TestRebuilds:
    """Test rebuild behaviour with caching disabled."""

    async def test_history_is_paged(self, client: AsyncClient, ledger: FakeLedger) -> None:
        await client.get("/api/tasks")
        # seven records in pages of two
        assert ledger.count_requests("task-board/events") == 4

    async def test_new_events_visible_on_next_read(
        self, client: AsyncClient, ledger: FakeLedger
    ) -> None:
        assert len((await client.get("/api/tasks")).json()) == 2

        ledger.add_events("task-board", event_record("task-posted", task_id=u(2)))

        assert len((await client.get("/api/tasks")).json()) == 3

    async def test_unreachable_log_rebuilds_empty(
        self, client: AsyncClient, ledger: FakeLedger
    ) -> None:
        """Unreachable event logs degrade to an empty rebuild, not an error."""
        await client.get("/api/agents")
        ledger.failing_event_contracts.add("agent-registry")

        response = await client.get("/api/agents")

        assert response.status_code == 200
        assert response.json() == []
