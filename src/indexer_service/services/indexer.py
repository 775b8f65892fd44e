"""Full-history rebuilds and the time-boxed snapshot cache."""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

from indexer_service.logging import get_logger
from indexer_service.services.projection import ContractStreams, ProjectionSnapshot, fold_events

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from indexer_service.services.ledger_client import LedgerClient


class IndexBuilder:
    """Fetches every contract's full event log and folds it from scratch."""

    def __init__(
        self,
        ledger_client: LedgerClient,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ledger_client = ledger_client
        self._clock = clock

    async def fetch_streams(self) -> ContractStreams:
        """Fetch the five event logs concurrently."""
        ledger = self._ledger_client
        contracts = ledger.contracts
        registry, task_board, vault, reputation, launchpad = await asyncio.gather(
            ledger.fetch_all_events(ledger.contract_id(contracts.registry)),
            ledger.fetch_all_events(ledger.contract_id(contracts.task_board)),
            ledger.fetch_all_events(ledger.contract_id(contracts.vault)),
            ledger.fetch_all_events(ledger.contract_id(contracts.reputation)),
            ledger.fetch_all_events(ledger.contract_id(contracts.launchpad)),
        )
        return ContractStreams(
            registry=registry,
            task_board=task_board,
            vault=vault,
            reputation=reputation,
            launchpad=launchpad,
        )

    async def build(self) -> ProjectionSnapshot:
        logger = get_logger(__name__)
        started = time.monotonic()

        streams = await self.fetch_streams()
        snapshot = fold_events(streams, built_at=self._clock())

        logger.info(
            "Projection rebuilt",
            extra={
                "agents": len(snapshot.agents),
                "tasks": len(snapshot.tasks),
                "curves": len(snapshot.curves),
                "duration_ms": round((time.monotonic() - started) * 1000),
                **snapshot.stats.as_dict(),
            },
        )
        return snapshot


class ProjectionCache:
    """
    Holds the latest snapshot and the moment it was built.

    ``get_or_rebuild`` returns the cached snapshot while it is younger than
    the TTL, otherwise rebuilds synchronously and swaps the new snapshot in
    with a single assignment. Concurrent callers that find it expired each
    run their own rebuild; the last one to finish wins.

    If a rebuild raises, the previous snapshot stays cached and is served
    stale. Without a previous snapshot the error propagates.
    """

    def __init__(
        self,
        rebuild: Callable[[], Awaitable[ProjectionSnapshot]],
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._rebuild = rebuild
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._entry: tuple[ProjectionSnapshot, float] | None = None
        self._rebuild_count = 0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    @property
    def snapshot(self) -> ProjectionSnapshot | None:
        return self._entry[0] if self._entry is not None else None

    @property
    def rebuild_count(self) -> int:
        return self._rebuild_count

    def age_seconds(self) -> float | None:
        if self._entry is None:
            return None
        return self._clock() - self._entry[1]

    def invalidate(self) -> None:
        self._entry = None

    async def get_or_rebuild(self) -> ProjectionSnapshot:
        entry = self._entry
        if entry is not None and self._clock() - entry[1] < self._ttl_seconds:
            return entry[0]

        try:
            snapshot = await self._rebuild()
        except Exception:
            if entry is None:
                raise
            get_logger(__name__).warning(
                "Projection rebuild failed, serving stale snapshot",
                exc_info=True,
                extra={"stale_age_seconds": round(self._clock() - entry[1], 3)},
            )
            return entry[0]

        self._entry = (snapshot, self._clock())
        self._rebuild_count += 1
        return snapshot
