"""Async HTTP client for the ledger's read API."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import httpx

from indexer_service.logging import get_logger
from indexer_service.services.clarity import (
    cv_to_hex,
    decode_result,
    encode_principal,
    encode_uint,
)

DEFAULT_PAGE_SIZE = 50


@dataclass(frozen=True)
class ContractNames:
    """Names of the five contracts under the deployer."""

    registry: str
    vault: str
    task_board: str
    reputation: str
    launchpad: str


@dataclass
class EventPage:
    """
    One page of a contract's event log.

    ``raw_count`` is how many rows the ledger returned, malformed ones
    included; paging decisions use it rather than ``len(records)``.
    """

    records: list[dict[str, Any]] = field(default_factory=list)
    total: int = 0
    raw_count: int = 0


class LedgerClient:
    """
    Client for the two read operations the indexer needs.

    1. call_read_only: POST /v2/contracts/call-read/{deployer}/{contract}/{function}
       and decode the returned value.
    2. fetch_event_page / fetch_all_events: page through
       GET /extended/v1/contract/{contract_id}/events.

    Expected failures (connection errors, timeouts, non-2xx statuses,
    ``okay: false`` envelopes, undecodable bodies) are logged and turned
    into ``None`` or an empty page; nothing is raised to the caller.
    """

    def __init__(
        self,
        base_url: str,
        deployer: str,
        sender: str,
        contracts: ContractNames,
        timeout_seconds: int,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self._base_url = base_url
        self._deployer = deployer
        self._sender = sender
        self._contracts = contracts
        self._page_size = page_size
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=float(timeout_seconds),
        )

    @property
    def deployer(self) -> str:
        return self._deployer

    @property
    def contracts(self) -> ContractNames:
        return self._contracts

    @property
    def page_size(self) -> int:
        return self._page_size

    def contract_id(self, contract_name: str) -> str:
        """Fully qualified id of a contract deployed by the configured deployer."""
        return f"{self._deployer}.{contract_name}"

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        logger = get_logger(__name__)
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as exc:
            logger.warning(
                "Ledger request failed",
                extra={"path": path, "error": str(exc), "base_url": self._base_url},
            )
            return None
        return self._parse_body(response, path)

    async def _post_json(self, path: str, body: dict[str, Any]) -> Any:
        logger = get_logger(__name__)
        try:
            response = await self._client.post(path, json=body)
        except httpx.HTTPError as exc:
            logger.warning(
                "Ledger request failed",
                extra={"path": path, "error": str(exc), "base_url": self._base_url},
            )
            return None
        return self._parse_body(response, path)

    def _parse_body(self, response: httpx.Response, path: str) -> Any:
        logger = get_logger(__name__)
        if not response.is_success:
            logger.warning(
                "Ledger returned unexpected status",
                extra={"path": path, "status_code": response.status_code},
            )
            return None
        try:
            return response.json()
        except (json.JSONDecodeError, ValueError):
            logger.warning("Ledger returned non-JSON body", extra={"path": path})
            return None

    async def call_read_only(
        self,
        contract_name: str,
        function_name: str,
        args: list[str] | None = None,
    ) -> dict[str, Any] | None:
        """
        Invoke a read-only contract function.

        Args:
            contract_name: Contract name under the configured deployer
            function_name: Read-only function to call
            args: Hex-encoded arguments

        Returns:
            The decoded return value, or None on any failure
        """
        path = f"/v2/contracts/call-read/{self._deployer}/{contract_name}/{function_name}"
        body = await self._post_json(path, {"sender": self._sender, "arguments": args or []})
        if not isinstance(body, dict):
            return None
        okay = body.get("okay")
        if not okay or okay == "false":
            return None
        return decode_result(body.get("result"))

    async def fetch_event_page(self, contract_id: str, limit: int, offset: int) -> EventPage:
        """Fetch one page of contract events; any failure yields an empty page."""
        body = await self._get_json(
            f"/extended/v1/contract/{contract_id}/events",
            params={"limit": limit, "offset": offset},
        )
        if not isinstance(body, dict):
            return EventPage()
        results = body.get("results")
        if not isinstance(results, list):
            return EventPage()
        total = body.get("total")
        return EventPage(
            records=[record for record in results if isinstance(record, dict)],
            total=total if isinstance(total, int) else 0,
            raw_count=len(results),
        )

    async def fetch_all_events(self, contract_id: str) -> list[dict[str, Any]]:
        """
        Page through a contract's whole event log in its native order.

        Stops at the first page on which the ledger returned fewer rows than
        requested. Rows that are not objects are dropped without ending the
        paging. A failed page counts as empty, so a transient failure
        truncates the history.
        """
        events: list[dict[str, Any]] = []
        offset = 0
        limit = self._page_size
        while True:
            page = await self.fetch_event_page(contract_id, limit, offset)
            events.extend(page.records)
            if page.raw_count < limit:
                break
            offset += limit
        return events

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------
    async def get_agent(self, principal: str) -> dict[str, Any] | None:
        return await self.call_read_only(
            self._contracts.registry, "get-agent", [cv_to_hex(encode_principal(principal))]
        )

    async def get_capability(self, principal: str, index: int) -> dict[str, Any] | None:
        return await self.call_read_only(
            self._contracts.registry,
            "get-capability",
            [cv_to_hex(encode_principal(principal)), cv_to_hex(encode_uint(index))],
        )

    async def get_registry_stats(self) -> dict[str, Any] | None:
        return await self.call_read_only(self._contracts.registry, "get-stats")

    # ------------------------------------------------------------------
    # Reputation and vault
    # ------------------------------------------------------------------
    async def get_reputation(self, principal: str) -> dict[str, Any] | None:
        return await self.call_read_only(
            self._contracts.reputation, "get-reputation", [cv_to_hex(encode_principal(principal))]
        )

    async def get_average_score(self, principal: str) -> dict[str, Any] | None:
        return await self.call_read_only(
            self._contracts.reputation,
            "get-average-score",
            [cv_to_hex(encode_principal(principal))],
        )

    async def get_vault(self, principal: str) -> dict[str, Any] | None:
        return await self.call_read_only(
            self._contracts.vault, "get-vault", [cv_to_hex(encode_principal(principal))]
        )

    # ------------------------------------------------------------------
    # Task board
    # ------------------------------------------------------------------
    async def get_task(self, task_id: int) -> dict[str, Any] | None:
        return await self.call_read_only(
            self._contracts.task_board, "get-task", [cv_to_hex(encode_uint(task_id))]
        )

    async def get_bid_count(self, task_id: int) -> dict[str, Any] | None:
        return await self.call_read_only(
            self._contracts.task_board, "get-bid-count", [cv_to_hex(encode_uint(task_id))]
        )

    async def get_bid_at(self, task_id: int, index: int) -> dict[str, Any] | None:
        return await self.call_read_only(
            self._contracts.task_board,
            "get-bid-at",
            [cv_to_hex(encode_uint(task_id)), cv_to_hex(encode_uint(index))],
        )

    async def get_bid(self, task_id: int, bidder: str) -> dict[str, Any] | None:
        return await self.call_read_only(
            self._contracts.task_board,
            "get-bid",
            [cv_to_hex(encode_uint(task_id)), cv_to_hex(encode_principal(bidder))],
        )

    async def get_task_stats(self) -> dict[str, Any] | None:
        return await self.call_read_only(self._contracts.task_board, "get-stats")

    # ------------------------------------------------------------------
    # Launchpad
    # ------------------------------------------------------------------
    async def get_curve(self, curve_id: int) -> dict[str, Any] | None:
        return await self.call_read_only(
            self._contracts.launchpad, "get-curve", [cv_to_hex(encode_uint(curve_id))]
        )

    async def get_curve_balance(self, curve_id: int, holder: str) -> dict[str, Any] | None:
        return await self.call_read_only(
            self._contracts.launchpad,
            "get-balance",
            [cv_to_hex(encode_uint(curve_id)), cv_to_hex(encode_principal(holder))],
        )

    async def get_agent_curve(self, principal: str) -> dict[str, Any] | None:
        return await self.call_read_only(
            self._contracts.launchpad, "get-agent-curve", [cv_to_hex(encode_principal(principal))]
        )

    async def get_buy_quote(self, curve_id: int, stx_amount: int) -> dict[str, Any] | None:
        return await self.call_read_only(
            self._contracts.launchpad,
            "get-buy-quote",
            [cv_to_hex(encode_uint(curve_id)), cv_to_hex(encode_uint(stx_amount))],
        )

    async def get_sell_quote(self, curve_id: int, token_amount: int) -> dict[str, Any] | None:
        return await self.call_read_only(
            self._contracts.launchpad,
            "get-sell-quote",
            [cv_to_hex(encode_uint(curve_id)), cv_to_hex(encode_uint(token_amount))],
        )

    async def get_curve_price(self, curve_id: int) -> dict[str, Any] | None:
        return await self.call_read_only(
            self._contracts.launchpad, "get-price", [cv_to_hex(encode_uint(curve_id))]
        )

    async def get_launchpad_stats(self) -> dict[str, Any] | None:
        return await self.call_read_only(self._contracts.launchpad, "get-stats")

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
