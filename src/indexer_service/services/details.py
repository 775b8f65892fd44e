"""
Per-entity detail lookups backed by live read-only calls.

A transport failure and a missing entity are reported differently: the
first raises LEDGER_UNAVAILABLE (502) so a client can retry, the second
raises *_NOT_FOUND (404).
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from indexer_service.core.exceptions import ServiceError
from indexer_service.services.bonding_curve import graduation_progress
from indexer_service.services.clarity import (
    encode_principal,
    flatten_tuple,
    unwrap_optional,
    unwrap_response,
)
from indexer_service.services.event_fields import (
    get_bool,
    get_optional_principal,
    get_principal,
    get_str,
    get_uint,
)

if TYPE_CHECKING:
    from indexer_service.services.ledger_client import LedgerClient

CAPABILITY_SLOTS = 8
MAX_BIDS = 20


def _ledger_unavailable(what: str) -> ServiceError:
    return ServiceError(
        "LEDGER_UNAVAILABLE",
        f"Ledger read failed while loading {what}",
        502,
        {},
    )


def validate_principal(principal: str) -> str:
    """Reject strings that are not a well-formed standard or contract principal."""
    try:
        encode_principal(principal)
    except ValueError:
        raise ServiceError(
            "INVALID_PRINCIPAL",
            f"Invalid principal: {principal}",
            400,
            {"principal": principal},
        ) from None
    return principal


def _record(node: Any) -> dict[str, Any]:
    """Unwrap response/optional layers around a tuple and flatten it."""
    return flatten_tuple(unwrap_optional(unwrap_response(node)))


def _scalar_uint(node: Any) -> int | None:
    """Read a uint returned directly, as ``(some u)`` or as ``(ok u)``."""
    inner = unwrap_optional(unwrap_response(node))
    if inner is None:
        return None
    value = get_uint({"value": inner}, "value", -1)
    return value if value >= 0 else None


def _reputation(fields: dict[str, Any]) -> dict[str, int] | None:
    if not fields:
        return None
    return {
        "total_score": get_uint(fields, "total-score"),
        "rating_count": get_uint(fields, "rating-count"),
        "tasks_completed": get_uint(fields, "tasks-completed"),
        "tasks_disputed": get_uint(fields, "tasks-disputed"),
        "endorsement_count": get_uint(fields, "endorsement-count"),
    }


def _vault(fields: dict[str, Any]) -> dict[str, Any] | None:
    if not fields:
        return None
    return {
        "balance": str(get_uint(fields, "balance")),
        "per_tx_cap": str(get_uint(fields, "per-tx-cap")),
        "daily_cap": str(get_uint(fields, "daily-cap")),
        "daily_spent": str(get_uint(fields, "daily-spent")),
        "last_reset_block": get_uint(fields, "last-reset-block"),
        "whitelist_only": get_bool(fields, "whitelist-only"),
        "created_at": get_uint(fields, "created-at"),
    }


def _curve(curve_id: int, fields: dict[str, Any], price: int | None) -> dict[str, Any]:
    stx_reserve = get_uint(fields, "stx-reserve")
    graduation_stx = get_uint(fields, "graduation-stx")
    return {
        "id": curve_id,
        "creator": get_principal(fields, "creator"),
        "name": get_str(fields, "name", f"Token #{curve_id}"),
        "symbol": get_str(fields, "symbol", "???"),
        "total_supply": str(get_uint(fields, "total-supply")),
        "virtual_stx": str(get_uint(fields, "virtual-stx")),
        "stx_reserve": str(stx_reserve),
        "tokens_sold": str(get_uint(fields, "tokens-sold")),
        "graduation_stx": str(graduation_stx),
        "fee_bps": get_uint(fields, "fee-bps"),
        "accrued_fees": str(get_uint(fields, "accrued-fees")),
        "graduated": get_bool(fields, "graduated"),
        "created_at": get_uint(fields, "created-at"),
        "creator_share_bps": get_uint(fields, "creator-share-bps"),
        "price": str(price) if price is not None else None,
        "graduation_progress": graduation_progress(stx_reserve, graduation_stx),
    }


async def get_curve_detail(ledger: LedgerClient, curve_id: int) -> dict[str, Any]:
    """Load one curve with its current on-chain price."""
    curve_raw, price_raw = await asyncio.gather(
        ledger.get_curve(curve_id),
        ledger.get_curve_price(curve_id),
    )
    if curve_raw is None:
        raise _ledger_unavailable("curve")
    fields = _record(curve_raw)
    if not fields:
        raise ServiceError(
            "CURVE_NOT_FOUND",
            f"Curve {curve_id} not found",
            404,
            {"curve_id": curve_id},
        )
    return _curve(curve_id, fields, _scalar_uint(price_raw))


async def _agent_curve(ledger: LedgerClient, agent_curve_raw: Any) -> dict[str, Any] | None:
    link = _record(agent_curve_raw)
    if "curve-id" not in link:
        return None
    curve_id = get_uint(link, "curve-id")
    curve_raw, price_raw = await asyncio.gather(
        ledger.get_curve(curve_id),
        ledger.get_curve_price(curve_id),
    )
    fields = _record(curve_raw)
    if not fields:
        return None
    return _curve(curve_id, fields, _scalar_uint(price_raw))


async def _capabilities(ledger: LedgerClient, principal: str) -> list[str]:
    results = await asyncio.gather(
        *(ledger.get_capability(principal, index) for index in range(CAPABILITY_SLOTS))
    )
    capabilities: list[str] = []
    for raw in results:
        capability = get_str(_record(raw), "capability")
        if capability:
            capabilities.append(capability)
    return capabilities


async def get_agent_detail(ledger: LedgerClient, principal: str) -> dict[str, Any]:
    """Load an agent's registry record together with its satellite records."""
    validate_principal(principal)

    agent_raw, reputation_raw, average_raw, vault_raw, agent_curve_raw = await asyncio.gather(
        ledger.get_agent(principal),
        ledger.get_reputation(principal),
        ledger.get_average_score(principal),
        ledger.get_vault(principal),
        ledger.get_agent_curve(principal),
    )
    if agent_raw is None:
        raise _ledger_unavailable("agent")
    agent = _record(agent_raw)
    if not agent:
        raise ServiceError(
            "AGENT_NOT_FOUND",
            f"Agent '{principal}' not found",
            404,
            {"principal": principal},
        )

    curve, capabilities = await asyncio.gather(
        _agent_curve(ledger, agent_curve_raw),
        _capabilities(ledger, principal),
    )

    return {
        "principal": principal,
        "name": get_str(agent, "name", "Agent"),
        "description_url": get_str(agent, "description-url"),
        "status": get_uint(agent, "status", 1),
        "registered_at": get_uint(agent, "registered-at"),
        "total_tasks": get_uint(agent, "total-tasks"),
        "total_earned": str(get_uint(agent, "total-earned")),
        "price_per_task": str(get_uint(agent, "price-per-task")),
        "accepts_stx": get_bool(agent, "accepts-stx"),
        "accepts_sip010": get_bool(agent, "accepts-sip010"),
        "reputation": _reputation(_record(reputation_raw)),
        "average_score": _scalar_uint(average_raw),
        "vault": _vault(_record(vault_raw)),
        "capabilities": capabilities,
        "curve": curve,
    }


async def _bid(ledger: LedgerClient, task_id: int, index: int) -> dict[str, Any] | None:
    bidder = get_principal(_record(await ledger.get_bid_at(task_id, index)), "bidder")
    if not bidder:
        return None
    bid = _record(await ledger.get_bid(task_id, bidder))
    if not bid:
        return None
    return {
        "bidder": bidder,
        "price": str(get_uint(bid, "price")),
        "message_url": get_str(bid, "message-url"),
        "bid_at": get_uint(bid, "bid-at"),
    }


async def get_task_detail(ledger: LedgerClient, task_id: int) -> dict[str, Any]:
    """Load one task and up to ``MAX_BIDS`` of its bids."""
    task_raw, bid_count_raw = await asyncio.gather(
        ledger.get_task(task_id),
        ledger.get_bid_count(task_id),
    )
    if task_raw is None:
        raise _ledger_unavailable("task")
    task = _record(task_raw)
    if not task:
        raise ServiceError(
            "TASK_NOT_FOUND",
            f"Task {task_id} not found",
            404,
            {"task_id": task_id},
        )

    bid_count = get_uint(_record(bid_count_raw), "count")
    bids = await asyncio.gather(
        *(_bid(ledger, task_id, index) for index in range(min(bid_count, MAX_BIDS)))
    )

    return {
        "id": task_id,
        "poster": get_principal(task, "poster"),
        "title": get_str(task, "title", f"Task #{task_id}"),
        "description_url": get_str(task, "description-url"),
        "bounty": str(get_uint(task, "bounty")),
        "fee": str(get_uint(task, "fee")),
        "assigned_to": get_optional_principal(task, "assigned-to"),
        "status": get_uint(task, "status", 1),
        "created_at": get_uint(task, "created-at"),
        "deadline": get_uint(task, "deadline"),
        "submitted_at": get_uint(task, "submitted-at"),
        "completed_at": get_uint(task, "completed-at"),
        "result_url": get_str(task, "result-url"),
        "bid_count": bid_count,
        "bids": [bid for bid in bids if bid is not None],
    }


async def get_chain_quote(
    ledger: LedgerClient,
    curve_id: int,
    side: str,
    amount: int,
) -> dict[str, Any]:
    """Ask the launchpad contract itself for a buy or sell quote."""
    quote_call = ledger.get_buy_quote if side == "buy" else ledger.get_sell_quote
    curve_raw, price_raw, quote_raw = await asyncio.gather(
        ledger.get_curve(curve_id),
        ledger.get_curve_price(curve_id),
        quote_call(curve_id, amount),
    )
    if curve_raw is None or quote_raw is None:
        raise _ledger_unavailable("quote")
    curve = _record(curve_raw)
    if not curve:
        raise ServiceError(
            "CURVE_NOT_FOUND",
            f"Curve {curve_id} not found",
            404,
            {"curve_id": curve_id},
        )
    result = _record(quote_raw)
    if not result:
        raise ServiceError(
            "INVALID_PARAMETER",
            "Quote rejected by the launchpad contract",
            400,
            {"curve_id": curve_id, "side": side, "amount": str(amount)},
        )

    price = _scalar_uint(price_raw)
    return {
        "curve_id": curve_id,
        "side": side,
        "source": "chain",
        "amount_in": str(amount),
        "amount_out": str(get_uint(result, "tokens-out" if side == "buy" else "stx-out")),
        "fee": str(get_uint(result, "fee")),
        "fee_bps": get_uint(curve, "fee-bps"),
        "price_before": str(price) if price is not None else "0",
        "graduated": get_bool(curve, "graduated"),
    }


async def get_holder_balance(ledger: LedgerClient, curve_id: int, holder: str) -> dict[str, Any]:
    """Token balance of ``holder`` on one curve; an unknown holder has 0."""
    validate_principal(holder)
    raw = await ledger.get_curve_balance(curve_id, holder)
    if raw is None:
        raise _ledger_unavailable("balance")
    return {
        "curve_id": curve_id,
        "holder": holder,
        "balance": str(_scalar_uint(raw) or 0),
    }
