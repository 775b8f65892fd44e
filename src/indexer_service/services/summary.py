"""Derived views over a projection snapshot: leaderboard, totals and quotes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from indexer_service.core.exceptions import ServiceError
from indexer_service.models import AgentStatus, TaskStatus
from indexer_service.services.bonding_curve import (
    CurveParams,
    buy_quote,
    marginal_price,
    sell_quote,
)
from indexer_service.services.clarity import flatten_tuple, unwrap_optional, unwrap_response
from indexer_service.services.event_fields import get_uint

if TYPE_CHECKING:
    from indexer_service.models import Agent
    from indexer_service.services.projection import ProjectionSnapshot

RATING_WEIGHT = 20
COMPLETED_WEIGHT = 10
ENDORSEMENT_WEIGHT = 5
DISPUTE_PENALTY = 15


def composite_score(agent: Agent) -> float:
    """Leaderboard score; agents without a reputation record score 0."""
    reputation = agent.reputation
    if reputation is None:
        return 0.0
    return (
        reputation.average_score * RATING_WEIGHT
        + reputation.tasks_completed * COMPLETED_WEIGHT
        + reputation.endorsement_count * ENDORSEMENT_WEIGHT
        - reputation.tasks_disputed * DISPUTE_PENALTY
    )


def rank_agents(snapshot: ProjectionSnapshot, limit: int | None = None) -> list[dict[str, Any]]:
    """Agents ordered by descending composite score, ties kept in registration order."""
    ranked = sorted(snapshot.agent_list(), key=composite_score, reverse=True)
    if limit is not None:
        ranked = ranked[:limit]

    entries = []
    for rank, agent in enumerate(ranked, start=1):
        reputation = agent.reputation
        entries.append(
            {
                "rank": rank,
                "principal": agent.principal,
                "name": agent.name,
                "status": agent.status,
                "average_score": reputation.average_score if reputation else 0.0,
                "rating_count": reputation.rating_count if reputation else 0,
                "tasks_completed": reputation.tasks_completed if reputation else 0,
                "composite_score": composite_score(agent),
            }
        )
    return entries


def _chain_counter(raw: Any, field: str) -> int | None:
    """Read one counter from a ``get-stats`` tuple, or None when unavailable."""
    fields = flatten_tuple(unwrap_optional(unwrap_response(raw)))
    value = get_uint(fields, field, -1)
    return value if value > 0 else None


def summarize(
    snapshot: ProjectionSnapshot,
    registry_stats: Any = None,
    task_stats: Any = None,
    launchpad_stats: Any = None,
) -> dict[str, Any]:
    """
    Totals over the indexed collections.

    The on-chain ``get-stats`` counters, when available and non-zero, take
    precedence over the indexed counts for the three totals, since a
    truncated event history undercounts.
    """
    agents = snapshot.agent_list()
    tasks = snapshot.task_list()
    curves = snapshot.curve_list()

    tasks_by_status = {status.name.lower(): 0 for status in TaskStatus}
    for task in tasks:
        try:
            tasks_by_status[TaskStatus(task.status).name.lower()] += 1
        except ValueError:
            tasks_by_status.setdefault("unknown", 0)
            tasks_by_status["unknown"] += 1

    open_bounty = sum(task.bounty for task in tasks if task.status == TaskStatus.OPEN)

    return {
        "total_agents": _chain_counter(registry_stats, "total-agents") or len(agents),
        "active_agents": sum(1 for a in agents if a.status == AgentStatus.ACTIVE),
        "agents_with_vault": sum(1 for a in agents if a.has_vault),
        "total_tasks": _chain_counter(task_stats, "total-tasks") or len(tasks),
        "tasks_by_status": tasks_by_status,
        "open_bounty_total": str(open_bounty),
        "total_curves": _chain_counter(launchpad_stats, "total-curves") or len(curves),
        "graduated_curves": sum(1 for c in curves if c.graduated),
        "total_stx_locked": str(sum(c.stx_reserve for c in curves)),
        "total_trades": sum(c.trade_count for c in curves),
        "fold": snapshot.stats.as_dict(),
    }


def quote(
    snapshot: ProjectionSnapshot,
    curve_id: int,
    side: str,
    amount: int,
    params: CurveParams,
) -> dict[str, Any]:
    """
    Quote a trade against the indexed reserve state of one curve.

    Graduated curves are still quoted from their last indexed reserves and
    flagged with ``graduated``. Trading has moved off the curve by then, so
    such a quote is informational only.
    """
    curve = snapshot.get_curve(curve_id)
    if curve is None:
        raise ServiceError(
            "CURVE_NOT_FOUND",
            f"Curve {curve_id} not found",
            404,
            {"curve_id": curve_id},
        )

    try:
        price_before = marginal_price(curve.stx_reserve, curve.tokens_sold, params)
        if side == "buy":
            buy = buy_quote(amount, curve.stx_reserve, curve.tokens_sold, params)
            amount_out, fee = buy.tokens_out, buy.fee
        else:
            sell = sell_quote(amount, curve.stx_reserve, curve.tokens_sold, params)
            amount_out, fee = sell.stx_out, sell.fee
    except ValueError as exc:
        raise ServiceError(
            "INVALID_PARAMETER",
            str(exc),
            400,
            {"curve_id": curve_id, "side": side, "amount": str(amount)},
        ) from exc

    return {
        "curve_id": curve_id,
        "side": side,
        "source": "index",
        "amount_in": str(amount),
        "amount_out": str(amount_out),
        "fee": str(fee),
        "fee_bps": params.fee_bps,
        "price_before": str(price_before),
        "graduated": curve.graduated,
    }
