"""Pydantic response models for the API.

Field names are snake_case in Python and camelCase on the wire. Amounts
that can exceed 2**53 are serialized as decimal strings.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base model emitting camelCase keys."""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Health / Error
# ---------------------------------------------------------------------------
class HealthResponse(BaseModel):
    """Response model for GET /health."""

    model_config = ConfigDict(extra="forbid")
    status: Literal["ok"]
    uptime_seconds: float
    started_at: str
    last_build_at: str | None
    snapshot_age_seconds: float | None
    rebuild_count: int


class ErrorResponse(BaseModel):
    """Standard error response model."""

    model_config = ConfigDict(extra="forbid")
    error: str
    message: str
    details: dict[str, object]


# ---------------------------------------------------------------------------
# Indexed collections
# ---------------------------------------------------------------------------
class ReputationItem(ApiModel):
    total_score: int
    rating_count: int
    tasks_completed: int
    tasks_disputed: int
    endorsement_count: int


class AgentItem(ApiModel):
    principal: str
    name: str
    status: int
    registered_at: int
    price_per_task: str
    reputation: ReputationItem | None
    has_vault: bool


class TaskItem(ApiModel):
    id: int
    poster: str
    title: str
    bounty: str
    status: int
    created_at: int
    deadline: int
    assigned_to: str | None
    bid_count: int


class CurveItem(ApiModel):
    id: int
    creator: str
    name: str
    symbol: str
    stx_reserve: str
    tokens_sold: str
    graduated: bool
    created_at: int
    trade_count: int


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------
class LeaderboardEntry(ApiModel):
    rank: int
    principal: str
    name: str
    status: int
    average_score: float
    rating_count: int
    tasks_completed: int
    composite_score: float


class FoldStatsItem(ApiModel):
    records_seen: int
    events_applied: int
    skipped_records: int
    unknown_events: int
    dropped_orphan_events: int
    ignored_events: int


class StatsResponse(ApiModel):
    total_agents: int
    active_agents: int
    agents_with_vault: int
    total_tasks: int
    tasks_by_status: dict[str, int]
    open_bounty_total: str
    total_curves: int
    graduated_curves: int
    total_stx_locked: str
    total_trades: int
    fold: FoldStatsItem


class QuoteResponse(ApiModel):
    curve_id: int
    side: Literal["buy", "sell"]
    source: Literal["index", "chain"]
    amount_in: str
    amount_out: str
    fee: str
    fee_bps: int
    price_before: str
    graduated: bool


# ---------------------------------------------------------------------------
# Detail views (live read-only calls)
# ---------------------------------------------------------------------------
class VaultDetail(ApiModel):
    balance: str
    per_tx_cap: str
    daily_cap: str
    daily_spent: str
    last_reset_block: int
    whitelist_only: bool
    created_at: int


class CurveDetail(ApiModel):
    id: int
    creator: str
    name: str
    symbol: str
    total_supply: str
    virtual_stx: str
    stx_reserve: str
    tokens_sold: str
    graduation_stx: str
    fee_bps: int
    accrued_fees: str
    graduated: bool
    created_at: int
    creator_share_bps: int
    price: str | None
    graduation_progress: int


class BalanceResponse(ApiModel):
    curve_id: int
    holder: str
    balance: str


class AgentDetail(ApiModel):
    principal: str
    name: str
    description_url: str
    status: int
    registered_at: int
    total_tasks: int
    total_earned: str
    price_per_task: str
    accepts_stx: bool
    accepts_sip010: bool
    reputation: ReputationItem | None
    average_score: int | None
    vault: VaultDetail | None
    capabilities: list[str]
    curve: CurveDetail | None


class BidDetail(ApiModel):
    bidder: str
    price: str
    message_url: str
    bid_at: int


class TaskDetail(ApiModel):
    id: int
    poster: str
    title: str
    description_url: str
    bounty: str
    fee: str
    assigned_to: str | None
    status: int
    created_at: int
    deadline: int
    submitted_at: int
    completed_at: int
    result_url: str
    bid_count: int
    bids: list[BidDetail]
