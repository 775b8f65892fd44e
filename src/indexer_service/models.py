"""Indexed entity records and their status enumerations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class AgentStatus(IntEnum):
    """Registry status codes."""

    ACTIVE = 1
    PAUSED = 2
    DEREGISTERED = 3


class TaskStatus(IntEnum):
    """Task board status codes."""

    OPEN = 1
    ASSIGNED = 2
    SUBMITTED = 3
    COMPLETED = 4
    DISPUTED = 5
    CANCELLED = 6
    EXPIRED = 7


@dataclass(frozen=True)
class Reputation:
    """Aggregate of every reputation-affecting event for one agent."""

    total_score: int = 0
    rating_count: int = 0
    tasks_completed: int = 0
    tasks_disputed: int = 0
    endorsement_count: int = 0

    @property
    def average_score(self) -> float:
        if self.rating_count == 0:
            return 0.0
        return self.total_score / self.rating_count


@dataclass(frozen=True)
class Agent:
    """A registered agent, keyed by principal."""

    principal: str
    name: str
    status: int
    registered_at: int
    price_per_task: int
    reputation: Reputation | None = None
    has_vault: bool = False


@dataclass(frozen=True)
class Task:
    """A task posted to the task board, keyed by id."""

    id: int
    poster: str
    title: str
    bounty: int
    status: int
    created_at: int
    deadline: int
    assigned_to: str | None = None
    bid_count: int = 0


@dataclass(frozen=True)
class Curve:
    """A launchpad bonding curve, keyed by id."""

    id: int
    creator: str
    name: str
    symbol: str
    stx_reserve: int
    tokens_sold: int
    graduated: bool
    created_at: int
    trade_count: int = 0
