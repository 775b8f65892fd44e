"""
Event-sourced projection of agents, tasks and curves.

Five contract event logs are folded, one after another, into three keyed
collections. Each stream is applied strictly in the order received and
the streams are applied in a fixed order (registry, task board, vault,
reputation, launchpad) because later streams only update entities that
earlier ones created. Events pointing at an unknown entity are dropped
and counted, never raised.

Task status is last-applied-wins: the fold does not check lifecycle
transitions, so an out-of-order log can move a task backwards.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum, StrEnum
from types import MappingProxyType
from typing import Any

from indexer_service.models import Agent, AgentStatus, Curve, Reputation, Task, TaskStatus
from indexer_service.services.clarity import parse_event_payload
from indexer_service.services.event_fields import (
    get_optional_principal,
    get_principal,
    get_str,
    get_tag,
    get_uint,
)


class RegistryEvent(StrEnum):
    AGENT_REGISTERED = "agent-registered"
    STATUS_CHANGED = "status-changed"


class TaskBoardEvent(StrEnum):
    TASK_POSTED = "task-posted"
    BID_PLACED = "bid-placed"
    TASK_ASSIGNED = "task-assigned"
    WORK_SUBMITTED = "work-submitted"
    TASK_APPROVED = "task-approved"
    TASK_DISPUTED = "task-disputed"
    TASK_CANCELLED = "task-cancelled"
    TASK_EXPIRED = "task-expired"


class VaultEvent(StrEnum):
    VAULT_CREATED = "vault-created"


class ReputationEvent(StrEnum):
    TASK_COMPLETED_RECORDED = "task-completed-recorded"
    AGENT_RATED = "agent-rated"
    AGENT_ENDORSED = "agent-endorsed"
    DISPUTE_RECORDED = "dispute-recorded"


class LaunchpadEvent(StrEnum):
    CURVE_LAUNCHED = "curve-launched"
    TOKEN_BOUGHT = "token-bought"
    TOKEN_SOLD = "token-sold"
    CURVE_GRADUATED = "curve-graduated"


class Outcome(Enum):
    """What a fold rule did with one event."""

    APPLIED = "applied"
    ORPHAN = "orphan"
    IGNORED = "ignored"


# Status written by each task-board event that only moves the status
_TASK_STATUS_EVENTS: dict[TaskBoardEvent, TaskStatus] = {
    TaskBoardEvent.WORK_SUBMITTED: TaskStatus.SUBMITTED,
    TaskBoardEvent.TASK_APPROVED: TaskStatus.COMPLETED,
    TaskBoardEvent.TASK_DISPUTED: TaskStatus.DISPUTED,
    TaskBoardEvent.TASK_CANCELLED: TaskStatus.CANCELLED,
    TaskBoardEvent.TASK_EXPIRED: TaskStatus.EXPIRED,
}


@dataclass
class FoldStats:
    """Counters describing how a fold treated its input."""

    records_seen: int = 0
    events_applied: int = 0
    skipped_records: int = 0
    unknown_events: int = 0
    dropped_orphan_events: int = 0
    ignored_events: int = 0

    def as_dict(self) -> dict[str, int]:
        return dataclasses.asdict(self)


@dataclass
class ContractStreams:
    """Raw event records of the five contracts, each in log order."""

    registry: list[dict[str, Any]] = field(default_factory=list)
    task_board: list[dict[str, Any]] = field(default_factory=list)
    vault: list[dict[str, Any]] = field(default_factory=list)
    reputation: list[dict[str, Any]] = field(default_factory=list)
    launchpad: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class ProjectionSnapshot:
    """Read-only result of one full fold."""

    agents: Mapping[str, Agent]
    tasks: Mapping[int, Task]
    curves: Mapping[int, Curve]
    stats: FoldStats
    built_at: float

    def agent_list(self) -> list[Agent]:
        return list(self.agents.values())

    def task_list(self) -> list[Task]:
        return list(self.tasks.values())

    def curve_list(self) -> list[Curve]:
        return list(self.curves.values())

    def get_agent(self, principal: str) -> Agent | None:
        return self.agents.get(principal)

    def get_task(self, task_id: int) -> Task | None:
        return self.tasks.get(task_id)

    def get_curve(self, curve_id: int) -> Curve | None:
        return self.curves.get(curve_id)


Handler = Callable[[dict[str, Any]], Outcome]


class _Fold:
    """Mutable working state of a single fold."""

    def __init__(self) -> None:
        self.agents: dict[str, Agent] = {}
        self.tasks: dict[int, Task] = {}
        self.curves: dict[int, Curve] = {}
        self.stats = FoldStats()

    def apply_stream(
        self,
        records: list[dict[str, Any]],
        kinds: type[StrEnum],
        handlers: Mapping[Any, Handler],
    ) -> None:
        for record in records:
            self.stats.records_seen += 1
            payload = parse_event_payload(record)
            tag = get_tag(payload) if payload is not None else None
            if payload is None or tag is None:
                self.stats.skipped_records += 1
                continue
            try:
                kind = kinds(tag)
            except ValueError:
                self.stats.unknown_events += 1
                continue

            outcome = handlers[kind](payload)
            if outcome is Outcome.APPLIED:
                self.stats.events_applied += 1
            elif outcome is Outcome.ORPHAN:
                self.stats.dropped_orphan_events += 1
            else:
                self.stats.ignored_events += 1

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------
    def agent_registered(self, data: dict[str, Any]) -> Outcome:
        principal = get_principal(data, "owner")
        if not principal:
            return Outcome.IGNORED
        existing = self.agents.get(principal)
        if existing is not None:
            self.agents[principal] = dataclasses.replace(existing, status=AgentStatus.ACTIVE)
            return Outcome.APPLIED
        self.agents[principal] = Agent(
            principal=principal,
            name=get_str(data, "name", "Unknown"),
            status=AgentStatus.ACTIVE,
            registered_at=get_uint(data, "registered-at"),
            price_per_task=get_uint(data, "price-per-task"),
        )
        return Outcome.APPLIED

    def status_changed(self, data: dict[str, Any]) -> Outcome:
        agent = self.agents.get(get_principal(data, "owner"))
        if agent is None:
            return Outcome.ORPHAN
        status = get_uint(data, "status") or get_uint(data, "new-status") or AgentStatus.ACTIVE
        self.agents[agent.principal] = dataclasses.replace(agent, status=int(status))
        return Outcome.APPLIED

    # ------------------------------------------------------------------
    # Task board
    # ------------------------------------------------------------------
    def task_posted(self, data: dict[str, Any]) -> Outcome:
        task_id = get_uint(data, "task-id")
        if task_id in self.tasks:
            return Outcome.IGNORED
        self.tasks[task_id] = Task(
            id=task_id,
            poster=get_principal(data, "poster"),
            title=get_str(data, "title"),
            bounty=get_uint(data, "bounty"),
            status=TaskStatus.OPEN,
            created_at=get_uint(data, "created-at"),
            deadline=get_uint(data, "deadline"),
        )
        return Outcome.APPLIED

    def bid_placed(self, data: dict[str, Any]) -> Outcome:
        task = self.tasks.get(get_uint(data, "task-id"))
        if task is None:
            return Outcome.ORPHAN
        self.tasks[task.id] = dataclasses.replace(task, bid_count=task.bid_count + 1)
        return Outcome.APPLIED

    def task_assigned(self, data: dict[str, Any]) -> Outcome:
        task = self.tasks.get(get_uint(data, "task-id"))
        if task is None:
            return Outcome.ORPHAN
        self.tasks[task.id] = dataclasses.replace(
            task,
            status=TaskStatus.ASSIGNED,
            assigned_to=get_optional_principal(data, "agent") or "",
        )
        return Outcome.APPLIED

    def task_status_event(self, kind: TaskBoardEvent) -> Handler:
        status = _TASK_STATUS_EVENTS[kind]

        def handler(data: dict[str, Any]) -> Outcome:
            task = self.tasks.get(get_uint(data, "task-id"))
            if task is None:
                return Outcome.ORPHAN
            self.tasks[task.id] = dataclasses.replace(task, status=status)
            return Outcome.APPLIED

        return handler

    # ------------------------------------------------------------------
    # Vault
    # ------------------------------------------------------------------
    def vault_created(self, data: dict[str, Any]) -> Outcome:
        agent = self.agents.get(get_principal(data, "owner"))
        if agent is None:
            return Outcome.ORPHAN
        self.agents[agent.principal] = dataclasses.replace(agent, has_vault=True)
        return Outcome.APPLIED

    # ------------------------------------------------------------------
    # Reputation
    # ------------------------------------------------------------------
    def _update_reputation(
        self,
        data: dict[str, Any],
        *,
        initialize: bool,
        update: Callable[[Reputation], Reputation],
    ) -> Outcome:
        agent = self.agents.get(get_principal(data, "agent"))
        if agent is None:
            return Outcome.ORPHAN
        reputation = agent.reputation
        if reputation is None:
            if not initialize:
                # Completions and disputes recorded before the first rating
                # or endorsement are not counted.
                return Outcome.IGNORED
            reputation = Reputation()
        self.agents[agent.principal] = dataclasses.replace(agent, reputation=update(reputation))
        return Outcome.APPLIED

    def task_completed_recorded(self, data: dict[str, Any]) -> Outcome:
        return self._update_reputation(
            data,
            initialize=False,
            update=lambda r: dataclasses.replace(r, tasks_completed=r.tasks_completed + 1),
        )

    def agent_rated(self, data: dict[str, Any]) -> Outcome:
        score = get_uint(data, "score")
        return self._update_reputation(
            data,
            initialize=True,
            update=lambda r: dataclasses.replace(
                r,
                total_score=r.total_score + score,
                rating_count=r.rating_count + 1,
            ),
        )

    def agent_endorsed(self, data: dict[str, Any]) -> Outcome:
        return self._update_reputation(
            data,
            initialize=True,
            update=lambda r: dataclasses.replace(r, endorsement_count=r.endorsement_count + 1),
        )

    def dispute_recorded(self, data: dict[str, Any]) -> Outcome:
        return self._update_reputation(
            data,
            initialize=False,
            update=lambda r: dataclasses.replace(r, tasks_disputed=r.tasks_disputed + 1),
        )

    # ------------------------------------------------------------------
    # Launchpad
    # ------------------------------------------------------------------
    def curve_launched(self, data: dict[str, Any]) -> Outcome:
        curve_id = get_uint(data, "curve-id")
        if curve_id in self.curves:
            return Outcome.IGNORED
        self.curves[curve_id] = Curve(
            id=curve_id,
            creator=get_principal(data, "creator"),
            name=get_str(data, "name"),
            symbol=get_str(data, "symbol"),
            stx_reserve=0,
            tokens_sold=0,
            graduated=False,
            created_at=get_uint(data, "created-at"),
        )
        return Outcome.APPLIED

    def token_bought(self, data: dict[str, Any]) -> Outcome:
        curve = self.curves.get(get_uint(data, "curve-id"))
        if curve is None:
            return Outcome.ORPHAN
        self.curves[curve.id] = dataclasses.replace(
            curve,
            trade_count=curve.trade_count + 1,
            stx_reserve=get_uint(data, "new-stx-reserve"),
            tokens_sold=get_uint(data, "new-tokens-sold", curve.tokens_sold),
        )
        return Outcome.APPLIED

    def token_sold(self, data: dict[str, Any]) -> Outcome:
        curve = self.curves.get(get_uint(data, "curve-id"))
        if curve is None:
            return Outcome.ORPHAN
        self.curves[curve.id] = dataclasses.replace(
            curve,
            trade_count=curve.trade_count + 1,
            stx_reserve=get_uint(data, "new-stx-reserve"),
        )
        return Outcome.APPLIED

    def curve_graduated(self, data: dict[str, Any]) -> Outcome:
        curve = self.curves.get(get_uint(data, "curve-id"))
        if curve is None:
            return Outcome.ORPHAN
        self.curves[curve.id] = dataclasses.replace(curve, graduated=True)
        return Outcome.APPLIED

    # ------------------------------------------------------------------
    # Dispatch tables
    # ------------------------------------------------------------------
    def registry_handlers(self) -> dict[RegistryEvent, Handler]:
        return {
            RegistryEvent.AGENT_REGISTERED: self.agent_registered,
            RegistryEvent.STATUS_CHANGED: self.status_changed,
        }

    def task_board_handlers(self) -> dict[TaskBoardEvent, Handler]:
        handlers: dict[TaskBoardEvent, Handler] = {
            TaskBoardEvent.TASK_POSTED: self.task_posted,
            TaskBoardEvent.BID_PLACED: self.bid_placed,
            TaskBoardEvent.TASK_ASSIGNED: self.task_assigned,
        }
        for kind in _TASK_STATUS_EVENTS:
            handlers[kind] = self.task_status_event(kind)
        return handlers

    def vault_handlers(self) -> dict[VaultEvent, Handler]:
        return {VaultEvent.VAULT_CREATED: self.vault_created}

    def reputation_handlers(self) -> dict[ReputationEvent, Handler]:
        return {
            ReputationEvent.TASK_COMPLETED_RECORDED: self.task_completed_recorded,
            ReputationEvent.AGENT_RATED: self.agent_rated,
            ReputationEvent.AGENT_ENDORSED: self.agent_endorsed,
            ReputationEvent.DISPUTE_RECORDED: self.dispute_recorded,
        }

    def launchpad_handlers(self) -> dict[LaunchpadEvent, Handler]:
        return {
            LaunchpadEvent.CURVE_LAUNCHED: self.curve_launched,
            LaunchpadEvent.TOKEN_BOUGHT: self.token_bought,
            LaunchpadEvent.TOKEN_SOLD: self.token_sold,
            LaunchpadEvent.CURVE_GRADUATED: self.curve_graduated,
        }


def fold_events(streams: ContractStreams, built_at: float = 0.0) -> ProjectionSnapshot:
    """Fold the five event streams from empty state into a snapshot."""
    fold = _Fold()
    fold.apply_stream(streams.registry, RegistryEvent, fold.registry_handlers())
    fold.apply_stream(streams.task_board, TaskBoardEvent, fold.task_board_handlers())
    fold.apply_stream(streams.vault, VaultEvent, fold.vault_handlers())
    fold.apply_stream(streams.reputation, ReputationEvent, fold.reputation_handlers())
    fold.apply_stream(streams.launchpad, LaunchpadEvent, fold.launchpad_handlers())

    return ProjectionSnapshot(
        agents=MappingProxyType(fold.agents),
        tasks=MappingProxyType(fold.tasks),
        curves=MappingProxyType(fold.curves),
        stats=fold.stats,
        built_at=built_at,
    )
