"""
SwarmCast - Swarm State Machine

Pure transition functions over ``MarketAnalysis`` snapshots. The swarm
controller is the only caller; it feeds actions through a single queue
and replaces its snapshot with the reducer's result.

Run-level transitions (forward-only):
    input → orchestrating → swarming → consensus

Agent-level transitions (forward-only, keyed by agent id):
    selected → analyzing → completed

Every action carries the run id it was issued for. Actions from any
other run are ignored, which is how late results from an abandoned run
are discarded after a reset.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import dataclass

from swarmcast.models import (
    AgentFindings,
    AgentInstance,
    AgentStatus,
    Consensus,
    MarketAnalysis,
    RoleCatalogEntry,
    RunStatus,
)


class InvalidTransition(Exception):
    """An action that would move a run or agent backwards or out of order."""


# =============================================================================
# Actions
# =============================================================================

@dataclass(frozen=True)
class TopicSubmitted:
    run_id: str
    topic: str
    url: str | None = None


@dataclass(frozen=True)
class AgentsSelected:
    run_id: str
    entries: tuple[RoleCatalogEntry, ...]


@dataclass(frozen=True)
class AgentStarted:
    run_id: str
    agent_id: str


@dataclass(frozen=True)
class AgentCompleted:
    run_id: str
    agent_id: str
    findings: AgentFindings


@dataclass(frozen=True)
class ConsensusStarted:
    run_id: str


@dataclass(frozen=True)
class ConsensusReached:
    run_id: str
    consensus: Consensus


Action = (
    TopicSubmitted
    | AgentsSelected
    | AgentStarted
    | AgentCompleted
    | ConsensusStarted
    | ConsensusReached
)


# =============================================================================
# Reducer
# =============================================================================

def new_run_id() -> str:
    return uuid.uuid4().hex


def initial_state(run_id: str | None = None) -> MarketAnalysis:
    """A fresh run waiting for a topic."""
    return MarketAnalysis(run_id=run_id or new_run_id())


def build_agents(entries: Sequence[RoleCatalogEntry]) -> tuple[AgentInstance, ...]:
    """Materialize agent instances; ids are positions in selection order."""
    return tuple(
        AgentInstance(
            id=str(idx),
            role=entry.role,
            description=entry.description,
            icon=entry.icon,
            color=entry.color,
            status=AgentStatus.SELECTED,
        )
        for idx, entry in enumerate(entries)
    )


def _require_status(state: MarketAnalysis, expected: RunStatus, action: Action) -> None:
    if state.status != expected:
        raise InvalidTransition(
            f"{type(action).__name__} requires run status '{expected.value}', "
            f"got '{state.status.value}'"
        )


def _update_agent(
    state: MarketAnalysis,
    agent_id: str,
    status: AgentStatus,
    findings: AgentFindings | None = None,
) -> MarketAnalysis:
    """Merge one agent's update into the snapshot, leaving siblings untouched."""
    agent = state.agent(agent_id)
    if agent is None:
        raise InvalidTransition(f"Unknown agent id: {agent_id}")
    if status.rank <= agent.status.rank:
        raise InvalidTransition(
            f"Agent {agent_id} cannot move from '{agent.status.value}' to '{status.value}'"
        )

    changes: dict = {"status": status}
    if findings is not None:
        changes["findings"] = findings
    updated = agent.model_copy(update=changes)

    agents = tuple(updated if a.id == agent_id else a for a in state.agents)
    return state.model_copy(update={"agents": agents})


def reduce(state: MarketAnalysis, action: Action) -> MarketAnalysis:
    """
    Apply one action and return the next snapshot.

    Stale actions (different run id) return ``state`` unchanged.

    Raises:
        InvalidTransition: If the action is illegal in the current state
    """
    if action.run_id != state.run_id:
        return state

    if isinstance(action, TopicSubmitted):
        _require_status(state, RunStatus.INPUT, action)
        return state.model_copy(
            update={
                "topic": action.topic,
                "url": action.url,
                "status": RunStatus.ORCHESTRATING,
            }
        )

    if isinstance(action, AgentsSelected):
        _require_status(state, RunStatus.ORCHESTRATING, action)
        return state.model_copy(
            update={
                "status": RunStatus.SWARMING,
                "agents": build_agents(action.entries),
            }
        )

    if isinstance(action, AgentStarted):
        _require_status(state, RunStatus.SWARMING, action)
        return _update_agent(state, action.agent_id, AgentStatus.ANALYZING)

    if isinstance(action, AgentCompleted):
        _require_status(state, RunStatus.SWARMING, action)
        return _update_agent(
            state, action.agent_id, AgentStatus.COMPLETED, action.findings
        )

    if isinstance(action, ConsensusStarted):
        _require_status(state, RunStatus.SWARMING, action)
        if not state.all_completed:
            raise InvalidTransition("Consensus requires every agent to be completed")
        return state.model_copy(update={"status": RunStatus.CONSENSUS})

    if isinstance(action, ConsensusReached):
        _require_status(state, RunStatus.CONSENSUS, action)
        if state.final_consensus is not None:
            raise InvalidTransition("Consensus already attached")
        return state.model_copy(update={"final_consensus": action.consensus})

    raise InvalidTransition(f"Unknown action: {action!r}")
