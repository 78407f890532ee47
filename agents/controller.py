"""
SwarmCast - Swarm Controller

Owns the lifecycle of one market analysis run and sequences the three
pipeline stages:

    AgentOrchestrator.select → AgentAnalyst.analyze (per role) → ConsensusEngine.synthesize

All state changes go through ``agents.state.reduce``. Concurrent agent
completions are funnelled through one asyncio.Queue per run so that
updates are applied one at a time, each touching only its own agent.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Sequence
from typing import Any

from agents.analyst import AgentAnalyst
from agents.consensus import ConsensusEngine
from agents.orchestrator import AgentOrchestrator
from agents.state import (
    Action,
    AgentCompleted,
    AgentsSelected,
    AgentStarted,
    ConsensusReached,
    ConsensusStarted,
    TopicSubmitted,
    initial_state,
    new_run_id,
    reduce,
)
from swarmcast.catalog import AVAILABLE_AGENTS, available_roles, get_entry
from swarmcast.config import SwarmConfig, settings
from swarmcast.llm import CompletionClient
from swarmcast.logging import bind_run_context, clear_run_context, get_swarm_logger
from swarmcast.models import (
    FALLBACK_FINDINGS,
    AgentFindings,
    AgentInstance,
    MarketAnalysis,
    RoleCatalogEntry,
)

logger = get_swarm_logger()

# Returned by _until_reset when the run is abandoned first
ABANDONED = object()


class SwarmController:
    """
    Coordinates one analysis run at a time.

    Provides:
        - ``run(topic)``: async stream of immutable state snapshots
        - ``reset()``: abandon the current run and return to a fresh input state
        - ``snapshot``: the current state

    A reset does not cancel external calls already in flight; their
    results arrive tagged with the old run id and are discarded.
    """

    def __init__(
        self,
        client: CompletionClient | None = None,
        catalog: Sequence[RoleCatalogEntry] = AVAILABLE_AGENTS,
        orchestrator: AgentOrchestrator | None = None,
        analyst: AgentAnalyst | None = None,
        consensus: ConsensusEngine | None = None,
        config: SwarmConfig | None = None,
    ) -> None:
        self.catalog = tuple(catalog)
        self.config = config or settings.swarm

        needs_client = orchestrator is None or analyst is None or consensus is None
        if client is None and needs_client:
            client = CompletionClient()

        self.orchestrator = orchestrator or AgentOrchestrator(
            client,
            config=self.config,
            descriptions={e.role: e.description for e in self.catalog},
        )
        self.analyst = analyst or AgentAnalyst(client)
        self.consensus = consensus or ConsensusEngine(client)

        self._state = initial_state()
        self._abandoned: asyncio.Event | None = None
        self._inflight: set[asyncio.Task[Any]] = set()

    @property
    def snapshot(self) -> MarketAnalysis:
        return self._state

    def reset(self) -> MarketAnalysis:
        """
        Discard the current run and start over in the input state.

        An active ``run()`` stream ends immediately; its pending external
        calls keep running and their results are dropped.
        """
        previous = self._state
        self._abandon()
        self._state = initial_state()
        logger.info(
            "swarm_reset",
            abandoned_run=previous.run_id,
            abandoned_status=previous.status.value,
            inflight=len(self._inflight),
        )
        clear_run_context()
        return self._state

    def _abandon(self) -> None:
        if self._abandoned is not None:
            self._abandoned.set()
            self._abandoned = None

    def _track(self, task: asyncio.Task[Any]) -> None:
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _until_reset(
        self, aw: Awaitable[Any], abandoned: asyncio.Event, *, detach: bool = True
    ) -> Any:
        """
        Await ``aw`` unless the run is abandoned first, then return ABANDONED.

        Detached work (external calls) is left running when the run is
        abandoned; local waits are cancelled.
        """
        task = asyncio.ensure_future(aw)
        if detach:
            self._track(task)
        waiter = asyncio.ensure_future(abandoned.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()

        if abandoned.is_set():
            if not detach:
                task.cancel()
            return ABANDONED
        return task.result()

    def _apply(self, action: Action) -> bool:
        """Reduce one action into the current state; False if it was stale."""
        next_state = reduce(self._state, action)
        if next_state is self._state:
            logger.debug(
                "stale_update_ignored",
                action=type(action).__name__,
                action_run=action.run_id,
                current_run=self._state.run_id,
            )
            return False
        self._state = next_state
        return True

    def _is_current(self, run_id: str) -> bool:
        return self._state.run_id == run_id

    async def run(self, topic: str, url: str | None = None) -> AsyncIterator[MarketAnalysis]:
        """
        Run the full pipeline for ``topic``, yielding a snapshot after
        every transition.

        The stream ends once the consensus is attached, or as soon as
        ``reset()`` (or another ``run()``) abandons it.

        Raises:
            ValueError: If the topic is blank
        """
        topic = topic.strip()
        if not topic:
            raise ValueError("Topic must not be empty")

        self._abandon()
        abandoned = self._abandoned = asyncio.Event()
        run_id = new_run_id()
        self._state = initial_state(run_id)
        bind_run_context(run_id)
        logger.info("swarm_started", topic=topic)

        self._apply(TopicSubmitted(run_id=run_id, topic=topic, url=url))
        yield self._state

        # 1. Orchestrate
        roles = await self._until_reset(
            self.orchestrator.select(topic, available_roles(self.catalog)), abandoned
        )
        if roles is ABANDONED or not self._is_current(run_id):
            return
        entries = tuple(get_entry(role, self.catalog) for role in roles)
        self._apply(AgentsSelected(run_id=run_id, entries=entries))
        logger.info("swarm_deployed", roles=[e.role.value for e in entries])
        yield self._state

        # 2. Swarm execution
        if self.config.execution_mode == "staggered":
            stream = self._run_staggered(run_id, topic, abandoned)
        else:
            stream = self._run_parallel(run_id, topic, abandoned)
        async for snapshot in stream:
            yield snapshot
        if not self._is_current(run_id):
            return

        # 3. Consensus
        self._apply(ConsensusStarted(run_id=run_id))
        yield self._state

        verdict = await self._until_reset(
            self.consensus.synthesize(topic, self._state.reports()), abandoned
        )
        if verdict is ABANDONED:
            return
        if not self._apply(ConsensusReached(run_id=run_id, consensus=verdict)):
            return
        logger.info(
            "swarm_complete",
            probability=verdict.probability,
            agents=len(self._state.agents),
        )
        yield self._state

    async def _analyze(self, agent: AgentInstance, topic: str) -> AgentFindings:
        try:
            return await self.analyst.analyze(agent.role, topic)
        except Exception:
            logger.exception("analyst_crashed", role=agent.role.value, agent_id=agent.id)
            return FALLBACK_FINDINGS

    async def _run_parallel(
        self, run_id: str, topic: str, abandoned: asyncio.Event
    ) -> AsyncIterator[MarketAnalysis]:
        """Issue every agent call at once; apply updates as they arrive."""
        updates: asyncio.Queue[Action] = asyncio.Queue()
        agents = self._state.agents

        async def worker(agent: AgentInstance) -> None:
            await updates.put(AgentStarted(run_id=run_id, agent_id=agent.id))
            findings = await self._analyze(agent, topic)
            await updates.put(
                AgentCompleted(run_id=run_id, agent_id=agent.id, findings=findings)
            )

        for agent in agents:
            self._track(asyncio.create_task(worker(agent)))

        pending = len(agents)
        while pending:
            action = await self._until_reset(updates.get(), abandoned, detach=False)
            if action is ABANDONED:
                return
            if isinstance(action, AgentCompleted):
                pending -= 1
            if not self._apply(action):
                return
            yield self._state

    async def _run_staggered(
        self, run_id: str, topic: str, abandoned: asyncio.Event
    ) -> AsyncIterator[MarketAnalysis]:
        """One agent at a time in selection order, each held for a minimum duration."""
        loop = asyncio.get_running_loop()

        for agent in self._state.agents:
            started = loop.time()
            if not self._apply(AgentStarted(run_id=run_id, agent_id=agent.id)):
                return
            yield self._state

            findings = await self._until_reset(self._analyze(agent, topic), abandoned)
            if findings is ABANDONED:
                return
            remaining = self.config.min_agent_seconds - (loop.time() - started)
            if remaining > 0:
                held = await self._until_reset(
                    asyncio.sleep(remaining), abandoned, detach=False
                )
                if held is ABANDONED:
                    return

            if not self._apply(
                AgentCompleted(run_id=run_id, agent_id=agent.id, findings=findings)
            ):
                return
            yield self._state


async def run_market_analysis(
    topic: str,
    url: str | None = None,
    controller: SwarmController | None = None,
) -> AsyncIterator[MarketAnalysis]:
    """
    Pipeline entry point: stream snapshots of one analysis run.

    Usage:
        async for snapshot in run_market_analysis("Will Bitcoin hit $100k in 2024?"):
            print(snapshot.status, [a.status for a in snapshot.agents])
    """
    controller = controller or SwarmController()
    async for snapshot in controller.run(topic, url=url):
        yield snapshot
