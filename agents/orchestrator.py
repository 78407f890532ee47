"""
SwarmCast - Agent Orchestrator

Selects which specialist roles to deploy for a topic. The completion
service proposes 3-6 roles; the proposal is filtered against the catalog
and falls back to a fixed catalog prefix when the call cannot be used.
"""

from __future__ import annotations

from collections.abc import Sequence

from agents.parsing import ParseError, decode
from swarmcast.config import SwarmConfig, settings
from swarmcast.llm import CompletionClient, CompletionError
from swarmcast.logging import get_logger
from swarmcast.models import AgentRole, RoleSelection

logger = get_logger(__name__, component="orchestrator")


ORCHESTRATOR_PROMPT = """You are the Orchestrator for a Prediction Market Analysis Swarm.
Topic/Market: "{topic}"

Available Agents:
{roster}

Task: Select {min_agents} to {max_agents} agents from the list that would provide the most relevant and diverse perspectives to predict the outcome of this market.
Use the agent names exactly as listed.
Return JSON with "selectedAgents" (list of agent names) and "reasoning" (why these agents were chosen)."""


class AgentOrchestrator:
    """Chooses the subset of catalog roles to run for a topic."""

    def __init__(
        self,
        client: CompletionClient,
        config: SwarmConfig | None = None,
        temperature: float | None = None,
        descriptions: dict[AgentRole, str] | None = None,
    ) -> None:
        self.client = client
        self.config = config or settings.swarm
        self.temperature = (
            settings.llm.selection_temperature if temperature is None else temperature
        )
        self.descriptions = descriptions or {}

    def fallback(self, available_roles: Sequence[AgentRole]) -> list[AgentRole]:
        """Deterministic default: the first roles in catalog order."""
        return list(available_roles[: self.config.fallback_agent_count])

    def build_prompt(self, topic: str, available_roles: Sequence[AgentRole]) -> str:
        roster = "\n".join(
            f"- {role.value}: {self.descriptions[role]}"
            if role in self.descriptions
            else f"- {role.value}"
            for role in available_roles
        )
        return ORCHESTRATOR_PROMPT.format(
            topic=topic,
            roster=roster,
            min_agents=self.config.min_agents,
            max_agents=self.config.max_agents,
        )

    async def select(
        self, topic: str, available_roles: Sequence[AgentRole]
    ) -> list[AgentRole]:
        """
        Pick the roles to deploy.

        Args:
            topic: Market question (non-empty, not re-validated)
            available_roles: Catalog roles in catalog order (non-empty)

        Returns:
            Ordered roles, each a member of ``available_roles``
        """
        prompt = self.build_prompt(topic, available_roles)

        try:
            text = await self.client.complete(
                prompt, schema=RoleSelection, temperature=self.temperature
            )
        except CompletionError as e:
            logger.error("selection_failed", error=str(e))
            return self.fallback(available_roles)

        result = decode(text, RoleSelection)
        if isinstance(result, ParseError):
            logger.warning(
                "selection_unparsable", reason=result.reason, raw=result.preview()
            )
            return self.fallback(available_roles)

        selected = self._filter(result.value.selected_agents, available_roles)
        if not selected:
            logger.warning(
                "selection_empty", proposed=result.value.selected_agents
            )
            return self.fallback(available_roles)

        logger.info(
            "agents_selected",
            roles=[r.value for r in selected],
            reasoning=result.value.reasoning,
        )
        return selected

    def _filter(
        self, proposed: Sequence[str], available_roles: Sequence[AgentRole]
    ) -> list[AgentRole]:
        """Keep proposed names present in the catalog, deduplicated, capped."""
        by_name = {role.value: role for role in available_roles}
        selected: list[AgentRole] = []
        for name in proposed:
            role = by_name.get(name.strip())
            if role is None:
                logger.debug("unknown_role_dropped", name=name)
                continue
            if role not in selected:
                selected.append(role)
        return selected[: self.config.max_agents]
