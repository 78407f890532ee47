"""
SwarmCast - Data Models

Pydantic models for the swarm pipeline: role catalog entries, per-agent
findings, the consensus verdict and the run-level market analysis.
Field aliases keep the camelCase wire names used by the model prompts.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AgentRole(str, Enum):
    """Deployable specialist roles."""

    NEWSFEED = "Newsfeed"
    SOCIAL_MEDIA = "Social Media"
    REDDIT = "Reddit"
    FINANCE = "Finance"
    MACRO = "Macro"
    ENTERTAINMENT = "Entertainment"


class Prediction(str, Enum):
    """Per-agent predicted market outcome."""

    YES = "YES"
    NO = "NO"
    UNCERTAIN = "UNCERTAIN"


class AgentStatus(str, Enum):
    """Agent instance lifecycle, forward-only."""

    SELECTED = "selected"
    ANALYZING = "analyzing"
    COMPLETED = "completed"

    @property
    def rank(self) -> int:
        return list(AgentStatus).index(self)


class RunStatus(str, Enum):
    """Run-level lifecycle, forward-only."""

    INPUT = "input"
    ORCHESTRATING = "orchestrating"
    SWARMING = "swarming"
    CONSENSUS = "consensus"

    @property
    def rank(self) -> int:
        return list(RunStatus).index(self)


# =============================================================================
# Catalog
# =============================================================================

class RoleCatalogEntry(BaseModel):
    """
    One entry of the static role catalog.

    Only ``role`` and ``description`` are read by the pipeline; ``icon``
    and ``color`` belong to presentation and are carried through untouched.
    """

    role: AgentRole
    description: str
    icon: str = ""
    color: str = ""

    model_config = ConfigDict(frozen=True)


# =============================================================================
# Agent Output
# =============================================================================

class AgentFindings(BaseModel):
    """Structured output of one agent's analysis."""

    key_findings: list[str] = Field(alias="keyFindings", description="Evidence bullets")
    confidence_score: int = Field(alias="confidenceScore", ge=0, le=100)
    prediction: Prediction
    reasoning: str = Field(description="Short rationale")

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    @field_validator("prediction", mode="before")
    @classmethod
    def normalize_prediction(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v


class AgentReport(BaseModel):
    """A role paired with its findings, as fed to consensus synthesis."""

    role: AgentRole
    findings: AgentFindings

    model_config = ConfigDict(frozen=True)


class Consensus(BaseModel):
    """Synthesized swarm verdict."""

    probability: int = Field(ge=0, le=100, description="P(YES) in percent")
    top_reasons: list[str] = Field(alias="topReasons")
    verdict: str

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class RoleSelection(BaseModel):
    """Role-selection response from the completion service."""

    selected_agents: list[str] = Field(
        alias="selectedAgents",
        description="List of 3-6 agent roles best suited for this topic.",
    )
    reasoning: str = Field(default="", description="Why these agents were chosen.")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# =============================================================================
# Run State
# =============================================================================

class AgentInstance(BaseModel):
    """A deployed agent within one run."""

    id: str
    role: AgentRole
    description: str = ""
    icon: str = ""
    color: str = ""
    status: AgentStatus = AgentStatus.SELECTED
    findings: AgentFindings | None = None

    model_config = ConfigDict(frozen=True)


class MarketAnalysis(BaseModel):
    """
    Immutable snapshot of one analysis run.

    The swarm controller replaces its snapshot on every transition; a
    snapshot handed to a consumer never changes afterwards.
    """

    run_id: str
    topic: str = ""
    url: str | None = None
    status: RunStatus = RunStatus.INPUT
    agents: tuple[AgentInstance, ...] = ()
    final_consensus: Consensus | None = None

    model_config = ConfigDict(frozen=True)

    def agent(self, agent_id: str) -> AgentInstance | None:
        """Look up an agent instance by id."""
        for agent in self.agents:
            if agent.id == agent_id:
                return agent
        return None

    @property
    def all_completed(self) -> bool:
        """True once every agent has attached findings."""
        return bool(self.agents) and all(
            a.status == AgentStatus.COMPLETED for a in self.agents
        )

    def reports(self) -> list[AgentReport]:
        """Completed findings in selection order."""
        return [
            AgentReport(role=a.role, findings=a.findings)
            for a in self.agents
            if a.findings is not None
        ]


# =============================================================================
# Sentinels
# =============================================================================

FALLBACK_FINDINGS = AgentFindings(
    key_findings=["Data unavailable", "Analysis inconclusive", "Check source manually"],
    confidence_score=50,
    prediction=Prediction.UNCERTAIN,
    reasoning="Analysis failed due to connection or model error.",
)

FALLBACK_CONSENSUS = Consensus(
    probability=50,
    top_reasons=["Conflicting data", "Insufficient consensus"],
    verdict="Unable to reach consensus.",
)
