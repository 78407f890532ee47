"""
SwarmCast - Specialist Analyst Agent

Runs one role's analysis of a market topic with web-search augmentation.
Always resolves to an ``AgentFindings``; failures yield the fallback
findings.
"""

from __future__ import annotations

from agents.parsing import ParseError, decode
from swarmcast.config import settings
from swarmcast.llm import CompletionClient, CompletionError
from swarmcast.logging import get_logger
from swarmcast.models import FALLBACK_FINDINGS, AgentFindings, AgentRole

logger = get_logger(__name__, component="analyst")


ANALYST_PROMPT = """You are the {role} Agent.
Market/Topic: "{topic}"

Task: Analyze this topic from the perspective of your role ({role}).
Use web search to find recent and relevant information.
Provide 3 key findings, a confidence score (0-100), and a prediction (YES/NO/UNCERTAIN).

IMPORTANT: Return the result as a valid JSON object (no markdown) with this structure:
{{
  "keyFindings": ["string"],
  "confidenceScore": number,
  "prediction": "YES" | "NO" | "UNCERTAIN",
  "reasoning": "string"
}}"""


class AgentAnalyst:
    """
    Agent Runner for a single role.

    Search augmentation rules out a service-side response schema, so the
    JSON shape is requested in the prompt and enforced by ``decode``.
    """

    def __init__(self, client: CompletionClient, temperature: float | None = None) -> None:
        self.client = client
        self.temperature = (
            settings.llm.analysis_temperature if temperature is None else temperature
        )

    async def analyze(self, role: AgentRole, topic: str) -> AgentFindings:
        """Analyze ``topic`` as ``role``; never raises."""
        prompt = ANALYST_PROMPT.format(role=role.value, topic=topic)

        try:
            text = await self.client.complete(
                prompt, search=True, temperature=self.temperature
            )
        except CompletionError as e:
            logger.error("analysis_failed", role=role.value, error=str(e))
            return FALLBACK_FINDINGS

        result = decode(text, AgentFindings)
        if isinstance(result, ParseError):
            logger.warning(
                "analysis_unparsable",
                role=role.value,
                reason=result.reason,
                raw=result.preview(),
            )
            return FALLBACK_FINDINGS

        findings = result.value
        logger.info(
            "analysis_complete",
            role=role.value,
            prediction=findings.prediction.value,
            confidence=findings.confidence_score,
        )
        return findings
