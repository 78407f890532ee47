"""
SwarmCast - Consensus Engine

Final synthesis stage that fuses every agent's findings into one
probability, three driving reasons and a verdict. The synthesis itself
is delegated to the completion service; nothing is averaged locally.
"""

from __future__ import annotations

from collections.abc import Sequence

from agents.parsing import ParseError, decode
from swarmcast.config import settings
from swarmcast.llm import CompletionClient, CompletionError
from swarmcast.logging import get_logger
from swarmcast.models import FALLBACK_CONSENSUS, AgentReport, Consensus

logger = get_logger(__name__, component="consensus")

TOP_REASON_COUNT = 3
MISSING_REASON = "No further reasons reported"


CONSENSUS_PROMPT = """You are the Consensus Engine.
Topic: "{topic}"

Agent Reports:
{context}

Task: Synthesize these reports into a final probability for a "YES" outcome. Provide the top 3 driving reasons and a short verdict.
Return JSON with "probability" (integer 0-100), "topReasons" (exactly 3 strings) and "verdict" (one sentence)."""


def format_reports(reports: Sequence[AgentReport]) -> str:
    """Render agent reports as prompt context, in the given order."""
    blocks = []
    for report in reports:
        findings = report.findings
        blocks.append(
            f"Agent: {report.role.value}\n"
            f"Prediction: {findings.prediction.value}\n"
            f"Confidence: {findings.confidence_score}%\n"
            f"Findings: {'; '.join(findings.key_findings)}\n"
            f"Reasoning: {findings.reasoning}"
        )
    return "\n\n".join(blocks)


def _normalize_reasons(reasons: list[str]) -> list[str]:
    """Exactly three reasons: extras dropped, gaps padded with a neutral filler."""
    cleaned = [r.strip() for r in reasons if r and r.strip()][:TOP_REASON_COUNT]
    cleaned.extend([MISSING_REASON] * (TOP_REASON_COUNT - len(cleaned)))
    return cleaned


class ConsensusEngine:
    """Consensus Aggregator."""

    def __init__(self, client: CompletionClient, temperature: float | None = None) -> None:
        self.client = client
        self.temperature = (
            settings.llm.consensus_temperature if temperature is None else temperature
        )

    async def synthesize(self, topic: str, reports: Sequence[AgentReport]) -> Consensus:
        """
        Fuse agent reports into a consensus verdict.

        Args:
            topic: Market question
            reports: Per-agent findings in selection order

        Returns:
            Consensus; the fallback consensus on any failure
        """
        prompt = CONSENSUS_PROMPT.format(topic=topic, context=format_reports(reports))

        try:
            text = await self.client.complete(
                prompt, schema=Consensus, temperature=self.temperature
            )
        except CompletionError as e:
            logger.error("consensus_failed", error=str(e))
            return FALLBACK_CONSENSUS

        result = decode(text, Consensus)
        if isinstance(result, ParseError):
            logger.warning(
                "consensus_unparsable", reason=result.reason, raw=result.preview()
            )
            return FALLBACK_CONSENSUS

        consensus = result.value.model_copy(
            update={"top_reasons": _normalize_reasons(result.value.top_reasons)}
        )
        logger.info(
            "consensus_reached",
            probability=consensus.probability,
            agents=len(reports),
        )
        return consensus
