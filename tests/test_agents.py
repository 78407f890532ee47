"""
Tests for the pipeline stages.

Covers the completion client (with mocked ChatGroq), role selection,
per-role analysis and consensus synthesis (with stub clients).
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from agents.analyst import AgentAnalyst
from agents.consensus import MISSING_REASON, ConsensusEngine, format_reports
from agents.orchestrator import AgentOrchestrator
from swarmcast.config import LLMConfig, SwarmConfig
from swarmcast.llm import CompletionClient, CompletionError
from swarmcast.models import (
    FALLBACK_CONSENSUS,
    FALLBACK_FINDINGS,
    AgentFindings,
    AgentReport,
    AgentRole,
    Consensus,
    Prediction,
    RoleSelection,
)
from tests.helpers import StubClient, failing, findings_payload, returning


TOPIC = "Will Bitcoin hit $100k in 2024?"


# =============================================================================
# Completion Client Tests
# =============================================================================

class TestCompletionClient:
    """Test CompletionClient against a mocked ChatGroq."""

    def _config(self):
        return LLMConfig(model="json-model", search_model="search-model", api_key="k")

    @pytest.mark.asyncio
    async def test_schema_call_uses_json_mode(self):
        with patch("langchain_groq.ChatGroq") as mock_cls:
            bound = mock_cls.return_value.bind.return_value
            bound.ainvoke = AsyncMock(return_value=MagicMock(content='{"a": 1}'))

            text = await CompletionClient(self._config()).complete(
                "pick roles", schema=RoleSelection, temperature=0.5
            )

        assert text == '{"a": 1}'
        mock_cls.return_value.bind.assert_called_once_with(
            response_format={"type": "json_object"}
        )
        kwargs = mock_cls.call_args.kwargs
        assert kwargs["model"] == "json-model"
        assert kwargs["temperature"] == 0.5
        assert kwargs["max_retries"] == 0

        messages = bound.ainvoke.call_args.args[0]
        assert "selectedAgents" in messages[0].content
        assert messages[-1].content == "pick roles"

    @pytest.mark.asyncio
    async def test_search_call_uses_search_model(self):
        with patch("langchain_groq.ChatGroq") as mock_cls:
            mock_cls.return_value.ainvoke = AsyncMock(return_value=MagicMock(content="text"))

            text = await CompletionClient(self._config()).complete("analyze", search=True)

        assert text == "text"
        assert mock_cls.call_args.kwargs["model"] == "search-model"
        mock_cls.return_value.bind.assert_not_called()

    @pytest.mark.asyncio
    async def test_schema_and_search_exclusive(self):
        with pytest.raises(ValueError):
            await CompletionClient(self._config()).complete(
                "x", schema=Consensus, search=True
            )

    @pytest.mark.asyncio
    async def test_provider_error_wrapped(self):
        with patch("langchain_groq.ChatGroq") as mock_cls:
            mock_cls.return_value.ainvoke = AsyncMock(side_effect=Exception("No API key"))

            with pytest.raises(CompletionError, match="No API key"):
                await CompletionClient(self._config()).complete("x", search=True)

    @pytest.mark.asyncio
    async def test_empty_response(self):
        with patch("langchain_groq.ChatGroq") as mock_cls:
            mock_cls.return_value.ainvoke = AsyncMock(return_value=MagicMock(content="  "))

            with pytest.raises(CompletionError):
                await CompletionClient(self._config()).complete("x", search=True)


# =============================================================================
# Orchestrator Tests
# =============================================================================

class TestOrchestrator:
    """Test role selection."""

    @pytest.mark.asyncio
    async def test_selection_success(self, catalog_roles):
        client = StubClient(returning(
            {"selectedAgents": ["Finance", "Macro", "Newsfeed"], "reasoning": "money"}
        ))
        roles = await AgentOrchestrator(client).select(TOPIC, catalog_roles)

        assert roles == [AgentRole.FINANCE, AgentRole.MACRO, AgentRole.NEWSFEED]
        assert client.calls[0]["schema"] is RoleSelection
        assert client.calls[0]["search"] is False
        assert TOPIC in client.calls[0]["prompt"]

    @pytest.mark.asyncio
    async def test_hallucinated_roles_filtered(self, catalog_roles):
        client = StubClient(returning(
            {"selectedAgents": ["Finance", "Astrology", "Reddit", "Orchestrator"],
             "reasoning": ""}
        ))
        roles = await AgentOrchestrator(client).select(TOPIC, catalog_roles)
        assert roles == [AgentRole.FINANCE, AgentRole.REDDIT]

    @pytest.mark.asyncio
    async def test_subset_of_available(self):
        available = [AgentRole.MACRO, AgentRole.REDDIT, AgentRole.NEWSFEED]
        client = StubClient(returning(
            {"selectedAgents": ["Finance", "Macro", "Newsfeed", "Reddit"], "reasoning": ""}
        ))
        roles = await AgentOrchestrator(client).select(TOPIC, available)

        assert set(roles) <= set(available)
        assert roles == [AgentRole.MACRO, AgentRole.NEWSFEED, AgentRole.REDDIT]

    @pytest.mark.asyncio
    async def test_duplicates_collapsed_and_capped(self, catalog_roles):
        names = [r.value for r in catalog_roles]
        client = StubClient(returning(
            {"selectedAgents": ["Macro", "Macro"] + names, "reasoning": ""}
        ))
        roles = await AgentOrchestrator(client, config=SwarmConfig(max_agents=4)).select(
            TOPIC, catalog_roles
        )
        assert roles == [AgentRole.MACRO, AgentRole.NEWSFEED,
                         AgentRole.SOCIAL_MEDIA, AgentRole.REDDIT]

    @pytest.mark.asyncio
    async def test_fallback_on_failure(self, catalog_roles, failing_client):
        roles = await AgentOrchestrator(failing_client).select(TOPIC, catalog_roles)
        assert roles == catalog_roles[:3]

    @pytest.mark.asyncio
    async def test_fallback_on_unparsable(self, catalog_roles):
        client = StubClient(returning("Sure! I'd pick Finance and Macro."))
        roles = await AgentOrchestrator(client).select(TOPIC, catalog_roles)
        assert roles == catalog_roles[:3]

    @pytest.mark.asyncio
    async def test_fallback_when_nothing_valid(self, catalog_roles):
        client = StubClient(returning({"selectedAgents": ["Astrology"], "reasoning": ""}))
        roles = await AgentOrchestrator(client).select(TOPIC, catalog_roles)
        assert roles == catalog_roles[:3]

    def test_prompt_lists_descriptions(self, catalog_roles):
        orch = AgentOrchestrator(
            StubClient(failing),
            descriptions={AgentRole.MACRO: "Considers geopolitical events."},
        )
        prompt = orch.build_prompt(TOPIC, catalog_roles)
        assert "- Macro: Considers geopolitical events." in prompt
        assert "- Reddit" in prompt
        assert "3 to 6" in prompt


# =============================================================================
# Analyst Tests
# =============================================================================

class TestAnalyst:
    """Test the per-role Agent Runner."""

    @pytest.mark.asyncio
    async def test_fenced_response(self):
        payload = json.dumps(findings_payload("NO", 65, "macro"))
        client = StubClient(returning(f"```json\n{payload}\n```"))

        findings = await AgentAnalyst(client).analyze(AgentRole.MACRO, TOPIC)

        assert findings.prediction == Prediction.NO
        assert findings.confidence_score == 65
        assert findings.key_findings[0] == "macro finding 1"
        assert client.calls[0]["search"] is True
        assert client.calls[0]["schema"] is None
        assert "You are the Macro Agent." in client.calls[0]["prompt"]

    @pytest.mark.asyncio
    async def test_failure_yields_sentinel(self, failing_client):
        findings = await AgentAnalyst(failing_client).analyze(AgentRole.REDDIT, TOPIC)
        assert findings == FALLBACK_FINDINGS

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "text",
        [
            "not json at all",
            '{"keyFindings": ["a"], "confidenceScore": 250, "prediction": "YES", "reasoning": ""}',
            '{"keyFindings": ["a"], "confidenceScore": 50, "prediction": "PERHAPS", "reasoning": ""}',
            '```json\n{"keyFindings": ["a"]\n```',
        ],
    )
    async def test_invalid_responses_yield_sentinel(self, text):
        findings = await AgentAnalyst(StubClient(returning(text))).analyze(
            AgentRole.FINANCE, TOPIC
        )
        assert findings == FALLBACK_FINDINGS

    @pytest.mark.asyncio
    async def test_result_shape(self):
        client = StubClient(returning(findings_payload("UNCERTAIN", 0)))
        findings = await AgentAnalyst(client).analyze(AgentRole.NEWSFEED, TOPIC)

        assert isinstance(findings, AgentFindings)
        assert 0 <= findings.confidence_score <= 100
        assert findings.prediction in set(Prediction)


# =============================================================================
# Consensus Tests
# =============================================================================

def _reports():
    return [
        AgentReport(role=AgentRole.FINANCE,
                    findings=AgentFindings.model_validate(findings_payload("YES", 80, "fin"))),
        AgentReport(role=AgentRole.MACRO,
                    findings=AgentFindings.model_validate(findings_payload("NO", 40, "mac"))),
    ]


class TestConsensusEngine:
    """Test consensus synthesis."""

    @pytest.mark.asyncio
    async def test_synthesis(self):
        client = StubClient(returning(
            {"probability": 72, "topReasons": ["r1", "r2", "r3"], "verdict": "Likely."}
        ))
        consensus = await ConsensusEngine(client).synthesize(TOPIC, _reports())

        assert consensus.probability == 72
        assert consensus.top_reasons == ["r1", "r2", "r3"]
        assert consensus.verdict == "Likely."
        assert client.calls[0]["schema"] is Consensus

    @pytest.mark.asyncio
    async def test_prompt_embeds_reports_in_order(self):
        client = StubClient(returning(
            {"probability": 60, "topReasons": ["a", "b", "c"], "verdict": "v"}
        ))
        await ConsensusEngine(client).synthesize(TOPIC, _reports())

        prompt = client.calls[0]["prompt"]
        assert prompt.index("Agent: Finance") < prompt.index("Agent: Macro")
        assert "Confidence: 80%" in prompt
        assert "fin finding 1; fin finding 2; fin finding 3" in prompt

    @pytest.mark.asyncio
    async def test_reasons_normalized_to_three(self):
        long = StubClient(returning(
            {"probability": 10, "topReasons": ["a", "b", "c", "d"], "verdict": "v"}
        ))
        short = StubClient(returning({"probability": 90, "topReasons": ["a"], "verdict": "v"}))

        assert (await ConsensusEngine(long).synthesize(TOPIC, _reports())).top_reasons == [
            "a", "b", "c"
        ]
        padded = (await ConsensusEngine(short).synthesize(TOPIC, _reports())).top_reasons
        assert len(padded) == 3
        assert padded[0] == "a"

    @pytest.mark.asyncio
    async def test_short_reasons_padded_with_neutral_filler(self):
        client = StubClient(returning(
            {"probability": 64, "topReasons": ["Strong polling lead", "  "], "verdict": "v"}
        ))
        reasons = (await ConsensusEngine(client).synthesize(TOPIC, _reports())).top_reasons

        assert reasons == [
            "Strong polling lead", MISSING_REASON, MISSING_REASON
        ]
        assert not set(reasons) & set(FALLBACK_CONSENSUS.top_reasons)

    @pytest.mark.asyncio
    async def test_failure_yields_sentinel(self, failing_client):
        consensus = await ConsensusEngine(failing_client).synthesize(TOPIC, _reports())
        assert consensus == FALLBACK_CONSENSUS

    @pytest.mark.asyncio
    async def test_out_of_range_probability_yields_sentinel(self):
        client = StubClient(returning(
            {"probability": 140, "topReasons": ["a", "b", "c"], "verdict": "v"}
        ))
        consensus = await ConsensusEngine(client).synthesize(TOPIC, _reports())
        assert consensus == FALLBACK_CONSENSUS

    def test_format_reports(self):
        text = format_reports(_reports())
        assert "Prediction: YES" in text
        assert "Prediction: NO" in text
