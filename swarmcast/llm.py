"""
SwarmCast - Completion Service Client

Thin async wrapper over a LangChain Groq chat model. Every pipeline
stage talks to the model through ``CompletionClient.complete``.
"""

from __future__ import annotations

import json
from typing import Any

from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import BaseModel

from swarmcast.config import LLMConfig, settings
from swarmcast.logging import get_logger

logger = get_logger(__name__, component="llm")


JSON_SYSTEM_PROMPT = """You respond with a single JSON object and nothing else.
The object must conform to this JSON Schema:

{schema}"""

SEARCH_SYSTEM_PROMPT = """You have live web search available. Use it to ground every claim in recent, verifiable sources."""


class CompletionError(Exception):
    """Raised when the completion service fails or returns nothing usable."""


class CompletionClient:
    """
    Client for the generative text-completion service.

    Two call shapes are supported:
        - schema:  JSON-object mode with the schema embedded in the system prompt
        - search:  routed to the search-capable model, free-text response

    The two are mutually exclusive. No retries are attempted.
    """

    def __init__(self, config: LLMConfig | None = None) -> None:
        self.config = config or settings.llm

    def _build_llm(self, model: str, temperature: float | None) -> Any:
        from langchain_groq import ChatGroq

        kwargs: dict[str, Any] = {
            "model": model,
            "timeout": self.config.timeout_seconds,
            "max_retries": 0,
        }
        if temperature is not None:
            kwargs["temperature"] = temperature
        if self.config.api_key:
            kwargs["api_key"] = self.config.api_key
        return ChatGroq(**kwargs)

    async def complete(
        self,
        prompt: str,
        *,
        schema: type[BaseModel] | None = None,
        search: bool = False,
        temperature: float | None = None,
    ) -> str:
        """
        Send one prompt and return the raw response text.

        Args:
            prompt: User prompt
            schema: Pydantic model describing the expected JSON object
            search: Enable web-search augmentation
            temperature: Sampling temperature override

        Returns:
            Response text (may still be fenced)

        Raises:
            ValueError: If both ``schema`` and ``search`` are requested
            CompletionError: On any provider failure or empty response
        """
        if schema is not None and search:
            raise ValueError("A response schema cannot be combined with search")

        messages: list[Any] = []
        if schema is not None:
            schema_json = json.dumps(schema.model_json_schema(by_alias=True), indent=2)
            messages.append(SystemMessage(content=JSON_SYSTEM_PROMPT.format(schema=schema_json)))
        elif search:
            messages.append(SystemMessage(content=SEARCH_SYSTEM_PROMPT))
        messages.append(HumanMessage(content=prompt))

        model = self.config.search_model if search else self.config.model

        try:
            llm = self._build_llm(model, temperature)
            if schema is not None:
                llm = llm.bind(response_format={"type": "json_object"})
            response = await llm.ainvoke(messages)
        except Exception as e:
            logger.error("completion_failed", model=model, error=str(e))
            raise CompletionError(str(e)) from e

        text = response.content if isinstance(response.content, str) else ""
        if not text.strip():
            logger.warning("completion_empty", model=model)
            raise CompletionError("Empty response from completion service")

        logger.debug("completion_received", model=model, chars=len(text))
        return text
