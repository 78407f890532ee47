"""Test doubles for the completion service."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable

from swarmcast.llm import CompletionError


class StubClient:
    """
    Completion client double.

    ``responder`` maps (prompt, schema=..., search=...) to response text,
    or raises. Every call is recorded in ``calls``.
    """

    def __init__(self, responder: Callable[..., str]) -> None:
        self.responder = responder
        self.calls: list[dict] = []

    async def complete(self, prompt, *, schema=None, search=False, temperature=None):
        self.calls.append(
            {"prompt": prompt, "schema": schema, "search": search, "temperature": temperature}
        )
        await asyncio.sleep(0)
        return self.responder(prompt, schema=schema, search=search)


def failing(*args, **kwargs) -> str:
    raise CompletionError("service unavailable")


def returning(payload) -> Callable[..., str]:
    """Responder that always returns ``payload`` (JSON-encoded unless a str)."""
    text = payload if isinstance(payload, str) else json.dumps(payload)

    def responder(*args, **kwargs) -> str:
        return text

    return responder


def findings_payload(prediction: str = "YES", confidence: int = 70, tag: str = "") -> dict:
    return {
        "keyFindings": [f"{tag} finding 1", f"{tag} finding 2", f"{tag} finding 3"],
        "confidenceScore": confidence,
        "prediction": prediction,
        "reasoning": f"{tag} reasoning",
    }
