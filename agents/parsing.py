"""
SwarmCast - Model Output Parsing

Decode-and-validate step for completion-service responses. Produces a
tagged result instead of raising, so callers substitute sentinels
explicitly.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

_LEADING_FENCE = re.compile(r"^```[a-zA-Z]*\s*")
_TRAILING_FENCE = re.compile(r"\s*```$")


@dataclass(frozen=True)
class Ok(Generic[ModelT]):
    """Successfully decoded value."""

    value: ModelT


@dataclass(frozen=True)
class ParseError:
    """Response text that could not be decoded into the expected shape."""

    reason: str
    raw: str

    def preview(self, limit: int = 200) -> str:
        return self.raw[:limit]


def strip_code_fences(text: str) -> str:
    """Remove a leading ```/```json marker and a trailing ``` marker."""
    stripped = text.strip()
    stripped = _LEADING_FENCE.sub("", stripped)
    stripped = _TRAILING_FENCE.sub("", stripped)
    return stripped.strip()


def decode(text: str, model: type[ModelT]) -> Ok[ModelT] | ParseError:
    """
    Decode response text into ``model``.

    Both JSON syntax errors and schema violations produce a ParseError.
    """
    body = strip_code_fences(text)
    if not body:
        return ParseError(reason="empty response", raw=text)

    try:
        return Ok(model.model_validate_json(body))
    except ValidationError as e:
        return ParseError(reason=_summarize(e), raw=text)


def _summarize(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "<root>"
    return f"{first.get('type', 'invalid')} at {location}: {first.get('msg', '')}"
