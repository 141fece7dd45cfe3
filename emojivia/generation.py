"""Question generation on top of an LLM callable.

QuestionGenerator renders the prompt for a content mode, calls the LLM and
parses its answer into ContentItems. Output that is not a JSON array of
well-formed items is reported as GenerationError("malformed_output"); no
partial salvage is attempted.
"""

from __future__ import annotations

import json
import logging

from pydantic import BaseModel, Field

from emojivia.ingestion import validate_items
from emojivia.llm import LLM, GenerationError
from emojivia.models import ContentItem, ContentMode, ContentValidationError
from emojivia.prompts import build_prompts

logger = logging.getLogger(__name__)


class PromptSpec(BaseModel):
    mode: ContentMode
    topic: str = Field(min_length=1)


def _strip_fences(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        lines = [l for l in lines[1:] if not l.strip().startswith("```")]
        cleaned = "\n".join(lines)
    return cleaned


def parse_items(text: str) -> list[ContentItem]:
    try:
        data = json.loads(_strip_fences(text))
    except json.JSONDecodeError as e:
        logger.warning("Generated output is not valid JSON: %s", e)
        raise GenerationError("malformed_output", f"Output is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise GenerationError(
            "malformed_output", f"Output must be a JSON array, got {type(data).__name__}"
        )
    try:
        return validate_items(data)
    except ContentValidationError as e:
        raise GenerationError("malformed_output", str(e)) from e


class QuestionGenerator:
    def __init__(self, llm: LLM) -> None:
        self._llm = llm

    async def generate(self, spec: PromptSpec, count: int) -> list[ContentItem]:
        system_prompt, user_prompt = build_prompts(spec.mode, spec.topic, count)
        text = await self._llm(spec.mode, system_prompt, user_prompt)
        items = parse_items(text)
        logger.info("Generated %d/%d %s items for %r", len(items), count, spec.mode, spec.topic)
        return items
