"""Handlebars prompt rendering for the content modes."""

import json
from collections.abc import Callable
from typing import Any

import pybars

from emojivia.models import ContentMode


_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


_FORMAT_RULES = """Return ONLY a JSON array. Format:
[
  {
    "id": 1,
    "question": "{{{example.question}}}",
    "options": {{{example.options_json}}},
    "answer": "{{{example.answer}}}"
  }
]

Rules:
- JSON array only.
- id starts at 1.
- {{{question_rule}}}
- 4 options.
- answer must match one option exactly.
- never use the "|" character inside an option.
Topic: {{{topic}}}
"""

SYSTEM_TEMPLATES: dict[str, str] = {
    "trivia": "You create emoji-only trivia questions.\n" + _FORMAT_RULES,
    "guess_mode": "You create the daily 'guess the emoji' mission.\n" + _FORMAT_RULES,
    "no_cap_mode": (
        "You create the daily 'no cap' mission: decode Gen Z slang.\n" + _FORMAT_RULES
    ),
}

USER_TEMPLATE = "Generate {{count}} questions for topic: {{{topic}}}"

_EXAMPLES: dict[str, dict[str, Any]] = {
    "trivia": {
        "question_rule": "question is ONLY emojis.",
        "example": {
            "question": "💀😂📱",
            "options": ["NPC moment", "I'm dead (laughing)", "Phone lag", "L take"],
            "answer": "I'm dead (laughing)",
        },
    },
    "guess_mode": {
        "question_rule": "question is ONLY emojis that spell out the answer.",
        "example": {
            "question": "🦁👑",
            "options": ["The Lion King", "Jungle Book", "Madagascar", "Tarzan"],
            "answer": "The Lion King",
        },
    },
    "no_cap_mode": {
        "question_rule": "question is a short slang phrase in words, no emojis.",
        "example": {
            "question": "That fit is bussin, no cap",
            "options": [
                "The outfit looks great, honestly",
                "The bus is late",
                "The hat does not fit",
                "The food is cold",
            ],
            "answer": "The outfit looks great, honestly",
        },
    },
}


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


def build_prompts(mode: ContentMode, topic: str, count: int) -> tuple[str, str]:
    """Return (system_prompt, user_prompt) for one generation request."""
    if mode not in SYSTEM_TEMPLATES:
        raise PromptError(f"No prompt template for mode {mode!r}")
    example = _EXAMPLES[mode]
    ctx = {
        "topic": topic,
        "count": count,
        "question_rule": example["question_rule"],
        "example": {
            **example["example"],
            "options_json": json.dumps(example["example"]["options"], ensure_ascii=False),
        },
    }
    return render_prompt(SYSTEM_TEMPLATES[mode], ctx), render_prompt(USER_TEMPLATE, ctx)
