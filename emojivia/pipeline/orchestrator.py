"""Pipeline orchestrator — runs one operator provisioning request end-to-end.

Trivia flow:
  1. Allocate the next "<namespace>_trivia_<n>" id for the category.
  2. Generate questions for the topic.
  3. Ingest them as one atomic batch under trivia/<id>/questions.

Daily-mission flow (strictly sequential):
  1. Reject the date if it already exists, before any generation call.
  2. Generate guess_mode → write guess_mode.
  3. Generate no_cap_mode → write no_cap_mode.
  A failure in step 2 persists nothing and propagates. A failure in step 3
  (of any kind, including transport errors) raises PartialPipelineFailure with
  guess_mode marked persisted.
"""

from __future__ import annotations

import logging
from datetime import date

from emojivia.generation import PromptSpec, QuestionGenerator
from emojivia.identifiers import format_date_key
from emojivia.ingestion import (
    AlreadyProvisioned,
    IngestionCoordinator,
    mission_collection,
    mission_success,
    partial_failure,
)
from emojivia.models import ContentValidationError, IngestResult, MissionResult

logger = logging.getLogger(__name__)

DEFAULT_COUNT = 50
MAX_COUNT = 100


def clamp_count(
    count: int | None, default: int = DEFAULT_COUNT, maximum: int = MAX_COUNT
) -> int:
    """Missing or non-positive counts take the default; large ones are capped."""
    if not count or count < 1:
        return min(default, maximum)
    if count > maximum:
        logger.warning("Requested %d questions, capping at %d", count, maximum)
        return maximum
    return count


def _require_topic(topic: str) -> str:
    topic = topic.strip()
    if not topic:
        raise ContentValidationError("Topic must not be empty")
    return topic


async def provision_trivia(
    *,
    coordinator: IngestionCoordinator,
    generator: QuestionGenerator,
    category: str,
    topic: str,
    count: int,
) -> IngestResult:
    """Allocate an id, generate a set and ingest it. Returns the ingest result."""
    topic = _require_topic(topic)
    trivia_id = coordinator.allocator.next_sequential_id(category)
    logger.info("Provisioning %s (%d questions on %r)", trivia_id, count, topic)

    items = await generator.generate(PromptSpec(mode="trivia", topic=topic), count)
    return coordinator.ingest_content_set(trivia_id, items)


async def provision_daily_mission(
    *,
    coordinator: IngestionCoordinator,
    generator: QuestionGenerator,
    day: date | str,
    guess_topic: str,
    no_cap_topic: str,
    count: int,
) -> MissionResult:
    """Run the two-mode daily mission flow for a date never provisioned before."""
    key = format_date_key(day)
    guess_topic = _require_topic(guess_topic)
    no_cap_topic = _require_topic(no_cap_topic)

    if coordinator.allocator.date_key_exists(key):
        raise AlreadyProvisioned(f"Daily mission {key} already exists")

    # guess_mode: any failure here leaves nothing behind
    guess_items = await generator.generate(PromptSpec(mode="guess_mode", topic=guess_topic), count)
    guess = coordinator.ingest_content_set(
        key, guess_items, collection=mission_collection(key, "guess_mode")
    )

    # no_cap_mode: guess_mode is already stored, so every failure from here on is partial
    try:
        no_cap_items = await generator.generate(
            PromptSpec(mode="no_cap_mode", topic=no_cap_topic), count
        )
        no_cap = coordinator.ingest_content_set(
            key, no_cap_items, collection=mission_collection(key, "no_cap_mode")
        )
    except Exception as e:
        raise partial_failure(key, guess, e) from e

    logger.info("Daily mission %s provisioned (%d + %d)", key, guess.count, no_cap.count)
    return mission_success(key, guess, no_cap)
