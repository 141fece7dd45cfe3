"""Validation and atomic ingestion of content sets.

A content set is written as one batch, so either every question lands or
none does. A daily mission is two such batches (guess_mode, then
no_cap_mode) with no transaction spanning them:

  - guess_mode fails   → nothing persisted, the error propagates as-is
  - no_cap_mode fails  → guess_mode stays persisted; PartialPipelineFailure
                         reports which mode is missing so only that one is
                         retried via ingest_mission_mode()

Stored question shape: {id, question, options: "a|b|c|d", answer}.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any

from pydantic import ValidationError

from emojivia.identifiers import (
    DAILY_MISSIONS_COLLECTION,
    TRIVIA_COLLECTION,
    IdentifierAllocator,
    format_date_key,
)
from emojivia.models import (
    MISSION_MODES,
    ContentItem,
    ContentValidationError,
    Document,
    IngestResult,
    MissionResult,
    ModeOutcome,
    join_options,
)
from emojivia.store import ContentStore, StoreWriteError

logger = logging.getLogger(__name__)

_SET_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")


class AlreadyProvisioned(Exception):
    """Raised when a date key (or one of its modes) already holds content."""


class PartialPipelineFailure(Exception):
    """Raised when guess_mode was persisted but no_cap_mode was not.

    ``result`` marks each mode as persisted or failed; ``cause`` is the error
    that stopped the second mode. No rollback of the first mode happens.
    """

    def __init__(self, result: MissionResult, cause: Exception) -> None:
        super().__init__(
            f"Daily mission {result.date_key} partially provisioned: "
            f"{', '.join(result.persisted_modes)} persisted, "
            f"{result.failed_mode} failed ({cause})"
        )
        self.result = result
        self.cause = cause


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

def trivia_collection(set_id: str) -> str:
    return f"{TRIVIA_COLLECTION}/{set_id}/questions"


def mission_collection(date_key: str, mode: str) -> str:
    return f"{DAILY_MISSIONS_COLLECTION}/{date_key}/{mode}"


def check_set_id(set_id: str) -> str:
    if not set_id or not _SET_ID_RE.match(set_id):
        raise ContentValidationError(f"Invalid set identifier {set_id!r}")
    return set_id


def check_mode(mode: str) -> str:
    if mode not in MISSION_MODES:
        raise ContentValidationError(
            f"Unknown mission mode {mode!r}; expected one of {', '.join(MISSION_MODES)}"
        )
    return mode


# ---------------------------------------------------------------------------
# Validation + conversion
# ---------------------------------------------------------------------------

def validate_items(raw: Any) -> list[ContentItem]:
    """Structural validation of a candidate set. Raises ContentValidationError."""
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Sequence):
        raise ContentValidationError("Content set must be an array of items")
    if not raw:
        raise ContentValidationError("Content set is empty")

    items: list[ContentItem] = []
    seen: set[int] = set()
    for index, candidate in enumerate(raw):
        if isinstance(candidate, ContentItem):
            item = candidate
        elif isinstance(candidate, Mapping):
            try:
                item = ContentItem.model_validate(dict(candidate))
            except ValidationError as e:
                first = e.errors()[0]
                where = ".".join(str(p) for p in first["loc"]) or "item"
                raise ContentValidationError(
                    f"Item {index}: {where}: {first['msg']}"
                ) from e
        else:
            raise ContentValidationError(f"Item {index} is not an object")
        if item.id in seen:
            raise ContentValidationError(f"Item {index}: duplicate id {item.id}")
        seen.add(item.id)
        items.append(item)
    return items


def to_document(item: ContentItem) -> Document:
    return Document(
        id=str(item.id),
        data={
            "id": item.id,
            "question": item.question,
            "options": join_options(item.options),
            "answer": item.answer,
        },
    )


# ---------------------------------------------------------------------------
# Coordinator
# ---------------------------------------------------------------------------

class IngestionCoordinator:
    def __init__(
        self, store: ContentStore, allocator: IdentifierAllocator | None = None
    ) -> None:
        self._store = store
        self._allocator = allocator or IdentifierAllocator(store)

    @property
    def allocator(self) -> IdentifierAllocator:
        return self._allocator

    def _commit(self, set_id: str, path: str, items: list[ContentItem]) -> IngestResult:
        documents = [to_document(item) for item in items]
        self._store.batch_write(path, documents)
        logger.info("Ingested %d items into %s", len(documents), path)
        return IngestResult(set_id=set_id, path=path, count=len(documents))

    def ingest_content_set(
        self, set_id: str, items: Any, collection: str | None = None
    ) -> IngestResult:
        """Validate and write one set as a single atomic batch."""
        check_set_id(set_id)
        validated = validate_items(items)
        return self._commit(set_id, collection or trivia_collection(set_id), validated)

    def ingest_mission_mode(self, day: date | str, mode: str, items: Any) -> IngestResult:
        """Write a single mission mode; the retry path after a partial failure."""
        key = format_date_key(day)
        check_mode(mode)
        validated = validate_items(items)
        path = mission_collection(key, mode)
        if self._store.list_documents(path):
            raise AlreadyProvisioned(f"{mode} for {key} is already provisioned")
        return self._commit(key, path, validated)

    def ingest_daily_mission(
        self, day: date | str, guess_items: Any, no_cap_items: Any
    ) -> MissionResult:
        """Write guess_mode then no_cap_mode for a date that has never been provisioned."""
        key = format_date_key(day)
        if self._allocator.date_key_exists(key):
            raise AlreadyProvisioned(f"Daily mission {key} already exists")

        # Both sets are validated before the first write so a malformed
        # no_cap set cannot leave guess_mode behind.
        guess = validate_items(guess_items)
        no_cap = validate_items(no_cap_items)

        guess_result = self._commit(key, mission_collection(key, "guess_mode"), guess)
        try:
            no_cap_result = self._commit(key, mission_collection(key, "no_cap_mode"), no_cap)
        except StoreWriteError as e:
            raise partial_failure(key, guess_result, e) from e
        return mission_success(key, guess_result, no_cap_result)


def mission_success(
    date_key: str, guess: IngestResult, no_cap: IngestResult
) -> MissionResult:
    return MissionResult(
        date_key=date_key,
        status="success",
        outcomes=[
            ModeOutcome(mode="guess_mode", persisted=True, count=guess.count),
            ModeOutcome(mode="no_cap_mode", persisted=True, count=no_cap.count),
        ],
    )


def partial_failure(
    date_key: str, guess: IngestResult, cause: Exception
) -> PartialPipelineFailure:
    logger.error("Daily mission %s: no_cap_mode failed after guess_mode: %s", date_key, cause)
    result = MissionResult(
        date_key=date_key,
        status="partial",
        outcomes=[
            ModeOutcome(mode="guess_mode", persisted=True, count=guess.count),
            ModeOutcome(mode="no_cap_mode", persisted=False, error=str(cause)),
        ],
    )
    return PartialPipelineFailure(result, cause)
