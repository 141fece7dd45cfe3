"""Identifier allocation for new content sets.

Trivia sets are named "<namespace>_trivia_<n>", where the namespace is the
normalized category and n is one past the highest index already stored.
Daily missions are keyed by their calendar date as DD-MM-YYYY.

Both lookups are scan-then-write: nothing links the read here to the later
batch write, so two concurrent requests for the same category (or date) can
both see the same state and both write. Strict uniqueness needs a
create-if-absent primitive in the store.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime

from emojivia.models import ContentValidationError
from emojivia.store import ContentStore, StoreReadError

logger = logging.getLogger(__name__)

TRIVIA_COLLECTION = "trivia"
DAILY_MISSIONS_COLLECTION = "daily_missions"

DATE_KEY_FORMAT = "%d-%m-%Y"
_DATE_KEY_RE = re.compile(r"^\d{2}-\d{2}-\d{4}$")


def namespace_for(category: str) -> str:
    """Normalize a free-text category into an identifier namespace.

    "Gen Alpha" → "gen_alpha"
    "  90's -- Movies! " → "90_s_movies"
    """
    text = category.lower().strip()
    text = re.sub(r"[^a-z0-9]+", "_", text)
    text = text.strip("_")
    if not text:
        raise ContentValidationError(f"Category {category!r} has no usable characters")
    return text


def trivia_prefix(category: str) -> str:
    return f"{namespace_for(category)}_trivia_"


def parse_date_key(key: str) -> date:
    if not _DATE_KEY_RE.match(key):
        raise ContentValidationError(f"Date key {key!r} must look like DD-MM-YYYY")
    try:
        return datetime.strptime(key, DATE_KEY_FORMAT).date()
    except ValueError as e:
        raise ContentValidationError(f"Date key {key!r} is not a calendar date") from e


def format_date_key(day: date | str) -> str:
    """Return the DD-MM-YYYY key for a date, validating keys passed as strings."""
    if isinstance(day, str):
        parse_date_key(day)
        return day
    return day.strftime(DATE_KEY_FORMAT)


class IdentifierAllocator:
    def __init__(
        self,
        store: ContentStore,
        trivia_collection: str = TRIVIA_COLLECTION,
        missions_collection: str = DAILY_MISSIONS_COLLECTION,
    ) -> None:
        self._store = store
        self._trivia_collection = trivia_collection
        self._missions_collection = missions_collection

    def next_sequential_id(self, category: str) -> str:
        """Next unused "<namespace>_trivia_<n>" for the category.

        An unreadable listing counts as an empty collection, so the result
        falls back to index 1 rather than failing the pipeline.
        """
        prefix = trivia_prefix(category)
        try:
            existing = [d.id for d in self._store.list_documents(self._trivia_collection)]
        except StoreReadError as e:
            logger.warning("Cannot list %s, assuming empty: %s", self._trivia_collection, e)
            existing = []

        pattern = re.compile(rf"^{re.escape(prefix)}(\d+)$")
        highest = 0
        for doc_id in existing:
            match = pattern.match(doc_id)
            if match:
                highest = max(highest, int(match.group(1)))
        return f"{prefix}{highest + 1}"

    def date_key_exists(self, day: date | str) -> bool:
        key = format_date_key(day)
        return any(d.id == key for d in self._store.list_documents(self._missions_collection))
