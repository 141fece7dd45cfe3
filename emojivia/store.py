"""Hierarchical JSON document store.

The provisioning core talks to a ContentStore: collections hold documents,
documents hold fields, and a document may own sub-collections. Paths are
slash-separated and alternate collection/document/collection.

JsonFileStore keeps every collection in one JSON file under a base
directory, so a batch write to a collection is a single atomic file replace:

    {base}/
      levels.json                         ← collection "levels"
      trivia/
        {set_id}/
          questions.json                  ← "trivia/{set_id}/questions"
      daily_missions/
        {DD-MM-YYYY}/
          guess_mode.json                 ← "daily_missions/{date}/guess_mode"
          no_cap_mode.json

A document that only exists as the parent of a sub-collection (e.g. a trivia
set id) is listed with empty fields.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from emojivia.models import Document

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Base class for store failures."""


class StoreReadError(StoreError):
    """Raised when a collection cannot be listed or read."""


class StoreWriteError(StoreError):
    """Raised when a batch cannot be committed. Nothing from the batch is applied."""


# ---------------------------------------------------------------------------
# Store protocol: the operations the provisioning core relies on
# ---------------------------------------------------------------------------

class ContentStore(Protocol):
    def list_documents(self, collection: str) -> list[Document]: ...

    def get(self, document_path: str) -> dict[str, Any] | None: ...

    def batch_write(self, collection: str, documents: list[Document]) -> None: ...


def split_path(path: str) -> list[str]:
    """Split a store path into segments, rejecting anything that escapes the tree."""
    segments = path.strip("/").split("/")
    for segment in segments:
        if not segment or segment in (".", "..") or segment.startswith("."):
            raise ValueError(f"Invalid store path: {path!r}")
    return segments


class JsonFileStore:
    def __init__(self, base_path: Path) -> None:
        self._base = base_path
        self._base.mkdir(parents=True, exist_ok=True)

    @property
    def base_path(self) -> Path:
        return self._base

    # ------------------------------------------------------------------
    # Internal path helpers
    # ------------------------------------------------------------------

    def _collection_file(self, collection: str) -> Path:
        segments = split_path(collection)
        if len(segments) % 2 == 0:
            raise ValueError(f"Not a collection path: {collection!r}")
        return self._base.joinpath(*segments[:-1], f"{segments[-1]}.json")

    def _collection_dir(self, collection: str) -> Path:
        return self._base.joinpath(*split_path(collection))

    def _read_collection(self, collection: str) -> dict[str, dict[str, Any]]:
        path = self._collection_file(collection)
        if not path.is_file():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StoreReadError(f"Cannot read collection {collection!r}: {e}") from e
        if not isinstance(data, dict):
            raise StoreReadError(f"Collection {collection!r} is not a JSON object")
        return data

    # ------------------------------------------------------------------
    # ContentStore operations
    # ------------------------------------------------------------------

    def list_documents(self, collection: str) -> list[Document]:
        """List documents ordered by id, including parent-only documents."""
        docs = self._read_collection(collection)
        listed = {doc_id: Document(id=doc_id, data=fields) for doc_id, fields in docs.items()}
        parent_dir = self._collection_dir(collection)
        try:
            children = list(parent_dir.iterdir()) if parent_dir.is_dir() else []
        except OSError as e:
            raise StoreReadError(f"Cannot list collection {collection!r}: {e}") from e
        for child in children:
            if child.is_dir() and child.name not in listed and any(child.iterdir()):
                listed[child.name] = Document(id=child.name)
        return [listed[doc_id] for doc_id in sorted(listed)]

    def get(self, document_path: str) -> dict[str, Any] | None:
        segments = split_path(document_path)
        if len(segments) % 2 != 0:
            raise ValueError(f"Not a document path: {document_path!r}")
        collection = "/".join(segments[:-1])
        return self._read_collection(collection).get(segments[-1])

    def batch_write(self, collection: str, documents: list[Document]) -> None:
        """Set every document in one commit; existing documents are replaced, not merged."""
        path = self._collection_file(collection)
        try:
            existing = self._read_collection(collection)
        except StoreReadError as e:
            raise StoreWriteError(str(e)) from e
        for doc in documents:
            if split_path(doc.id) != [doc.id]:
                raise ValueError(f"Invalid document id: {doc.id!r}")
            existing[doc.id] = dict(doc.data)

        try:
            payload = json.dumps(existing, indent=2, ensure_ascii=False)
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise StoreWriteError(f"Batch write to {collection!r} failed: {e}") from e
        logger.debug("batch_write collection=%s docs=%d", collection, len(documents))
