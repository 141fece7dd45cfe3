import json

import pytest

from emojivia.ingestion import IngestionCoordinator
from emojivia.store import JsonFileStore, StoreWriteError


class StubLLM:
    """LLM double: returns queued responses in order and records each call.

    A queued Exception instance is raised instead of returned.
    """

    def __init__(self, responses=()):
        self._responses = list(responses)
        self.calls: list[dict] = []

    async def __call__(self, stage: str, system_prompt: str, user_prompt: str) -> str:
        self.calls.append({"stage": stage, "system": system_prompt, "user": user_prompt})
        if not self._responses:
            raise AssertionError(f"StubLLM has no response queued for stage {stage!r}")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FlakyStore(JsonFileStore):
    """JsonFileStore whose batch writes fail for collections ending in a given suffix."""

    def __init__(self, base_path, fail_suffixes=()):
        super().__init__(base_path)
        self.fail_suffixes = set(fail_suffixes)

    def batch_write(self, collection, documents):
        if any(collection.endswith(s) for s in self.fail_suffixes):
            raise StoreWriteError(f"Simulated commit failure for {collection}")
        super().batch_write(collection, documents)


def make_items(count: int = 3, prefix: str = "Q") -> list[dict]:
    """Well-formed raw question dicts with ids 1..count."""
    return [
        {
            "id": i,
            "question": f"{prefix}{i} 🤔",
            "options": [f"{prefix}{i}-a", f"{prefix}{i}-b", f"{prefix}{i}-c", f"{prefix}{i}-d"],
            "answer": f"{prefix}{i}-b",
        }
        for i in range(1, count + 1)
    ]


def items_json(count: int = 3, prefix: str = "Q") -> str:
    return json.dumps(make_items(count, prefix))


@pytest.fixture
def store(tmp_path) -> JsonFileStore:
    return JsonFileStore(tmp_path / "store")


@pytest.fixture
def flaky_store(tmp_path) -> FlakyStore:
    return FlakyStore(tmp_path / "flaky")


@pytest.fixture
def coordinator(store) -> IngestionCoordinator:
    return IngestionCoordinator(store)
