"""Pipeline flow tests: StubLLM drives generation, JsonFileStore (or FlakyStore)
receives the writes."""

import json

import httpx
import pytest

from conftest import FlakyStore, StubLLM, items_json, make_items
from emojivia.generation import QuestionGenerator
from emojivia.ingestion import AlreadyProvisioned, IngestionCoordinator, PartialPipelineFailure
from emojivia.llm import GenerationError
from emojivia.models import ContentValidationError
from emojivia.pipeline import clamp_count, provision_daily_mission, provision_trivia
from emojivia.store import StoreWriteError


# ── clamp_count ──────────────────────────────────────────────


def test_clamp_count():
    assert clamp_count(None) == 50
    assert clamp_count(0) == 50
    assert clamp_count(-3) == 50
    assert clamp_count(20) == 20
    assert clamp_count(100) == 100
    assert clamp_count(500) == 100
    assert clamp_count(None, default=10, maximum=5) == 5


# ── provision_trivia ─────────────────────────────────────────


async def test_provision_trivia_allocates_and_ingests(coordinator, store):
    llm = StubLLM([items_json(3), items_json(2)])
    generator = QuestionGenerator(llm)

    first = await provision_trivia(
        coordinator=coordinator, generator=generator,
        category="Gen Alpha", topic="Skibidi", count=3,
    )
    second = await provision_trivia(
        coordinator=coordinator, generator=generator,
        category="Gen Alpha", topic="Rizz", count=2,
    )

    assert first.set_id == "gen_alpha_trivia_1"
    assert first.count == 3
    assert second.set_id == "gen_alpha_trivia_2"
    assert len(store.list_documents("trivia/gen_alpha_trivia_2/questions")) == 2
    assert [c["stage"] for c in llm.calls] == ["trivia", "trivia"]


async def test_provision_trivia_generation_failure_writes_nothing(coordinator, store):
    llm = StubLLM([GenerationError("quota_exceeded", "no credit")])
    with pytest.raises(GenerationError):
        await provision_trivia(
            coordinator=coordinator, generator=QuestionGenerator(llm),
            category="Gen Alpha", topic="x", count=5,
        )
    assert store.list_documents("trivia") == []


async def test_provision_trivia_blank_topic(coordinator):
    llm = StubLLM()
    with pytest.raises(ContentValidationError):
        await provision_trivia(
            coordinator=coordinator, generator=QuestionGenerator(llm),
            category="Gen Alpha", topic="   ", count=5,
        )
    assert llm.calls == []


# ── provision_daily_mission ──────────────────────────────────


async def test_daily_mission_success(coordinator, store):
    llm = StubLLM([items_json(2, "G"), items_json(2, "N")])
    result = await provision_daily_mission(
        coordinator=coordinator, generator=QuestionGenerator(llm),
        day="18-10-2026", guess_topic="Movies", no_cap_topic="Slang", count=2,
    )

    assert result.status == "success"
    assert result.persisted_modes == ["guess_mode", "no_cap_mode"]
    assert [c["stage"] for c in llm.calls] == ["guess_mode", "no_cap_mode"]
    assert store.get("daily_missions/18-10-2026/no_cap_mode/1")["answer"] == "N1-b"


async def test_already_provisioned_date_makes_no_llm_calls(coordinator):
    coordinator.ingest_daily_mission("18-10-2026", make_items(1), make_items(1))
    llm = StubLLM()
    with pytest.raises(AlreadyProvisioned):
        await provision_daily_mission(
            coordinator=coordinator, generator=QuestionGenerator(llm),
            day="18-10-2026", guess_topic="Movies", no_cap_topic="Slang", count=2,
        )
    assert llm.calls == []


async def test_guess_failure_persists_nothing(coordinator, store):
    llm = StubLLM(["not json"])
    with pytest.raises(GenerationError):
        await provision_daily_mission(
            coordinator=coordinator, generator=QuestionGenerator(llm),
            day="18-10-2026", guess_topic="Movies", no_cap_topic="Slang", count=2,
        )
    assert store.list_documents("daily_missions") == []
    assert len(llm.calls) == 1


async def test_no_cap_generation_failure_is_partial(coordinator, store):
    llm = StubLLM([items_json(2, "G"), GenerationError("rate_limited", "slow down")])
    with pytest.raises(PartialPipelineFailure) as exc_info:
        await provision_daily_mission(
            coordinator=coordinator, generator=QuestionGenerator(llm),
            day="18-10-2026", guess_topic="Movies", no_cap_topic="Slang", count=2,
        )

    failure = exc_info.value
    assert failure.result.status == "partial"
    assert failure.result.persisted_modes == ["guess_mode"]
    assert failure.result.failed_mode == "no_cap_mode"
    assert failure.cause.reason == "rate_limited"
    assert len(store.list_documents("daily_missions/18-10-2026/guess_mode")) == 2
    assert store.list_documents("daily_missions/18-10-2026/no_cap_mode") == []


async def test_no_cap_write_failure_is_partial(tmp_path):
    store = FlakyStore(tmp_path / "flaky", fail_suffixes={"/no_cap_mode"})
    coordinator = IngestionCoordinator(store)
    llm = StubLLM([items_json(2, "G"), items_json(2, "N")])
    with pytest.raises(PartialPipelineFailure) as exc_info:
        await provision_daily_mission(
            coordinator=coordinator, generator=QuestionGenerator(llm),
            day="18-10-2026", guess_topic="Movies", no_cap_topic="Slang", count=2,
        )
    assert isinstance(exc_info.value.cause, StoreWriteError)
    assert [d.id for d in store.list_documents("daily_missions/18-10-2026/guess_mode")] == ["1", "2"]


async def test_no_cap_retry_after_partial(coordinator, store):
    llm = StubLLM([items_json(2, "G"), GenerationError("upstream_error", "down")])
    with pytest.raises(PartialPipelineFailure):
        await provision_daily_mission(
            coordinator=coordinator, generator=QuestionGenerator(llm),
            day="18-10-2026", guess_topic="Movies", no_cap_topic="Slang", count=2,
        )

    # Only the failed mode is re-submitted
    result = coordinator.ingest_mission_mode(
        "18-10-2026", "no_cap_mode", json.loads(items_json(3, "N"))
    )
    assert result.count == 3
    assert len(store.list_documents("daily_missions/18-10-2026/guess_mode")) == 2


async def test_no_cap_transport_error_is_partial(coordinator, store):
    """Any exception after the guess_mode write is reported as partial, never raw."""
    llm = StubLLM([items_json(2, "G"), httpx.ReadError("connection reset")])
    with pytest.raises(PartialPipelineFailure) as exc_info:
        await provision_daily_mission(
            coordinator=coordinator, generator=QuestionGenerator(llm),
            day="18-10-2026", guess_topic="Movies", no_cap_topic="Slang", count=2,
        )
    assert isinstance(exc_info.value.cause, httpx.ReadError)
    assert exc_info.value.result.failed_mode == "no_cap_mode"
    assert len(store.list_documents("daily_missions/18-10-2026/guess_mode")) == 2
