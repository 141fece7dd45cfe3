"""Tests for validation and atomic ingestion of content sets and daily missions."""

import pytest

from conftest import make_items
from emojivia.ingestion import (
    AlreadyProvisioned,
    IngestionCoordinator,
    PartialPipelineFailure,
    to_document,
    validate_items,
)
from emojivia.models import ContentItem, ContentValidationError, split_options
from emojivia.store import StoreWriteError


# ── validate_items ───────────────────────────────────────────


def test_validate_accepts_well_formed():
    items = validate_items(make_items(3))
    assert [i.id for i in items] == [1, 2, 3]


def test_validate_rejects_non_array():
    with pytest.raises(ContentValidationError, match="array"):
        validate_items({"id": 1})
    with pytest.raises(ContentValidationError, match="array"):
        validate_items("[]")


def test_validate_rejects_empty():
    with pytest.raises(ContentValidationError, match="empty"):
        validate_items([])


def test_validate_reports_failing_index():
    items = make_items(3)
    items[2]["answer"] = "nowhere"
    with pytest.raises(ContentValidationError, match="Item 2"):
        validate_items(items)


def test_validate_rejects_missing_fields():
    with pytest.raises(ContentValidationError, match="Item 0"):
        validate_items([{"id": 1, "question": "?"}])


def test_validate_rejects_non_object_item():
    with pytest.raises(ContentValidationError, match="not an object"):
        validate_items(["just a string"])


def test_validate_rejects_duplicate_ids():
    items = make_items(2)
    items[1]["id"] = 1
    with pytest.raises(ContentValidationError, match="duplicate id"):
        validate_items(items)


def test_validate_passes_content_items_through():
    item = ContentItem(**make_items(1)[0])
    assert validate_items([item]) == [item]


def test_to_document_joins_options():
    item = ContentItem(**make_items(1)[0])
    doc = to_document(item)
    assert doc.id == "1"
    assert doc.data["options"] == "Q1-a|Q1-b|Q1-c|Q1-d"
    assert split_options(doc.data["options"]) == item.options


# ── ingest_content_set ───────────────────────────────────────


def test_ingest_content_set(coordinator, store):
    result = coordinator.ingest_content_set("gen_alpha_trivia_1", make_items(3))
    assert result.count == 3
    assert result.path == "trivia/gen_alpha_trivia_1/questions"
    assert store.get("trivia/gen_alpha_trivia_1/questions/2") == {
        "id": 2,
        "question": "Q2 🤔",
        "options": "Q2-a|Q2-b|Q2-c|Q2-d",
        "answer": "Q2-b",
    }


def test_answer_not_in_options_writes_nothing(coordinator, store):
    items = make_items(3)
    items[1]["answer"] = "Q2-z"
    with pytest.raises(ContentValidationError):
        coordinator.ingest_content_set("gen_alpha_trivia_1", items)
    assert store.list_documents("trivia") == []


def test_invalid_set_id_rejected(coordinator):
    for bad in ("", "../escape", "has space", "a/b"):
        with pytest.raises(ContentValidationError):
            coordinator.ingest_content_set(bad, make_items(1))


def test_store_failure_leaves_nothing(flaky_store):
    flaky_store.fail_suffixes = {"/questions"}
    coordinator = IngestionCoordinator(flaky_store)
    with pytest.raises(StoreWriteError):
        coordinator.ingest_content_set("gen_alpha_trivia_1", make_items(3))
    assert flaky_store.list_documents("trivia") == []


# ── ingest_daily_mission ─────────────────────────────────────


def test_daily_mission_success(coordinator, store):
    result = coordinator.ingest_daily_mission(
        "18-10-2026", make_items(3, "G"), make_items(2, "N")
    )
    assert result.status == "success"
    assert result.persisted_modes == ["guess_mode", "no_cap_mode"]
    assert len(store.list_documents("daily_missions/18-10-2026/guess_mode")) == 3
    assert len(store.list_documents("daily_missions/18-10-2026/no_cap_mode")) == 2


def test_daily_mission_rejects_existing_date(coordinator, store):
    coordinator.ingest_daily_mission("18-10-2026", make_items(1), make_items(1))
    with pytest.raises(AlreadyProvisioned):
        coordinator.ingest_daily_mission("18-10-2026", make_items(1), make_items(1))


def test_daily_mission_bad_date(coordinator):
    with pytest.raises(ContentValidationError):
        coordinator.ingest_daily_mission("2026-10-18", make_items(1), make_items(1))


def test_daily_mission_invalid_second_set_writes_nothing(coordinator, store):
    bad = make_items(1)
    bad[0]["options"] = ["only", "three", "options"]
    with pytest.raises(ContentValidationError):
        coordinator.ingest_daily_mission("18-10-2026", make_items(2), bad)
    assert store.list_documents("daily_missions") == []


def test_daily_mission_first_write_fails(flaky_store):
    flaky_store.fail_suffixes = {"/guess_mode"}
    coordinator = IngestionCoordinator(flaky_store)
    with pytest.raises(StoreWriteError):
        coordinator.ingest_daily_mission("18-10-2026", make_items(2), make_items(2))
    assert flaky_store.list_documents("daily_missions") == []


def test_daily_mission_second_write_fails_is_partial(flaky_store):
    flaky_store.fail_suffixes = {"/no_cap_mode"}
    coordinator = IngestionCoordinator(flaky_store)
    with pytest.raises(PartialPipelineFailure) as exc_info:
        coordinator.ingest_daily_mission("18-10-2026", make_items(2), make_items(2))

    result = exc_info.value.result
    assert result.status == "partial"
    assert result.persisted_modes == ["guess_mode"]
    assert result.failed_mode == "no_cap_mode"
    assert isinstance(exc_info.value.cause, StoreWriteError)

    # Only guess_mode is visible in the store
    assert len(flaky_store.list_documents("daily_missions/18-10-2026/guess_mode")) == 2
    assert flaky_store.list_documents("daily_missions/18-10-2026/no_cap_mode") == []


# ── ingest_mission_mode (retry path) ─────────────────────────


def test_retry_failed_mode_after_partial(flaky_store):
    flaky_store.fail_suffixes = {"/no_cap_mode"}
    coordinator = IngestionCoordinator(flaky_store)
    with pytest.raises(PartialPipelineFailure):
        coordinator.ingest_daily_mission("18-10-2026", make_items(2), make_items(2))

    flaky_store.fail_suffixes = set()
    result = coordinator.ingest_mission_mode("18-10-2026", "no_cap_mode", make_items(4))
    assert result.count == 4
    assert len(flaky_store.list_documents("daily_missions/18-10-2026/no_cap_mode")) == 4


def test_retry_rejects_already_written_mode(coordinator):
    coordinator.ingest_mission_mode("18-10-2026", "guess_mode", make_items(1))
    with pytest.raises(AlreadyProvisioned):
        coordinator.ingest_mission_mode("18-10-2026", "guess_mode", make_items(1))


def test_mission_mode_unknown_mode(coordinator):
    with pytest.raises(ContentValidationError, match="mode"):
        coordinator.ingest_mission_mode("18-10-2026", "hard_mode", make_items(1))
