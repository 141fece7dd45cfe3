"""Raw content-set ingestion endpoints (trivia sets, daily-mission modes).

Both endpoints share one validation + dispatch path: a non-empty set
identifier, a JSON array body, then a single coordinator call that writes
the set as one batch.
"""

import logging
from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from emojivia.ingestion import AlreadyProvisioned, IngestionCoordinator
from emojivia.models import ContentValidationError, IngestResult
from emojivia.store import StoreWriteError

from .deps import get_coordinator

logger = logging.getLogger(__name__)

router = APIRouter()


async def _read_array_body(request: Request) -> list[Any]:
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(400, "Body must be valid JSON")
    if not isinstance(body, list):
        raise HTTPException(400, "Body must be an array")
    return body


async def _dispatch(
    request: Request,
    set_id: str,
    missing_id: str,
    ingest: Callable[[list[Any]], IngestResult],
) -> dict[str, Any]:
    if not set_id:
        raise HTTPException(400, missing_id)
    items = await _read_array_body(request)
    try:
        result = ingest(items)
    except ContentValidationError as e:
        raise HTTPException(400, str(e))
    except AlreadyProvisioned as e:
        raise HTTPException(409, str(e))
    except StoreWriteError:
        logger.exception("Batch write failed for %s", set_id)
        raise HTTPException(500, "Internal error")
    return {"success": True, "count": result.count}


@router.post("/trivia")
async def create_trivia_questions(
    request: Request,
    triviaId: str = "",
    coordinator: IngestionCoordinator = Depends(get_coordinator),
):
    """Store a JSON array of questions as trivia/{triviaId}/questions."""
    return await _dispatch(
        request, triviaId, "Missing triviaId",
        lambda items: coordinator.ingest_content_set(triviaId, items),
    )


@router.post("/daily-missions")
async def create_daily_mission(
    request: Request,
    date: str = "",
    mode: str = "",
    coordinator: IngestionCoordinator = Depends(get_coordinator),
):
    """Store one mode of a daily mission; also the retry path after a partial failure."""
    if not mode:
        raise HTTPException(400, "Missing mode")
    return await _dispatch(
        request, date, "Missing date",
        lambda items: coordinator.ingest_mission_mode(date, mode, items),
    )
