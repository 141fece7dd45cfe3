"""Generate-and-ingest endpoints (the operator's one-click flows)."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from emojivia import pipeline
from emojivia.generation import QuestionGenerator
from emojivia.ingestion import AlreadyProvisioned, IngestionCoordinator, PartialPipelineFailure
from emojivia.llm import GenerationError
from emojivia.models import ContentValidationError
from emojivia.store import StoreWriteError

from .deps import get_coordinator, get_generator, get_settings
from .models import ProvisionDailyMission, ProvisionTrivia

logger = logging.getLogger(__name__)

router = APIRouter()


def _count(requested: int | None, settings: dict[str, Any]) -> int:
    limits = settings["questions"]
    try:
        default = int(limits["default_count"])
        maximum = int(limits["max_count"])
    except (KeyError, TypeError, ValueError) as e:
        logger.error("Invalid question settings: %s", e)
        raise HTTPException(500, "Invalid question settings")
    return pipeline.clamp_count(requested, default=default, maximum=maximum)


def _partial_reason(cause: Exception) -> str:
    """Machine-readable reason for the mode that failed after guess_mode was stored."""
    if isinstance(cause, GenerationError):
        return cause.reason
    if isinstance(cause, ContentValidationError):
        return "validation_failed"
    if isinstance(cause, StoreWriteError):
        return "store_write_failed"
    return "internal_error"


def _generation_failed(e: GenerationError) -> JSONResponse:
    return JSONResponse(status_code=502, content={"reason": e.reason, "message": str(e)})


@router.post("/provision/trivia")
async def provision_trivia(
    body: ProvisionTrivia,
    coordinator: IngestionCoordinator = Depends(get_coordinator),
    generator: QuestionGenerator = Depends(get_generator),
    settings: dict[str, Any] = Depends(get_settings),
):
    """Allocate a trivia id for the category, generate questions and store them."""
    try:
        result = await pipeline.provision_trivia(
            coordinator=coordinator,
            generator=generator,
            category=body.category,
            topic=body.topic,
            count=_count(body.count, settings),
        )
    except ContentValidationError as e:
        raise HTTPException(400, str(e))
    except GenerationError as e:
        return _generation_failed(e)
    except StoreWriteError:
        logger.exception("Trivia upload failed")
        raise HTTPException(500, "Internal error")
    return {"trivia_id": result.set_id, "count": result.count}


@router.post("/provision/daily-mission")
async def provision_daily_mission(
    body: ProvisionDailyMission,
    coordinator: IngestionCoordinator = Depends(get_coordinator),
    generator: QuestionGenerator = Depends(get_generator),
    settings: dict[str, Any] = Depends(get_settings),
):
    """Generate and store both modes of a daily mission.

    207 means guess_mode was stored but no_cap_mode was not; retry only the
    failed mode through POST /daily-missions.
    """
    try:
        result = await pipeline.provision_daily_mission(
            coordinator=coordinator,
            generator=generator,
            day=body.date,
            guess_topic=body.guess_topic,
            no_cap_topic=body.no_cap_topic,
            count=_count(body.count, settings),
        )
    except ContentValidationError as e:
        raise HTTPException(400, str(e))
    except AlreadyProvisioned as e:
        raise HTTPException(409, str(e))
    except PartialPipelineFailure as e:
        content = e.result.model_dump()
        content["persisted"] = e.result.persisted_modes
        content["failed_mode"] = e.result.failed_mode
        content["reason"] = _partial_reason(e.cause)
        return JSONResponse(status_code=207, content=content)
    except GenerationError as e:
        return _generation_failed(e)
    except StoreWriteError:
        logger.exception("Daily mission upload failed")
        raise HTTPException(500, "Internal error")
    return result.model_dump()
