"""Health check, settings, and id preview endpoints."""

from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from emojivia import config as app_config
from emojivia.ingestion import IngestionCoordinator
from emojivia.models import ContentValidationError

from .deps import get_coordinator, get_data_dir

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/trivia/next-id")
async def next_trivia_id(
    category: str,
    coordinator: IngestionCoordinator = Depends(get_coordinator),
):
    """Preview the id the next trivia set in this category would get."""
    try:
        return {"trivia_id": coordinator.allocator.next_sequential_id(category)}
    except ContentValidationError as e:
        raise HTTPException(400, str(e))


@router.get("/settings")
async def get_settings(data_dir: Path = Depends(get_data_dir)):
    """Get generator, catalog and question-limit settings (API key masked)."""
    return app_config.public_config(app_config.get_config(data_dir))


@router.patch("/settings")
async def update_settings(body: dict[str, Any], data_dir: Path = Depends(get_data_dir)):
    """Update settings (partial merge per section)."""
    return app_config.public_config(app_config.update_config(data_dir, body))
