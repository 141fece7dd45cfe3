"""Level catalog endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from emojivia import catalog
from emojivia.store import ContentStore, StoreWriteError

from .deps import get_settings, get_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/levels", response_class=PlainTextResponse)
async def seed_levels(
    store: ContentStore = Depends(get_store),
    settings: dict[str, Any] = Depends(get_settings),
):
    """Regenerate the whole level catalog from the configured rules."""
    try:
        config = catalog.CatalogConfig.from_settings(settings["catalog"])
    except ValueError as e:
        logger.error("Invalid catalog settings: %s", e)
        raise HTTPException(500, "Invalid catalog settings")
    try:
        count = catalog.seed_levels(store, config)
    except StoreWriteError:
        logger.exception("Seeding levels failed")
        raise HTTPException(500, "Internal error")
    return f"✅ Levels 1–{count} seeded successfully"


@router.get("/levels/{level}")
async def get_level(level: int, store: ContentStore = Depends(get_store)):
    """Read one stored level document."""
    doc = store.get(f"{catalog.LEVELS_COLLECTION}/{level}")
    if doc is None:
        raise HTTPException(404, "Level not found")
    return doc
