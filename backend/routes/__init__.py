"""FastAPI API endpoints under /api.

Endpoint groups: content ingestion (trivia sets, daily-mission modes), level
catalog, one-click provisioning (generate + ingest), settings and health.
Every write goes through the IngestionCoordinator held on app.state, so the
store handle is explicit per app instance.
"""

from fastapi import APIRouter

from .content import router as content_router
from .levels import router as levels_router
from .provision import router as provision_router
from .settings import router as settings_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(content_router)
router.include_router(levels_router)
router.include_router(provision_router)
