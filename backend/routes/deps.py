"""Request-scoped dependencies resolved from app.state."""

from pathlib import Path
from typing import Any

from fastapi import Request

from emojivia import config as app_config
from emojivia.generation import QuestionGenerator
from emojivia.ingestion import IngestionCoordinator
from emojivia.llm import ChatLLM
from emojivia.store import ContentStore


def get_data_dir(request: Request) -> Path:
    return request.app.state.data_dir


def get_store(request: Request) -> ContentStore:
    return request.app.state.store


def get_coordinator(request: Request) -> IngestionCoordinator:
    return request.app.state.coordinator


def get_settings(request: Request) -> dict[str, Any]:
    return app_config.get_config(get_data_dir(request))


def get_generator(request: Request) -> QuestionGenerator:
    """Build a generator from the current generator settings."""
    settings = get_settings(request)["generator"]
    llm = ChatLLM(
        provider_url=settings["provider_url"],
        api_key=app_config.generator_api_key({"generator": settings}),
        model=settings["model"],
        max_tokens=int(settings["max_tokens"]),
        timeout=float(settings["timeout"]),
    )
    return QuestionGenerator(llm)
