import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.datastructures import Headers
from starlette.responses import Response

from backend.routes import router
from emojivia.ingestion import IngestionCoordinator
from emojivia.store import JsonFileStore

load_dotenv(Path(__file__).parent.parent / ".env")

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"


class PreflightCORSMiddleware(CORSMiddleware):
    """CORS middleware whose successful pre-flight answer is 204 with no body."""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response
        headers = {
            k: v for k, v in response.headers.items()
            if k not in ("content-length", "content-type")
        }
        return Response(status_code=204, headers=headers)


def create_app(data_dir: Path | None = None) -> FastAPI:
    resolved = data_dir or Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR)))
    store = JsonFileStore(resolved)

    app = FastAPI(title="Emojivia Provisioner")
    # The store handle is built here and passed to handlers via dependencies
    app.state.data_dir = resolved
    app.state.store = store
    app.state.coordinator = IngestionCoordinator(store)

    app.add_middleware(
        PreflightCORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.include_router(router, prefix="/api")
    return app


# Default app instance for uvicorn (uses DATA_DIR env var or default)
app = create_app()
