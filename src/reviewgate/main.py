"""reviewgate FastAPI application assembly.

Wires the submission routers, the shared backend client (lifespan managed),
and CORS middleware for the front end.
Run: uvicorn reviewgate.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reviewgate.backend.client import BackendClient
from reviewgate.config import get_settings
from reviewgate.submission.router import events_router, submission_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: open/close the backend HTTP client."""
    settings = app.state.settings
    logging.basicConfig(level=settings.log_level.upper())

    app.state.backend = BackendClient(
        base_url=settings.api_base_url,
        timeout=settings.api_timeout_seconds,
    )
    logger.info("Review backend client ready for %s", settings.api_base_url)

    yield

    await app.state.backend.aclose()


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="reviewgate", version="0.1.0", debug=settings.debug, lifespan=lifespan
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(submission_router)
    app.include_router(events_router)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
