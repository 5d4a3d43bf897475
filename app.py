"""
Production-safe FastAPI application entrypoint.

This module provides the FastAPI app for the profile prompt bot with NO
import-time side effects beyond logging setup. State storage and the
recognizer are chosen in ``create_app`` so tests can inject their own.

Run locally with: uvicorn app:app --reload
"""
from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import FastAPI

from workflows.common.recognizers import Recognizer
from workflows.io.config_store import get_settings, is_dev_mode
from workflows.io.state import ConversationState, UserState
from workflows.io.storage import Storage, create_storage
from workflows.runtime.bot import ProfilePromptBot

# Configure logging (this is acceptable at import time - just sets up handlers)
logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log the effective configuration on startup."""
    settings = get_settings()
    logger.info(
        "[Backend] Profile prompt bot starting (culture=%s, state=%s, lead=%sh, dev=%s)",
        settings.culture,
        settings.state_path or "memory",
        settings.min_lead_hours,
        is_dev_mode(),
    )
    yield


def create_app(
    storage: Optional[Storage] = None,
    recognizer: Optional[Recognizer] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    This is a factory function that returns a fully configured app.
    Safe to call multiple times (e.g., for testing).
    """
    settings = get_settings()
    storage = storage if storage is not None else create_storage(settings.state_path)

    app = FastAPI(title="Profile Prompt Bot", lifespan=lifespan)
    app.state.bot = ProfilePromptBot(
        ConversationState(storage),
        UserState(storage),
        recognizer=recognizer,
    )

    # Import routers (lazy import to avoid circular dependencies)
    from api.routes import messages_router

    app.include_router(messages_router)

    _add_root_endpoint(app)

    return app


def _add_root_endpoint(app: FastAPI) -> None:
    """Add root health check endpoint."""

    @app.get("/")
    async def root():
        return {"status": "ok"}


# Create the default app instance
# This is what gets imported by uvicorn (e.g., uvicorn app:app)
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=3978)
