"""FastAPI application entry point."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from ecoclear.config import Settings

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ecoclear.api.routes import router
from ecoclear.config import get_settings
from ecoclear.errors import ModelLoadError
from ecoclear.ml.inference import InferencePool
from ecoclear.ml.model_manager import OnnxModelManager
from ecoclear.ml.preprocessing import PillowPreprocessor
from ecoclear.ml.waste_classifier import OnnxWasteClassifier
from ecoclear.session.registry import SessionRegistry

logger = logging.getLogger(__name__)

HOUSEKEEPING_INTERVAL_SECONDS: float = 60.0


def init_app_state(app: FastAPI, settings: Settings) -> None:
    """Build the shared services and attach them to ``app.state``."""
    app.state.settings = settings
    app.state.inference_pool = InferencePool(settings)
    app.state.model_manager = OnnxModelManager(settings)
    app.state.classifier = OnnxWasteClassifier(
        settings.classifier_model,
        app.state.model_manager,
        PillowPreprocessor(settings.max_image_pixels),
        app.state.inference_pool,
    )
    app.state.sessions = SessionRegistry(
        app.state.classifier,
        session_ttl=settings.session_ttl,
        max_sessions=settings.max_sessions,
    )


async def _warm_up(classifier: OnnxWasteClassifier) -> None:
    try:
        await classifier.load_model()
    except ModelLoadError:
        logger.warning("Model warm-up failed; sessions will retry on start", exc_info=True)


async def _housekeeping(app: FastAPI) -> None:
    while True:
        await asyncio.sleep(HOUSEKEEPING_INTERVAL_SECONDS)
        app.state.sessions.evict_idle()
        app.state.model_manager.unload_idle_models()


async def _stop(*tasks: asyncio.Task[None]) -> None:
    """Cancel background tasks and wait until they have actually finished."""
    for task in tasks:
        task.cancel()
    for task in tasks:
        with suppress(asyncio.CancelledError):
            await task


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: initialize on startup, clean up on shutdown."""
    settings = get_settings()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    logger.info(
        "Starting EcoClear (device=%s, max_concurrent=%s, model=%s)",
        settings.device,
        settings.max_concurrent,
        settings.classifier_model,
    )

    init_app_state(app, settings)
    warm_up = asyncio.create_task(_warm_up(app.state.classifier))
    housekeeping = asyncio.create_task(_housekeeping(app))

    logger.info("EcoClear ready")
    yield

    logger.info("Shutting down EcoClear")
    await _stop(warm_up, housekeeping)
    app.state.sessions.shutdown()
    app.state.model_manager.shutdown()
    app.state.inference_pool.shutdown()
    logger.info("EcoClear shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="EcoClear",
        description="Waste classification from photos with disposal guidance",
        version="2.0.0",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(router)
    return application


app = create_app()


def run() -> None:
    """Serve the app with uvicorn using ECOCLEAR_HOST / ECOCLEAR_PORT."""
    import uvicorn

    settings = get_settings()
    uvicorn.run("ecoclear.main:app", host=settings.host, port=settings.port)
