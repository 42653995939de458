"""FastAPI app factory."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from svgcraft.config import settings
from svgcraft.knowledge.cache import TTLCache
from svgcraft.services import Services, build_services

load_dotenv()

logging.basicConfig(
    level=getattr(logging, settings.svgcraft_log_level.upper(), logging.INFO),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)

logger = logging.getLogger(__name__)


async def cache_cleanup_loop(cache: TTLCache, interval_s: float) -> None:
    """Periodically drop expired grounding entries until cancelled."""
    while True:
        await asyncio.sleep(interval_s)
        removed = cache.cleanup()
        logger.info("Cache cleanup: removed %d expired entries, %d remain", removed, len(cache))


@asynccontextmanager
async def lifespan(app: FastAPI):
    task = asyncio.create_task(cache_cleanup_loop(app.state.services.cache, settings.cache_cleanup_interval_s))
    yield
    task.cancel()
    with suppress(asyncio.CancelledError):
        await task


def create_app(services: Services | None = None) -> FastAPI:
    app = FastAPI(
        title="svgcraft",
        description="Prompt-to-SVG generation with seeded composition planning and grounded retrieval",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.services = services or build_services()

    from svgcraft.api.router import api_router

    app.include_router(api_router)

    return app


app = create_app()
