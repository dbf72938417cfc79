# blockcms/core/config.py
import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from blockcms.middleware.ratelimit import build_rate_limit_store, sweep_periodically
from .settings import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = app.state.rate_limit_store
    sweeper = asyncio.create_task(sweep_periodically(store, settings.RATELIMIT_SWEEP_SECONDS))
    try:
        yield
    finally:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
        await store.close()
        logger.info("Rate limit store closed")


def create_app() -> FastAPI:
    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    # Built here, not in lifespan, so apps driven without startup events still limit
    app.state.rate_limit_store = build_rate_limit_store()

    if settings.BACKEND_CORS_ORIGINS:
        origins = [str(o) for o in settings.BACKEND_CORS_ORIGINS]
        allow_credentials = True
        if "*" in origins:
            origins = ["*"]
            allow_credentials = False
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=allow_credentials,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    return app
