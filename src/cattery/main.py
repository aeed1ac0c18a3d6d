"""
Application factory.

    uvicorn cattery.main:app
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from cattery.api.error_handlers import register_exception_handlers
from cattery.api.routes import build_router
from cattery.config import Settings, get_settings
from cattery.core.logging import RequestIDMiddleware, setup_logging, stop_queue_logging
from cattery.database.base import Base
from cattery.database.session import engine
from cattery.utils.logging import get_project_version
import cattery.models  # noqa: F401 – registers models on Base.metadata

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.DATABASE_AUTO_CREATE:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        logger.info("app.startup", extra={"env": settings.ENV, "auto_create": settings.DATABASE_AUTO_CREATE})

        yield

        logger.info("app.shutdown")
        await engine.dispose()
        stop_queue_logging()

    app = FastAPI(
        title="Cattery",
        version=get_project_version(),
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
    )
    app.add_middleware(RequestIDMiddleware)
    register_exception_handlers(app)
    app.include_router(build_router())
    return app


app = create_app()
