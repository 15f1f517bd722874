"""
Application factory.

    uvicorn --factory helpdesk.main:create_app

No application is built at import time, so importing this module never
configures logging.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from helpdesk.api.v1.conversations import router as conversations_router
from helpdesk.api.v1.error_handlers import register_exception_handlers
from helpdesk.config import Settings, get_settings
from helpdesk.core.logging import RequestIDMiddleware, setup_logging, stop_queue_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    stop_queue_logging()


def create_app(settings: Settings | None = None, configure_logging: bool = True) -> FastAPI:
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings)

    app = FastAPI(title="Helpdesk", lifespan=lifespan)
    app.add_middleware(RequestIDMiddleware)
    register_exception_handlers(app)
    app.include_router(conversations_router)
    return app

