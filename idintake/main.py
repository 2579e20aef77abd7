"""FastAPI application entry point."""

from dotenv import load_dotenv

load_dotenv()

import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from idintake import __version__
from idintake.api.routes import address, health, ocr
from idintake.core.config import get_app_settings
from idintake.core.error_handlers import (
    handle_app_error,
    handle_http_error,
    handle_unknown_error,
    handle_validation_error,
)
from idintake.core.exceptions import BaseError
from idintake.core.lifespan import lifespan
from idintake.core.logging import configure_structured_logging
from idintake.core.middleware import trace_id_middleware

settings = get_app_settings()
configure_structured_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title="ID Intake API",
        version=__version__,
        description="Reads identity documents and resolves addresses to PSGC codes",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # 1. Register Middleware
    app.middleware("http")(trace_id_middleware)

    # 2. Register Exception Handlers
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(BaseError, handle_app_error)
    app.add_exception_handler(Exception, handle_unknown_error)

    # Routes
    app.include_router(health.router)
    app.include_router(ocr.router)
    app.include_router(address.router)
    return app


app = create_app()
