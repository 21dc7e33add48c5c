"""
LessonLab FastAPI Application Entry Point.

Run with: uvicorn lessonlab.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lessonlab.config import get_settings, sanitize_error
from lessonlab.errors import LessonLabError, ValidationError
from lessonlab.api.routes import (
    auth,
    chapters,
    children,
    learning_sessions,
    notifications,
    results,
)
from lessonlab.services.ai_clients import build_pipeline_config
from lessonlab.services.pipeline import ContentPipeline

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown."""
    # Startup
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.state.pipeline = ContentPipeline(build_pipeline_config(settings))
    logger.info("%s started (%s)", settings.app_name, settings.environment)
    yield
    # Shutdown


app = FastAPI(
    title=settings.app_name,
    description="Turns textbook photos into verified lessons for children",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# ERROR HANDLERS
# =============================================================================


@app.exception_handler(LessonLabError)
async def lessonlab_error_handler(request: Request, exc: LessonLabError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
        content = {"detail": sanitize_error(exc, generic_message=exc.default_detail)}
    else:
        content = {"detail": exc.detail}
    if isinstance(exc, ValidationError) and exc.errors:
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and parameters are 400, with the field-level detail."""
    error = ValidationError(errors=jsonable_encoder(exc.errors()))
    return await lessonlab_error_handler(request, error)


# Include routers
app.include_router(auth.router)
app.include_router(auth.child_router)
app.include_router(children.router)
app.include_router(chapters.router)
app.include_router(results.router)
app.include_router(learning_sessions.router)
app.include_router(notifications.router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
