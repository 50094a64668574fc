"""
FastAPI application entry point for the recommendation chat backend.

This module creates the FastAPI app instance, builds the catalog and the
recommendation pipeline once at startup, and registers all routers.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chat_backend.catalog import load_catalog
from chat_backend.config import settings
from chat_backend.routes.chat import empty_message_response
from chat_backend.routes.chat import router as chat_router
from chat_backend.routes.health import router as health_router
from chat_backend.services.recommendation_service import build_pipeline
from chat_backend.utils.logging import LOG_FORMAT

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format=LOG_FORMAT
)

logger = logging.getLogger(__name__)


def _get_cors_origins() -> list[str]:
    """
    Get allowed CORS origins based on environment.

    Environment-based configuration:
    - ENVIRONMENT=production: Uses CORS_ALLOWED_ORIGINS env var
    - ENVIRONMENT=testing/development: Allows all origins so the chat widget
      can be served from any local page

    Returns:
        List of allowed origin URLs, or ["*"] for development.
    """
    if settings.is_production():
        origins = settings.CORS_ALLOWED_ORIGINS
        if origins:
            logger.info(f"CORS configured for production with {len(origins)} allowed origins")
        else:
            logger.warning(
                "CORS_ALLOWED_ORIGINS not set in production. "
                "No web origins allowed. Set CORS_ALLOWED_ORIGINS for the chat widget host."
            )
        return origins

    logger.info(f"CORS configured for {settings.ENVIRONMENT}: allowing all origins")
    return ["*"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the read-only catalog and the pipeline once per process."""
    catalog = load_catalog(settings.CATALOG_PATH or None)
    app.state.pipeline = build_pipeline(settings, catalog)
    yield


# Create FastAPI app
app = FastAPI(
    title="Product Recommendation Chat API",
    description="Backend mediator between the shop chat widget and an LLM provider",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


# Custom validation error handler to log detailed errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Log detailed validation errors for debugging.

    /chat answers malformed bodies the same way as a missing message.
    """
    logger.error(
        f"Validation error on {request.method} {request.url.path}: {exc.errors()}"
    )

    if request.url.path == "/chat":
        return empty_message_response()

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "details": exc.errors(),
        }
    )

# Configure CORS with environment-based origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=_get_cors_origins(),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(health_router)
app.include_router(chat_router)

logger.info("FastAPI app initialized successfully")
