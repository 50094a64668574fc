"""
Health check route for the recommendation chat backend.

This endpoint is PUBLIC and provides a simple status check for load
balancers, monitoring, and deployment verification. It never calls the
upstream LLM.
"""

from fastapi import APIRouter, Depends

from chat_backend.routes.chat import get_pipeline
from chat_backend.schemas.health import HealthResponse
from chat_backend.services.recommendation_service import RecommendationPipeline
from chat_backend.utils.logging import get_logger

logger = get_logger(__name__)

# Create router with no prefix (mounted at root level in main.py)
router = APIRouter(tags=["system"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check endpoint",
    description=(
        "Public health check endpoint. Returns a simple status indicator, "
        "the configured provider and the catalog size."
    ),
    status_code=200,
)
async def health_check(
    pipeline: RecommendationPipeline = Depends(get_pipeline),
) -> HealthResponse:
    """
    Public health check endpoint.

    Example response:
        {
            "status": "ok",
            "provider": "gemini",
            "catalog_size": 5
        }
    """
    logger.debug("Health check endpoint called")

    return HealthResponse(
        status="ok",
        provider=pipeline.completion_client.provider.name,
        catalog_size=len(pipeline.catalog),
    )
