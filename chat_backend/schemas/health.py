"""
Health check endpoint schemas.

The health endpoint is PUBLIC and returns a simple status indicator plus the
size of the loaded catalog.
"""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """
    Response model for GET /health endpoint.

    Used by load balancers, monitoring systems, and deployment checks.
    """

    status: str = Field(
        default="ok",
        description="Health status of the API (always 'ok' if responding)",
        examples=["ok"]
    )
    provider: str = Field(..., description="Configured upstream LLM provider", examples=["gemini"])
    catalog_size: int = Field(..., description="Number of recommendable products", examples=[5])

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "example": {
                "status": "ok",
                "provider": "gemini",
                "catalog_size": 5
            }
        }
