"""
Service layer for the recommendation chat backend.

Contains the pipeline components that sit between the HTTP route and the
upstream LLM:
- completion_client: upstream call with retry and backoff
- response_validator: structured-output contract enforcement
- resolver: catalog lookup and fallback policy
- recommendation_service: orchestration and failure mapping
"""

from .recommendation_service import RecommendationPipeline, build_pipeline

__all__ = [
    "RecommendationPipeline",
    "build_pipeline",
]
