"""
Recommendation System - Single-Shot Structured Output

This package contains the prompt templates, pipeline value types and the
upstream provider adapters for the chat recommendation pipeline.

Architecture:
- Pattern: one generation call per user message
- Providers: Gemini (default), OpenAI, Hugging Face
- Output: {"reply": string, "productId": catalog id}

The service layer is in:
- chat_backend/services/recommendation_service.py
"""

from chat_backend.agents.recommendation.prompts import (
    RECOMMENDATION_SYSTEM_PROMPT,
    build_model_instruction,
    build_output_schema,
)
from chat_backend.agents.recommendation.providers import get_provider

__all__ = [
    "RECOMMENDATION_SYSTEM_PROMPT",
    "build_model_instruction",
    "build_output_schema",
    "get_provider",
]
