"""
AI components for the recommendation chat backend.

1. Recommendation System (single-shot structured output)
   - Prompt templates and the output schema: agents/recommendation/prompts.py
   - Provider adapters (Gemini, OpenAI, Hugging Face): agents/recommendation/providers.py
   - Orchestration lives in: chat_backend/services/recommendation_service.py
"""
