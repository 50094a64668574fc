"""
Logging utilities for the recommendation chat backend.

Provides standardized logger configuration following security and privacy rules.

CRITICAL SECURITY RULES:
- NEVER log the upstream API key (Gemini/OpenAI/HuggingFace credentials)
- NEVER log full user messages (truncate with ``preview()``)
- NEVER return raw upstream payloads to clients; log them server-side only

Acceptable logging:
- Pipeline state transitions (e.g., "Requesting → Validating")
- Retry attempts with the sanitized error message
- Raw model text on validation failure, truncated, at ERROR level
"""

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Get a logger for the specified module.

    No handler is attached here. Records propagate to the root logger,
    which ``main.py`` (or a script entry point) sets up with
    ``logging.basicConfig`` and ``LOG_FORMAT``.

    Args:
        name: Module name (typically __name__)
        level: Optional logging level (defaults to the root configuration)

    Returns:
        Configured logger instance

    Usage:
        >>> from chat_backend.utils.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("High-level event occurred")
    """
    logger = logging.getLogger(name)

    if level is not None:
        logger.setLevel(level)

    return logger


def preview(text: Optional[str], limit: int = 50) -> str:
    """Truncate text for log lines."""
    if not text:
        return ""
    return text if len(text) <= limit else text[:limit] + "..."
