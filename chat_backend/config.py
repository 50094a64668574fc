"""
Configuration module for the recommendation chat backend.

Loads environment variables and validates required settings.
Values are read once at import time; components receive them as
constructor arguments and never re-read the environment mid-request.
"""
import os
from typing import List, Optional
from dotenv import load_dotenv

# Load .env file
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Provider specific credential variables, tried in order when
# UPSTREAM_API_KEY is not set.
PROVIDER_KEY_VARIABLES = {
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    "openai": ("OPENAI_API_KEY",),
    "huggingface": ("HF_API_TOKEN", "HUGGINGFACEHUB_API_TOKEN"),
}


class Settings:
    """Application settings loaded from environment variables."""

    # Upstream LLM provider
    LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "gemini").strip().lower()
    LLM_MODEL: str = os.getenv("LLM_MODEL", "")
    UPSTREAM_URL: str = os.getenv("UPSTREAM_URL", "")
    UPSTREAM_API_KEY: str = os.getenv("UPSTREAM_API_KEY", "")

    # Retry and timeout budget for each completion
    UPSTREAM_TIMEOUT_SECONDS: float = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "20"))
    UPSTREAM_MAX_ATTEMPTS: int = int(os.getenv("UPSTREAM_MAX_ATTEMPTS", "3"))
    UPSTREAM_BACKOFF_BASE_MS: int = int(os.getenv("UPSTREAM_BACKOFF_BASE_MS", "1000"))
    # When false, 4xx answers other than 408/429 fail without retrying
    UPSTREAM_RETRY_CLIENT_ERRORS: bool = _env_bool("UPSTREAM_RETRY_CLIENT_ERRORS", "true")

    # Recommendation behaviour
    FALLBACK_POLICY: str = os.getenv("FALLBACK_POLICY", "random").strip().lower()
    CATALOG_PATH: str = os.getenv("CATALOG_PATH", "")
    SHOP_NAME: str = os.getenv("SHOP_NAME", "POOPKY")

    # Application Settings
    PORT: int = int(os.getenv("PORT", "3000"))
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS Settings (production only; other environments allow all origins)
    CORS_ALLOWED_ORIGINS: List[str] = [
        origin.strip()
        for origin in os.getenv("CORS_ALLOWED_ORIGINS", "").split(",")
        if origin.strip()
    ]

    @property
    def upstream_api_key(self) -> str:
        """Credential for the configured provider."""
        if self.UPSTREAM_API_KEY:
            return self.UPSTREAM_API_KEY
        for variable in PROVIDER_KEY_VARIABLES.get(self.LLM_PROVIDER, ()):
            value = os.getenv(variable, "")
            if value:
                return value
        return ""

    @property
    def upstream_url(self) -> Optional[str]:
        """Endpoint override, or None to use the provider default."""
        return self.UPSTREAM_URL or None

    @property
    def llm_model(self) -> Optional[str]:
        """Model override, or None to use the provider default."""
        return self.LLM_MODEL or None

    def validate(self) -> None:
        """
        Validate that all required settings are configured.

        Raises:
            ValueError: If any required setting is missing or out of range.
        """
        problems = []

        if self.LLM_PROVIDER not in PROVIDER_KEY_VARIABLES:
            problems.append(
                f"LLM_PROVIDER must be one of {', '.join(PROVIDER_KEY_VARIABLES)} "
                f"(got '{self.LLM_PROVIDER}')"
            )
        elif not self.upstream_api_key:
            names = ("UPSTREAM_API_KEY",) + PROVIDER_KEY_VARIABLES[self.LLM_PROVIDER]
            problems.append(f"Missing upstream credential: set one of {', '.join(names)}")

        if self.FALLBACK_POLICY not in ("random", "none"):
            problems.append(f"FALLBACK_POLICY must be 'random' or 'none' (got '{self.FALLBACK_POLICY}')")

        if self.UPSTREAM_MAX_ATTEMPTS < 1:
            problems.append("UPSTREAM_MAX_ATTEMPTS must be at least 1")

        if self.UPSTREAM_TIMEOUT_SECONDS <= 0:
            problems.append("UPSTREAM_TIMEOUT_SECONDS must be positive")

        if problems:
            raise ValueError(
                "Invalid configuration: " + "; ".join(problems) + ". "
                "Please check your .env file."
            )

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT.lower() == "production"

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT.lower() == "development"


# Create a singleton instance
settings = Settings()

# Validate settings on module import (will fail fast if misconfigured)
# Skip validation during tests or when importing for introspection
if os.getenv("VALIDATE_CONFIG", "true").lower() == "true":
    try:
        settings.validate()
    except ValueError as e:
        # In development, warn but don't crash
        if settings.is_development():
            print(f"⚠️  Warning: {e}")
            print("   The app may not work correctly until you configure your .env file.")
        else:
            # In production or staging, fail immediately
            raise
