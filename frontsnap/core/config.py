"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_PROVIDERS = {"google", "serpapi"}


class ConfigError(RuntimeError):
    """Raised when mandatory configuration is missing."""


@dataclass(frozen=True)
class Settings:
    google_api_key: str
    openai_api_key: str
    serpapi_api_key: str = ""
    openai_model: str = "gpt-4o"
    places_provider: str = "google"
    request_timeout_seconds: float = 10.0
    direction_tolerance_degrees: float = 45.0
    port: int = 8080


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    google_api_key = os.getenv("GOOGLE_API_KEY", "")
    openai_api_key = os.getenv("OPENAI_API_KEY", "")
    serpapi_api_key = os.getenv("SERPAPI_API_KEY", "")
    openai_model = os.getenv("OPENAI_MODEL", "gpt-4o").strip() or "gpt-4o"
    places_provider = os.getenv("PLACES_PROVIDER", "google").strip().lower()
    request_timeout_seconds = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "10"))
    direction_tolerance_degrees = float(os.getenv("DIRECTION_TOLERANCE_DEGREES", "45"))
    port = int(os.getenv("PORT", "8080"))

    if places_provider not in _PROVIDERS:
        logger.warning("Unknown PLACES_PROVIDER=%s; falling back to google.", places_provider)
        places_provider = "google"
    if places_provider == "google" and not google_api_key:
        logger.warning("GOOGLE_API_KEY is not configured; Google Places requests will fail.")
    if places_provider == "serpapi" and not serpapi_api_key:
        logger.warning("SERPAPI_API_KEY is not configured; SerpAPI requests will fail.")
    if not openai_api_key:
        logger.warning("OPENAI_API_KEY is not configured; photo analysis will fail.")

    return Settings(
        google_api_key=google_api_key,
        openai_api_key=openai_api_key,
        serpapi_api_key=serpapi_api_key,
        openai_model=openai_model,
        places_provider=places_provider,
        request_timeout_seconds=request_timeout_seconds,
        direction_tolerance_degrees=direction_tolerance_degrees,
        port=port,
    )


def require_key(settings: Settings, name: str) -> str:
    """Return a configured credential or raise ConfigError naming its env var."""
    value = getattr(settings, name)
    if not value:
        raise ConfigError(f"{name.upper()} must be set in the environment.")
    return value
