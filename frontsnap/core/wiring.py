"""Build configured collaborators for the entry points."""

import logging

from frontsnap.core.config import Settings, require_key
from frontsnap.resolution.resolver import PlaceResolver
from frontsnap.vendors.google_places import GooglePlacesSearch
from frontsnap.vendors.openai_vision import OpenAIStorefrontAnalyzer
from frontsnap.vendors.serp_places import SerpPlacesSearch

logger = logging.getLogger(__name__)


def build_place_search(settings: Settings):
    if settings.places_provider == "serpapi":
        logger.info("Using SerpAPI place search")
        return SerpPlacesSearch(
            require_key(settings, "serpapi_api_key"), timeout=settings.request_timeout_seconds
        )
    return GooglePlacesSearch(require_key(settings, "google_api_key"), timeout=settings.request_timeout_seconds)


def build_analyzer(settings: Settings) -> OpenAIStorefrontAnalyzer:
    # Vision requests get at least 30s.
    return OpenAIStorefrontAnalyzer(
        require_key(settings, "openai_api_key"),
        model=settings.openai_model,
        timeout=max(settings.request_timeout_seconds, 30),
    )


def build_resolver(settings: Settings) -> PlaceResolver:
    return PlaceResolver(
        analyzer=build_analyzer(settings),
        search=build_place_search(settings),
        tolerance_degrees=settings.direction_tolerance_degrees,
    )
