"""Client utilities for the Google Places API."""

import logging
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from frontsnap.etl.transform import (
    google_place_types_for,
    is_generic_business_name,
    to_candidate_details,
    to_candidates,
)
from frontsnap.models import Candidate, CandidateDetails, Coordinate

logger = logging.getLogger(__name__)
_BASE_URL = "https://maps.googleapis.com/maps/api/place"
_DETAIL_FIELDS = (
    "place_id,name,formatted_address,rating,user_ratings_total,price_level,opening_hours,"
    "types,geometry,reviews,formatted_phone_number,website,business_status"
)
TEXT_SEARCH_BIAS_RADIUS_M = 5000
# Kinds of place listed when browsing nearby without a keyword.
BROWSE_PLACE_TYPES = ("restaurant", "cafe", "store", "gym", "beauty_salon")


def _build_session() -> requests.Session:
    session = requests.Session()
    retries = Retry(total=2, backoff_factor=0.5, status_forcelist=(500, 502, 503, 504), allowed_methods=("GET",))
    session.mount("https://", HTTPAdapter(max_retries=retries))
    return session


_SESSION = _build_session()


class GooglePlacesError(RuntimeError):
    """Raised when the Places API returns a non-successful response."""


def _get(endpoint: str, params: Dict[str, Any], timeout: float) -> Dict[str, Any]:
    response = _SESSION.get(f"{_BASE_URL}/{endpoint}/json", params=params, timeout=timeout)
    response.raise_for_status()
    payload = response.json()
    status = payload.get("status")
    if status not in {"OK", "ZERO_RESULTS"}:
        logger.error("%s failed: status=%s, error_message=%s", endpoint, status, payload.get("error_message"))
        raise GooglePlacesError(payload.get("error_message") or status)
    return payload


def nearby_search(
    location: Coordinate,
    radius: int,
    api_key: str,
    place_type: Optional[str] = None,
    keyword: Optional[str] = None,
    timeout: float = 10,
) -> Dict[str, Any]:
    params: Dict[str, Any] = {
        "location": f"{location.latitude},{location.longitude}",
        "radius": radius,
        "key": api_key,
    }
    if place_type:
        params["type"] = place_type
    if keyword:
        params["keyword"] = keyword
    return _get("nearbysearch", params, timeout)


def text_search(
    query: str,
    api_key: str,
    location: Optional[Coordinate] = None,
    radius: int = TEXT_SEARCH_BIAS_RADIUS_M,
    pagetoken: Optional[str] = None,
    timeout: float = 10,
) -> Dict[str, Any]:
    params: Dict[str, Any] = {"query": query, "key": api_key}
    if location is not None:
        params["location"] = f"{location.latitude},{location.longitude}"
        params["radius"] = radius
    if pagetoken:
        params["pagetoken"] = pagetoken
    return _get("textsearch", params, timeout)


def place_details(place_id: str, api_key: str, timeout: float = 10) -> Dict[str, Any]:
    params = {"place_id": place_id, "key": api_key, "fields": _DETAIL_FIELDS}
    payload = _get("details", params, timeout)
    return payload.get("result", {})


def _matches_guess(candidate: Candidate, place_types, business_name: str) -> bool:
    if not any(t in place_types for t in candidate.types):
        return False
    if is_generic_business_name(business_name):
        return True
    guessed = business_name.strip().lower()
    found = candidate.name.lower()
    return guessed in found or found in guessed


class GooglePlacesSearch:
    """Place search collaborator backed by the Google Places web service."""

    def __init__(self, api_key: str, timeout: float = 10):
        self.api_key = api_key
        self.timeout = timeout

    def search_nearby_typed(
        self, location: Coordinate, business_name: str, business_type: str, radius_meters: int
    ) -> List[Candidate]:
        place_types = google_place_types_for(business_type)
        keyword = None if is_generic_business_name(business_name) else business_name.strip()

        for place_type in place_types:
            try:
                payload = nearby_search(
                    location, radius_meters, self.api_key, place_type=place_type, keyword=keyword, timeout=self.timeout
                )
            except (GooglePlacesError, requests.RequestException, ValueError) as exc:
                logger.warning("Nearby search failed for type=%s radius=%s: %s", place_type, radius_meters, exc)
                continue

            results = to_candidates(payload.get("results", []))
            if not results:
                logger.debug("No results for type=%s radius=%s", place_type, radius_meters)
                continue

            matched = [c for c in results if _matches_guess(c, place_types, business_name)]
            logger.info(
                "Nearby search type=%s radius=%s: %d results, %d matching %s",
                place_type,
                radius_meters,
                len(results),
                len(matched),
                business_type,
            )
            if matched:
                return matched

        return []

    def search_nearby(
        self, location: Coordinate, radius_meters: int, keyword: Optional[str] = None
    ) -> List[Candidate]:
        """Everything nearby; without a keyword only storefront kinds of place are kept.

        Nearby Search accepts a single ``type``, so the browse filter runs on the results.
        """
        payload = nearby_search(location, radius_meters, self.api_key, keyword=keyword, timeout=self.timeout)
        candidates = to_candidates(payload.get("results", []))
        if keyword:
            return candidates
        return [c for c in candidates if any(t in BROWSE_PLACE_TYPES for t in c.types)]

    def search_by_text(self, query: str, location_bias: Optional[Coordinate] = None) -> List[Candidate]:
        payload = text_search(query, self.api_key, location=location_bias, timeout=self.timeout)
        return to_candidates(payload.get("results", []))

    def get_details(self, place_id: str) -> Optional[CandidateDetails]:
        return to_candidate_details(place_details(place_id, self.api_key, timeout=self.timeout))
