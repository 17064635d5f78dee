"""SerpAPI Google Maps helpers, usable as an alternative place search provider."""

from __future__ import annotations

import logging
import random
import time
from typing import Any, Dict, Iterable, List, Optional

from serpapi import GoogleSearch

from frontsnap.core.geo import distance_meters
from frontsnap.etl.transform import (
    google_place_types_for,
    is_generic_business_name,
    parse_coordinate,
    safe_float,
    safe_int,
    strip_or_none,
)
from frontsnap.models import Candidate, CandidateDetails, Coordinate

logger = logging.getLogger(__name__)

RETRY_LIMIT = 2
RETRY_DELAY_SECONDS = 1.2
TEXT_SEARCH_ZOOM = 13
DEFAULT_TIMEOUT_SECONDS = 10.0
# Marks candidate ids that are SerpAPI data ids rather than Google place ids.
DATA_ID_PREFIX = "data_id:"

# (max radius in meters, map zoom) pairs, tightest first.
_ZOOM_LEVELS = ((100, 18), (250, 17), (600, 16), (1200, 15), (2500, 14))


class SerpPlacesError(RuntimeError):
    """Raised when SerpAPI returns an error payload."""


def zoom_for_radius(radius_meters: float) -> int:
    for max_radius, zoom in _ZOOM_LEVELS:
        if radius_meters <= max_radius:
            return zoom
    return TEXT_SEARCH_ZOOM


def build_ll(location: Coordinate, zoom: int) -> str:
    """SerpAPI ``ll`` viewport in the form '@lat,lng,zoomz'."""
    return f"@{location.latitude},{location.longitude},{zoom}z"


def build_serpapi_params(api_key: str, query: Optional[str] = None, ll: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    params: Dict[str, Any] = {"engine": "google_maps", "api_key": api_key, "type": "search"}
    if query:
        params["q"] = query.strip()
    if ll:
        params["ll"] = ll
    params.update(extra)
    return params


def fetch_from_serpapi(params: Dict[str, Any], timeout: float = DEFAULT_TIMEOUT_SECONDS) -> Dict[str, Any]:
    """Call SerpAPI Google Maps and return the raw JSON response with retry logic.

    ``timeout`` bounds each attempt; the client's own default is far too long.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            logger.info("Calling SerpAPI (attempt %s) for q=%s ll=%s", attempt, params.get("q"), params.get("ll"))
            search = GoogleSearch(params)
            search.timeout = timeout
            data = search.get_dict()
            if not data:
                raise SerpPlacesError("SerpAPI returned an empty payload.")
            if "error" in data:
                # "no results" is reported as an error by SerpAPI.
                if "hasn't returned any results" in str(data.get("error")):
                    return {}
                raise SerpPlacesError(f"SerpAPI returned an error response: {data.get('error')}")
            return data
        except Exception as exc:  # noqa: BLE001
            logger.warning("SerpAPI request failed (attempt %s/%s): %s", attempt, RETRY_LIMIT + 1, exc)
            if attempt > RETRY_LIMIT:
                logger.error("SerpAPI request exhausted retries for q=%s", params.get("q"))
                raise
            time.sleep(RETRY_DELAY_SECONDS + random.uniform(0, 0.8))


def _extract_items(data: Dict[str, Any]) -> Iterable[Any]:
    """SerpAPI sometimes returns local_results as a list or nested dict."""
    local_results = data.get("local_results")
    if isinstance(local_results, list):
        return local_results
    if isinstance(local_results, dict):
        for maybe in (local_results.get("places"), local_results.get("results")):
            if isinstance(maybe, list):
                return maybe
    place_results = data.get("place_results")
    if isinstance(place_results, dict):
        return [place_results]
    return []


def _item_types(raw: Dict[str, Any]) -> tuple:
    types = raw.get("types")
    if isinstance(types, list):
        values = types
    elif raw.get("type"):
        values = [raw["type"]]
    else:
        values = []
    return tuple(str(t).strip().lower().replace(" ", "_") for t in values if t)


def to_serp_candidate(raw: Any) -> Optional[Candidate]:
    if not isinstance(raw, dict):
        return None
    name = strip_or_none(raw.get("title") or raw.get("name"))
    place_id = strip_or_none(raw.get("place_id"))
    if not place_id:
        data_id = strip_or_none(raw.get("data_id"))
        place_id = f"{DATA_ID_PREFIX}{data_id}" if data_id else None
    gps = raw.get("gps_coordinates") or {}
    coordinates = parse_coordinate(gps.get("latitude"), gps.get("longitude"))
    if not name or not place_id or coordinates is None:
        return None
    return Candidate(
        place_id=place_id,
        name=name,
        coordinates=coordinates,
        address=strip_or_none(raw.get("address")),
        rating=safe_float(raw.get("rating")),
        user_ratings_total=safe_int(raw.get("reviews")),
        types=_item_types(raw),
    )


def parse_serpapi_maps(data: Optional[Dict[str, Any]]) -> List[Candidate]:
    """Extract SerpAPI local/place results into Candidates, dropping ones without coordinates."""
    if not data:
        return []
    candidates = []
    for raw in _extract_items(data):
        candidate = to_serp_candidate(raw)
        if candidate is not None:
            candidates.append(candidate)
    return candidates


def _within(candidates: List[Candidate], location: Coordinate, radius_meters: float) -> List[Candidate]:
    return [c for c in candidates if distance_meters(location, c.coordinates) <= radius_meters]


class SerpPlacesSearch:
    """Place search collaborator backed by SerpAPI's Google Maps engine.

    SerpAPI has no radius parameter, so nearby searches zoom the viewport to
    the radius and drop results that fall outside it.
    """

    def __init__(self, api_key: str, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self.api_key = api_key
        self.timeout = timeout

    def search_nearby_typed(
        self, location: Coordinate, business_name: str, business_type: str, radius_meters: int
    ) -> List[Candidate]:
        place_type = google_place_types_for(business_type)[0].replace("_", " ")
        if is_generic_business_name(business_name):
            query = business_type or place_type
        else:
            query = f"{business_name.strip()} {business_type}"
        params = build_serpapi_params(self.api_key, query, build_ll(location, zoom_for_radius(radius_meters)))
        return _within(parse_serpapi_maps(fetch_from_serpapi(params, self.timeout)), location, radius_meters)

    def search_nearby(
        self, location: Coordinate, radius_meters: int, keyword: Optional[str] = None
    ) -> List[Candidate]:
        params = build_serpapi_params(
            self.api_key, keyword or "places", build_ll(location, zoom_for_radius(radius_meters))
        )
        return _within(parse_serpapi_maps(fetch_from_serpapi(params, self.timeout)), location, radius_meters)

    def search_by_text(self, query: str, location_bias: Optional[Coordinate] = None) -> List[Candidate]:
        ll = build_ll(location_bias, TEXT_SEARCH_ZOOM) if location_bias is not None else None
        return parse_serpapi_maps(fetch_from_serpapi(build_serpapi_params(self.api_key, query, ll), self.timeout))

    def get_details(self, place_id: str) -> Optional[CandidateDetails]:
        if place_id.startswith(DATA_ID_PREFIX):
            id_param = {"data_id": place_id[len(DATA_ID_PREFIX) :]}
        else:
            id_param = {"place_id": place_id}
        data = fetch_from_serpapi(build_serpapi_params(self.api_key, type="place", **id_param), self.timeout)
        raw = data.get("place_results")
        candidate = to_serp_candidate(raw)
        if candidate is None:
            return None
        user_reviews = raw.get("user_reviews")
        reviews = user_reviews.get("most_relevant") or [] if isinstance(user_reviews, dict) else []
        return CandidateDetails(
            candidate=candidate,
            phone=strip_or_none(raw.get("phone")),
            website=strip_or_none(raw.get("website")),
            weekday_text=_weekday_text(raw.get("operating_hours")),
            business_status=strip_or_none(raw.get("open_state")),
            reviews=tuple(r for r in reviews if isinstance(r, dict)),
        )


def _weekday_text(operating_hours: Any) -> tuple:
    if not isinstance(operating_hours, dict):
        return ()
    return tuple(f"{day.capitalize()}: {hours}" for day, hours in operating_hours.items())
