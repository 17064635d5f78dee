"""Utilities for transforming provider responses into pipeline records."""

import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Tuple

from frontsnap.models import BusinessGuess, Candidate, CandidateDetails, Coordinate

logger = logging.getLogger(__name__)

DEFAULT_BUSINESS_NAME = "Unknown Business"
DEFAULT_BUSINESS_TYPE = "Business"

_GENERIC_NAMES = {"", "unknown", "unknown business", "business"}

_IGNORE_TYPES = {"point_of_interest", "establishment", "political", "premise"}

# Ordered: the first matching key wins for both exact and substring lookups.
_PLACE_TYPES: Dict[str, Tuple[str, ...]] = {
    "Spa": ("spa", "beauty_salon", "health"),
    "Salon": ("beauty_salon", "hair_care"),
    "Spa/Salon": ("spa", "beauty_salon", "hair_care", "health"),
    "Beauty Salon": ("beauty_salon", "hair_care"),
    "Hair Salon": ("hair_care", "beauty_salon"),
    "Nail Salon": ("beauty_salon",),
    "Massage": ("spa", "health"),
    "Restaurant": ("restaurant", "food", "meal_takeaway"),
    "Cafe": ("cafe", "restaurant"),
    "Coffee Shop": ("cafe",),
    "Gym": ("gym",),
    "Fitness Center": ("gym",),
    "Store": ("store",),
    "Retail": ("store", "clothing_store", "shopping_mall"),
    "Bookstore": ("book_store",),
    "Hotel": ("lodging",),
    "Bar": ("bar", "night_club"),
    "Pharmacy": ("pharmacy",),
    "Bank": ("bank",),
    "Gas Station": ("gas_station",),
    "Hospital": ("hospital",),
    "School": ("school",),
    "University": ("university",),
}

_CATEGORIES = {
    "restaurant": "Restaurant",
    "cafe": "Coffee Shop",
    "food": "Restaurant",
    "meal_takeaway": "Restaurant",
    "beauty_salon": "Nail Salon",
    "hair_care": "Hair Salon",
    "gym": "Gym",
    "store": "Retail",
    "clothing_store": "Retail",
    "book_store": "Bookstore",
    "electronics_store": "Retail",
}


def is_generic_business_name(name: Optional[str]) -> bool:
    """True for empty names and analyzer placeholders like "Unknown Business"."""
    return (name or "").strip().lower() in _GENERIC_NAMES


def google_place_types_for(business_type: Optional[str]) -> Tuple[str, ...]:
    """Map a free-form business type onto Google place types, exact match first."""
    normalized = (business_type or "").strip().lower()
    if normalized:
        for key, types in _PLACE_TYPES.items():
            if key.lower() == normalized:
                return types
        for key, types in _PLACE_TYPES.items():
            key_lower = key.lower()
            if key_lower in normalized or normalized in key_lower:
                return types
    return ("establishment",)


def text_query_for(business_name: Optional[str], business_type: str) -> str:
    if is_generic_business_name(business_name):
        return business_type
    return f"{business_name.strip()} {business_type}"


def safe_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def safe_int(value: Any) -> Optional[int]:
    number = safe_float(value)
    return int(number) if number is not None else None


def strip_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    value_str = str(value).strip()
    return value_str or None


def parse_coordinate(latitude: Any, longitude: Any) -> Optional[Coordinate]:
    """Build a Coordinate, or None when either value is missing, non-finite or out of range."""
    lat = safe_float(latitude)
    lng = safe_float(longitude)
    if lat is None or lng is None:
        return None
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        return None
    return Coordinate(lat, lng)


def extract_primary_type(types: Iterable[str]) -> Optional[str]:
    for type_name in types or []:
        if type_name not in _IGNORE_TYPES:
            return type_name
    return None


def to_candidate(result: Dict[str, Any]) -> Optional[Candidate]:
    """Convert a Google Places result into a Candidate, or None when it cannot be located."""
    if not isinstance(result, dict):
        return None
    place_id = strip_or_none(result.get("place_id"))
    name = strip_or_none(result.get("name"))
    location = (result.get("geometry") or {}).get("location") or {}
    coordinates = parse_coordinate(location.get("lat"), location.get("lng"))
    if not place_id or not name or coordinates is None:
        logger.debug("Skipping malformed place result: place_id=%s name=%s", place_id, name)
        return None

    return Candidate(
        place_id=place_id,
        name=name,
        coordinates=coordinates,
        address=strip_or_none(result.get("formatted_address") or result.get("vicinity")),
        rating=safe_float(result.get("rating")),
        user_ratings_total=safe_int(result.get("user_ratings_total")),
        types=tuple(t for t in result.get("types") or [] if isinstance(t, str)),
    )


def to_candidates(results: Iterable[Dict[str, Any]]) -> List[Candidate]:
    candidates = []
    for result in results or []:
        candidate = to_candidate(result)
        if candidate is not None:
            candidates.append(candidate)
    return candidates


def to_candidate_details(result: Dict[str, Any]) -> Optional[CandidateDetails]:
    candidate = to_candidate(result)
    if candidate is None:
        return None
    opening_hours = result.get("opening_hours") or {}
    open_now = opening_hours.get("open_now")
    return CandidateDetails(
        candidate=candidate,
        phone=strip_or_none(result.get("formatted_phone_number")),
        website=strip_or_none(result.get("website")),
        open_now=bool(open_now) if open_now is not None else None,
        weekday_text=tuple(opening_hours.get("weekday_text") or ()),
        business_status=strip_or_none(result.get("business_status")),
        reviews=tuple(r for r in result.get("reviews") or [] if isinstance(r, dict)),
    )


def to_business_guess(payload: Dict[str, Any]) -> BusinessGuess:
    """Normalize an analyzer response; missing name and type fall back to placeholders."""
    coordinates = None
    raw_coordinates = payload.get("coordinates")
    if isinstance(raw_coordinates, dict):
        coordinates = parse_coordinate(raw_coordinates.get("latitude"), raw_coordinates.get("longitude"))

    features = payload.get("features") or []
    return BusinessGuess(
        business_name=strip_or_none(payload.get("businessName")) or DEFAULT_BUSINESS_NAME,
        business_type=strip_or_none(payload.get("businessType")) or DEFAULT_BUSINESS_TYPE,
        location_text=strip_or_none(payload.get("locationText")),
        coordinates=coordinates,
        description=strip_or_none(payload.get("description")),
        features=tuple(str(f) for f in features if f) if isinstance(features, list) else (),
    )


def category_for(types: Iterable[str]) -> str:
    for type_name in types or []:
        if type_name in _CATEGORIES:
            return _CATEGORIES[type_name]
    return "Other"


def to_place_record(details: CandidateDetails, business_type: Optional[str] = None) -> Dict[str, Any]:
    """Flatten resolved details into the place record shown on the result screen."""
    candidate = details.candidate
    return {
        "google_place_id": candidate.place_id,
        "name": candidate.name,
        "category": business_type or category_for(candidate.types),
        "address": candidate.address,
        "latitude": candidate.coordinates.latitude,
        "longitude": candidate.coordinates.longitude,
        "rating": candidate.rating or 0,
        "review_count": candidate.user_ratings_total or 0,
        "is_open": bool(details.open_now),
        "hours": "Open now" if details.open_now else "Closed",
        "week_hours": list(details.weekday_text),
        "phone": details.phone,
        "website": details.website,
        "primary_type": extract_primary_type(candidate.types),
    }
