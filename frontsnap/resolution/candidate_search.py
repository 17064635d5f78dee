"""Cascading place search around a photo location."""

import logging
from typing import List, Optional, Sequence

from frontsnap.core.cancellation import CancellationToken, ensure_token
from frontsnap.etl.transform import text_query_for
from frontsnap.models import BusinessGuess, Candidate, Coordinate
from frontsnap.resolution.direction_filter import rank_by_distance
from frontsnap.resolution.interfaces import PlaceSearch

logger = logging.getLogger(__name__)

SEARCH_RADII_M = (50, 200, 500)
NEARBY_RADII_M = (500, 1000)


def _run_stage(label: str, call, *args, **kwargs) -> List[Candidate]:
    """Run one search stage; any failure counts as zero candidates."""
    try:
        results = call(*args, **kwargs)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Search stage %s failed: %s", label, exc)
        return []
    results = list(results or [])
    logger.info("Search stage %s found %d candidates", label, len(results))
    return results


def resolve_candidates(
    search: PlaceSearch,
    location: Coordinate,
    business_name: str,
    business_type: str,
    cancel_token: Optional[CancellationToken] = None,
    radii: Sequence[int] = SEARCH_RADII_M,
) -> List[Candidate]:
    """Typed nearby search at widening radii, then a location-biased text search.

    Stops at the first stage that returns anything. Never raises for provider
    failures; returns an empty list when every stage comes back empty.
    """
    token = ensure_token(cancel_token)

    for radius in radii:
        token.raise_if_cancelled(f"{radius}m search")
        candidates = _run_stage(
            f"nearby-{radius}m", search.search_nearby_typed, location, business_name, business_type, radius
        )
        if candidates:
            return candidates

    token.raise_if_cancelled("text search")
    query = text_query_for(business_name, business_type)
    logger.info("Falling back to text search: %r", query)
    return _run_stage("text", search.search_by_text, query, location_bias=location)


def find_nearby_places(
    search: PlaceSearch,
    location: Coordinate,
    cancel_token: Optional[CancellationToken] = None,
    radii: Sequence[int] = NEARBY_RADII_M,
) -> List[Candidate]:
    """Everything near the location, nearest first, for picking the right place by hand."""
    token = ensure_token(cancel_token)
    for radius in radii:
        token.raise_if_cancelled(f"{radius}m nearby listing")
        candidates = _run_stage(f"all-nearby-{radius}m", search.search_nearby, location, radius)
        if candidates:
            return rank_by_distance(candidates, location)
    return []


def search_by_address(search: PlaceSearch, address: str) -> List[Candidate]:
    address = (address or "").strip()
    if not address:
        return []
    return _run_stage("address", search.search_by_text, address)


def search_guess_near(search: PlaceSearch, location: Coordinate, guess: BusinessGuess) -> List[Candidate]:
    query = f"{guess.business_name} {guess.business_type}".strip()
    return _run_stage("guess-near", search.search_by_text, query, location_bias=location)
