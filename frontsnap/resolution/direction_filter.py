"""Rank candidates by how well they line up with the camera heading."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from frontsnap.core.geo import angular_difference, bearing_degrees, distance_meters
from frontsnap.models import Candidate, Coordinate, PhotoLocation

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE_DEGREES = 45.0
DIRECTION_WEIGHT = 0.7
DISTANCE_WEIGHT = 0.3
DISTANCE_CAP_M = 100.0
FALLBACK_LIMIT = 5


@dataclass(frozen=True)
class ScoredCandidate:
    candidate: Candidate
    bearing_to_place: float
    angle_diff: float
    distance_meters: float
    direction_score: float
    distance_score: float
    combined_score: float
    in_direction: bool


def score_candidate(candidate: Candidate, origin: Coordinate, direction: float, tolerance_degrees: float) -> ScoredCandidate:
    bearing = bearing_degrees(origin, candidate.coordinates)
    distance = distance_meters(origin, candidate.coordinates)
    angle_diff = angular_difference(bearing, direction)
    direction_score = angle_diff
    distance_score = min(distance, DISTANCE_CAP_M)
    return ScoredCandidate(
        candidate=candidate,
        bearing_to_place=bearing,
        angle_diff=angle_diff,
        distance_meters=distance,
        direction_score=direction_score,
        distance_score=distance_score,
        combined_score=DIRECTION_WEIGHT * direction_score + DISTANCE_WEIGHT * distance_score,
        in_direction=angle_diff <= tolerance_degrees,
    )


def rank_by_distance(
    candidates: Sequence[Candidate], origin: Coordinate, limit: Optional[int] = None
) -> List[Candidate]:
    """Nearest first; ties keep their input order."""
    ranked = sorted(candidates, key=lambda c: distance_meters(origin, c.coordinates))
    return ranked[:limit] if limit is not None else ranked


def apply_direction_filter(
    candidates: Sequence[Candidate],
    photo_location: PhotoLocation,
    tolerance_degrees: float = DEFAULT_TOLERANCE_DEGREES,
) -> List[Candidate]:
    """Keep candidates within ``tolerance_degrees`` of the camera heading, best combined score first.

    Without a heading, or without candidates, the input is returned unchanged.
    When the heading rules out every candidate the heading is treated as noise
    and the five nearest candidates are returned instead.
    """
    if photo_location.direction is None or not candidates:
        return list(candidates)

    origin = photo_location.coordinate
    direction = photo_location.direction
    scored = [score_candidate(c, origin, direction, tolerance_degrees) for c in candidates]

    for item in scored:
        logger.debug(
            "%s: bearing %.1f, diff %.1f, dist %.1fm, score %.1f, %s",
            item.candidate.name,
            item.bearing_to_place,
            item.angle_diff,
            item.distance_meters,
            item.combined_score,
            "in" if item.in_direction else "out",
        )

    aligned = sorted((s for s in scored if s.in_direction), key=lambda s: s.combined_score)
    if not aligned:
        logger.info(
            "Heading %.1f deg ruled out all %d candidates; using the %d nearest instead",
            direction,
            len(scored),
            FALLBACK_LIMIT,
        )
        return rank_by_distance(candidates, origin, FALLBACK_LIMIT)

    logger.info("Direction filtering kept %d/%d candidates", len(aligned), len(scored))
    return [s.candidate for s in aligned]
