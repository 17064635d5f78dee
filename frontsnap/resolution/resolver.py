"""Photo-to-place resolution: ties extraction, search and ranking together."""

import logging
from typing import Optional, Union

from frontsnap.core.cancellation import CancellationToken, ensure_token
from frontsnap.errors import ImageAnalysisError, LocationRequiredError
from frontsnap.models import CandidateDetails, CapturedPhoto, Coordinate, ResolutionResult
from frontsnap.resolution.candidate_search import resolve_candidates
from frontsnap.resolution.direction_filter import DEFAULT_TOLERANCE_DEGREES, apply_direction_filter
from frontsnap.resolution.interfaces import DeviceLocationProvider, ImageAnalyzer, PlaceSearch
from frontsnap.resolution.photo_location import extract_photo_location

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 5

DeviceLocation = Union[Coordinate, DeviceLocationProvider, None]


def _device_coordinate(device_location: DeviceLocation) -> Optional[Coordinate]:
    if device_location is None or isinstance(device_location, Coordinate):
        return device_location
    try:
        return device_location.get_current_coordinate()
    except Exception as exc:  # noqa: BLE001
        logger.warning("Device location unavailable: %s", exc)
        return None


class PlaceResolver:
    """Resolve a storefront photo to a single place, or to "let the user pick".

    Holds only its collaborators, so one instance can serve concurrent flows.
    """

    def __init__(
        self,
        analyzer: ImageAnalyzer,
        search: PlaceSearch,
        device_location: DeviceLocation = None,
        tolerance_degrees: float = DEFAULT_TOLERANCE_DEGREES,
    ):
        self.analyzer = analyzer
        self.search = search
        self.device_location = device_location
        self.tolerance_degrees = tolerance_degrees

    def resolve_place(
        self,
        photo: CapturedPhoto,
        device_location: DeviceLocation = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ResolutionResult:
        token = ensure_token(cancel_token)

        photo_location = extract_photo_location(photo.image, photo.metadata)
        if photo_location is not None:
            location = photo_location.coordinate
            logger.info("Using photo GPS location %s", location)
        else:
            location = _device_coordinate(device_location if device_location is not None else self.device_location)
            if location is None:
                raise LocationRequiredError("Location not available for analysis.")
            logger.info("Photo has no usable GPS; using device location %s", location)

        token.raise_if_cancelled("image analysis")
        try:
            guess = self.analyzer.analyze(photo.image, location)
        except Exception as exc:  # noqa: BLE001
            logger.error("Image analysis failed: %s", exc)
            raise ImageAnalysisError(f"Failed to analyze the photo: {exc}") from exc
        token.raise_if_cancelled("place search")

        candidates = resolve_candidates(
            self.search, location, guess.business_name, guess.business_type, cancel_token=token
        )
        token.raise_if_cancelled("ranking")

        if candidates and photo_location is not None and photo_location.direction is not None:
            candidates = apply_direction_filter(candidates, photo_location, self.tolerance_degrees)

        if not candidates:
            logger.info("No candidates for %s; manual selection needed", guess.business_name)
            return ResolutionResult(location=location, guess=guess, photo_location=photo_location)

        top = candidates[0]
        details = self._fetch_details(top.place_id)
        token.raise_if_cancelled("returning result")

        return ResolutionResult(
            location=location,
            guess=guess,
            resolved=top,
            details=details,
            details_fetched=details is not None,
            suggestions=candidates[1 : MAX_SUGGESTIONS + 1],
            photo_location=photo_location,
        )

    def _fetch_details(self, place_id: str) -> Optional[CandidateDetails]:
        try:
            details = self.search.get_details(place_id)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to fetch details for %s: %s", place_id, exc)
            return None
        if details is None:
            logger.warning("No details returned for %s", place_id)
        return details
