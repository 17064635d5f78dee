"""Core records shared by the photo-to-place resolution pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True, slots=True)
class Coordinate:
    latitude: float
    longitude: float

    def to_dict(self) -> Dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True, slots=True)
class PhotoLocation:
    """Where a photo was taken and, when the camera recorded it, which way it faced.

    ``direction`` and ``accuracy`` are ``None`` when absent; 0 is a real bearing.
    """

    latitude: float
    longitude: float
    direction: Optional[float] = None
    direction_reference: Optional[str] = None
    accuracy: Optional[float] = None

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"latitude": self.latitude, "longitude": self.longitude}
        if self.direction is not None:
            data["direction"] = self.direction
        if self.direction_reference is not None:
            data["direction_reference"] = self.direction_reference
        if self.accuracy is not None:
            data["accuracy"] = self.accuracy
        return data


@dataclass(frozen=True, slots=True)
class BusinessGuess:
    """Business identification returned by the image analyzer. A hint, not ground truth."""

    business_name: str
    business_type: str
    location_text: Optional[str] = None
    coordinates: Optional[Coordinate] = None
    description: Optional[str] = None
    features: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "business_name": self.business_name,
            "business_type": self.business_type,
            "features": list(self.features),
        }
        if self.location_text:
            data["location_text"] = self.location_text
        if self.coordinates is not None:
            data["coordinates"] = self.coordinates.to_dict()
        if self.description:
            data["description"] = self.description
        return data


@dataclass(frozen=True, slots=True)
class Candidate:
    """Normalized snapshot of a place returned by a search provider."""

    place_id: str
    name: str
    coordinates: Coordinate
    address: Optional[str] = None
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = None
    types: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "place_id": self.place_id,
            "name": self.name,
            "address": self.address,
            "coordinates": self.coordinates.to_dict(),
            "rating": self.rating,
            "user_ratings_total": self.user_ratings_total,
            "types": list(self.types),
        }


@dataclass(frozen=True, slots=True)
class CandidateDetails:
    candidate: Candidate
    phone: Optional[str] = None
    website: Optional[str] = None
    open_now: Optional[bool] = None
    weekday_text: Tuple[str, ...] = ()
    business_status: Optional[str] = None
    reviews: Tuple[Dict[str, Any], ...] = field(default=(), repr=False)

    def to_dict(self) -> Dict[str, Any]:
        data = self.candidate.to_dict()
        data.update(
            {
                "phone": self.phone,
                "website": self.website,
                "open_now": self.open_now,
                "weekday_text": list(self.weekday_text),
                "business_status": self.business_status,
                "review_count": len(self.reviews),
            }
        )
        return data


@dataclass(frozen=True, slots=True)
class CapturedPhoto:
    """A captured image plus whatever metadata the camera or picker handed over."""

    image: Any
    metadata: Optional[Dict[str, Any]] = None


@dataclass(frozen=True, slots=True)
class ResolutionResult:
    location: Coordinate
    guess: BusinessGuess
    resolved: Optional[Candidate] = None
    details: Optional[CandidateDetails] = None
    details_fetched: bool = False
    suggestions: List[Candidate] = field(default_factory=list)
    photo_location: Optional[PhotoLocation] = None

    @property
    def needs_manual_selection(self) -> bool:
        return self.resolved is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resolved": self.resolved.to_dict() if self.resolved else None,
            "details": self.details.to_dict() if self.details else None,
            "details_fetched": self.details_fetched,
            "suggestions": [candidate.to_dict() for candidate in self.suggestions],
            "location": self.location.to_dict(),
            "photo_location": self.photo_location.to_dict() if self.photo_location else None,
            "guess": self.guess.to_dict(),
        }
