"""Collaborator interfaces the resolution pipeline is written against."""

from __future__ import annotations

from typing import Any, List, Optional, Protocol

from frontsnap.models import BusinessGuess, Candidate, CandidateDetails, Coordinate


class ImageAnalyzer(Protocol):
    def analyze(self, image: Any, location_hint: Optional[Coordinate] = None) -> BusinessGuess:
        ...


class PlaceSearch(Protocol):
    def search_nearby_typed(
        self, location: Coordinate, business_name: str, business_type: str, radius_meters: int
    ) -> List[Candidate]:
        ...

    def search_nearby(
        self, location: Coordinate, radius_meters: int, keyword: Optional[str] = None
    ) -> List[Candidate]:
        ...

    def search_by_text(self, query: str, location_bias: Optional[Coordinate] = None) -> List[Candidate]:
        ...

    def get_details(self, place_id: str) -> Optional[CandidateDetails]:
        ...


class DeviceLocationProvider(Protocol):
    def get_current_coordinate(self) -> Optional[Coordinate]:
        ...
