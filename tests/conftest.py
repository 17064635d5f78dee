import sys
from pathlib import Path

import pytest

# Ensure the `frontsnap` package is importable when running pytest from the repo root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from frontsnap.core.geo import destination_point  # noqa: E402
from frontsnap.models import Candidate, Coordinate  # noqa: E402

SAN_FRANCISCO = Coordinate(37.7749, -122.4194)


@pytest.fixture
def origin():
    return SAN_FRANCISCO


@pytest.fixture
def place_at():
    """Build a Candidate ``distance`` meters from ``origin`` on ``bearing``."""

    def _place_at(place_id, bearing, distance, origin=SAN_FRANCISCO, types=("cafe",), name=None):
        return Candidate(
            place_id=place_id,
            name=name or f"Place {place_id}",
            coordinates=destination_point(origin, bearing, distance),
            address=f"{place_id} Main St",
            types=tuple(types),
        )

    return _place_at
