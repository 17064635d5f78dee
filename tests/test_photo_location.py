import io

import pytest
from PIL import Image

from frontsnap.resolution import photo_location
from frontsnap.resolution.photo_location import extract_photo_location, parse_photo_location


def test_flat_keys_with_hemisphere_correction():
    location = extract_photo_location(
        None,
        {
            "GPSLatitude": 37.7749,
            "GPSLatitudeRef": "N",
            "GPSLongitude": 122.4194,
            "GPSLongitudeRef": "W",
        },
    )
    assert location.latitude == 37.7749
    assert location.longitude == -122.4194
    assert location.direction is None
    assert location.accuracy is None


def test_nested_group_is_preferred_over_flat_keys():
    metadata = {
        "GPS": {"Latitude": "33.8688", "LatitudeRef": "S", "Longitude": "151.2093", "LongitudeRef": "E"},
        "GPSLatitude": 1.0,
        "GPSLongitude": 2.0,
    }
    location = parse_photo_location(metadata)
    assert (location.latitude, location.longitude) == (-33.8688, 151.2093)


def test_south_and_west_force_negative_even_if_already_negative():
    location = parse_photo_location(
        {"GPSLatitude": -10.5, "GPSLatitudeRef": "South", "GPSLongitude": -20.25, "GPSLongitudeRef": "west"}
    )
    assert (location.latitude, location.longitude) == (-10.5, -20.25)


def test_degree_minute_second_triples():
    location = parse_photo_location(
        {
            "GPSLatitude": (37, 46, 29.64),
            "GPSLatitudeRef": b"N\x00",
            "GPSLongitude": (122, 25, 9.84),
            "GPSLongitudeRef": b"W\x00",
        }
    )
    assert location.latitude == pytest.approx(37.7749)
    assert location.longitude == pytest.approx(-122.4194)


def test_equator_and_prime_meridian_are_valid():
    location = parse_photo_location({"GPSLatitude": 0, "GPSLongitude": 0})
    assert (location.latitude, location.longitude) == (0.0, 0.0)


def test_no_gps_fields_returns_none():
    assert extract_photo_location(None, {"Make": "Apple", "Model": "iPhone"}) is None


@pytest.mark.parametrize("metadata", [None, {}])
def test_missing_metadata_returns_none(metadata):
    assert extract_photo_location(None, metadata) is None


@pytest.mark.parametrize(
    "latitude, longitude",
    [("abc", 10), (10, "north-ish"), (float("nan"), 10), (91, 10), (10, 180.5), (-90.1, 0)],
)
def test_invalid_coordinates_return_none(latitude, longitude):
    assert parse_photo_location({"GPSLatitude": latitude, "GPSLongitude": longitude}) is None


def test_heading_and_accuracy_are_extracted():
    location = parse_photo_location(
        {
            "GPSLatitude": 37.7749,
            "GPSLongitude": -122.4194,
            "GPSImgDirection": "90.5",
            "GPSImgDirectionRef": "M",
            "GPSHPositioningError": 6.2,
        }
    )
    assert location.direction == 90.5
    assert location.direction_reference == "M"
    assert location.accuracy == 6.2
    assert location.to_dict() == {
        "latitude": 37.7749,
        "longitude": -122.4194,
        "direction": 90.5,
        "direction_reference": "M",
        "accuracy": 6.2,
    }


def test_zero_heading_is_kept():
    location = parse_photo_location({"GPSLatitude": 1, "GPSLongitude": 1, "GPSImgDirection": 0})
    assert location.direction == 0
    assert "direction" in location.to_dict()


def test_nested_heading_and_rational_accuracy():
    location = parse_photo_location(
        {"GPS": {"Latitude": 1, "Longitude": 1, "ImgDirection": (1805, 10), "HPositioningError": (50, 10)}}
    )
    assert location.direction == pytest.approx(180.5)
    assert location.accuracy == pytest.approx(5.0)


@pytest.mark.parametrize("heading", [-1, 360.5, "east", None])
def test_invalid_heading_is_omitted(heading):
    location = parse_photo_location({"GPSLatitude": 1, "GPSLongitude": 1, "GPSImgDirection": heading})
    assert location is not None
    assert location.direction is None
    assert "direction" not in location.to_dict()


def test_heading_of_360_is_north():
    location = parse_photo_location({"GPSLatitude": 1, "GPSLongitude": 1, "GPSImgDirection": 360})
    assert location.direction == 0


def test_non_numeric_accuracy_is_omitted():
    location = parse_photo_location({"GPSLatitude": 1, "GPSLongitude": 1, "GPSHPositioningError": "good"})
    assert location.accuracy is None
    assert "accuracy" not in location.to_dict()


def test_reads_exif_from_image_when_no_metadata_given(monkeypatch):
    captured = {}

    def fake_read(image):
        captured["image"] = image
        return {"GPSLatitude": 48.8584, "GPSLatitudeRef": "N", "GPSLongitude": 2.2945, "GPSLongitudeRef": "E"}

    monkeypatch.setattr(photo_location, "read_exif_metadata", fake_read)
    location = extract_photo_location(b"jpeg-bytes")
    assert captured["image"] == b"jpeg-bytes"
    assert (location.latitude, location.longitude) == (48.8584, 2.2945)


def test_remote_image_is_not_read(monkeypatch):
    monkeypatch.setattr(photo_location, "read_exif_metadata", lambda image: pytest.fail("should not read"))
    assert extract_photo_location("https://example.com/photo.jpg") is None


def test_image_without_exif_returns_none():
    buf = io.BytesIO()
    Image.new("RGB", (8, 8)).save(buf, format="JPEG")
    assert extract_photo_location(buf.getvalue()) is None


def test_unexpected_errors_degrade_to_none(monkeypatch):
    def boom(metadata):
        raise RuntimeError("corrupt")

    monkeypatch.setattr(photo_location, "parse_photo_location", boom)
    assert extract_photo_location(None, {"GPSLatitude": 1, "GPSLongitude": 1}) is None
