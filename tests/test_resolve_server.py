import io
import json
from unittest.mock import Mock

import pytest

from frontsnap.core.config import ConfigError, Settings
from frontsnap.errors import ImageAnalysisError, LocationRequiredError
from frontsnap.jobs import resolve_server
from frontsnap.models import BusinessGuess, CandidateDetails, Coordinate, ResolutionResult


@pytest.fixture
def resolver(monkeypatch):
    mock = Mock()
    monkeypatch.setattr(resolve_server, "get_resolver", lambda: mock)
    return mock


@pytest.fixture
def place_search(monkeypatch):
    mock = Mock()
    mock.search_nearby.return_value = []
    mock.search_by_text.return_value = []
    monkeypatch.setattr(resolve_server, "get_place_search", lambda: mock)
    return mock


@pytest.fixture
def client():
    return resolve_server.app.test_client()


def _upload(**form):
    data = {"image": (io.BytesIO(b"jpeg-bytes"), "front.jpg")}
    data.update(form)
    return data


def test_health_endpoint(client, monkeypatch):
    monkeypatch.setattr(
        resolve_server, "get_settings", lambda: Settings(google_api_key="", openai_api_key="", places_provider="serpapi")
    )
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"
    assert response.get_json()["places_provider"] == "serpapi"


def test_resolve_requires_image(client, resolver):
    assert client.post("/resolve", data={}).status_code == 400
    resolver.resolve_place.assert_not_called()


@pytest.mark.parametrize(
    "form",
    [{"metadata": "{bad"}, {"metadata": "[1]"}, {"latitude": "abc", "longitude": "1"}, {"latitude": "95", "longitude": "1"}],
)
def test_resolve_rejects_bad_form_fields(client, resolver, form):
    response = client.post("/resolve", data=_upload(**form), content_type="multipart/form-data")
    assert response.status_code == 400
    resolver.resolve_place.assert_not_called()


def test_resolve_success_passes_metadata_and_device_location(client, resolver, origin, place_at):
    top = place_at("a", 0, 10, types=("cafe",), name="Blue Bottle")
    guess = BusinessGuess(business_name="Blue Bottle", business_type="Cafe")
    resolver.resolve_place.return_value = ResolutionResult(
        location=origin,
        guess=guess,
        resolved=top,
        details=CandidateDetails(candidate=top, open_now=True),
        details_fetched=True,
    )
    metadata = {"GPSLatitude": 37.7749, "GPSLongitude": -122.4194}

    response = client.post(
        "/resolve",
        data=_upload(metadata=json.dumps(metadata), latitude="40.0", longitude="-74.0"),
        content_type="multipart/form-data",
    )

    assert response.status_code == 200
    body = response.get_json()["data"]
    assert body["resolved"]["place_id"] == "a"
    assert body["place"]["category"] == "Cafe"
    assert body["place"]["hours"] == "Open now"
    photo = resolver.resolve_place.call_args.args[0]
    assert photo.image == b"jpeg-bytes"
    assert photo.metadata == metadata
    assert resolver.resolve_place.call_args.kwargs["device_location"] == Coordinate(40.0, -74.0)


def test_resolve_without_match_has_no_place(client, resolver, origin):
    resolver.resolve_place.return_value = ResolutionResult(
        location=origin, guess=BusinessGuess(business_name="Unknown Business", business_type="Business")
    )
    response = client.post("/resolve", data=_upload(), content_type="multipart/form-data")
    body = response.get_json()["data"]
    assert response.status_code == 200
    assert body["resolved"] is None
    assert "place" not in body


@pytest.mark.parametrize(
    "error, status, code",
    [
        (LocationRequiredError("Location not available for analysis."), 422, "LOCATION_REQUIRED"),
        (ImageAnalysisError("timed out"), 502, "ANALYSIS_FAILED"),
    ],
)
def test_resolve_maps_pipeline_errors(client, resolver, error, status, code):
    resolver.resolve_place.side_effect = error
    response = client.post("/resolve", data=_upload(), content_type="multipart/form-data")
    assert response.status_code == status
    assert response.get_json()["status"] == code


def test_resolve_without_configuration(client, monkeypatch):
    def missing():
        raise ConfigError("OPENAI_API_KEY must be set in the environment.")

    monkeypatch.setattr(resolve_server, "get_resolver", missing)
    response = client.post("/resolve", data=_upload(), content_type="multipart/form-data")
    assert response.status_code == 503


def test_nearby_requires_location(client, place_search):
    assert client.post("/nearby", json={}).status_code == 400
    assert client.post("/nearby", json={"latitude": 1}).status_code == 400


def test_nearby_lists_places_nearest_first(client, place_search, origin, place_at):
    place_search.search_nearby.return_value = [place_at("far", 0, 300), place_at("near", 90, 20)]
    response = client.post("/nearby", json={"latitude": origin.latitude, "longitude": origin.longitude})
    assert response.status_code == 200
    assert [p["place_id"] for p in response.get_json()["data"]] == ["near", "far"]


def test_search_by_address(client, place_search, place_at):
    place_search.search_by_text.return_value = [place_at("a", 0, 10)]
    response = client.post("/search", json={"address": " 1 Ferry Building "})
    assert response.status_code == 200
    assert response.get_json()["data"][0]["place_id"] == "a"
    place_search.search_by_text.assert_called_once_with("1 Ferry Building")


def test_search_guess_near_location(client, place_search):
    response = client.post(
        "/search", json={"latitude": 37.7749, "longitude": -122.4194, "business_name": "Tartine", "business_type": "Bakery"}
    )
    assert response.status_code == 200
    place_search.search_by_text.assert_called_once_with(
        "Tartine Bakery", location_bias=Coordinate(37.7749, -122.4194)
    )


def test_search_requires_address_or_location(client, place_search):
    assert client.post("/search", json={"address": "  "}).status_code == 400
    place_search.search_by_text.assert_not_called()
