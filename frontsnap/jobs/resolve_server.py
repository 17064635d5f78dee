"""HTTP entrypoint exposing photo resolution and the manual place-picking searches."""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple

from flask import Flask, jsonify, request

from frontsnap.core.config import ConfigError, get_settings
from frontsnap.core.wiring import build_place_search, build_resolver
from frontsnap.errors import ImageAnalysisError, LocationRequiredError
from frontsnap.etl.transform import parse_coordinate, to_business_guess, to_place_record
from frontsnap.models import CapturedPhoto, Coordinate
from frontsnap.resolution.candidate_search import find_nearby_places, search_by_address, search_guess_near

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App ----------
app = Flask(__name__)


@lru_cache(maxsize=1)
def get_resolver():
    return build_resolver(get_settings())


@lru_cache(maxsize=1)
def get_place_search():
    return build_place_search(get_settings())


# ---------- Routes ----------


@app.get("/")
def root() -> Any:
    """Simple root to avoid 404 on GET /"""
    return "ok", 200


@app.get("/healthz")
def healthcheck() -> Any:
    """Lightweight health endpoint; reads settings only."""
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "places_provider": settings.places_provider,
                "revision": os.getenv("K_REVISION", "unknown"),
            }
        ),
        200,
    )


@app.post("/resolve")
def resolve() -> Any:
    """
    Resolve an uploaded storefront photo.
    Multipart fields: image (file, required), metadata (JSON string, optional),
    latitude/longitude (device location fallback, optional).
    """
    upload = request.files.get("image")
    if upload is None:
        return jsonify({"error": "image file is required"}), 400

    metadata: Optional[Dict[str, Any]] = None
    metadata_raw = request.form.get("metadata")
    if metadata_raw:
        try:
            metadata = json.loads(metadata_raw)
        except ValueError:
            return jsonify({"error": "metadata must be a JSON object"}), 400
        if not isinstance(metadata, dict):
            return jsonify({"error": "metadata must be a JSON object"}), 400

    device_location, error = _optional_coordinate(request.form)
    if error:
        return jsonify({"error": error}), 400

    try:
        resolver = get_resolver()
        result = resolver.resolve_place(
            CapturedPhoto(image=upload.read(), metadata=metadata), device_location=device_location
        )
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return jsonify({"error": "service not configured"}), 503
    except LocationRequiredError as exc:
        return jsonify({"error": str(exc), "status": "LOCATION_REQUIRED"}), 422
    except ImageAnalysisError as exc:
        return jsonify({"error": str(exc), "status": "ANALYSIS_FAILED"}), 502

    data = result.to_dict()
    if result.details is not None:
        data["place"] = to_place_record(result.details, result.guess.business_type)
    return jsonify({"data": data}), 200


@app.post("/nearby")
def nearby() -> Any:
    """List every place near a location, nearest first ("wrong place" flow)."""
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    location, error = _optional_coordinate(payload)
    if error or location is None:
        return jsonify({"error": error or "latitude and longitude are required"}), 400

    try:
        places = find_nearby_places(get_place_search(), location)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return jsonify({"error": "service not configured"}), 503
    return jsonify({"data": [place.to_dict() for place in places]}), 200


@app.post("/search")
def search() -> Any:
    """
    Manual search. Either {"address": "..."} or
    {"latitude", "longitude", "business_name", "business_type"} for a guess near a location.
    """
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    address = str(payload.get("address") or "").strip()
    location, error = _optional_coordinate(payload)
    if error:
        return jsonify({"error": error}), 400
    if not address and location is None:
        return jsonify({"error": "address or latitude/longitude is required"}), 400

    try:
        place_search = get_place_search()
        if address:
            places = search_by_address(place_search, address)
        else:
            guess = to_business_guess(
                {"businessName": payload.get("business_name"), "businessType": payload.get("business_type")}
            )
            places = search_guess_near(place_search, location, guess)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return jsonify({"error": "service not configured"}), 503
    return jsonify({"data": [place.to_dict() for place in places]}), 200


# ---------- Internals ----------


def _optional_coordinate(source: Any) -> Tuple[Optional[Coordinate], Optional[str]]:
    latitude = source.get("latitude")
    longitude = source.get("longitude")
    if latitude in (None, "") and longitude in (None, ""):
        return None, None
    coordinate = parse_coordinate(latitude, longitude)
    if coordinate is None:
        return None, "latitude and longitude must be numeric and within range"
    return coordinate, None


def main() -> None:
    port = get_settings().port
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
