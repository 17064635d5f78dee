"""Extract where a photo was taken, and which way the camera faced, from its metadata.

Two metadata layouts are understood:

* a nested ``GPS`` group with ``Latitude``/``Longitude``/``LatitudeRef``/``LongitudeRef``
  (what Android pickers hand over), and
* flat ``GPSLatitude``/``GPSLongitude``/``GPSLatitudeRef``/``GPSLongitudeRef`` keys
  (iOS pickers, and what :func:`frontsnap.utils.image.read_exif_metadata` produces).

Values may be plain numbers, numeric strings, EXIF rationals or
degree/minute/second triples. Anything malformed makes the extractor return
``None`` so the caller can fall back to the device location.
"""

import logging
import math
from typing import Any, Dict, Optional, Tuple

from frontsnap.models import PhotoLocation
from frontsnap.utils.image import read_exif_metadata

logger = logging.getLogger(__name__)

_SOUTH = {"s", "south"}
_WEST = {"w", "west"}


def _present(value: Any) -> bool:
    return value is not None and value != ""


def _to_number(value: Any) -> Optional[float]:
    """Coerce a metadata value to float, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (list, tuple)):
        if len(value) == 3:
            parts = [_to_number(v) for v in value]
            if any(p is None for p in parts):
                return None
            degrees, minutes, seconds = parts
            return degrees + minutes / 60.0 + seconds / 3600.0
        if len(value) == 2:
            num, den = (_to_number(v) for v in value)
            if num is None or not den:
                return None
            return num / den
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore").strip("\x00")
    try:
        number = float(value)
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    return number if math.isfinite(number) else None


def _reference(value: Any) -> str:
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore").strip("\x00")
    return str(value).strip().lower() if value is not None else ""


def _raw_gps(metadata: Dict[str, Any]) -> Optional[Tuple[Any, Any, Any, Any]]:
    nested = metadata.get("GPS")
    if isinstance(nested, dict) and _present(nested.get("Latitude")) and _present(nested.get("Longitude")):
        logger.debug("Using nested GPS group")
        return nested["Latitude"], nested["Longitude"], nested.get("LatitudeRef"), nested.get("LongitudeRef")
    if _present(metadata.get("GPSLatitude")) and _present(metadata.get("GPSLongitude")):
        logger.debug("Using flat GPS keys")
        return (
            metadata["GPSLatitude"],
            metadata["GPSLongitude"],
            metadata.get("GPSLatitudeRef"),
            metadata.get("GPSLongitudeRef"),
        )
    return None


def _lookup(metadata: Dict[str, Any], flat_key: str, nested_key: str) -> Any:
    if _present(metadata.get(flat_key)):
        return metadata[flat_key]
    nested = metadata.get("GPS")
    if isinstance(nested, dict):
        return nested.get(nested_key)
    return None


def _camera_heading(metadata: Dict[str, Any]) -> Tuple[Optional[float], Optional[str]]:
    heading = _to_number(_lookup(metadata, "GPSImgDirection", "ImgDirection"))
    if heading is None or not (0 <= heading <= 360):
        return None, None
    reference = _reference(_lookup(metadata, "GPSImgDirectionRef", "ImgDirectionRef")).upper() or None
    # 360 and 0 are the same heading.
    return heading % 360.0, reference


def _accuracy(metadata: Dict[str, Any]) -> Optional[float]:
    return _to_number(_lookup(metadata, "GPSHPositioningError", "HPositioningError"))


def parse_photo_location(metadata: Optional[Dict[str, Any]]) -> Optional[PhotoLocation]:
    """Build a PhotoLocation from already-read metadata, or None."""
    if not metadata or not isinstance(metadata, dict):
        return None

    raw = _raw_gps(metadata)
    if raw is None:
        logger.info("No GPS coordinates in metadata (keys: %s)", [k for k in metadata if str(k).startswith("GPS")])
        return None

    raw_lat, raw_lng, lat_ref, lng_ref = raw
    latitude = _to_number(raw_lat)
    longitude = _to_number(raw_lng)
    if latitude is None or longitude is None:
        logger.info("Non-numeric GPS coordinates: %r, %r", raw_lat, raw_lng)
        return None

    if _reference(lat_ref) in _SOUTH:
        latitude = -abs(latitude)
    if _reference(lng_ref) in _WEST:
        longitude = -abs(longitude)

    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        logger.info("GPS coordinates out of range: %s, %s", latitude, longitude)
        return None

    direction, direction_reference = _camera_heading(metadata)
    accuracy = _accuracy(metadata)
    if direction is not None:
        logger.info("Camera was pointing %.1f deg (ref=%s)", direction, direction_reference or "?")

    return PhotoLocation(
        latitude=latitude,
        longitude=longitude,
        direction=direction,
        direction_reference=direction_reference,
        accuracy=accuracy,
    )


def _is_local_image(image: Any) -> bool:
    if image is None:
        return False
    if isinstance(image, str):
        return not image.startswith(("http://", "https://", "data:"))
    return True


def extract_photo_location(image: Any = None, metadata: Optional[Dict[str, Any]] = None) -> Optional[PhotoLocation]:
    """Best-effort photo location; reads EXIF from ``image`` when no metadata is supplied."""
    try:
        if metadata is None and _is_local_image(image):
            metadata = read_exif_metadata(image)
        return parse_photo_location(metadata)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Error extracting photo location: %s", exc)
        return None
