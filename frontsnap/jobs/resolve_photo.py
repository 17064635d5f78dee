"""CLI job that resolves a storefront photo to a place."""

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from frontsnap.core.config import ConfigError, get_settings
from frontsnap.core.wiring import build_resolver
from frontsnap.errors import ResolutionError
from frontsnap.etl.transform import parse_coordinate, to_place_record
from frontsnap.models import CapturedPhoto

logger = logging.getLogger(__name__)


def load_metadata(path: Optional[str]) -> Optional[Dict[str, Any]]:
    if not path:
        return None
    with Path(path).open("r", encoding="utf-8") as fh:
        metadata = json.load(fh)
    if not isinstance(metadata, dict):
        raise ValueError("Metadata file must contain a JSON object")
    return metadata


def run_resolve_job(
    *,
    image_path: str,
    latitude: Optional[float],
    longitude: Optional[float],
    metadata_path: Optional[str],
    tolerance: Optional[float],
) -> Dict[str, Any]:
    image = Path(image_path)
    if not image.is_file():
        raise FileNotFoundError(f"Image not found: {image_path}")

    device_location = None
    if latitude is not None or longitude is not None:
        device_location = parse_coordinate(latitude, longitude)
        if device_location is None:
            raise ValueError("--lat and --lng must both be given and within range")

    settings = get_settings()
    resolver = build_resolver(settings)
    if tolerance is not None:
        resolver.tolerance_degrees = tolerance

    photo = CapturedPhoto(image=image.read_bytes(), metadata=load_metadata(metadata_path))
    logger.info("Resolving %s", image_path)
    result = resolver.resolve_place(photo, device_location=device_location)

    output = result.to_dict()
    if result.details is not None:
        output["place"] = to_place_record(result.details, result.guess.business_type)
    if result.needs_manual_selection:
        logger.info("No match found; pick the place manually")
    else:
        logger.info("Resolved to %s (%d alternatives)", result.resolved.name, len(result.suggestions))
    return output


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Resolve a storefront photo to a place")
    parser.add_argument("image", help="Path to the captured photo")
    parser.add_argument("--lat", dest="latitude", type=float, help="Device latitude, used when the photo has no GPS")
    parser.add_argument("--lng", dest="longitude", type=float, help="Device longitude, used when the photo has no GPS")
    parser.add_argument("--metadata", dest="metadata_path", help="JSON file with picker EXIF metadata")
    parser.add_argument(
        "--tolerance",
        dest="tolerance",
        type=float,
        help="Camera heading tolerance in degrees (default: DIRECTION_TOLERANCE_DEGREES)",
    )
    return parser


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    parser = build_parser()
    args = parser.parse_args()

    try:
        output = run_resolve_job(
            image_path=args.image,
            latitude=args.latitude,
            longitude=args.longitude,
            metadata_path=args.metadata_path,
            tolerance=args.tolerance,
        )
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        raise SystemExit(2) from exc
    except (ResolutionError, OSError, ValueError) as exc:
        logger.error("Resolution failed: %s", exc)
        raise SystemExit(1) from exc

    print(json.dumps(output, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
