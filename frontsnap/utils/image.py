import io
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from PIL import Image
from PIL.ExifTags import GPSTAGS

logger = logging.getLogger(__name__)

GPS_INFO_TAG = 0x8825
ANALYSIS_MAX_WIDTH = 2048


def _open(image: Any) -> Image.Image:
    """Open raw bytes, a path or a file object; PIL images pass through."""
    if isinstance(image, Image.Image):
        return image.copy()
    if isinstance(image, (bytes, bytearray)):
        return Image.open(io.BytesIO(image))
    return Image.open(Path(image) if isinstance(image, str) else image)


def read_exif_metadata(image: Any) -> Optional[Dict[str, Any]]:
    """Read the GPS block of an image's EXIF as flat ``GPS*`` keys, or None when there is none."""
    try:
        with _open(image) as img:
            gps_ifd = img.getexif().get_ifd(GPS_INFO_TAG)
    except (OSError, ValueError, TypeError) as exc:
        logger.info("Could not read EXIF from image: %s", exc)
        return None

    if not gps_ifd:
        return None

    metadata: Dict[str, Any] = {}
    for tag, value in gps_ifd.items():
        name = GPSTAGS.get(tag, tag)
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="ignore").strip("\x00")
        metadata[str(name)] = value
    return metadata


def prepare_for_analysis(image: Any, max_width: int = ANALYSIS_MAX_WIDTH) -> bytes:
    """Downscale to at most ``max_width`` pixels wide and re-encode as JPEG."""
    with _open(image) as img:
        img = img.convert("RGB")
        w, h = img.size
        if w > max_width:
            img = img.resize((max_width, round(h * max_width / w)), Image.LANCZOS)
        buf = io.BytesIO()
        img.save(buf, format="JPEG", quality=80)
        return buf.getvalue()
