"""Storefront analysis through the OpenAI chat completions API."""

import base64
import json
import logging
from typing import Any, Dict, Optional

import requests

from frontsnap.etl.transform import to_business_guess
from frontsnap.models import BusinessGuess, Coordinate
from frontsnap.utils.image import prepare_for_analysis

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"

STOREFRONT_PROMPT = """Identify the business in this storefront photo.
Use visual evidence first (architecture, interior furniture and equipment, layout, logos)
and visible text second (signs, windows, doors, addresses, menus).
{location_line}
Reply with a JSON object with these keys:
  "businessName": the name on the signage, or "Unknown Business" if none is readable,
  "businessType": a short type such as Restaurant, Cafe, Hair Salon, Spa, Gym, Retail, Bar,
  "description": one sentence describing the storefront,
  "features": a list of notable visual features,
  "locationText": any street address or location text visible in the image, or null,
  "coordinates": {{"latitude": number, "longitude": number}} only if the image states them, else null.
"""


class OpenAIVisionError(RuntimeError):
    """Raised when the analysis request fails or returns something unusable."""


def _image_url(image: Any) -> str:
    if isinstance(image, str) and image.startswith(("http://", "https://", "data:image/")):
        return image
    encoded = base64.b64encode(prepare_for_analysis(image)).decode("ascii")
    return f"data:image/jpeg;base64,{encoded}"


def build_request(image_url: str, location_hint: Optional[str], model: str) -> Dict[str, Any]:
    location_line = f"The photo was taken near {location_hint}." if location_hint else ""
    return {
        "model": model,
        "response_format": {"type": "json_object"},
        "max_tokens": 800,
        "messages": [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": STOREFRONT_PROMPT.format(location_line=location_line)},
                    {"type": "image_url", "image_url": {"url": image_url, "detail": "high"}},
                ],
            }
        ],
    }


def analyze_storefront(
    image: Any, api_key: str, location_hint: Optional[str] = None, model: str = "gpt-4o", timeout: float = 30
) -> Dict[str, Any]:
    """Return the analyzer's raw JSON answer for a storefront image."""
    try:
        body = build_request(_image_url(image), location_hint, model)
    except (OSError, ValueError) as exc:
        raise OpenAIVisionError(f"Failed to process image: {exc}") from exc

    headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
    try:
        response = _SESSION.post(_COMPLETIONS_URL, json=body, headers=headers, timeout=timeout)
        response.raise_for_status()
        payload = response.json()
    except requests.RequestException as exc:
        logger.error("Storefront analysis request failed: %s", exc)
        raise OpenAIVisionError(str(exc)) from exc
    except ValueError as exc:
        raise OpenAIVisionError("Analysis response was not JSON") from exc

    try:
        content = payload["choices"][0]["message"]["content"]
        answer = json.loads(content)
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        logger.error("Unexpected analysis payload: %s", str(payload)[:300])
        raise OpenAIVisionError("Analysis response did not contain a JSON answer") from exc

    if not isinstance(answer, dict):
        raise OpenAIVisionError("Analysis answer was not a JSON object")
    return answer


class OpenAIStorefrontAnalyzer:
    """Image analyzer collaborator backed by an OpenAI vision model."""

    def __init__(self, api_key: str, model: str = "gpt-4o", timeout: float = 30):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    def analyze(self, image: Any, location_hint: Optional[Coordinate] = None) -> BusinessGuess:
        hint = f"{location_hint.latitude},{location_hint.longitude}" if location_hint is not None else None
        answer = analyze_storefront(image, self.api_key, location_hint=hint, model=self.model, timeout=self.timeout)
        guess = to_business_guess(answer)
        logger.info("Analyzer guessed %s (%s)", guess.business_name, guess.business_type)
        return guess
