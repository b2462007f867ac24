"""
Vision model client for CivicLens

Sends a report photo to an OpenAI-compatible chat completions endpoint and
turns the answer into a ClassificationResult.

The client never raises on upstream problems. A failed call or an answer
that cannot be decoded becomes a low-confidence result that asks the user
to retake the photo.
"""

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from civiclens.core.config import settings
from civiclens.core.constants import (
    PARKING_SUBTYPES,
    INFRASTRUCTURE_SUBTYPES,
    PROBLEM_TYPES,
    FALLBACK_PROBLEM_TYPE,
    FALLBACK_PROBLEM_SUBTYPE,
    PARSE_FALLBACK_CONFIDENCE,
    PARSE_FALLBACK_DESCRIPTION,
    TRANSPORT_FALLBACK_CONFIDENCE,
    TRANSPORT_FALLBACK_DESCRIPTION,
)
from civiclens.classification.image_intake import parse_image

logger = logging.getLogger(__name__)


CLASSIFICATION_PROMPT = f"""Analyze this image to identify civic problems. Classify it into one of these categories:

1. PARKING (problemType: "parking") - subtypes:
{chr(10).join(f"   - {subtype}" for subtype in PARKING_SUBTYPES)}

2. INFRASTRUCTURE (problemType: "infrastructure") - subtypes:
{chr(10).join(f"   - {subtype}" for subtype in INFRASTRUCTURE_SUBTYPES)}

If the problem is a parking violation, read the vehicle license plate when it is visible.
If the image is unclear or shows no civic problem, give a low confidence and set requiresRetake to true.

Respond with a single JSON object and nothing else:
{{
  "problemType": "parking" | "infrastructure",
  "problemSubtype": "<one of the subtypes above>",
  "licensePlate": "<plate text>" | null,
  "confidence": <number between 0 and 1>,
  "description": "<one or two sentences describing the problem>",
  "requiresRetake": true | false
}}"""


def clamp_confidence(value: float) -> float:
    """Clamp a confidence score into [0, 1]. NaN and infinities are rejected."""
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"Confidence must be finite, got {value!r}")
    return max(0.0, min(1.0, value))


def parse_bool(value: Any) -> Optional[bool]:
    """JSON boolean or a "true"/"false" string; None for anything else."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "false"):
            return lowered == "true"
    return None


def _requires_retake(data: Dict[str, Any]) -> bool:
    value = data.get("requiresRetake")
    if value is None:
        return False
    flag = parse_bool(value)
    if flag is None:
        raise ValueError(f"requiresRetake must be a boolean, got {value!r}")
    return flag


@dataclass
class ClassificationResult:
    """Structured classification of a report photo."""
    problem_type: str
    problem_subtype: str
    confidence: float
    description: str = ""
    license_plate: Optional[str] = None
    requires_retake: bool = False
    location: Optional[str] = None

    def __post_init__(self):
        self.confidence = clamp_confidence(self.confidence)
        if self.license_plate is not None:
            self.license_plate = str(self.license_plate).strip() or None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase wire shape."""
        data = {
            "problemType": self.problem_type,
            "problemSubtype": self.problem_subtype,
            "licensePlate": self.license_plate,
            "confidence": self.confidence,
            "description": self.description,
            "requiresRetake": self.requires_retake,
        }
        if self.location:
            data["location"] = self.location
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClassificationResult":
        """Build from a camelCase payload (e.g. a client echoing /analyze-image)."""
        return cls(
            problem_type=data["problemType"],
            problem_subtype=data["problemSubtype"],
            confidence=data["confidence"],
            description=data.get("description") or "",
            license_plate=data.get("licensePlate"),
            requires_retake=_requires_retake(data),
            location=data.get("location"),
        )

    @classmethod
    def parse_fallback(cls) -> "ClassificationResult":
        """Result used when the model answer cannot be used."""
        return cls(
            problem_type=FALLBACK_PROBLEM_TYPE,
            problem_subtype=FALLBACK_PROBLEM_SUBTYPE,
            confidence=PARSE_FALLBACK_CONFIDENCE,
            description=PARSE_FALLBACK_DESCRIPTION,
            requires_retake=True,
        )

    @classmethod
    def transport_fallback(cls) -> "ClassificationResult":
        """Result used when the model could not be reached."""
        return cls(
            problem_type=FALLBACK_PROBLEM_TYPE,
            problem_subtype=FALLBACK_PROBLEM_SUBTYPE,
            confidence=TRANSPORT_FALLBACK_CONFIDENCE,
            description=TRANSPORT_FALLBACK_DESCRIPTION,
            requires_retake=True,
        )


def extract_json_object(text: str) -> Optional[str]:
    """
    Return the first balanced-brace JSON object found in text.

    Braces inside JSON string literals are ignored, so descriptions such as
    "sign reads {STOP}" do not end the object early.

    Args:
        text: Raw model output, possibly wrapped in prose or code fences

    Returns:
        The object substring, or None if no balanced object exists
    """
    if not text:
        return None

    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False

        for index in range(start, len(text)):
            char = text[index]

            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue

            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start:index + 1]

        # Unbalanced from this brace; try the next one
        start = text.find("{", start + 1)

    return None


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def parse_classification(text: str) -> ClassificationResult:
    """
    Parse model output into a ClassificationResult.

    Anything that does not decode, or that lacks a known problemType, a
    string problemSubtype, a finite numeric confidence or a boolean
    requiresRetake, yields the parse fallback.
    """
    candidate = extract_json_object(text)
    if candidate is None:
        logger.warning("Classifier response contained no JSON object")
        return ClassificationResult.parse_fallback()

    try:
        data = json.loads(candidate)
    except ValueError as e:
        logger.warning(f"Failed to decode classifier JSON: {e}")
        return ClassificationResult.parse_fallback()

    if not isinstance(data, dict):
        return ClassificationResult.parse_fallback()

    problem_type = data.get("problemType")
    problem_subtype = data.get("problemSubtype")
    confidence = data.get("confidence")

    if not isinstance(problem_type, str) or problem_type not in PROBLEM_TYPES:
        logger.warning(f"Classifier returned unknown problemType: {problem_type!r}")
        return ClassificationResult.parse_fallback()
    if not isinstance(problem_subtype, str) or not problem_subtype:
        logger.warning("Classifier response missing problemSubtype")
        return ClassificationResult.parse_fallback()
    if not _is_number(confidence):
        logger.warning(f"Classifier returned unusable confidence: {confidence!r}")
        return ClassificationResult.parse_fallback()

    license_plate = data.get("licensePlate")
    if license_plate is not None and not isinstance(license_plate, str):
        license_plate = str(license_plate)

    try:
        requires_retake = _requires_retake(data)
    except ValueError as e:
        logger.warning(f"Unusable classifier answer: {e}")
        return ClassificationResult.parse_fallback()

    location = data.get("location")
    if not isinstance(location, str):
        location = None

    description = data.get("description")
    if not isinstance(description, str):
        description = ""

    return ClassificationResult(
        problem_type=problem_type,
        problem_subtype=problem_subtype,
        confidence=confidence,
        description=description,
        license_plate=license_plate,
        requires_retake=requires_retake,
        location=location,
    )


class VisionClassifier:
    """
    Client for an OpenAI-compatible vision chat completions API.

    Usage:
        with VisionClassifier(api_key="sk-...") as classifier:
            result = classifier.classify(data_url)

    One request per call. No retries.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize vision classifier.

        Args:
            api_key: Bearer token for the completions endpoint
            base_url: API root, e.g. https://api.openai.com/v1
            model: Vision-capable model name
            max_tokens: Response token limit
            timeout: HTTP request timeout in seconds
        """
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.base_url = (base_url or settings.openai_base_url).rstrip("/")
        self.model = model or settings.vision_model
        self.max_tokens = max_tokens or settings.vision_max_tokens
        self.timeout = timeout or settings.vision_timeout_seconds
        self._client = httpx.Client(timeout=self.timeout)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def close(self) -> None:
        self._client.close()

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    def build_payload(self, data_url: str) -> Dict[str, Any]:
        """Single-turn request carrying the fixed prompt and the image."""
        return {
            "model": self.model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": CLASSIFICATION_PROMPT},
                        {"type": "image_url", "image_url": {"url": data_url}},
                    ],
                }
            ],
            "response_format": {"type": "json_object"},
            "max_tokens": self.max_tokens,
        }

    def classify(self, image_data: str) -> ClassificationResult:
        """
        Classify a report photo.

        Args:
            image_data: Base64 image, with or without a data URL prefix

        Returns:
            ClassificationResult; fallbacks carry requires_retake=True

        Raises:
            ImageValidationError: If image_data is empty (no call is made)
        """
        image = parse_image(image_data)

        if not self.api_key:
            logger.error("Vision API key not configured")
            return ClassificationResult.transport_fallback()

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        logger.info(f"Classifying image with {self.model} ({len(image.base64_data)} base64 chars)")
        try:
            response = self._client.post(
                self.endpoint,
                headers=headers,
                json=self.build_payload(image.data_url),
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Vision API returned {e.response.status_code}")
            return ClassificationResult.transport_fallback()
        except httpx.HTTPError as e:
            logger.error(f"Vision API request failed: {e}")
            return ClassificationResult.transport_fallback()
        except ValueError as e:
            logger.error(f"Vision API returned a non-JSON body: {e}")
            return ClassificationResult.parse_fallback()

        content = self._message_content(body)
        if content is None:
            logger.warning("Vision API response had no message content")
            return ClassificationResult.parse_fallback()

        try:
            result = parse_classification(content)
        except Exception as e:
            logger.error(f"Failed to parse classifier response: {e}")
            return ClassificationResult.parse_fallback()

        logger.info(
            f"Classified as {result.problem_type}/{result.problem_subtype} "
            f"(confidence={result.confidence:.2f}, retake={result.requires_retake})"
        )
        return result

    def _message_content(self, body: Any) -> Optional[str]:
        """Pull choices[0].message.content out of a completions response."""
        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return None
        return content if isinstance(content, str) else None

