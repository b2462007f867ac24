"""
Image intake for user-submitted report photos
Validates base64 data URLs before anything is sent upstream
"""

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from civiclens.core.constants import DEFAULT_IMAGE_MIME_TYPE
from civiclens.core.exceptions import ImageValidationError

logger = logging.getLogger(__name__)

DATA_URL_PATTERN = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(;[\w-]+=[\w.-]+)*;base64,", re.IGNORECASE)


@dataclass
class IntakeImage:
    """A validated photo, split into mime type and base64 payload."""
    base64_data: str
    mime_type: str = DEFAULT_IMAGE_MIME_TYPE

    @property
    def data_url(self) -> str:
        """Canonical data URL used for the classifier and inline storage."""
        return f"data:{self.mime_type};base64,{self.base64_data}"

    @property
    def raw_bytes(self) -> bytes:
        return base64.b64decode(self.base64_data)

    @property
    def extension(self) -> str:
        subtype = self.mime_type.split("/")[-1].lower()
        return "jpg" if subtype in ("jpeg", "jpg") else subtype


def strip_data_url_prefix(image: str) -> Tuple[str, str]:
    """
    Split a data URL into (mime_type, payload).

    Plain base64 strings are returned with the default mime type.
    """
    match = DATA_URL_PATTERN.match(image)
    if not match:
        return DEFAULT_IMAGE_MIME_TYPE, image
    mime_type = match.group("mime") or DEFAULT_IMAGE_MIME_TYPE
    return mime_type.lower(), image[match.end():]


def parse_image(image: Optional[str]) -> IntakeImage:
    """
    Validate a submitted image.

    Args:
        image: Base64 data URL (``data:image/jpeg;base64,...``) or bare base64

    Returns:
        IntakeImage with the decoded-checked payload

    Raises:
        ImageValidationError: If the image is missing, empty or not base64
    """
    if not image or not isinstance(image, str) or not image.strip():
        raise ImageValidationError("Image is required")

    mime_type, payload = strip_data_url_prefix(image.strip())
    payload = "".join(payload.split())

    if not payload:
        raise ImageValidationError("Image is required")

    try:
        base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        logger.warning(f"Rejected image with invalid base64 payload: {e}")
        raise ImageValidationError("Image must be base64 encoded") from e

    return IntakeImage(base64_data=payload, mime_type=mime_type)


def normalize_location(location: Optional[str]) -> Optional[str]:
    """Trim free-text location; blank becomes None. No geocoding."""
    if location is None:
        return None
    location = str(location).strip()
    return location or None
