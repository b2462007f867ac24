"""
CivicLens - Classification Module
Image intake and vision-model classification of report photos.
"""

from civiclens.classification.image_intake import (
    IntakeImage,
    parse_image,
    normalize_location,
)
from civiclens.classification.vision_client import (
    VisionClassifier,
    ClassificationResult,
    extract_json_object,
    parse_classification,
)

__all__ = [
    # Image Intake
    "IntakeImage",
    "parse_image",
    "normalize_location",
    # Vision Client
    "VisionClassifier",
    "ClassificationResult",
    "extract_json_object",
    "parse_classification",
]
