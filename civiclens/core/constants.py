"""
CivicLens - Constants and Reference Data
Static values used throughout the application.
"""

from typing import Dict, List

# =============================================================================
# PROBLEM CLASSIFICATION
# =============================================================================

PROBLEM_TYPES: Dict[str, Dict[str, object]] = {
    "parking": {
        "label": "Parking Violation",
        "subtypes": [
            "illegal_parking",
            "double_parking",
            "blocking_driveway",
            "disabled_spot_violation",
            "fire_lane_violation",
            "no_parking_zone",
        ],
    },
    "infrastructure": {
        "label": "Infrastructure Issue",
        "subtypes": [
            "pothole",
            "damaged_infrastructure",
            "broken_streetlight",
            "dangerous_walkway",
            "damaged_road_sign",
            "blocked_drain",
        ],
    },
}

PARKING_SUBTYPES: List[str] = list(PROBLEM_TYPES["parking"]["subtypes"])
INFRASTRUCTURE_SUBTYPES: List[str] = list(PROBLEM_TYPES["infrastructure"]["subtypes"])

# =============================================================================
# CLASSIFICATION FALLBACKS
# =============================================================================

# Model answered, but the answer could not be decoded or failed the schema
PARSE_FALLBACK_CONFIDENCE = 0.3
PARSE_FALLBACK_DESCRIPTION = "Unable to clearly identify the problem. Please retake the photo."

# Model could not be reached
TRANSPORT_FALLBACK_CONFIDENCE = 0.2
TRANSPORT_FALLBACK_DESCRIPTION = "Analysis failed. Please retake the photo."

FALLBACK_PROBLEM_TYPE = "parking"
FALLBACK_PROBLEM_SUBTYPE = "illegal_parking"

# =============================================================================
# REPORTS
# =============================================================================

DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"

# =============================================================================
# LEADERBOARD
# =============================================================================

LEADERBOARD_SIZE = 10

# Window used for the location board regardless of the requested period
LOCATION_WINDOW_DAYS = 30

LEADERBOARD_PERIOD_DAYS: Dict[str, int] = {
    "7days": 7,
    "30days": 30,
    "90days": 90,
}

# "all" period lower bound
ALL_TIME_START_YEAR = 2000

# =============================================================================
# PROFILE
# =============================================================================

RECENT_REPORTS_LIMIT = 10
