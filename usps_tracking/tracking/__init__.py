"""
Tracking number module.
Validation, bulk parsing, and collection operations for USPS tracking numbers.
"""

from usps_tracking.tracking.collection_manager import (
    TrackingCollectionManager,
    TrackingError,
    EmptyInputError,
    InvalidFormatError,
    DuplicateTrackingError,
    IndexNotFoundError,
)
from usps_tracking.tracking.service_types import detect_service_type

__all__ = [
    "TrackingCollectionManager",
    "TrackingError",
    "EmptyInputError",
    "InvalidFormatError",
    "DuplicateTrackingError",
    "IndexNotFoundError",
    "detect_service_type",
]
