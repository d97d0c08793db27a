"""
Location validation gate.

Checks a sample's physical plausibility before it reaches the tracker.
"""

import math
from typing import List, Optional

from bus_tracker.app.core.exceptions import LocationValidationError
from bus_tracker.app.models.location import LocationSample


def _is_number(value: Optional[float]) -> bool:
    return value is not None and not isinstance(value, bool) and math.isfinite(value)


def validation_errors(sample: LocationSample) -> List[str]:
    """Describe every reason the sample is implausible (empty when valid)."""
    errors = []
    if not _is_number(sample.latitude) or not -90 <= sample.latitude <= 90:
        errors.append(f"latitude must be between -90 and 90, got {sample.latitude}")
    if not _is_number(sample.longitude) or not -180 <= sample.longitude <= 180:
        errors.append(f"longitude must be between -180 and 180, got {sample.longitude}")
    if not _is_number(sample.accuracy) or sample.accuracy < 0:
        errors.append(f"accuracy must be a non-negative number of meters, got {sample.accuracy}")
    return errors


def is_valid(sample: LocationSample) -> bool:
    return not validation_errors(sample)


def validate(sample: LocationSample) -> None:
    """
    Reject an implausible sample.

    Raises:
        LocationValidationError: listing each failing field
    """
    errors = validation_errors(sample)
    if errors:
        raise LocationValidationError(errors)
