"""
USPS service type detection.

Prefixes identify the mail class a label was printed for. The table is
informational only: tracking number formats change as USPS adds
sub-services, so an unknown prefix never makes a number invalid.
"""

from typing import Optional


# Longest prefixes first so "92055" wins over "92"
SERVICE_PREFIXES: list[tuple[str, str]] = [
    ("94001", "USPS Tracking"),
    ("94055", "Priority Mail"),
    ("94073", "Certified Mail"),
    ("94077", "Certified Mail"),
    ("93033", "Collect on Delivery"),
    ("92021", "Priority Mail Express"),
    ("92055", "Priority Mail"),
    ("92088", "Registered Mail"),
    ("92701", "Priority Mail Express"),
    ("9400", "USPS Tracking"),
    ("9205", "Priority Mail"),
    ("9407", "Certified Mail"),
    ("9208", "Registered Mail"),
    ("9270", "Priority Mail Express"),
    ("9303", "Collect on Delivery"),
    ("9505", "Priority Mail"),
    ("82", "Global Express Guaranteed"),
]


def detect_service_type(tracking_number: str) -> Optional[str]:
    """
    Detect the USPS mail class from a normalized tracking number.
    
    Args:
        tracking_number: Normalized (uppercase, no separators) number
        
    Returns:
        Service name, or None if the prefix is not recognised
    """
    for prefix, service in SERVICE_PREFIXES:
        if tracking_number.startswith(prefix):
            return service
    return None
