import re
from typing import Optional

_WHITESPACE = re.compile(r"\s+")


def normalize_vehicle_number(vehicle_number: Optional[str]) -> str:
    """
    Canonical form of a vehicle number or license plate.
    
    Strips every whitespace character and upper-cases, so
    ``"mh 12 ab 1234"`` and ``"MH12AB1234"`` compare equal.
    """
    if not vehicle_number:
        return ""
    return _WHITESPACE.sub("", vehicle_number).upper()
