from __future__ import annotations

from enum import Enum
from typing import Any, Tuple


class BloodGroup(str, Enum):
    A_POSITIVE = "A+"
    A_NEGATIVE = "A-"
    B_POSITIVE = "B+"
    B_NEGATIVE = "B-"
    O_POSITIVE = "O+"
    O_NEGATIVE = "O-"
    AB_POSITIVE = "AB+"
    AB_NEGATIVE = "AB-"


BLOOD_GROUPS: Tuple[str, ...] = tuple(group.value for group in BloodGroup)


def lookup_blood_group(value: Any) -> BloodGroup | None:
    """Return the member matching ``value`` case-insensitively, if any."""
    if not isinstance(value, str):
        return None
    try:
        return BloodGroup(value.upper())
    except ValueError:
        return None
