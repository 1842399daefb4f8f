"""Validation and normalization of donor registration payloads.

``validate_donor_payload`` inspects the untyped JSON mapping exactly as it was
posted and reports every rule it breaks, in a fixed order. It never raises;
an empty list means the payload can be normalized and stored.
"""

from __future__ import annotations

import math
import re
from typing import Any, List, Mapping

from .models.blood_group import lookup_blood_group
from .models.donor import MAX_AGE, MAX_NOTES_LENGTH, MIN_AGE, DonorCreate

REQUIRED_FIELDS = (
    "name",
    "age",
    "phoneNumber",
    "bloodGroup",
    "country",
    "state",
    "district",
    "city",
)
LOCATION_FIELDS = ("country", "state", "district", "city")
MIN_TEXT_LENGTH = 2

FIELD_LABELS = {
    "name": "Name",
    "phoneNumber": "Phone number",
    "country": "Country",
    "state": "State",
    "district": "District",
    "city": "City",
    "notes": "Notes",
}

_PHONE_RE = re.compile(r"[0-9]{10}")
_NUMBER_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def _is_blank(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0 or math.isnan(value)
    return False


def _as_text(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _parse_number(value: Any) -> int | float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        candidate = value.strip()
        if not _NUMBER_RE.fullmatch(candidate):
            return None
        value = float(candidate)
    if isinstance(value, float) and math.isfinite(value):
        return value
    return None


def parse_age(value: Any) -> int | None:
    """Return ``value`` as a whole number of years, or ``None`` when it is not one."""
    number = _parse_number(value)
    if isinstance(number, float):
        return int(number) if number.is_integer() else None
    return number


def _check_min_length(field: str, value: Any, errors: List[str]) -> None:
    text = _as_text(value)
    if text is None:
        errors.append(f"{FIELD_LABELS[field]} must be text")
    elif len(text.strip()) < MIN_TEXT_LENGTH:
        errors.append(f"{FIELD_LABELS[field]} must be at least {MIN_TEXT_LENGTH} characters long")


def validate_donor_payload(payload: Mapping[str, Any]) -> List[str]:
    errors: List[str] = []

    for field in REQUIRED_FIELDS:
        if _is_blank(payload.get(field)):
            errors.append(f"{field} is required")

    name = payload.get("name")
    if not _is_blank(name):
        _check_min_length("name", name, errors)

    age = _parse_number(payload.get("age"))
    if age is None:
        errors.append("Age must be a number")
    elif age != int(age):
        errors.append("Age must be a whole number of years")
    elif age < MIN_AGE or age > MAX_AGE:
        errors.append(f"Age must be between {MIN_AGE} and {MAX_AGE}")

    phone_number = payload.get("phoneNumber")
    if not _is_blank(phone_number):
        text = _as_text(phone_number)
        if text is None:
            errors.append("Phone number must be text")
        elif not _PHONE_RE.fullmatch(text):
            errors.append("Phone number must be a valid 10-digit number")

    for field in LOCATION_FIELDS:
        value = payload.get(field)
        if not _is_blank(value):
            _check_min_length(field, value, errors)

    blood_group = payload.get("bloodGroup")
    if not _is_blank(blood_group) and lookup_blood_group(blood_group) is None:
        errors.append("Invalid blood group supplied")

    notes = payload.get("notes")
    if not _is_blank(notes):
        text = _as_text(notes)
        if text is None:
            errors.append("Notes must be text")
        elif len(text) > MAX_NOTES_LENGTH:
            errors.append(f"Notes cannot exceed {MAX_NOTES_LENGTH} characters")

    return errors


def normalize_donor_payload(payload: Mapping[str, Any]) -> DonorCreate:
    """Build the stored record from a payload that passed validation."""
    notes = payload.get("notes")
    notes_text = None if _is_blank(notes) else _as_text(notes).strip()

    return DonorCreate(
        name=_as_text(payload["name"]).strip(),
        age=parse_age(payload["age"]),
        phone_number=_as_text(payload["phoneNumber"]).strip(),
        blood_group=lookup_blood_group(payload["bloodGroup"]),
        country=_as_text(payload["country"]).strip(),
        state=_as_text(payload["state"]).strip(),
        district=_as_text(payload["district"]).strip(),
        city=_as_text(payload["city"]).strip(),
        notes=notes_text or None,
    )
