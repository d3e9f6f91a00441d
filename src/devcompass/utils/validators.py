"""
Field Validators for Waitlist Submissions.

Pure functions that check one field at a time against the schema registry.
Each returns None when the value is valid, or a human-readable reason string.
A malformed value never raises; only a malformed call does (an unknown field
name raises KeyError from the registry lookup).

validate_submission() runs every check in a fixed order and stops at the first
failure, so a payload with several invalid fields always reports the same one:

    email -> preferred name length -> LinkedIn length -> LinkedIn format
    -> years of experience -> employment status -> cloud platforms
    -> DevOps tools -> programming languages -> monitoring tools -> databases
    -> at least one skill -> experience level -> role focus -> location
    -> current salary range -> desired salary range
"""

import math
import re
from typing import Any, Dict, Optional, Tuple

from devcompass.config.validation_constants import (
    DEFAULT_MAX_ITEMS,
    SKILL_FIELDS,
    get_field_spec,
    get_vocabulary,
)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
LINKEDIN_PATTERN = re.compile(
    r"^https?://(www\.)?linkedin\.com/in/[\w-]+/?$", re.ASCII
)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def validate_email(value: Any) -> Optional[str]:
    """Check that value looks like local@domain.tld.

    Surrounding whitespace is ignored; normalize_submission() trims it before
    the address is stored or looked up.
    """
    if not isinstance(value, str) or not EMAIL_PATTERN.match(value.strip()):
        return "Invalid email address"
    return None


def validate_bounded_string(value: Any, field: str) -> Optional[str]:
    """Check an optional free-text field against its registry length bound."""
    spec = get_field_spec(field)
    if value is None:
        return None
    if not isinstance(value, str):
        return f"{spec.label} must be a string"
    if spec.max_length is not None and len(value) > spec.max_length:
        return f"{spec.label} is too long (maximum {spec.max_length} characters)"
    return None


def validate_linkedin(value: Any) -> Optional[str]:
    """Check the LinkedIn profile URL format; blank values are allowed."""
    if _is_blank(value):
        return None
    if not isinstance(value, str) or not LINKEDIN_PATTERN.match(value.strip()):
        return (
            "Invalid LinkedIn URL format. "
            "Must be like: https://linkedin.com/in/yourprofile"
        )
    return None


def validate_years(value: Any) -> Tuple[Optional[str], Optional[float]]:
    """Check and coerce years of experience.

    Accepts numbers and numeric strings ("5", " 2.5 ").

    Returns:
        Tuple of (reason, coerced). On success reason is None and coerced is
        the value as a float; on failure coerced is None.
    """
    if _is_blank(value):
        return "Years of experience is required", None

    invalid = "Years of experience must be a valid positive number"

    # bool is an int subclass; a checkbox value is not a number of years
    if isinstance(value, bool):
        return invalid, None

    if not isinstance(value, (int, float, str)):
        return invalid, None

    try:
        years = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        # OverflowError: an integer too large for a float, e.g. 10**400
        return invalid, None

    if not math.isfinite(years) or years < 0:
        return invalid, None
    return None, years


def validate_enum(value: Any, field: str, required: bool = True) -> Optional[str]:
    """Check that value is a member of the field's vocabulary.

    Args:
        value: Raw value from the payload.
        field: Registry field name.
        required: When False, falsy values (missing, "", None) are accepted.
    """
    options = get_vocabulary(field)
    if not required and not value:
        return None
    if not isinstance(value, str) or value not in options:
        label = get_field_spec(field).label
        return f"Invalid {label}. Must be one of: {', '.join(options)}"
    return None


def validate_string_set(
    values: Any, field: str, max_length: Optional[int] = None
) -> Optional[str]:
    """Check a collection of vocabulary strings.

    An absent or empty collection is valid. Otherwise the whole collection is
    rejected if it is not a list, is longer than the bound, or contains a
    non-string, blank or unknown item.

    Args:
        values: Raw value from the payload.
        field: Registry field name.
        max_length: Overrides the field's bound. Defaults to the registry
            bound, or DEFAULT_MAX_ITEMS when the field declares none.
    """
    spec = get_field_spec(field)
    options = get_vocabulary(field)
    if max_length is None:
        max_length = spec.max_items if spec.max_items is not None else DEFAULT_MAX_ITEMS

    if values is None or (isinstance(values, list) and len(values) == 0):
        return None
    if not isinstance(values, list):
        return f"{spec.label} must be an array"
    if len(values) > max_length:
        return f"{spec.label} has too many items (maximum {max_length})"

    for item in values:
        if not isinstance(item, str):
            return f"{spec.label} must contain only strings"
        if item.strip() == "":
            return f"{spec.label} contains empty values"
        if item not in options:
            return f"Invalid {spec.label}: {item}"
    return None


def count_skills(payload: Dict[str, Any]) -> int:
    """Total number of selected skills across all skill sets."""
    return sum(len(payload.get(field) or []) for field in SKILL_FIELDS)


def validate_submission(payload: Dict[str, Any]) -> Tuple[Optional[str], Optional[float]]:
    """Run every field check in order and return the first failure.

    Args:
        payload: Decoded JSON object from the request body.

    Returns:
        Tuple of (reason, years). reason is None when the payload is valid,
        in which case years holds the coerced years of experience.
    """
    error = validate_email(payload.get("email"))
    if error:
        return error, None

    error = validate_bounded_string(payload.get("preferredName"), "preferredName")
    if error:
        return error, None

    error = validate_bounded_string(payload.get("linkedinProfile"), "linkedinProfile")
    if error:
        return error, None

    error = validate_linkedin(payload.get("linkedinProfile"))
    if error:
        return error, None

    error, years = validate_years(payload.get("yearsOfExperience"))
    if error:
        return error, None

    error = validate_enum(payload.get("employmentStatus"), "employmentStatus")
    if error:
        return error, None

    for field in SKILL_FIELDS:
        error = validate_string_set(payload.get(field), field)
        if error:
            return error, None

    if count_skills(payload) == 0:
        return "At least one skill must be selected", None

    for field in ("experienceLevel", "roleFocus", "location", "currentSalaryRange"):
        error = validate_enum(payload.get(field), field)
        if error:
            return error, None

    error = validate_enum(
        payload.get("desiredSalaryRange"), "desiredSalaryRange", required=False
    )
    if error:
        return error, None

    return None, years
