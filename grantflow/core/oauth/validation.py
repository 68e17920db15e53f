"""
Validation utilities for the grantflow oauth package.

All validation functions raise ValidationError with descriptive
messages when validation fails.

Example:
    >>> validate_url("ftp://example.com", "authorization_uri")
    ValidationError: Invalid 'authorization_uri': URL must use http or https scheme ...
"""

from __future__ import annotations

import urllib.parse
from collections.abc import Iterable
from typing import Any

from .constants import ValidationLimits
from .exceptions import ValidationError

# =============================================================================
# TYPE VALIDATION
# =============================================================================


def validate_type(value: object, expected_type: type | tuple[type, ...], field_name: str) -> None:
    """Validate that value is of expected type.

    Raises:
        ValidationError: If value is not of expected type

    Example:
        >>> validate_type(123, str, "client_id")
        ValidationError: Invalid 'client_id': must be str, got int (got 123)
    """
    if not isinstance(value, expected_type):
        type_names = (
            expected_type.__name__
            if isinstance(expected_type, type)
            else " or ".join(t.__name__ for t in expected_type)
        )
        raise ValidationError(
            field_name, value, f"must be {type_names}, got {type(value).__name__}"
        )


def validate_string(value: object, field_name: str, allow_empty: bool = False) -> str:
    """Validate that value is a string (optionally non-empty).

    Returns:
        The validated string

    Raises:
        ValidationError: If value is not a string or is empty when not allowed
    """
    validate_type(value, str, field_name)
    assert isinstance(value, str)  # for type narrowing

    if not allow_empty and not value:
        raise ValidationError(field_name, value, "must be a non-empty string")

    return value


def validate_optional_string(value: object, field_name: str) -> str | None:
    """Validate that value is None or a string."""
    if value is None:
        return None
    return validate_string(value, field_name, allow_empty=True)


def validate_choice(value: str, field_name: str, choices: Iterable[str]) -> str:
    """Validate that value is one of the allowed choices."""
    allowed = tuple(choices)
    if value not in allowed:
        raise ValidationError(field_name, value, f"must be one of {', '.join(allowed)}")
    return value


# =============================================================================
# FORMAT VALIDATION
# =============================================================================


def validate_url(value: str, field_name: str, require_https: bool = False) -> str:
    """Validate that value is an absolute http(s) URL.

    Returns:
        The validated URL string

    Raises:
        ValidationError: If URL is malformed or has wrong scheme
    """
    validate_string(value, field_name)

    try:
        parsed = urllib.parse.urlparse(value)
    except ValueError as e:
        raise ValidationError(field_name, value, f"malformed URL: {e}") from e

    if not parsed.scheme or not parsed.netloc:
        raise ValidationError(field_name, value, "URL must have scheme and netloc")

    if require_https and parsed.scheme != "https":
        raise ValidationError(field_name, value, "URL must use HTTPS scheme")

    if parsed.scheme not in ("http", "https"):
        raise ValidationError(field_name, value, "URL must use http or https scheme")

    return value


def validate_state(value: str, field_name: str = "state") -> str:
    """Validate a caller supplied `state`.

    The value travels through query strings and fragments, so characters
    with a meaning in form encoding are rejected.
    """
    validate_string(value, field_name)
    reserved = sorted(set(value) & ValidationLimits.RESERVED_STATE_CHARACTERS)
    if reserved:
        raise ValidationError(
            field_name, value, f"contains reserved character(s): {''.join(reserved)!r}"
        )
    return value


# =============================================================================
# DICT VALIDATION
# =============================================================================


def validate_dict_keys(data: dict[str, Any], allowed_keys: set[str], context: str) -> None:
    """Validate that dict contains only allowed keys.

    This helps catch typos in configuration dictionaries.

    Raises:
        ValidationError: If dict contains unknown keys
    """
    unknown_keys = set(data.keys()) - allowed_keys

    if unknown_keys:
        raise ValidationError(
            f"{context}.keys",
            sorted(unknown_keys),
            f"unknown field(s): {', '.join(sorted(unknown_keys))}. "
            f"Valid fields are: {', '.join(sorted(allowed_keys))}",
        )


__all__ = [
    "validate_type",
    "validate_string",
    "validate_optional_string",
    "validate_choice",
    "validate_url",
    "validate_state",
    "validate_dict_keys",
]
