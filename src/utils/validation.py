"""
Input validation utilities.

Validates catalog record payloads and pagination query parameters.
"""

import math
from decimal import Decimal
from typing import Any, Dict, NamedTuple, Optional, Union

from .errors import AppError, ErrorCode
from .resources import RecordStatus, ResourceKind

MAX_NAME_LENGTH = 100
MIN_LIMIT = 1
MAX_LIMIT = 100
DEFAULT_LIMIT = 10
DIRECTIONS = ("ASC", "DESC")

# DynamoDB numbers: 38 significant digits, magnitude between 1E-130 and 9.99...E+125
MAX_NUMBER_DIGITS = 38
MAX_INTEGER = 10**MAX_NUMBER_DIGITS - 1
MIN_NUMBER_EXPONENT = -130
MAX_NUMBER_EXPONENT = 125


class PaginationParams(NamedTuple):
    """Validated pagination query."""

    status: str
    limit: int
    direction: str
    cursor_pointer: Optional[str]


def validate_name(kind: ResourceKind, value: Any) -> str:
    """
    Validate a record name.

    Args:
        kind: Resource kind (used for field name and messages)
        value: Raw name value

    Returns:
        Trimmed name

    Raises:
        AppError: If name is missing, not a string, blank or too long
    """
    if not isinstance(value, str) or not value.strip():
        raise AppError(ErrorCode.INVALID_INPUT, f"{kind.name_field} is required", {"field": kind.name_field})

    name = value.strip()
    if len(name) > MAX_NAME_LENGTH:
        raise AppError(
            ErrorCode.INVALID_INPUT,
            f"{kind.name_field} must be at most {MAX_NAME_LENGTH} characters",
            {"field": kind.name_field},
        )
    return name


def _validate_non_negative_int(field_name: str, value: Any) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool):
        raise AppError(ErrorCode.INVALID_INPUT, f"{field_name} must be an integer", {"field": field_name})
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, str) and value.strip().isdecimal():
        try:
            value = int(value.strip())
        except ValueError:
            raise AppError(ErrorCode.INVALID_INPUT, f"{field_name} must be an integer", {"field": field_name})
    if not isinstance(value, int):
        raise AppError(ErrorCode.INVALID_INPUT, f"{field_name} must be an integer", {"field": field_name})
    if value < 0:
        raise AppError(ErrorCode.INVALID_INPUT, f"{field_name} must not be negative", {"field": field_name})
    if value > MAX_INTEGER:
        raise AppError(
            ErrorCode.INVALID_INPUT, f"{field_name} must be at most {MAX_NUMBER_DIGITS} digits", {"field": field_name}
        )
    return value


def _is_storable_number(value: Union[int, float]) -> bool:
    """Check a number fits DynamoDB's precision and range."""
    if isinstance(value, float) and not math.isfinite(value):
        return False
    number = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    if number.is_zero():
        return True
    if len(number.as_tuple().digits) > MAX_NUMBER_DIGITS:
        return False
    return MIN_NUMBER_EXPONENT <= number.adjusted() <= MAX_NUMBER_EXPONENT


def _validate_storable_numbers(field_name: str, value: Any) -> None:
    """Reject numbers anywhere in a JSON value that DynamoDB cannot store."""
    if isinstance(value, bool):
        return
    if isinstance(value, (int, float)):
        if not _is_storable_number(value):
            raise AppError(
                ErrorCode.INVALID_INPUT,
                f"{field_name} contains a number that cannot be stored",
                {"field": field_name},
            )
    elif isinstance(value, dict):
        for item in value.values():
            _validate_storable_numbers(field_name, item)
    elif isinstance(value, list):
        for item in value:
            _validate_storable_numbers(field_name, item)


def validate_record_fields(kind: ResourceKind, payload: Any) -> Dict[str, Any]:
    """
    Validate a create/update payload and keep only the kind's mutable fields.

    Requirements:
    - Payload is a JSON object
    - The name field is present and valid
    - Integer fields, when present, are non-negative integers
    - Every number, including those nested in JSON-valued fields, fits DynamoDB

    Args:
        kind: Resource kind
        payload: Decoded request body

    Returns:
        Validated mutable fields

    Raises:
        AppError: If validation fails
    """
    if not isinstance(payload, dict):
        raise AppError(ErrorCode.INVALID_INPUT, "Request body must be a JSON object")

    fields = kind.pick_fields(payload)
    fields[kind.name_field] = validate_name(kind, payload.get(kind.name_field))

    for field_name in kind.integer_fields:
        if fields.get(field_name) is not None:
            fields[field_name] = _validate_non_negative_int(field_name, fields[field_name])

    for field_name, value in fields.items():
        _validate_storable_numbers(field_name, value)

    return fields


def validate_pagination_params(query: Optional[Dict[str, Any]]) -> PaginationParams:
    """
    Validate pagination query parameters.

    Args:
        query: API Gateway queryStringParameters (may be None)

    Returns:
        PaginationParams with defaults applied

    Raises:
        AppError: If limit, direction or status are malformed
    """
    query = query or {}

    raw_limit = query.get("limit")
    if raw_limit in (None, ""):
        limit = DEFAULT_LIMIT
    else:
        try:
            limit = int(str(raw_limit))
        except ValueError:
            raise AppError(ErrorCode.INVALID_INPUT, "Limit must be an integer", {"limit": raw_limit})
    if limit < MIN_LIMIT or limit > MAX_LIMIT:
        raise AppError(ErrorCode.INVALID_INPUT, f"Limit must be between {MIN_LIMIT} and {MAX_LIMIT}")

    direction = str(query.get("direction") or "ASC").upper()
    if direction not in DIRECTIONS:
        raise AppError(ErrorCode.INVALID_INPUT, "Direction must be either ASC or DESC")

    status = str(query.get("status") or RecordStatus.ACTIVE.value).upper()
    if status not in {s.value for s in RecordStatus}:
        raise AppError(
            ErrorCode.INVALID_INPUT,
            f"Status must be one of {', '.join(s.value for s in RecordStatus)}",
            {"status": status},
        )

    return PaginationParams(
        status=status,
        limit=limit,
        direction=direction,
        cursor_pointer=query.get("cursorPointer") or None,
    )
