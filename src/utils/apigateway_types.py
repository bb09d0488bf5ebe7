"""
Helpers for API Gateway Lambda proxy events.

Safe extraction of path parameters, query strings and JSON bodies from
REST API proxy events.
"""

import base64
import json
from typing import Any, Dict, Optional

from .errors import AppError, ErrorCode


def get_path_parameter(event: Dict[str, Any], name: str) -> Optional[str]:
    """
    Extract a path parameter from the event.

    Args:
        event: API Gateway event
        name: Path parameter name

    Returns:
        Parameter value or None if not present
    """
    params: Dict[str, Any] = event.get("pathParameters") or {}
    value = params.get(name)
    return str(value) if value is not None else None


def get_path_parameter_required(event: Dict[str, Any], name: str) -> str:
    """
    Extract a required path parameter from the event.

    Raises:
        AppError: INVALID_INPUT if the parameter is missing or blank
    """
    value = get_path_parameter(event, name)
    if value is None or not value.strip():
        raise AppError(ErrorCode.INVALID_INPUT, f"Path parameter '{name}' is required")
    return value


def get_query_parameters(event: Dict[str, Any]) -> Dict[str, Any]:
    """Return the query string parameters (empty dict if absent)."""
    query: Dict[str, Any] = event.get("queryStringParameters") or {}
    return query


def get_request_path(event: Dict[str, Any]) -> Optional[str]:
    """Return the matched resource template, falling back to the raw path."""
    path: Optional[str] = event.get("resource") or event.get("path")
    return path


def parse_json_body(event: Dict[str, Any]) -> Any:
    """
    Decode the JSON request body.

    Args:
        event: API Gateway event

    Returns:
        Decoded body (None if the event has no body)

    Raises:
        AppError: INVALID_INPUT if the body is not valid JSON
    """
    body = event.get("body")
    if body is None or body == "":
        return None
    if isinstance(body, (dict, list)):
        return body
    if event.get("isBase64Encoded"):
        try:
            body = base64.b64decode(body).decode("utf-8")
        except (ValueError, UnicodeDecodeError):
            raise AppError(ErrorCode.INVALID_INPUT, "Request body is not valid JSON")
    try:
        return json.loads(body)
    except (TypeError, ValueError):
        raise AppError(ErrorCode.INVALID_INPUT, "Request body is not valid JSON")
