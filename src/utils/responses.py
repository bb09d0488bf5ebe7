"""
API Gateway response builders for Lambda handlers.

Provides the proxy-integration response envelope and the record shapes
returned to clients.
"""

import json
from typing import Any, Dict, List, Optional, TypedDict, cast

from .errors import handle_error, http_status_for

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
}


class ProxyResponse(TypedDict):
    """API Gateway Lambda proxy integration response."""

    statusCode: int
    headers: Dict[str, str]
    body: str


class RecordResponse(TypedDict, total=False):
    """Catalog record response type (kind-specific fields are merged in)."""

    status: str
    activityLogs: List[str]
    forApprovalVersion: Dict[str, Any]
    version: int
    createdAt: str
    updatedAt: str


class PageResponse(TypedDict):
    """Paginated listing response type."""

    data: List[RecordResponse]
    nextCursorPointer: Optional[str]
    prevCursorPointer: Optional[str]


def build_record_response(record: Dict[str, Any]) -> RecordResponse:
    """
    Build a record response from a stored record.

    Args:
        record: Record dictionary (index attributes already stripped)

    Returns:
        RecordResponse with normalized workflow fields
    """
    activity_logs = record.get("activityLogs", [])
    if not isinstance(activity_logs, list):
        activity_logs = []

    staged = record.get("forApprovalVersion") or {}
    if not isinstance(staged, dict):
        staged = {}

    response = cast(RecordResponse, dict(record))
    response["activityLogs"] = [str(entry) for entry in activity_logs]
    response["forApprovalVersion"] = staged
    return response


def build_page_response(page: Dict[str, Any]) -> PageResponse:
    """Build a page response, normalizing every record in it."""
    return PageResponse(
        data=build_list_response(page.get("data", []), build_record_response),
        nextCursorPointer=page.get("nextCursorPointer"),
        prevCursorPointer=page.get("prevCursorPointer"),
    )


def build_list_response(items: List[Dict[str, Any]], builder: Any) -> List[Any]:
    """
    Build a list of responses using a builder function.

    Args:
        items: List of records
        builder: Builder function to apply to each item

    Returns:
        List of built responses
    """
    return [builder(item) for item in items]


def build_response(status_code: int, body: Any) -> ProxyResponse:
    """Wrap a JSON-serializable body in the proxy response envelope."""
    return ProxyResponse(
        statusCode=status_code,
        headers=dict(DEFAULT_HEADERS),
        body=json.dumps(body, default=str),
    )


def build_error_response(error: Exception) -> ProxyResponse:
    """
    Build an error envelope from any exception.

    AppErrors keep their code and message; anything else becomes a generic
    500 so internals never leak to the client.
    """
    body = handle_error(error)
    return build_response(http_status_for(body["errorCode"]), body)
