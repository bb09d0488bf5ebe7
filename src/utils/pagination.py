"""
Cursor pointer helpers for paginated record listings.

A cursor pointer is the urlsafe base64 (unpadded) encoding of the JSON form
of a DynamoDB key, so clients can pass it back verbatim in a query string.
"""

import base64
import json
from typing import Any, Dict, Optional

from .dynamodb import from_dynamo, to_dynamo_safe
from .errors import AppError, ErrorCode


def _b64e(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("utf-8").rstrip("=")


def _b64d(token: str) -> bytes:
    pad = "=" * ((4 - (len(token) % 4)) % 4)
    return base64.urlsafe_b64decode((token + pad).encode("utf-8"))


def encode_cursor(key: Optional[Dict[str, Any]]) -> Optional[str]:
    """Encode a DynamoDB key as a cursor pointer (None for no key)."""
    if not key:
        return None
    raw = json.dumps(from_dynamo(key), separators=(",", ":"), sort_keys=True, ensure_ascii=False)
    return _b64e(raw.encode("utf-8"))


def decode_cursor(token: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Decode a cursor pointer back into a DynamoDB key.

    Raises:
        AppError: INVALID_INPUT if the pointer is not a valid encoded key
    """
    if not token:
        return None
    try:
        obj = json.loads(_b64d(token).decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        raise AppError(ErrorCode.INVALID_INPUT, "cursorPointer is not valid", {"cursorPointer": token})
    if not isinstance(obj, dict) or not obj:
        raise AppError(ErrorCode.INVALID_INPUT, "cursorPointer is not valid", {"cursorPointer": token})
    return to_dynamo_safe(obj)


def key_of(item: Dict[str, Any], *attributes: str) -> Dict[str, Any]:
    """Project an item onto the key attributes that address it in an index."""
    return {attribute: item[attribute] for attribute in attributes if attribute in item}
