"""
Test data builders for Lambda function tests.

Provides factory functions for creating settings and catalog records with
sensible defaults, so tests don't repeat boilerplate.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from src.utils.auth import Actor, StaticActorResolver
from src.utils.config import Settings
from src.utils.resources import PRODUCT_CATEGORY, RecordStatus, ResourceKind

from tests.unit.table_schemas import CATALOG_TABLE_NAME

# 2025-01-15 10:30:00 UTC is 6:30:00 PM in Asia/Manila
FIXED_NOW = datetime(2025, 1, 15, 10, 30, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    """Clock that always returns FIXED_NOW."""
    return FIXED_NOW


def make_settings(actor: Optional[Actor] = None, **overrides: Any) -> Settings:
    """Settings pointing at the mock table, optionally with a fixed actor.

    Args:
        actor: Actor every request resolves to (Cognito claims when omitted)
        **overrides: Any other Settings field

    Returns:
        Settings instance
    """
    values: Dict[str, Any] = {"table_name": CATALOG_TABLE_NAME}
    if actor is not None:
        values["actor_resolver"] = StaticActorResolver(actor)
    values.update(overrides)
    return Settings(**values)


def make_record(
    kind: ResourceKind = PRODUCT_CATEGORY,
    name: Optional[str] = None,
    status: RecordStatus = RecordStatus.ACTIVE,
    activity_logs: Optional[List[str]] = None,
    for_approval_version: Optional[Dict[str, Any]] = None,
    **fields: Any,
) -> Dict[str, Any]:
    """Build a record body (without id/version) for RecordStore.create.

    Args:
        kind: Resource kind
        name: Name field value (random when omitted)
        status: Record status
        activity_logs: Initial logs
        for_approval_version: Staged edit
        **fields: Extra mutable fields

    Returns:
        Record dictionary
    """
    return {
        kind.name_field: name or f"Record {uuid4().hex[:8]}",
        **fields,
        "status": status.value,
        "activityLogs": activity_logs if activity_logs is not None else ["Date: seed"],
        "forApprovalVersion": for_approval_version or {},
    }
