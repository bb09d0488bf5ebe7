"""
Centralized DynamoDB table access utilities.

Provides singleton-pattern table accessors with lazy initialization
and test monkeypatch support.
"""

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

import boto3

from .config import get_settings

if TYPE_CHECKING:
    from mypy_boto3_dynamodb import DynamoDBServiceResource
    from mypy_boto3_dynamodb.service_resource import Table


# Module-level cache for test overrides
_table_overrides: dict[str, Optional["Table"]] = {}


def _get_dynamodb(endpoint_url: Optional[str] = None) -> "DynamoDBServiceResource":
    """Get DynamoDB resource, pointed at LocalStack when an endpoint is configured."""
    return boto3.resource("dynamodb", endpoint_url=endpoint_url)


class TableAccessor:
    """Centralized access to DynamoDB tables with settings-based naming."""

    _instance: Optional["TableAccessor"] = None

    def __new__(cls) -> "TableAccessor":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def catalog(self) -> "Table":
        """Get the catalog table (all resource kinds share it, partitioned by PK)."""
        if override := _table_overrides.get("catalog"):
            return override
        settings = get_settings()
        return _get_dynamodb(settings.dynamodb_endpoint).Table(settings.table_name)


# Singleton instance for import
tables = TableAccessor()


def to_dynamo_safe(value: Any) -> Any:
    """Convert floats (recursively) to Decimal so boto3 can serialize them."""
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamo_safe(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_dynamo_safe(v) for v in value]
    return value


def from_dynamo(value: Any) -> Any:
    """Convert Decimals (recursively) back to int or float."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: from_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_dynamo(v) for v in value]
    if isinstance(value, set):
        return [from_dynamo(v) for v in sorted(value, key=str)]
    return value


# Test utilities
def override_table(table_name: str, table: Optional["Table"]) -> None:
    """Override a table for testing. Set to None to clear override."""
    _table_overrides[table_name] = table


def clear_all_overrides() -> None:
    """Clear all table overrides (call in test teardown)."""
    _table_overrides.clear()


def reset_singleton() -> None:
    """Reset the singleton instance (for testing isolation)."""
    TableAccessor._instance = None
