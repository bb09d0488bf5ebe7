"""
DynamoDB-backed record store for catalog records.

Single-table layout shared by every resource kind:

- PK = kind partition (e.g. ``PRODUCT_CATEGORY``), SK = record id
- GSI1: GSI1PK = partition, GSI1SK = name            (lookup by name)
- GSI2: GSI2PK = partition#status, GSI2SK = name     (listing by status)

Every update and delete is conditional on the record's ``version`` so a
read-modify-write that raced with another writer fails instead of silently
overwriting it.
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, NoReturn, Optional, TypedDict

from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from .dynamodb import from_dynamo, to_dynamo_safe
from .errors import AppError, ErrorCode
from .logging import get_logger
from .pagination import decode_cursor, encode_cursor, key_of
from .resources import ResourceKind

if TYPE_CHECKING:
    from mypy_boto3_dynamodb.service_resource import Table

logger = get_logger(__name__)

INDEX_ATTRIBUTES = ("PK", "SK", "GSI1PK", "GSI1SK", "GSI2PK", "GSI2SK")
NAME_INDEX = "GSI1"
STATUS_INDEX = "GSI2"


class RecordPage(TypedDict):
    """One page of records plus the cursors around it."""

    data: List[Dict[str, Any]]
    nextCursorPointer: Optional[str]
    prevCursorPointer: Optional[str]


def _is_conditional_failure(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException"


class RecordStore:
    """Persistence for one resource kind."""

    def __init__(self, table: "Table", kind: ResourceKind) -> None:
        self.table = table
        self.kind = kind

    # ------------------------------------------------------------------
    # item <-> record conversion
    # ------------------------------------------------------------------

    def _to_item(self, record: Dict[str, Any]) -> Dict[str, Any]:
        name = self.kind.record_name(record)
        status = str(record.get("status", ""))
        item = {k: v for k, v in record.items() if k not in INDEX_ATTRIBUTES}
        item.update(
            {
                "PK": self.kind.partition,
                "SK": self.kind.record_id(record),
                "GSI1PK": self.kind.partition,
                "GSI1SK": name,
                "GSI2PK": f"{self.kind.partition}#{status}",
                "GSI2SK": name,
            }
        )
        return to_dynamo_safe(item)

    @staticmethod
    def _to_record(item: Dict[str, Any]) -> Dict[str, Any]:
        return from_dynamo({k: v for k, v in item.items() if k not in INDEX_ATTRIBUTES})

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------

    def find_by_id(self, record_id: str) -> Optional[Dict[str, Any]]:
        """Return the record with ``record_id`` or None."""
        response = self.table.get_item(Key={"PK": self.kind.partition, "SK": record_id}, ConsistentRead=True)
        item = response.get("Item")
        return self._to_record(item) if item else None

    def find_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        """Return the first record whose live name equals ``name`` or None."""
        response = self.table.query(
            IndexName=NAME_INDEX,
            KeyConditionExpression=Key("GSI1PK").eq(self.kind.partition) & Key("GSI1SK").eq(name),
            Limit=1,
        )
        items = response.get("Items", [])
        return self._to_record(items[0]) if items else None

    def paginate(
        self, status: str, limit: int, direction: str = "ASC", cursor_pointer: Optional[str] = None
    ) -> RecordPage:
        """
        List records with ``status`` ordered by name.

        ``prevCursorPointer`` addresses the first record of this page; querying
        from it in the opposite direction walks back to the previous page.
        """
        query_kwargs: Dict[str, Any] = {
            "IndexName": STATUS_INDEX,
            "KeyConditionExpression": Key("GSI2PK").eq(f"{self.kind.partition}#{status}"),
            "ScanIndexForward": direction.upper() != "DESC",
            "Limit": limit,
        }
        start_key = decode_cursor(cursor_pointer)
        if start_key:
            query_kwargs["ExclusiveStartKey"] = start_key

        try:
            response = self.table.query(**query_kwargs)
        except ClientError as e:
            if start_key and e.response.get("Error", {}).get("Code") == "ValidationException":
                raise AppError(
                    ErrorCode.INVALID_INPUT, "cursorPointer is not valid", {"cursorPointer": cursor_pointer}
                )
            logger.error(f"Error listing {self.kind.label.lower()} records", error=str(e))
            raise AppError(ErrorCode.DATABASE_ERROR, f"Failed to list {self.kind.label.lower()} records")
        items = response.get("Items", [])

        prev_cursor = None
        if start_key and items:
            prev_cursor = encode_cursor(key_of(items[0], "PK", "SK", "GSI2PK", "GSI2SK"))

        return RecordPage(
            data=[self._to_record(item) for item in items],
            nextCursorPointer=encode_cursor(response.get("LastEvaluatedKey")),
            prevCursorPointer=prev_cursor,
        )

    # ------------------------------------------------------------------
    # writes
    # ------------------------------------------------------------------

    def create(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """Assign an id, version and timestamps and insert the record."""
        now = datetime.now(timezone.utc).isoformat()
        created = {
            **record,
            self.kind.id_field: str(uuid.uuid4()),
            "version": 1,
            "createdAt": now,
            "updatedAt": now,
        }

        try:
            self.table.put_item(
                Item=self._to_item(created),
                ConditionExpression=Attr("PK").not_exists(),
            )
        except ClientError as e:
            if _is_conditional_failure(e):
                raise AppError(ErrorCode.ALREADY_EXISTS, f"{self.kind.label} record already exists")
            logger.error(f"Error creating {self.kind.label.lower()} record", error=str(e))
            raise AppError(ErrorCode.DATABASE_ERROR, f"Failed to create {self.kind.label.lower()} record")

        return created

    def update(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Write back a modified record, guarded by the version it was read at.

        Raises:
            AppError: VERSION_CONFLICT if another writer got there first
        """
        expected_version = int(record.get("version") or 0)
        updated = {
            **record,
            "version": expected_version + 1,
            "updatedAt": datetime.now(timezone.utc).isoformat(),
        }

        try:
            self.table.put_item(
                Item=self._to_item(updated),
                ConditionExpression=Attr("PK").exists() & Attr("version").eq(expected_version),
            )
        except ClientError as e:
            self._raise_write_error(e, record, "update")

        return updated

    def delete(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """Hard-delete a record, guarded by its version. Returns the snapshot."""
        try:
            self.table.delete_item(
                Key={"PK": self.kind.partition, "SK": self.kind.record_id(record)},
                ConditionExpression=Attr("version").eq(int(record.get("version") or 0)),
            )
        except ClientError as e:
            self._raise_write_error(e, record, "delete")

        logger.info(
            f"{self.kind.label} record hard deleted",
            record_id=self.kind.record_id(record),
            name=self.kind.record_name(record),
        )
        return record

    def _raise_write_error(self, error: ClientError, record: Dict[str, Any], action: str) -> NoReturn:
        record_id = self.kind.record_id(record)
        if _is_conditional_failure(error):
            raise AppError(
                ErrorCode.VERSION_CONFLICT,
                f"{self.kind.label} record {record_id} was modified by another request; reload and retry",
                {"recordId": record_id},
            )
        logger.error(f"Error during {self.kind.label.lower()} {action}", record_id=record_id, error=str(error))
        raise AppError(ErrorCode.DATABASE_ERROR, f"Failed to {action} {self.kind.label.lower()} record")
