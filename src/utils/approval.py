"""
Approval workflow for catalog records.

One generic state machine drives every resource kind. A privileged actor's
mutations apply immediately; anyone else's are staged and wait for a
privileged actor to approve or deny them.

    create (privileged)      -> ACTIVE
    create (non-privileged)  -> FOR_APPROVAL / NEW_RECORD
    update (privileged)      -> ACTIVE, live fields replaced
    update (non-privileged)  -> FOR_APPROVAL, edit staged in forApprovalVersion
    delete (any actor)       -> FOR_DELETION
    approve FOR_APPROVAL / NEW_RECORD -> ACTIVE, staged edit applied
    approve FOR_DELETION     -> record removed
    deny staged edit         -> ACTIVE, staged edit discarded
    deny FOR_DELETION        -> ACTIVE
    deny pending creation    -> record removed
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional
from zoneinfo import ZoneInfo

from .auth import Actor, require_privileged
from .config import Settings
from .errors import AppError, ErrorCode
from .logging import StructuredLogger, get_logger
from .record_store import RecordPage, RecordStore
from .resources import PENDING_STATUSES, RecordStatus, ResourceKind

module_logger = get_logger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_log_timestamp(moment: datetime, tz_name: str) -> str:
    """
    Format a timestamp the way activity logs display it.

    Examples:
        >>> format_log_timestamp(datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc), "Asia/Manila")
        '1/15/2025, 6:30:00 PM'
    """
    local = moment.astimezone(ZoneInfo(tz_name))
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return f"{local.month}/{local.day}/{local.year}, {hour}:{local:%M:%S} {meridiem}"


class ApprovalWorkflow:
    """Create/update/delete/approve/deny for one resource kind."""

    def __init__(
        self,
        kind: ResourceKind,
        store: RecordStore,
        settings: Settings,
        clock: Optional[Clock] = None,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        self.kind = kind
        self.store = store
        self.settings = settings
        self.clock = clock or _utc_now
        self.logger = logger or module_logger

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _log_entry(self, action: str) -> str:
        stamp = format_log_timestamp(self.clock(), self.settings.activity_log_timezone)
        return f"Date: {stamp}, {self.kind.label} {action}"

    def _append_log(self, record: Dict[str, Any], action: str) -> None:
        logs = list(record.get("activityLogs") or [])
        logs.append(self._log_entry(action))
        # Keep only the most recent entries
        record["activityLogs"] = logs[-self.settings.activity_log_limit :]

    def _get_existing(self, record_id: str) -> Dict[str, Any]:
        record = self.store.find_by_id(record_id)
        if record is None:
            raise AppError(
                ErrorCode.NOT_FOUND,
                f"{self.kind.label} record not found for id {record_id}",
                {"recordId": record_id},
            )
        return record

    def _ensure_not_pending(self, record: Dict[str, Any]) -> None:
        if record.get("status") in {status.value for status in PENDING_STATUSES}:
            raise AppError(
                ErrorCode.CONFLICT,
                f"{self.kind.label} is already for deletion or approval",
                {"recordId": self.kind.record_id(record), "status": record.get("status")},
            )

    # ------------------------------------------------------------------
    # mutations
    # ------------------------------------------------------------------

    def create(self, fields: Dict[str, Any], actor: Actor) -> Dict[str, Any]:
        """
        Create a record from validated mutable fields.

        The name check is a point lookup, so two concurrent creates with the
        same name can both pass it.

        Raises:
            AppError: ALREADY_EXISTS if a record with the same name exists
        """
        name = self.kind.record_name(fields)
        if self.store.find_by_name(name) is not None:
            raise AppError(ErrorCode.ALREADY_EXISTS, f"{self.kind.label} name already exists", {"name": name})

        record: Dict[str, Any] = {**self.kind.pick_fields(fields), "forApprovalVersion": {}}
        if actor.is_privileged:
            record["status"] = RecordStatus.ACTIVE.value
            self._append_log(record, f"created by {actor.username}, status set to ACTIVE")
        else:
            record["status"] = self.kind.pending_create_status.value
            self._append_log(record, f"created by {actor.username} for approval")

        created = self.store.create(record)
        self.logger.info(
            f"{self.kind.label} record created",
            record_id=self.kind.record_id(created),
            name=name,
            status=created["status"],
            actor=actor.username,
        )
        return created

    def update(self, record_id: str, fields: Dict[str, Any], actor: Actor) -> Dict[str, Any]:
        """
        Apply (privileged) or stage (non-privileged) an edit.

        Raises:
            AppError: NOT_FOUND, CONFLICT if pending, VERSION_CONFLICT on a lost race
        """
        record = self._get_existing(record_id)
        self._ensure_not_pending(record)

        changes = self.kind.pick_fields(fields)
        if actor.is_privileged:
            record.update(changes)
            record["status"] = RecordStatus.ACTIVE.value
            record["forApprovalVersion"] = {}
            self._append_log(record, f"updated by {actor.username}, status set to ACTIVE")
        else:
            record["forApprovalVersion"] = changes
            record["status"] = RecordStatus.FOR_APPROVAL.value
            self._append_log(record, f"updated by {actor.username} for approval")

        updated = self.store.update(record)
        self.logger.info(
            f"{self.kind.label} record updated",
            record_id=record_id,
            status=updated["status"],
            actor=actor.username,
        )
        return updated

    def delete(self, record_id: str, actor: Actor) -> Dict[str, Any]:
        """
        Mark a record for deletion. Removal happens when the deletion is approved.

        Raises:
            AppError: NOT_FOUND, CONFLICT if pending, VERSION_CONFLICT on a lost race
        """
        record = self._get_existing(record_id)
        self._ensure_not_pending(record)

        record["status"] = RecordStatus.FOR_DELETION.value
        record["forApprovalVersion"] = {}
        self._append_log(record, f"marked for deletion by {actor.username}")

        updated = self.store.update(record)
        self.logger.info(f"{self.kind.label} record marked for deletion", record_id=record_id, actor=actor.username)
        return updated

    def approve(self, record_id: str, actor: Actor) -> Dict[str, Any]:
        """
        Resolve a pending action in its favor.

        Returns:
            The activated record, or the pre-deletion snapshot for deletions

        Raises:
            AppError: FORBIDDEN, NOT_FOUND, CONFLICT if nothing is pending
        """
        require_privileged(actor, "approve", self.kind.label)
        record = self._get_existing(record_id)
        status = record.get("status")

        if status == RecordStatus.FOR_DELETION.value:
            self.logger.info(f"{self.kind.label} deletion approved", record_id=record_id, actor=actor.username)
            return self.store.delete(record)

        if status in (RecordStatus.FOR_APPROVAL.value, RecordStatus.NEW_RECORD.value):
            staged = self.kind.pick_fields(record.get("forApprovalVersion") or {})
            record.update(staged)
            record["status"] = RecordStatus.ACTIVE.value
            record["forApprovalVersion"] = {}
            self._append_log(record, f"approved by {actor.username}, status set to ACTIVE")
            updated = self.store.update(record)
            self.logger.info(f"{self.kind.label} record approved", record_id=record_id, actor=actor.username)
            return updated

        raise AppError(
            ErrorCode.CONFLICT,
            f"Cannot approve {self.kind.label.lower()} with status: {status}",
            {"recordId": record_id, "status": status},
        )

    def deny(self, record_id: str, actor: Actor) -> Dict[str, Any]:
        """
        Resolve a pending action against it.

        A denied edit or deletion leaves the record ACTIVE as it was. A denied
        creation removes the record, which never became active.

        Raises:
            AppError: FORBIDDEN, NOT_FOUND, CONFLICT if nothing is pending
        """
        require_privileged(actor, "deny", self.kind.label)
        record = self._get_existing(record_id)
        status = record.get("status")
        staged = record.get("forApprovalVersion") or {}

        if status == RecordStatus.FOR_DELETION.value:
            action = f"deletion denied by {actor.username}, status set to ACTIVE"
        elif status == RecordStatus.FOR_APPROVAL.value and staged:
            action = f"denied by {actor.username}, status set to ACTIVE"
        elif status in (RecordStatus.FOR_APPROVAL.value, RecordStatus.NEW_RECORD.value):
            self.logger.info(f"{self.kind.label} creation denied", record_id=record_id, actor=actor.username)
            return self.store.delete(record)
        else:
            raise AppError(
                ErrorCode.CONFLICT,
                f"Cannot deny {self.kind.label.lower()} with status: {status}",
                {"recordId": record_id, "status": status},
            )

        record["status"] = RecordStatus.ACTIVE.value
        record["forApprovalVersion"] = {}
        self._append_log(record, action)
        updated = self.store.update(record)
        self.logger.info(f"{self.kind.label} change denied", record_id=record_id, actor=actor.username)
        return updated

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------

    def get_by_id(self, record_id: str) -> Dict[str, Any]:
        return self._get_existing(record_id)

    def get_by_name(self, name: str) -> Dict[str, Any]:
        record = self.store.find_by_name(name)
        if record is None:
            raise AppError(
                ErrorCode.NOT_FOUND,
                f"{self.kind.label} record not found for name {name}",
                {"name": name},
            )
        return record

    def paginate(
        self, status: str, limit: int, direction: str = "ASC", cursor_pointer: Optional[str] = None
    ) -> RecordPage:
        return self.store.paginate(status, limit, direction, cursor_pointer)
