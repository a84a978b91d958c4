"""Models for sync operations."""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

# Stored errors are capped; the HTTP response carries fewer.
MAX_STORED_ERRORS = 50
MAX_REPORTED_ERRORS = 10

class SyncKind(str, Enum):
    """Acquisition strategy for a sync run."""
    FULL = "full"
    INCREMENTAL = "incremental"
    CSV_IMPORT = "csv_import"

class SyncStatus(str, Enum):
    """Lifecycle status of a sync run."""
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

class OutcomeStatus(str, Enum):
    """Result of reconciling a single record."""
    CREATED = "created"
    UPDATED = "updated"
    FAILED = "failed"

class ReconciliationOutcome:
    """Result of reconciling one author record."""
    def __init__(self, status: OutcomeStatus, key: str = "", error: str = ""):
        self.status = status
        self.key = key  # email, vendor id or "row N"
        self.error = error

    @classmethod
    def created(cls, key: str) -> "ReconciliationOutcome":
        return cls(OutcomeStatus.CREATED, key)

    @classmethod
    def updated(cls, key: str) -> "ReconciliationOutcome":
        return cls(OutcomeStatus.UPDATED, key)

    @classmethod
    def failed(cls, key: str, error: str) -> "ReconciliationOutcome":
        return cls(OutcomeStatus.FAILED, key, error)

def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()

class SyncRun:
    """
    One invocation of the sync job, mirrored to the sync_log table.

    Status moves from RUNNING to COMPLETED or FAILED exactly once, in finish()
    or fail(). Counters always satisfy processed = created + updated + failed.
    """

    def __init__(self, kind: SyncKind, triggered_by: Optional[str] = None):
        self.id = None
        self.kind = kind
        self.triggered_by = triggered_by
        self.status = SyncStatus.RUNNING
        self.started_at = utc_now_iso()
        self.completed_at: Optional[str] = None
        self.created = 0
        self.updated = 0
        self.failed = 0
        self.errors: List[dict] = []
        self.error_message: Optional[str] = None

    @property
    def processed(self) -> int:
        return self.created + self.updated + self.failed

    def record(self, outcome: ReconciliationOutcome) -> None:
        """Count one outcome; failures also append a bounded error entry."""
        if self.status != SyncStatus.RUNNING:
            raise RuntimeError(f"Sync run {self.id} is already {self.status.value}")
        if outcome.status == OutcomeStatus.CREATED:
            self.created += 1
        elif outcome.status == OutcomeStatus.UPDATED:
            self.updated += 1
        else:
            self.failed += 1
            if len(self.errors) < MAX_STORED_ERRORS:
                self.errors.append({"key": outcome.key, "error": outcome.error})

    def finish(self) -> None:
        # Partial success is still success: only an all-failed batch fails.
        if self.failed > 0 and self.created == 0 and self.updated == 0:
            self._close(SyncStatus.FAILED)
        else:
            self._close(SyncStatus.COMPLETED)

    def fail(self, message: str) -> None:
        self.error_message = message
        self._close(SyncStatus.FAILED)

    def _close(self, status: SyncStatus) -> None:
        if self.status != SyncStatus.RUNNING:
            raise RuntimeError(f"Sync run {self.id} is already {self.status.value}")
        self.status = status
        self.completed_at = utc_now_iso()

    def to_insert_row(self) -> dict:
        return {
            "sync_type": self.kind.value,
            "triggered_by": self.triggered_by,
            "status": self.status.value,
            "started_at": self.started_at,
        }

    def to_update_row(self) -> dict:
        errors = list(self.errors)
        if self.error_message:
            errors.insert(0, {"key": None, "error": self.error_message})
        return {
            "status": self.status.value,
            "completed_at": self.completed_at,
            "records_processed": self.processed,
            "records_created": self.created,
            "records_updated": self.updated,
            "records_failed": self.failed,
            "errors": errors[:MAX_STORED_ERRORS] or None,
        }

    def summary(self) -> dict:
        """Response body for a finished run."""
        return {
            "success": True,
            "sync_id": self.id,
            "status": self.status.value,
            "processed": self.processed,
            "created": self.created,
            "updated": self.updated,
            "failed": self.failed,
            "errors": self.errors[:MAX_REPORTED_ERRORS],
        }
