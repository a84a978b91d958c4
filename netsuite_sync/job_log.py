"""Persistence of sync runs in the sync_log table plus a daily audit file."""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Optional

from .errors import StoreError
from .models import SyncKind, SyncRun

logger = logging.getLogger(__name__)


class DailyLogger:
    """Logger that writes to a new file every day under log_dir/subfolder/YYYY/MM/."""

    def __init__(self, name: str, filename_template: str, log_dir: Path, subfolder: str = ""):
        """
        Args:
            name: Logger name
            filename_template: Template for log filename (e.g., "sync_runs_{date}.log")
            log_dir: Base log directory
            subfolder: Subfolder name within log_dir
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False
        self.filename_template = filename_template
        self.log_dir = log_dir / subfolder if subfolder else log_dir
        self.current_date = None

    def get(self) -> logging.Logger:
        today = date.today()
        today_iso = today.isoformat()
        if self.current_date != today_iso:
            for handler in list(self.logger.handlers):
                self.logger.removeHandler(handler)
                handler.close()

            year_month_dir = self.log_dir / str(today.year) / f"{today.month:02d}"
            year_month_dir.mkdir(parents=True, exist_ok=True)

            log_file = year_month_dir / self.filename_template.format(date=today_iso)
            handler = logging.FileHandler(log_file, encoding="utf-8")
            handler.setFormatter(logging.Formatter("%(asctime)s %(message)s"))
            self.logger.addHandler(handler)
            self.current_date = today_iso
        return self.logger


class JobLogStore:
    """Opens and closes SyncRun rows in the store's sync_log table."""

    def __init__(self, store, audit_logger: Optional[DailyLogger] = None):
        self.store = store
        self.audit_logger = audit_logger

    async def open_run(self, kind: SyncKind, triggered_by: Optional[str] = None) -> SyncRun:
        """
        Insert a sync_log row with status=running.

        If the insert fails the run continues without an id, so a broken log
        table does not block syncing.
        """
        run = SyncRun(kind, triggered_by)
        try:
            row = await self.store.insert_sync_log(run.to_insert_row())
            run.id = row.get("id")
        except StoreError as exc:
            logger.error(f"Failed to create sync log: {exc}")
        logger.info(f"Starting {kind.value} sync (sync_id={run.id}, triggered_by={triggered_by})")
        return run

    async def close_run(self, run: SyncRun) -> None:
        """Write final status and counters for a finished run."""
        if run.id is not None:
            try:
                await self.store.update_sync_log(run.id, run.to_update_row())
            except StoreError as exc:
                logger.error(f"Failed to update sync log {run.id}: {exc}")

        logger.info(
            f"Sync {run.status.value}: {run.processed} processed, {run.created} created, "
            f"{run.updated} updated, {run.failed} failed"
        )
        if self.audit_logger:
            self.audit_logger.get().info(json.dumps({
                "sync_id": run.id,
                "sync_type": run.kind.value,
                "triggered_by": run.triggered_by,
                "started_at": run.started_at,
                **run.to_update_row(),
            }, default=str))
