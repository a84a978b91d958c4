"""Orchestration of a sync run: acquire records, reconcile them, log the run."""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import httpx

from .config import NetSuiteConfig
from .errors import ConfigurationError
from .job_log import DailyLogger, JobLogStore
from .mapper import map_csv_row_to_author, map_vendor_to_author
from .models import SyncKind, utc_now_iso
from .netsuite_client import NetSuiteClient
from .reconciliation import KEY_EMAIL, KEY_INTERNAL_ID, ReconciliationEngine

logger = logging.getLogger(__name__)

INCREMENTAL_LOOKBACK = timedelta(hours=24)


def _csv_record_key(raw, author: dict, position: int) -> str:
    return author.get("email") or f"row {position}"


def _vendor_record_key(raw, author: dict, position: int) -> str:
    vendor_id = author.get("netsuite_vendor_id") or author.get("netsuite_internal_id")
    return str(vendor_id) if vendor_id is not None else f"row {position}"


async def fetch_vendor_batch(
    kind: SyncKind,
    netsuite_config: Optional[NetSuiteConfig],
    transport: Optional[httpx.AsyncBaseTransport] = None,
    now: Optional[datetime] = None,
) -> List[dict]:
    """
    Fetch the vendor batch for a full or incremental run.

    Raises:
        ConfigurationError: NetSuite credentials are incomplete
        AcquisitionError: the NetSuite call failed
    """
    missing = netsuite_config.missing_fields() if netsuite_config else list(NetSuiteConfig.REQUIRED_FIELDS)
    if missing:
        raise ConfigurationError(
            f"NetSuite credentials not configured (missing: {', '.join(missing)}). Set environment variables."
        )

    modified_since = None
    if kind == SyncKind.INCREMENTAL:
        modified_since = (now or datetime.now(timezone.utc)) - INCREMENTAL_LOOKBACK

    client = NetSuiteClient(netsuite_config, transport=transport)
    return await client.fetch_vendors(modified_since=modified_since)


async def run_sync(
    kind: SyncKind,
    store,
    netsuite_config: Optional[NetSuiteConfig] = None,
    csv_rows: Optional[List[dict]] = None,
    triggered_by: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    audit_logger: Optional[DailyLogger] = None,
) -> dict:
    """
    Run one sync job and return its summary.

    A sync_log row is opened (status=running) before any work and closed
    exactly once. Configuration and acquisition errors close the run as
    failed with zero records processed and are re-raised to the caller;
    per-record failures only show up in the counters.

    Args:
        kind: full, incremental or csv_import
        store: SupabaseStore or InMemoryStore
        netsuite_config: credentials for full/incremental runs
        csv_rows: rows keyed by lower-cased header (csv_import only)
        triggered_by: id of the admin who started the run
        transport: optional httpx transport for the NetSuite client

    Returns:
        {success, sync_id, status, processed, created, updated, failed, errors}
    """
    job_log = JobLogStore(store, audit_logger)
    run = await job_log.open_run(kind, triggered_by)
    synced_at = utc_now_iso()

    try:
        if kind == SyncKind.CSV_IMPORT:
            if csv_rows is None:
                raise ConfigurationError("csv_import requires csvData rows")
            engine = ReconciliationEngine(store, KEY_EMAIL)
            logger.info(f"Processing CSV import of {len(csv_rows)} rows...")
            await engine.reconcile_rows(
                csv_rows,
                lambda row: map_csv_row_to_author(row, now=synced_at),
                _csv_record_key,
                run,
            )
        else:
            vendors = await fetch_vendor_batch(kind, netsuite_config, transport)
            engine = ReconciliationEngine(store, KEY_INTERNAL_ID)
            await engine.reconcile_rows(
                vendors,
                lambda vendor: map_vendor_to_author(vendor, now=synced_at),
                _vendor_record_key,
                run,
            )
    except Exception as exc:
        logger.error(f"Sync error: {exc}")
        run.fail(str(exc))
        await job_log.close_run(run)
        raise

    run.finish()
    await job_log.close_run(run)
    return run.summary()
