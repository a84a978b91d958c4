"""Command-line entry point for scheduled syncs: python -m netsuite_sync --type full"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from .config import LOG_DIR, NetSuiteConfig, Settings
from .csv_import import parse_csv_text
from .errors import SyncError
from .job_log import DailyLogger
from .models import SyncKind
from .orchestration import run_sync
from .stores import create_store


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Synchronize NetSuite vendors into the authors table")
    parser.add_argument(
        "--type",
        choices=[kind.value for kind in SyncKind],
        default=SyncKind.INCREMENTAL.value,
        help="sync strategy (default: incremental)",
    )
    parser.add_argument("--csv", type=Path, help="CSV file to import (required for csv_import)")
    parser.add_argument("--triggered-by", default="scheduler", help="actor recorded in sync_log")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    args = parse_args(argv)
    kind = SyncKind(args.type)

    csv_rows = None
    if kind == SyncKind.CSV_IMPORT:
        if not args.csv:
            print("--csv is required for csv_import", file=sys.stderr)
            return 2
        csv_rows = parse_csv_text(args.csv.read_text(encoding="utf-8-sig"))

    settings = Settings()
    try:
        summary = asyncio.run(run_sync(
            kind,
            create_store(settings),
            netsuite_config=NetSuiteConfig.from_settings(settings),
            csv_rows=csv_rows,
            triggered_by=args.triggered_by,
            audit_logger=DailyLogger("netsuite_sync_runs", "sync_runs_{date}.log", LOG_DIR, subfolder="sync_runs"),
        ))
    except SyncError as exc:
        print(json.dumps({"success": False, "error": str(exc)}))
        return 1

    print(json.dumps(summary, indent=2))
    return 0 if summary["status"] == "completed" else 1


if __name__ == "__main__":
    sys.exit(main())
