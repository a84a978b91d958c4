"""Create-or-update of mapped author rows against the author store."""

import logging
from typing import Callable, Iterable

from .errors import StoreError
from .mapper import AUTHOR_CREATE_DEFAULTS
from .models import ReconciliationOutcome, SyncRun

logger = logging.getLogger(__name__)

# Reconciliation keys
KEY_INTERNAL_ID = "netsuite_internal_id"
KEY_EMAIL = "email"


class ReconciliationEngine:
    """
    Upserts mapped author rows one at a time, keyed by `key_field`.

    Each record gets one attempt; failures become outcomes and never abort
    the batch. Writes are not wrapped in a batch transaction, so records
    handled before a failure stay committed.
    """

    def __init__(self, store, key_field: str):
        self.store = store
        self.key_field = key_field

    async def reconcile(self, author: dict, record_key: str) -> ReconciliationOutcome:
        """
        Create or update one author.

        The create path is an insert-if-absent on the key column, so two
        overlapping runs cannot both insert the same key: the loser falls
        through to the update path.
        """
        if not author.get("email"):
            return ReconciliationOutcome.failed(record_key, "Missing email")
        key_value = author.get(self.key_field)
        if key_value is None:
            return ReconciliationOutcome.failed(record_key, f"Missing {self.key_field}")

        try:
            existing = await self.store.find_author(self.key_field, key_value)
            if existing is None:
                inserted = await self.store.insert_author_if_absent(
                    {**author, **AUTHOR_CREATE_DEFAULTS},
                    on_conflict=self.key_field,
                )
                if inserted is not None:
                    return ReconciliationOutcome.created(record_key)
                logger.info(f"{self.key_field}={key_value} was created concurrently, updating instead")
                existing = await self.store.find_author(self.key_field, key_value)
                if existing is None:
                    return ReconciliationOutcome.failed(
                        record_key, f"Author with {self.key_field}={key_value} disappeared during sync"
                    )

            await self.store.update_author(existing["id"], author)
            return ReconciliationOutcome.updated(record_key)
        except StoreError as exc:
            return ReconciliationOutcome.failed(record_key, str(exc))
        except Exception as exc:
            logger.exception(f"Unexpected error reconciling {record_key}")
            return ReconciliationOutcome.failed(record_key, f"Unexpected error: {exc}")

    async def reconcile_rows(
        self,
        rows: Iterable,
        map_row: Callable[[dict], dict],
        record_key: Callable[[dict, dict, int], str],
        run: SyncRun,
    ) -> SyncRun:
        """
        Map and reconcile raw rows sequentially, counting every outcome into run.

        record_key(raw, author, position) names the row in error reports;
        position is 1-based.
        """
        for position, raw in enumerate(rows, start=1):
            try:
                author = map_row(raw)
            except TypeError as exc:
                outcome = ReconciliationOutcome.failed(f"row {position}", str(exc))
            else:
                outcome = await self.reconcile(author, record_key(raw, author, position))
            if outcome.error:
                logger.warning(f"Failed to sync {outcome.key}: {outcome.error}")
            run.record(outcome)
        return run
