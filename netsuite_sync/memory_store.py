"""In-memory author store for offline demos and tests."""

import copy
import itertools
import uuid
from typing import Dict, List, Optional

from .errors import StoreError, UniqueViolation

UNIQUE_AUTHOR_COLUMNS = ("email", "netsuite_internal_id")

DEMO_AUTHORS = [
    {
        "email": "j.devries@example.nl",
        "first_name": "Jan",
        "last_name": "de Vries",
        "voorletters": "J.",
        "netsuite_internal_id": 1001,
        "netsuite_vendor_id": "V-1001",
        "street": "Herengracht",
        "house_number": "123",
        "postcode": "1015 BS",
        "country": "Nederland",
        "initials": "JD",
        "is_admin": False,
        "is_active": True,
    },
    {
        "email": "admin@example.nl",
        "first_name": "Anne",
        "last_name": "Bakker",
        "voorletters": "A.",
        "netsuite_internal_id": None,
        "netsuite_vendor_id": None,
        "country": "Nederland",
        "initials": "AB",
        "is_admin": True,
        "is_active": True,
    },
]


class InMemoryStore:
    """
    Same interface as SupabaseStore, backed by dicts.

    Enforces unique email and netsuite_internal_id like the database does.
    Every call is appended to `calls` as (operation, key).
    """

    name = "memory"

    def __init__(self, authors: Optional[List[dict]] = None):
        self.authors: Dict[str, dict] = {}
        self.sync_logs: Dict[int, dict] = {}
        self.calls: List[tuple] = []
        self._log_ids = itertools.count(1)
        for author in authors or []:
            self._insert(dict(author))

    @classmethod
    def with_demo_data(cls) -> "InMemoryStore":
        return cls(DEMO_AUTHORS)

    def _check_unique(self, row: dict, ignore_id: Optional[str] = None) -> None:
        for column in UNIQUE_AUTHOR_COLUMNS:
            value = row.get(column)
            if value is None:
                continue
            for author_id, existing in self.authors.items():
                if author_id != ignore_id and existing.get(column) == value:
                    raise UniqueViolation(
                        f'duplicate key value violates unique constraint "authors_{column}_key"'
                    )

    def _insert(self, row: dict) -> dict:
        if not row.get("email"):
            raise StoreError('null value in column "email" violates not-null constraint', code="23502")
        self._check_unique(row)
        row["id"] = row.get("id") or str(uuid.uuid4())
        self.authors[row["id"]] = row
        return copy.deepcopy(row)

    def _find(self, key_field: str, value) -> Optional[dict]:
        for author in self.authors.values():
            if value is not None and author.get(key_field) == value:
                return author
        return None

    async def find_author(self, key_field: str, value) -> Optional[dict]:
        self.calls.append(("find_author", value))
        author = self._find(key_field, value)
        return copy.deepcopy(author) if author else None

    async def insert_author_if_absent(self, row: dict, on_conflict: str) -> Optional[dict]:
        self.calls.append(("insert_author_if_absent", row.get(on_conflict)))
        if self._find(on_conflict, row.get(on_conflict)) is not None:
            return None
        return self._insert(dict(row))

    async def update_author(self, author_id, fields: dict) -> dict:
        self.calls.append(("update_author", author_id))
        existing = self.authors.get(author_id)
        if existing is None:
            raise StoreError(f"Author {author_id} no longer exists")
        self._check_unique(fields, ignore_id=author_id)
        existing.update(fields)
        return copy.deepcopy(existing)

    async def insert_sync_log(self, row: dict) -> dict:
        self.calls.append(("insert_sync_log", row.get("sync_type")))
        log_id = next(self._log_ids)
        self.sync_logs[log_id] = dict(row, id=log_id)
        return dict(self.sync_logs[log_id])

    async def update_sync_log(self, log_id, fields: dict) -> None:
        self.calls.append(("update_sync_log", log_id))
        if log_id not in self.sync_logs:
            raise StoreError(f"Sync log {log_id} not found")
        self.sync_logs[log_id].update(fields)

    def author_calls(self) -> List[tuple]:
        return [call for call in self.calls if "author" in call[0]]
