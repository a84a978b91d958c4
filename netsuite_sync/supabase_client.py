"""Supabase (PostgREST) store for authors and sync_log rows."""

import logging
from typing import Optional

import httpx

from .errors import StoreError, UniqueViolation

logger = logging.getLogger(__name__)

AUTHOR_LOOKUP_COLUMNS = "id,email,netsuite_internal_id"


class SupabaseStore:
    """Author and sync_log access through the PostgREST API with the service-role key."""

    name = "supabase"

    def __init__(
        self,
        supabase_url: str,
        service_role_key: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        self.rest_url = f"{supabase_url.rstrip('/')}/rest/v1"
        self.service_role_key = service_role_key
        self.transport = transport
        self.timeout = timeout

    def _get_headers(self, prefer: str = "return=representation") -> dict:
        """Get headers for PostgREST calls."""
        return {
            "apikey": self.service_role_key,
            "Authorization": f"Bearer {self.service_role_key}",
            "Content-Type": "application/json",
            "Prefer": prefer,
        }

    async def _request(self, method: str, table: str, params: dict, json=None, prefer: str = "return=representation"):
        url = f"{self.rest_url}/{table}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    headers=self._get_headers(prefer),
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise _store_error(exc.response) from exc
        except httpx.RequestError as exc:
            raise StoreError(f"Supabase unreachable: {exc}") from exc
        if not response.content:
            return []
        return response.json()

    async def find_author(self, key_field: str, value) -> Optional[dict]:
        """Return the author whose key_field equals value, or None."""
        rows = await self._request(
            "GET",
            "authors",
            params={"select": AUTHOR_LOOKUP_COLUMNS, key_field: f"eq.{value}", "limit": "1"},
        )
        return rows[0] if rows else None

    async def insert_author_if_absent(self, row: dict, on_conflict: str) -> Optional[dict]:
        """
        Insert an author unless one already exists for the on_conflict column.

        Returns the inserted row, or None when the key was already taken.
        Conflicts on other unique columns raise UniqueViolation.
        """
        rows = await self._request(
            "POST",
            "authors",
            params={"on_conflict": on_conflict},
            json=row,
            prefer="resolution=ignore-duplicates,return=representation",
        )
        return rows[0] if rows else None

    async def update_author(self, author_id, fields: dict) -> dict:
        rows = await self._request("PATCH", "authors", params={"id": f"eq.{author_id}"}, json=fields)
        if not rows:
            raise StoreError(f"Author {author_id} no longer exists")
        return rows[0]

    async def insert_sync_log(self, row: dict) -> dict:
        rows = await self._request("POST", "sync_log", params={}, json=row)
        return rows[0] if rows else {}

    async def update_sync_log(self, log_id, fields: dict) -> None:
        await self._request("PATCH", "sync_log", params={"id": f"eq.{log_id}"}, json=fields, prefer="return=minimal")


def _store_error(response: httpx.Response) -> StoreError:
    """Translate a PostgREST error body into a StoreError."""
    try:
        data = response.json()
    except ValueError:
        data = {}
    if not isinstance(data, dict):
        data = {}
    code = data.get("code")
    message = data.get("message") or f"HTTP {response.status_code}: {response.text[:200]}"
    if data.get("details"):
        message = f"{message} ({data['details']})"
    if code == "23505":
        return UniqueViolation(message)
    return StoreError(message, code=code)
