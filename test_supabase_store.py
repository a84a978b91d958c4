"""
Tests for the PostgREST-backed author store.

Run with:
    pytest test_supabase_store.py
"""

import asyncio
import json
import sys
from pathlib import Path

import httpx
import pytest

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from netsuite_sync.errors import StoreError, UniqueViolation
from netsuite_sync.supabase_client import SupabaseStore

SUPABASE_URL = "https://demo.supabase.co/"


def _store(handler):
    return SupabaseStore(SUPABASE_URL, "service-key", transport=httpx.MockTransport(handler))


def test_find_author_filters_by_key():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[{"id": "a1", "email": "jan@example.nl", "netsuite_internal_id": 7}])

    author = asyncio.run(_store(handler).find_author("netsuite_internal_id", 7))

    assert author["id"] == "a1"
    request = seen[0]
    assert request.method == "GET"
    assert request.url.path == "/rest/v1/authors"
    assert request.url.params["netsuite_internal_id"] == "eq.7"
    assert request.url.params["limit"] == "1"
    assert request.headers["apikey"] == "service-key"
    assert request.headers["Authorization"] == "Bearer service-key"


def test_find_author_returns_none_when_empty():
    author = asyncio.run(_store(lambda request: httpx.Response(200, json=[])).find_author("email", "x@y.nl"))
    assert author is None


def test_insert_if_absent_uses_ignore_duplicates():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(201, json=[{"id": "a1", "email": "jan@example.nl"}])

    row = asyncio.run(_store(handler).insert_author_if_absent({"email": "jan@example.nl"}, on_conflict="email"))

    assert row == {"id": "a1", "email": "jan@example.nl"}
    request = seen[0]
    assert request.method == "POST"
    assert request.url.params["on_conflict"] == "email"
    assert "resolution=ignore-duplicates" in request.headers["Prefer"]
    assert json.loads(request.content) == {"email": "jan@example.nl"}


def test_insert_if_absent_returns_none_on_existing_key():
    row = asyncio.run(
        _store(lambda request: httpx.Response(201, json=[])).insert_author_if_absent({"email": "a"}, on_conflict="email")
    )
    assert row is None


def test_unique_violation_is_translated():
    def handler(request):
        return httpx.Response(409, json={
            "code": "23505",
            "message": 'duplicate key value violates unique constraint "authors_email_key"',
            "details": "Key (email)=(jan@example.nl) already exists.",
        })

    with pytest.raises(UniqueViolation) as exc_info:
        asyncio.run(_store(handler).insert_author_if_absent({"email": "jan@example.nl"}, on_conflict="netsuite_internal_id"))
    assert "authors_email_key" in str(exc_info.value)
    assert "already exists" in str(exc_info.value)


def test_other_errors_keep_code():
    def handler(request):
        return httpx.Response(400, json={"code": "22P02", "message": "invalid input syntax"})

    with pytest.raises(StoreError) as exc_info:
        asyncio.run(_store(handler).update_author("a1", {"phone": "1"}))
    assert exc_info.value.code == "22P02"


def test_update_author_missing_row():
    with pytest.raises(StoreError):
        asyncio.run(_store(lambda request: httpx.Response(200, json=[])).update_author("gone", {"phone": "1"}))


def test_network_error_becomes_store_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(StoreError):
        asyncio.run(_store(handler).find_author("email", "a@b.nl"))


def test_sync_log_insert_and_update():
    seen = []

    def handler(request):
        seen.append(request)
        if request.method == "POST":
            return httpx.Response(201, json=[{"id": 12, "status": "running"}])
        return httpx.Response(204)

    store = _store(handler)
    row = asyncio.run(store.insert_sync_log({"sync_type": "full", "status": "running"}))
    asyncio.run(store.update_sync_log(row["id"], {"status": "completed"}))

    assert row["id"] == 12
    assert seen[0].url.path == "/rest/v1/sync_log"
    assert seen[1].method == "PATCH"
    assert seen[1].url.params["id"] == "eq.12"
    assert seen[1].headers["Prefer"] == "return=minimal"
