from __future__ import annotations

import asyncio
import json
from typing import List

import httpx
import pytest

from sourcing.errors import StoreError
from sourcing.models import ArtifactKind
from sourcing.services.db.repository import ArtifactTracker, RecordRepository
from sourcing.services.db.supabase_client import SupabaseClient


def _client(handler) -> SupabaseClient:
    return SupabaseClient("https://db.example.co", "service-key", transport=httpx.MockTransport(handler))


def test_missing_credentials_raise():
    with pytest.raises(ValueError):
        SupabaseClient("", "key")


def test_select_page_sends_filters_and_paging():
    seen: List[httpx.Request] = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[{"id": "1"}])

    client = _client(handler)
    repo = RecordRepository(client, "people")

    rows = asyncio.run(
        repo.select_page("id,email", where=lambda q: q.not_is("email", "null").neq("email", ""), limit=50, offset=100)
    )

    assert rows == [{"id": "1"}]
    request = seen[0]
    assert request.method == "GET"
    assert request.url.path == "/rest/v1/people"
    params = request.url.params
    assert params["select"] == "id,email"
    assert params.get_list("email") == ["not.is.null", "neq."]
    assert params["order"] == "id.asc"
    assert params["limit"] == "50"
    assert params["offset"] == "100"
    assert request.headers["apikey"] == "service-key"


def test_select_all_collects_every_page():
    rows = [{"id": str(i)} for i in range(5)]

    def handler(request):
        limit = int(request.url.params["limit"])
        offset = int(request.url.params.get("offset", "0"))
        return httpx.Response(200, json=rows[offset:offset + limit])

    repo = RecordRepository(_client(handler), "candidates")
    assert asyncio.run(repo.select_all("id", page_size=2)) == rows


def test_insert_swallows_duplicates():
    def handler(request):
        return httpx.Response(409, json={"code": "23505", "message": "duplicate key value"})

    repo = RecordRepository(_client(handler), "candidates")
    assert asyncio.run(repo.insert({"id": "c1", "url": "https://www.linkedin.com/in/jdoe"})) is False


def test_insert_raises_other_errors():
    def handler(request):
        return httpx.Response(500, text="internal error")

    repo = RecordRepository(_client(handler), "candidates")
    with pytest.raises(StoreError) as excinfo:
        asyncio.run(repo.insert({"id": "c1"}))
    assert isinstance(excinfo.value.__cause__, httpx.HTTPStatusError)


def test_insert_returns_true_on_success():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json=[{"id": "c1"}])

    repo = RecordRepository(_client(handler), "candidates")
    assert asyncio.run(repo.insert({"id": "c1"})) is True
    assert bodies == [{"id": "c1"}]


def test_update_patches_by_id():
    seen: List[httpx.Request] = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[])

    repo = RecordRepository(_client(handler), "people")
    asyncio.run(repo.update("p1", {"twitter_bio": "hi"}))

    assert seen[0].method == "PATCH"
    assert seen[0].url.params["id"] == "eq.p1"
    assert json.loads(seen[0].content) == {"twitter_bio": "hi"}


def test_update_failure_raises_store_error():
    repo = RecordRepository(_client(lambda request: httpx.Response(400, json={"message": "bad column"})), "people")
    with pytest.raises(StoreError, match="people p1"):
        asyncio.run(repo.update("p1", {"nope": 1}))


def test_tracker_register_never_overwrites_existing_status():
    seen: List[httpx.Request] = []

    def handler(request):
        seen.append(request)
        return httpx.Response(201, json=[])

    tracker = ArtifactTracker(_client(handler))
    asyncio.run(tracker.register("c1", [ArtifactKind.SKILL_AVERAGE]))

    request = seen[0]
    assert request.url.params["on_conflict"] == "record_id,kind"
    assert "resolution=ignore-duplicates" in request.headers["Prefer"]
    assert json.loads(request.content) == [{"record_id": "c1", "kind": "skill_average", "status": "pending"}]


def test_tracker_mark_done_merges():
    seen: List[httpx.Request] = []

    def handler(request):
        seen.append(request)
        return httpx.Response(201, json=[])

    tracker = ArtifactTracker(_client(handler))
    asyncio.run(tracker.mark_done(["c1", "c2"], ArtifactKind.X_BIO))

    assert "resolution=merge-duplicates" in seen[0].headers["Prefer"]
    body = json.loads(seen[0].content)
    assert [row["record_id"] for row in body] == ["c1", "c2"]
    assert all(row["status"] == "done" and row["updated_at"] for row in body)


def test_tracker_pending_filters_done_rows():
    def handler(request):
        assert request.url.params["kind"] == "eq.x_bio"
        assert request.url.params["status"] == "eq.done"
        return httpx.Response(200, json=[{"record_id": "p1"}])

    tracker = ArtifactTracker(_client(handler))
    rows = [{"id": "p1"}, {"id": "p2"}]

    assert asyncio.run(tracker.pending(rows, ArtifactKind.X_BIO)) == [{"id": "p2"}]


def test_tracker_status_for_and_remaining():
    def handler(request):
        return httpx.Response(200, json=[{"kind": "skill_average", "status": "done"},
                                         {"kind": "feature_average", "status": "pending"}])

    tracker = ArtifactTracker(_client(handler))
    remaining = asyncio.run(
        tracker.remaining("c1", [ArtifactKind.SKILL_AVERAGE, ArtifactKind.FEATURE_AVERAGE, ArtifactKind.COMPANY_IDS])
    )
    assert remaining == [ArtifactKind.FEATURE_AVERAGE, ArtifactKind.COMPANY_IDS]
