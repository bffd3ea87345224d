"""
Typed read/update operations over the relational store.

RecordRepository - one table: paged select, insert (duplicates swallowed),
                   partial update by primary key; other write
                   failures surface as StoreError
ArtifactTracker  - per-record completion status for derived artifacts
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

import httpx

from ...errors import StoreError
from ...models import ArtifactKind, ArtifactStatus
from ..batching import DEFAULT_PAGE_SIZE, chunk, collect_rows
from .supabase_client import SupabaseClient, SupabaseTable, is_duplicate_error

logger = logging.getLogger(__name__)

Filter = Callable[[SupabaseTable], SupabaseTable]

# Keeps in.(...) filters well under URL length limits
IN_FILTER_CHUNK = 100


class RecordRepository:
    def __init__(self, client: SupabaseClient, table: str):
        self.client = client
        self.table = table

    async def select_page(
        self,
        columns: str = "*",
        where: Optional[Filter] = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        query = self.client.table(self.table).select(columns)
        if where:
            query = where(query)
        # Stable order so limit/offset pages don't overlap
        query = query.order("id").limit(limit).offset(offset)
        result = await query.execute()
        return result.data or []

    async def select_all(
        self,
        columns: str = "*",
        where: Optional[Filter] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> List[Dict[str, Any]]:
        async def fetch_page(limit: int, offset: int) -> List[Dict[str, Any]]:
            return await self.select_page(columns, where, limit, offset)

        return await collect_rows(fetch_page, page_size)

    async def select_in(
        self, column: str, values: Iterable[Any], columns: str = "*"
    ) -> List[Dict[str, Any]]:
        rows: List[Dict[str, Any]] = []
        for group in chunk(list(values), IN_FILTER_CHUNK):
            result = await self.client.table(self.table).select(columns).in_(column, group).execute()
            rows.extend(result.data or [])
        return rows

    async def insert(self, row: Dict[str, Any]) -> bool:
        """
        Insert a row.

        Returns:
            True if inserted, False if the row already existed
        """
        try:
            await self.client.table(self.table).insert(row).execute()
            return True
        except httpx.HTTPStatusError as e:
            if is_duplicate_error(e):
                logger.info("[%s] Duplicate insert ignored for %s", self.table, row.get("id"))
                return False
            raise StoreError(f"Insert into {self.table} failed: {e.response.status_code}") from e

    async def update(self, record_id: str, fields: Dict[str, Any]) -> None:
        try:
            await self.client.table(self.table).update(fields).eq("id", record_id).execute()
        except httpx.HTTPStatusError as e:
            raise StoreError(f"Update of {self.table} {record_id} failed: {e.response.status_code}") from e


class ArtifactTracker:
    """
    Completion status per (record, artifact kind).

    A missing row means Pending. Statuses only ever move to Done; the tracker
    has no operation that clears one.
    """

    TABLE = "artifact_status"

    def __init__(self, client: SupabaseClient):
        self.client = client

    async def register(self, record_id: str, kinds: Iterable[ArtifactKind]) -> None:
        """Record Pending rows for a new record without touching existing ones."""
        rows = [
            {"record_id": record_id, "kind": kind.value, "status": ArtifactStatus.PENDING.value}
            for kind in kinds
        ]
        if not rows:
            return
        await self.client.table(self.TABLE).upsert(
            rows, on_conflict="record_id,kind", ignore_duplicates=True
        ).execute()

    async def mark_done(self, record_ids: Iterable[str], kind: ArtifactKind) -> None:
        now = datetime.now(timezone.utc).isoformat()
        rows = [
            {
                "record_id": record_id,
                "kind": kind.value,
                "status": ArtifactStatus.DONE.value,
                "updated_at": now,
            }
            for record_id in record_ids
        ]
        if not rows:
            return
        await self.client.table(self.TABLE).upsert(rows, on_conflict="record_id,kind").execute()

    async def status_for(self, record_id: str) -> Dict[ArtifactKind, ArtifactStatus]:
        """Everything recorded for one record, in a single query."""
        result = await self.client.table(self.TABLE).select("kind,status").eq("record_id", record_id).execute()
        return {
            ArtifactKind(row["kind"]): ArtifactStatus(row["status"])
            for row in (result.data or [])
        }

    async def remaining(self, record_id: str, kinds: Iterable[ArtifactKind]) -> List[ArtifactKind]:
        statuses = await self.status_for(record_id)
        return [kind for kind in kinds if statuses.get(kind) != ArtifactStatus.DONE]

    async def done_ids(self, record_ids: Iterable[str], kind: ArtifactKind) -> Set[str]:
        done: Set[str] = set()
        for group in chunk(list(record_ids), IN_FILTER_CHUNK):
            result = await (
                self.client.table(self.TABLE)
                .select("record_id")
                .eq("kind", kind.value)
                .eq("status", ArtifactStatus.DONE.value)
                .in_("record_id", group)
                .execute()
            )
            done.update(row["record_id"] for row in (result.data or []))
        return done

    async def pending(
        self, rows: List[Dict[str, Any]], kind: ArtifactKind, id_field: str = "id"
    ) -> List[Dict[str, Any]]:
        """Filter rows down to those whose ``kind`` artifact is not Done."""
        if not rows:
            return []
        done = await self.done_ids([row[id_field] for row in rows], kind)
        return [row for row in rows if row[id_field] not in done]
