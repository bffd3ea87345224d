"""In-memory stand-ins for the store, completion, embedding and vector clients."""

from __future__ import annotations

import copy
from types import SimpleNamespace
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from sourcing.models import ArtifactKind, ArtifactStatus
from sourcing.services.clients import Clients
from sourcing.services.matching.vector_store import VectorStore
from sourcing.services.rate_limiter import RateLimiter


async def no_sleep(seconds: float) -> None:
    return None


def make_limiter() -> RateLimiter:
    return RateLimiter(cooldown_seconds=0.01, sleep=no_sleep)


class FakeQuery:
    """Records filter calls and evaluates them against plain dict rows."""

    def __init__(self):
        self.predicates: List[Callable[[Dict[str, Any]], bool]] = []

    def _add(self, predicate):
        self.predicates.append(predicate)
        return self

    def eq(self, column, value):
        return self._add(lambda row: row.get(column) == value)

    def neq(self, column, value):
        return self._add(lambda row: row.get(column) != value)

    def is_(self, column, value):
        expected = {"null": None, "true": True, "false": False}[value]
        return self._add(lambda row: row.get(column) is expected)

    def not_is(self, column, value):
        expected = {"null": None, "true": True, "false": False}[value]
        return self._add(lambda row: row.get(column) is not expected)

    def in_(self, column, values):
        return self._add(lambda row: row.get(column) in values)

    def contains(self, column, values):
        return self._add(lambda row: all(v in (row.get(column) or []) for v in values))

    def matches(self, row: Dict[str, Any]) -> bool:
        return all(predicate(row) for predicate in self.predicates)


def _project(row: Dict[str, Any], columns: str) -> Dict[str, Any]:
    if columns == "*":
        return copy.deepcopy(row)
    return {c: copy.deepcopy(row.get(c)) for c in columns.split(",")}


class FakeRepository:
    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None, unique: Optional[str] = None):
        self.rows: List[Dict[str, Any]] = [dict(r) for r in (rows or [])]
        self.unique = unique
        self.updates: List[tuple] = []

    async def select_all(self, columns="*", where=None, page_size=1000):
        query = FakeQuery()
        if where:
            where(query)
        return [_project(r, columns) for r in self.rows if query.matches(r)]

    async def select_in(self, column, values, columns="*"):
        values = list(values)
        return [_project(r, columns) for r in self.rows if r.get(column) in values]

    async def get(self, record_id):
        for row in self.rows:
            if row.get("id") == record_id:
                return copy.deepcopy(row)
        return None

    async def insert(self, row):
        if self.unique and any(r.get(self.unique) == row.get(self.unique) for r in self.rows):
            return False
        self.rows.append(copy.deepcopy(row))
        return True

    async def update(self, record_id, fields):
        self.updates.append((record_id, dict(fields)))
        for row in self.rows:
            if row.get("id") == record_id:
                row.update(fields)

    def by_id(self, record_id) -> Dict[str, Any]:
        return next(r for r in self.rows if r.get("id") == record_id)


class FakeTracker:
    def __init__(self):
        self.statuses: Dict[tuple, ArtifactStatus] = {}

    async def register(self, record_id, kinds):
        for kind in kinds:
            self.statuses.setdefault((record_id, kind), ArtifactStatus.PENDING)

    async def mark_done(self, record_ids, kind):
        for record_id in record_ids:
            self.statuses[(record_id, kind)] = ArtifactStatus.DONE

    async def status_for(self, record_id):
        return {kind: status for (rid, kind), status in self.statuses.items() if rid == record_id}

    async def remaining(self, record_id, kinds):
        statuses = await self.status_for(record_id)
        return [k for k in kinds if statuses.get(k) != ArtifactStatus.DONE]

    async def done_ids(self, record_ids, kind):
        return {rid for rid in record_ids if self.statuses.get((rid, kind)) == ArtifactStatus.DONE}

    async def pending(self, rows, kind, id_field="id"):
        done = await self.done_ids([r[id_field] for r in rows], kind)
        return [r for r in rows if r[id_field] not in done]

    def is_done(self, record_id, kind: ArtifactKind) -> bool:
        return self.statuses.get((record_id, kind)) == ArtifactStatus.DONE


class FakeChat:
    """ChatCompleter stand-in; ``responder(system, user, kwargs)`` returns the content."""

    def __init__(self, responder: Callable[[str, str, Dict[str, Any]], Optional[str]]):
        self.responder = responder
        self.calls: List[Dict[str, Any]] = []

    async def complete(self, system, user, **kwargs):
        self.calls.append({"system": system, "user": user, **kwargs})
        return self.responder(system, user, kwargs)


class FakeEmbedder:
    """Deterministic 3-dim embeddings; texts in ``failures`` return None."""

    def __init__(self, failures: Iterable[str] = ()):
        self.failures = set(failures)
        self.calls: List[str] = []

    async def embed(self, text):
        self.calls.append(text)
        if text in self.failures:
            return None
        return [float(len(text)), float(sum(map(ord, text)) % 7), 1.0]


class FakeIndex:
    """Pinecone Index stand-in keyed by namespace and id."""

    def __init__(self, query_matches: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.namespaces: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.upsert_calls: List[tuple] = []
        self.query_matches = query_matches or {}
        self.fail_upserts = False

    def upsert(self, vectors, namespace):
        if self.fail_upserts:
            raise RuntimeError("index unavailable")
        self.upsert_calls.append((namespace, [v["id"] for v in vectors]))
        store = self.namespaces.setdefault(namespace, {})
        for vector in vectors:
            store[vector["id"]] = {"values": vector["values"], "metadata": vector["metadata"]}
        return {"upserted_count": len(vectors)}

    def query(self, namespace, vector, top_k, include_metadata=True, include_values=False):
        matches = [SimpleNamespace(**m) for m in self.query_matches.get(namespace, [])][:top_k]
        return SimpleNamespace(matches=matches)


def make_clients(
    chat: Optional[FakeChat] = None,
    embedder: Optional[FakeEmbedder] = None,
    index: Optional[FakeIndex] = None,
    candidates: Optional[FakeRepository] = None,
    people: Optional[FakeRepository] = None,
    companies: Optional[FakeRepository] = None,
    **providers: Any,
) -> Clients:
    limiter = make_limiter()
    return Clients(
        settings=None,
        limiter=limiter,
        candidates=candidates or FakeRepository(unique="url"),
        people=people or FakeRepository(unique="github_login"),
        companies=companies or FakeRepository(),
        artifacts=FakeTracker(),
        chat=chat or FakeChat(lambda system, user, kwargs: None),
        embedder=embedder or FakeEmbedder(),
        vectors=VectorStore(index or FakeIndex(), limiter),
        **providers,
    )


def completion_response(content: Optional[str]) -> Any:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeOpenAI:
    """AsyncOpenAI stand-in exposing chat.completions.create and embeddings.create."""

    def __init__(self, contents: Sequence[Any] = (), embeddings: Optional[Dict[str, List[float]]] = None):
        self._contents = list(contents)
        self._embeddings = embeddings or {}
        self.completion_calls: List[Dict[str, Any]] = []
        self.embedding_calls: List[Dict[str, Any]] = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create_completion))
        self.embeddings = SimpleNamespace(create=self._create_embedding)

    async def _create_completion(self, **kwargs):
        self.completion_calls.append(kwargs)
        content = self._contents.pop(0)
        if isinstance(content, Exception):
            raise content
        return completion_response(content)

    async def _create_embedding(self, **kwargs):
        self.embedding_calls.append(kwargs)
        vector = self._embeddings[kwargs["input"]]
        return SimpleNamespace(data=[SimpleNamespace(embedding=vector)])
