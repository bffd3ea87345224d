"""
Embedding & Vector Upsert Pipeline.

Per-item upserts write one vector per item under the owner's id; averaged
upserts embed every item and write their element-wise mean. The backfill
jobs below select records whose artifact is still Pending, upsert, and only
then mark the artifact Done.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional, Sequence

from ...models import ArtifactKind, VectorRecord
from ..batching import BatchReport, chunk, run_in_batches
from .embeddings import Embedder, average_embedding, is_ascii
from .vector_store import VectorStore

if TYPE_CHECKING:
    from ..clients import Clients

logger = logging.getLogger(__name__)

TECHNOLOGIES_NAMESPACE = "technologies"
JOB_TITLES_NAMESPACE = "job-titles"
SKILL_AVERAGE_NAMESPACE = "candidate-skill-average"
FEATURE_AVERAGE_NAMESPACE = "candidate-feature-average"
JOB_TITLE_AVERAGE_NAMESPACE = "candidate-job-title-average"
X_BIO_NAMESPACE = "x-bio"

X_BIO_BATCH_SIZE = 25
X_BIO_USER_DELAY_SECONDS = 0.2
X_BIO_BATCH_DELAY_SECONDS = 1.0


@dataclass(frozen=True)
class VectorTarget:
    kind: ArtifactKind
    namespace: str
    column: str
    field: str


AVERAGE_TARGETS = {
    ArtifactKind.SKILL_AVERAGE: VectorTarget(
        ArtifactKind.SKILL_AVERAGE, SKILL_AVERAGE_NAMESPACE, "top_technologies", "skills"
    ),
    ArtifactKind.FEATURE_AVERAGE: VectorTarget(
        ArtifactKind.FEATURE_AVERAGE, FEATURE_AVERAGE_NAMESPACE, "top_features", "features"
    ),
    ArtifactKind.JOB_TITLE_AVERAGE: VectorTarget(
        ArtifactKind.JOB_TITLE_AVERAGE, JOB_TITLE_AVERAGE_NAMESPACE, "job_titles", "jobTitles"
    ),
}

ITEM_TARGETS = {
    ArtifactKind.TECHNOLOGY_ITEMS: VectorTarget(
        ArtifactKind.TECHNOLOGY_ITEMS, TECHNOLOGIES_NAMESPACE, "top_technologies", "technology"
    ),
    ArtifactKind.JOB_TITLE_ITEMS: VectorTarget(
        ArtifactKind.JOB_TITLE_ITEMS, JOB_TITLES_NAMESPACE, "job_titles", "jobTitle"
    ),
}


def drop_blank(items: Sequence[str]) -> List[str]:
    """Items with something to embed; blank ones are logged and dropped."""
    kept = []
    for item in items:
        if not item or not item.strip():
            logger.info("[Vectors] Skipping blank item: %r", item)
            continue
        kept.append(item)
    return kept


class VectorUpserter:
    def __init__(self, embedder: Embedder, store: VectorStore):
        self.embedder = embedder
        self.store = store

    async def upsert_items(
        self, owner_id: str, namespace: str, items: Sequence[str], field: str
    ) -> bool:
        """
        Embed and upsert each ASCII item on its own, keyed by the owner id.

        Blank and non-ASCII items are skipped. Returns False if any embedding
        or upsert failed; skipped items don't count as failures.
        """
        ok = True
        for item in drop_blank(items):
            if not is_ascii(item):
                logger.info("[Vectors] Skipping non-ASCII item: %s", item)
                continue

            embedding = await self.embedder.embed(item)
            if embedding is None:
                logger.error("[Vectors] No embedding for '%s' (%s)", item, owner_id)
                ok = False
                continue

            record = VectorRecord(
                id=owner_id, values=embedding, metadata={"candidateId": owner_id, field: item}
            )
            if not await self.store.upsert(namespace, [record]):
                ok = False
        return ok

    async def upsert_average(
        self, owner_id: str, namespace: str, items: Sequence[str], field: str
    ) -> bool:
        """
        Upsert the mean embedding of ``items`` under the owner id.

        Blank items are left out of the mean.

        Returns:
            True once written (or nothing to write), False if any embedding
            or the upsert failed
        """
        items = drop_blank(items)
        if not items:
            return True

        embeddings = await asyncio.gather(*[self.embedder.embed(item) for item in items])
        if any(embedding is None for embedding in embeddings):
            logger.error("[Vectors] Missing embeddings for %s in %s, skipping average", owner_id, namespace)
            return False

        record = VectorRecord(
            id=owner_id,
            values=average_embedding(embeddings),
            metadata={"userId": owner_id, field: items},
        )
        return await self.store.upsert(namespace, [record])


# ============================================================================
# BACKFILL JOBS
# ============================================================================

async def _backfill_candidates(
    clients: "Clients",
    target: VectorTarget,
    upsert: Callable[[str, str, Sequence[str], str], Awaitable[bool]],
    batch_size: int,
    delay_seconds: float,
    label: str,
) -> BatchReport:
    rows = await clients.candidates.select_all(columns=f"id,{target.column}")
    rows = await clients.artifacts.pending(rows, target.kind)
    logger.info("[Vectors] %d candidates pending %s", len(rows), target.kind.value)

    async def worker(row: Dict[str, Any]) -> Optional[bool]:
        items = row.get(target.column)
        if items is None:
            return None

        if not await upsert(row["id"], target.namespace, items, target.field):
            return False

        await clients.artifacts.mark_done([row["id"]], target.kind)
        return True

    return await run_in_batches(rows, worker, batch_size, delay_seconds, label=label)


async def embed_averages(
    clients: "Clients",
    kind: ArtifactKind,
    batch_size: int = 10,
    delay_seconds: float = 0.0,
) -> BatchReport:
    """
    Upsert averaged vectors for candidates whose ``kind`` is still Pending.

    An empty item list is marked Done without an upsert; a missing (None)
    list is left Pending until the feature has been derived.
    """
    upserter = VectorUpserter(clients.embedder, clients.vectors)
    return await _backfill_candidates(
        clients, AVERAGE_TARGETS[kind], upserter.upsert_average,
        batch_size, delay_seconds, label=f"Average:{kind.value}",
    )


async def embed_skill_averages(clients: "Clients", **kwargs) -> BatchReport:
    return await embed_averages(clients, ArtifactKind.SKILL_AVERAGE, **kwargs)


async def embed_feature_averages(clients: "Clients", **kwargs) -> BatchReport:
    return await embed_averages(clients, ArtifactKind.FEATURE_AVERAGE, **kwargs)


async def embed_job_title_averages(clients: "Clients", **kwargs) -> BatchReport:
    return await embed_averages(clients, ArtifactKind.JOB_TITLE_AVERAGE, **kwargs)


async def upsert_item_vectors(
    clients: "Clients",
    kind: ArtifactKind,
    batch_size: int = 10,
    delay_seconds: float = 0.0,
) -> BatchReport:
    """Retry per-item technology / job title upserts left Pending by a failed insert."""
    upserter = VectorUpserter(clients.embedder, clients.vectors)
    return await _backfill_candidates(
        clients, ITEM_TARGETS[kind], upserter.upsert_items,
        batch_size, delay_seconds, label=f"Items:{kind.value}",
    )


async def upsert_technology_items(clients: "Clients", **kwargs) -> BatchReport:
    return await upsert_item_vectors(clients, ArtifactKind.TECHNOLOGY_ITEMS, **kwargs)


async def upsert_job_title_items(clients: "Clients", **kwargs) -> BatchReport:
    return await upsert_item_vectors(clients, ArtifactKind.JOB_TITLE_ITEMS, **kwargs)


def x_bio_record(person: Dict[str, Any], embedding: List[float]) -> VectorRecord:
    username = person.get("twitter_username")
    vector_id = f"{username or person['id']}-bio"
    return VectorRecord(
        id=vector_id,
        values=embedding,
        metadata={
            "id": vector_id,
            "text": person["twitter_bio"],
            "username": username,
            "userId": person["id"],
        },
    )


async def upsert_x_bios(
    clients: "Clients",
    batch_size: int = X_BIO_BATCH_SIZE,
    user_delay_seconds: float = X_BIO_USER_DELAY_SECONDS,
    batch_delay_seconds: float = X_BIO_BATCH_DELAY_SECONDS,
    sleep=asyncio.sleep,
) -> BatchReport:
    """
    Embed X bios and upsert them a batch at a time.

    Within a batch users are embedded one after another with a short pause;
    the batch is upserted in one call and its users are marked Done only
    after that call succeeds.
    """
    rows = await clients.people.select_all(
        columns="id,twitter_username,twitter_bio",
        where=lambda q: q.not_is("twitter_bio", "null"),
    )
    rows = await clients.artifacts.pending(rows, ArtifactKind.X_BIO)
    logger.info("[XBios] Found %d users with Twitter bios to upsert", len(rows))

    async def process_batch(batch: List[Dict[str, Any]]) -> Optional[bool]:
        records: List[VectorRecord] = []
        for person in batch:
            embedding = await clients.embedder.embed(person["twitter_bio"])
            if embedding is None:
                logger.error("[XBios] No embedding for %s", person.get("twitter_username"))
            else:
                records.append(x_bio_record(person, embedding))
            await sleep(user_delay_seconds)

        if not records:
            return None
        if not await clients.vectors.upsert(X_BIO_NAMESPACE, records):
            return False

        await clients.artifacts.mark_done([r.metadata["userId"] for r in records], ArtifactKind.X_BIO)
        logger.info("[XBios] Upserted %d bios", len(records))
        return len(records) == len(batch)

    # One item per batch of users, so the orchestrator's pause sits between batches
    batches = chunk(rows, batch_size)
    return await run_in_batches(
        batches, process_batch, 1, batch_delay_seconds, label="XBios", sleep=sleep
    )
