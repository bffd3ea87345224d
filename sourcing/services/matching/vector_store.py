"""
Pinecone index wrapper.

The Pinecone client is synchronous; calls run in a worker thread so they
don't block the event loop, and go through the shared rate limiter.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from ...models import VectorMatch, VectorRecord
from ..rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


class VectorStore:
    def __init__(self, index: Any, limiter: RateLimiter):
        """
        Args:
            index: A ``pinecone.Index`` (or anything with the same
                ``upsert`` / ``query`` signatures)
        """
        self.index = index
        self.limiter = limiter

    async def upsert(self, namespace: str, records: Sequence[VectorRecord]) -> bool:
        """
        Upsert records into a namespace. Existing ids are fully replaced.

        Returns:
            True once the index acknowledged the write
        """
        if not records:
            return True

        vectors = [
            {"id": record.id, "values": list(record.values), "metadata": record.metadata}
            for record in records
        ]

        async def call() -> bool:
            await asyncio.to_thread(self.index.upsert, vectors=vectors, namespace=namespace)
            return True

        result = await self.limiter.execute(
            call, name=f"upsert[{namespace}]", key=",".join(r.id for r in records[:5])
        )
        return bool(result)

    async def query(
        self,
        namespace: str,
        vector: Sequence[float],
        top_k: int,
        include_metadata: bool = True,
    ) -> Optional[List[VectorMatch]]:
        """Nearest neighbours, best first; None if the query failed."""
        async def call() -> Any:
            return await asyncio.to_thread(
                self.index.query,
                namespace=namespace,
                vector=list(vector),
                top_k=top_k,
                include_metadata=include_metadata,
                include_values=False,
            )

        response = await self.limiter.execute(call, name=f"query[{namespace}]")
        if response is None:
            return None

        matches: List[VectorMatch] = []
        for match in _field(response, "matches", None) or []:
            metadata: Dict[str, Any] = _field(match, "metadata") or {}
            matches.append(
                VectorMatch(
                    id=_field(match, "id"),
                    score=_field(match, "score") or 0.0,
                    metadata=dict(metadata),
                )
            )
        return matches
