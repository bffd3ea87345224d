"""
Embeddings Service - Generate vector embeddings for skills, titles and bios.

Uses OpenAI text-embedding-3-large (3072 dimensions).
"""

import logging
import math
import re
from typing import List, Optional, Sequence

from openai import AsyncOpenAI

from ..rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

EMBEDDING_MODEL = "text-embedding-3-large"
EMBEDDING_DIMENSIONS = 3072

_NON_ASCII = re.compile(r"[^\x00-\x7F]")


def is_ascii(text: str) -> bool:
    return not _NON_ASCII.search(text)


def average_embedding(vectors: Sequence[Sequence[float]]) -> List[float]:
    """
    Element-wise mean of equal-length vectors.

    Each dimension is summed exactly (math.fsum) and then divided, so a
    single vector averages to itself.

    Raises:
        ValueError: no vectors, or vectors of different lengths
    """
    if not vectors:
        raise ValueError("cannot average an empty list of embeddings")

    dimensions = len(vectors[0])
    if any(len(v) != dimensions for v in vectors):
        raise ValueError("embeddings have mismatched dimensions")

    count = len(vectors)
    return [math.fsum(column) / count for column in zip(*vectors)]


class Embedder:
    def __init__(self, client: AsyncOpenAI, limiter: RateLimiter, model: str = EMBEDDING_MODEL):
        self.client = client
        self.limiter = limiter
        self.model = model

    async def embed(self, text: str) -> Optional[List[float]]:
        """
        Generate an embedding vector for the given text.

        Returns:
            List of floats or None on empty input / error
        """
        if not text or not text.strip():
            return None

        async def call() -> List[float]:
            response = await self.client.embeddings.create(
                model=self.model,
                input=text.strip(),
                encoding_format="float",
            )
            return response.data[0].embedding

        return await self.limiter.execute(call, name="embed", key=text[:80])
