# Matching services
from .embeddings import Embedder, average_embedding, is_ascii
from .vector_store import VectorStore
from .vector_upsert import (
    VectorUpserter,
    embed_feature_averages,
    embed_job_title_averages,
    embed_skill_averages,
    upsert_item_vectors,
    upsert_x_bios,
)
from .scoring import query_similar_technologies, score_x_candidates

__all__ = [
    "Embedder",
    "average_embedding",
    "is_ascii",
    "VectorStore",
    "VectorUpserter",
    "embed_feature_averages",
    "embed_job_title_averages",
    "embed_skill_averages",
    "upsert_item_vectors",
    "upsert_x_bios",
    "query_similar_technologies",
    "score_x_candidates",
]
