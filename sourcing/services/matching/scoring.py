"""
Similarity search and X candidate ranking.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..derivation.stats import XCandidateScore, score_x_candidate
from .vector_upsert import TECHNOLOGIES_NAMESPACE, X_BIO_NAMESPACE

if TYPE_CHECKING:
    from ..clients import Clients

logger = logging.getLogger(__name__)

SIMILAR_TECH_TOP_K = 200
SIMILAR_TECH_MIN_SCORE = 0.7
X_BIO_TOP_K = 100


async def query_similar_technologies(
    clients: "Clients",
    skill: str,
    top_k: int = SIMILAR_TECH_TOP_K,
    min_score: float = SIMILAR_TECH_MIN_SCORE,
) -> List[Dict[str, Any]]:
    """
    Technologies whose per-item vectors are close to ``skill``.

    Returns:
        ``[{"technology", "score", "candidate_id"}]`` above ``min_score``, best first
    """
    embedding = await clients.embedder.embed(skill)
    if embedding is None:
        return []

    matches = await clients.vectors.query(TECHNOLOGIES_NAMESPACE, embedding, top_k)
    results = [
        {
            "technology": match.metadata.get("technology"),
            "score": match.score,
            "candidate_id": match.metadata.get("candidateId"),
        }
        for match in (matches or [])
        if match.score > min_score
    ]
    logger.info("[Search] %d technologies similar to '%s'", len(results), skill)
    return results


async def score_x_candidates(
    clients: "Clients", qualifications: str, top_k: int = X_BIO_TOP_K
) -> List[XCandidateScore]:
    """
    Rank people whose X bio matches ``qualifications``.

    Bios are matched in the x-bio namespace, the matched people are loaded
    and scored, and the result is sorted by total score (highest first).
    """
    embedding = await clients.embedder.embed(qualifications)
    if embedding is None:
        logger.error("[XScoring] Could not embed qualifications")
        return []

    matches = await clients.vectors.query(X_BIO_NAMESPACE, embedding, top_k)
    similarity_by_user: Dict[str, float] = {}
    for match in matches or []:
        user_id: Optional[str] = match.metadata.get("userId")
        if user_id:
            similarity_by_user[user_id] = match.score

    if not similarity_by_user:
        return []

    people = await clients.people.select_in("id", list(similarity_by_user))
    logger.info("[XScoring] Found %d users matching the query", len(people))

    results = [score_x_candidate(person, similarity_by_user[person["id"]]) for person in people]
    results.sort(key=lambda result: result.total_score, reverse=True)
    return results
