"""
Process-wide client container.

Built once per job run by build_clients() and passed explicitly to every
job. One httpx client and one rate limiter are shared by all providers, so
a rate limit seen by any caller cools down all of them.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from openai import AsyncOpenAI
from pinecone import Pinecone

from ..config import Settings, get_settings
from .db.repository import ArtifactTracker, RecordRepository
from .db.supabase_client import SupabaseClient
from .derivation.completions import ChatCompleter
from .matching.embeddings import Embedder
from .matching.vector_store import VectorStore
from .providers.github import GitHubClient
from .providers.linkedin import LinkedInScraper
from .providers.twitter import TwitterClient
from .providers.whop import WhopClient
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

CANDIDATES_TABLE = "candidates"
PEOPLE_TABLE = "people"
COMPANY_TABLE = "company"


@dataclass
class Clients:
    settings: Optional[Settings]
    limiter: RateLimiter
    candidates: RecordRepository
    people: RecordRepository
    companies: RecordRepository
    artifacts: ArtifactTracker
    chat: ChatCompleter
    embedder: Embedder
    vectors: VectorStore
    github: Any = None
    linkedin: Any = None
    twitter: Any = None
    whop: Any = None
    db: Optional[SupabaseClient] = None
    http: Optional[httpx.AsyncClient] = None
    openai: Optional[AsyncOpenAI] = None

    async def aclose(self) -> None:
        if self.http is not None:
            await self.http.aclose()
        if self.db is not None:
            await self.db.aclose()
        if self.openai is not None:
            await self.openai.close()


def build_clients(settings: Optional[Settings] = None) -> Clients:
    """
    Wire every collaborator from settings.

    Raises:
        ValueError: a required credential is missing
    """
    settings = settings or get_settings()

    if not settings.openai_api_key:
        raise ValueError("Missing OPENAI_API_KEY environment variable")
    if not settings.pinecone_api_key:
        raise ValueError("Missing PINECONE_API_KEY environment variable")

    limiter = RateLimiter(cooldown_seconds=settings.rate_limit_cooldown_seconds)
    http = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
    db = SupabaseClient(settings.supabase_url, settings.supabase_key, timeout=settings.http_timeout_seconds)
    openai_client = AsyncOpenAI(api_key=settings.openai_api_key)
    index = Pinecone(api_key=settings.pinecone_api_key).Index(settings.pinecone_index)

    logger.info("[Clients] Initialized (index=%s, chat=%s)", settings.pinecone_index, settings.chat_model)

    return Clients(
        settings=settings,
        limiter=limiter,
        candidates=RecordRepository(db, CANDIDATES_TABLE),
        people=RecordRepository(db, PEOPLE_TABLE),
        companies=RecordRepository(db, COMPANY_TABLE),
        artifacts=ArtifactTracker(db),
        chat=ChatCompleter(openai_client, limiter, model=settings.chat_model),
        embedder=Embedder(openai_client, limiter, model=settings.embedding_model),
        vectors=VectorStore(index, limiter),
        github=GitHubClient(http, limiter, settings.github_token) if settings.github_token else None,
        linkedin=LinkedInScraper(http, limiter, settings.scrapin_api_key) if settings.scrapin_api_key else None,
        twitter=(
            TwitterClient(http, limiter, settings.social_data_api_key)
            if settings.social_data_api_key else None
        ),
        whop=WhopClient(http, limiter, settings.whop_api_key, settings.whop_cookie) if settings.whop_api_key else None,
        db=db,
        http=http,
        openai=openai_client,
    )


def require(provider: Any, name: str) -> Any:
    """Return ``provider`` or fail with the env var that would configure it."""
    if provider is None:
        raise ValueError(f"Missing {name} environment variable")
    return provider
