"""
Enrichment Service - Merge provider data and derived features into records.

Handles:
- LinkedIn candidates: scrape, derive, insert, upsert vectors, mark artifacts
- GitHub people: fetch GitHub, fan out to LinkedIn / Twitter / Whop, merge
- Batch jobs over people rows (LinkedIn URLs) and GitHub logins
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..errors import MalformedResponseError
from ..models import ArtifactKind, TopSkills, WhopStatus
from .batching import BatchReport, run_in_batches
from .clients import Clients, require
from .derivation.conditions import lives_near_brooklyn, worked_in_big_tech
from .derivation.location import normalize_country, normalize_location
from .derivation.skills import gather_top_skills, job_titles_from_profile
from .derivation.summaries import generate_mini_summary, generate_summary
from .matching.vector_upsert import (
    AVERAGE_TARGETS,
    JOB_TITLES_NAMESPACE,
    TECHNOLOGIES_NAMESPACE,
    VectorUpserter,
)
from .providers.linkedin import normalize_linkedin_url, strip_trailing_slash

logger = logging.getLogger(__name__)

CANDIDATE_BATCH_SIZE = 10
CANDIDATE_BATCH_DELAY_SECONDS = 2.5

HOME_REGION = "NEW YORK"
GITHUB_SOURCE_TABLE = "githubUsers"

CANDIDATE_ARTIFACTS = [
    ArtifactKind.TECHNOLOGY_ITEMS,
    ArtifactKind.JOB_TITLE_ITEMS,
    ArtifactKind.SKILL_AVERAGE,
    ArtifactKind.FEATURE_AVERAGE,
    ArtifactKind.JOB_TITLE_AVERAGE,
    ArtifactKind.COMPANY_IDS,
]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def derive_top_skills(clients: Clients, profile: Dict[str, Any]) -> Optional[TopSkills]:
    """gather_top_skills with a malformed response logged and treated as missing."""
    try:
        return await gather_top_skills(clients.chat, profile)
    except MalformedResponseError as e:
        logger.error("[Enrichment] Skills extraction failed for %s: %s", profile.get("linkedInUrl"), e)
        return None


# ============================================================================
# LINKEDIN CANDIDATES
# ============================================================================

async def upsert_candidate_vectors(
    clients: Clients,
    candidate_id: str,
    tech: Optional[List[str]],
    features: Optional[List[str]],
    job_titles: List[str],
) -> List[ArtifactKind]:
    """
    Per-item and averaged upserts for one candidate.

    Returns:
        Artifact kinds whose write succeeded (or had nothing to write)
    """
    upserter = VectorUpserter(clients.embedder, clients.vectors)
    done: List[ArtifactKind] = []

    if tech is not None and await upserter.upsert_items(
        candidate_id, TECHNOLOGIES_NAMESPACE, tech, "technology"
    ):
        done.append(ArtifactKind.TECHNOLOGY_ITEMS)

    if await upserter.upsert_items(candidate_id, JOB_TITLES_NAMESPACE, job_titles, "jobTitle"):
        done.append(ArtifactKind.JOB_TITLE_ITEMS)

    averages: List[Tuple[ArtifactKind, Optional[Sequence[str]]]] = [
        (ArtifactKind.SKILL_AVERAGE, tech),
        (ArtifactKind.FEATURE_AVERAGE, features),
        (ArtifactKind.JOB_TITLE_AVERAGE, job_titles),
    ]
    for kind, items in averages:
        if items is None:
            continue
        target = AVERAGE_TARGETS[kind]
        if await upserter.upsert_average(candidate_id, target.namespace, items, target.field):
            done.append(kind)

    return done


async def insert_candidate(
    clients: Clients, profile: Dict[str, Any], source_url: Optional[str] = None
) -> Optional[str]:
    """
    Derive features for a scraped LinkedIn profile and persist it.

    Args:
        profile: Scrapin ``person`` payload
        source_url: Normalized URL the profile was scraped from

    Returns:
        New candidate id, or None if a candidate with this URL already exists
    """
    url = normalize_linkedin_url(profile.get("linkedInUrl")) or source_url
    if not url:
        url = strip_trailing_slash(profile.get("linkedInUrl") or "")
    logger.info("[Enrichment] Inserting candidate %s", url)

    mini_summary, skills, big_tech, near_brooklyn, summary = await asyncio.gather(
        generate_mini_summary(clients.chat, profile),
        derive_top_skills(clients, profile),
        worked_in_big_tech(clients.chat, profile),
        lives_near_brooklyn(clients.chat, profile),
        generate_summary(clients.chat, profile),
    )
    job_titles = job_titles_from_profile(profile)

    candidate_id = str(uuid.uuid4())
    row = {
        "id": candidate_id,
        "url": url,
        "linkedin_data": profile,
        "mini_summary": mini_summary,
        "summary": summary,
        "top_technologies": skills.tech if skills else None,
        "top_features": skills.features if skills else None,
        "job_titles": job_titles,
        "is_engineer": skills.is_engineer if skills else None,
        "worked_in_big_tech": big_tech,
        "lives_near_brooklyn": near_brooklyn,
        "created_at": _now(),
    }

    if not await clients.candidates.insert(row):
        logger.info("[Enrichment] Candidate %s already exists", url)
        return None

    name = f"{profile.get('firstName') or ''} {profile.get('lastName') or ''}".strip()
    logger.info("[Enrichment] Candidate %s inserted. Candidate ID: %s", name or url, candidate_id)

    await clients.artifacts.register(candidate_id, CANDIDATE_ARTIFACTS)

    done = await upsert_candidate_vectors(
        clients,
        candidate_id,
        skills.tech if skills else None,
        skills.features if skills else None,
        job_titles,
    )
    for kind in done:
        await clients.artifacts.mark_done([candidate_id], kind)

    return candidate_id


async def collect_candidate_urls(clients: Clients) -> List[str]:
    """
    Normalized LinkedIn URLs from people rows that aren't candidates yet.

    People rows whose stored URL differs from its normalized form are
    rewritten in place.
    """
    people = await clients.people.select_all(
        columns="id,linkedin_url",
        where=lambda q: q.not_is("linkedin_url", "null").neq("linkedin_url", ""),
    )

    urls: List[str] = []
    seen = set()
    for person in people:
        stored = person["linkedin_url"]
        normalized = normalize_linkedin_url(stored)
        if normalized is None:
            logger.info("[Enrichment] Invalid LinkedIn URL for %s: %s", person["id"], stored)
            continue
        if normalized != stored:
            await clients.people.update(person["id"], {"linkedin_url": normalized})
        if normalized not in seen:
            seen.add(normalized)
            urls.append(normalized)

    existing = {row["url"] for row in await clients.candidates.select_in("url", urls, columns="url")}
    new_urls = [url for url in urls if url not in existing]
    logger.info(
        "[Enrichment] %d valid LinkedIn URLs, %d already candidates, %d new",
        len(urls), len(urls) - len(new_urls), len(new_urls),
    )
    return new_urls


async def add_candidates(
    clients: Clients,
    batch_size: int = CANDIDATE_BATCH_SIZE,
    delay_seconds: float = CANDIDATE_BATCH_DELAY_SECONDS,
) -> BatchReport:
    linkedin = require(clients.linkedin, "SCRAPIN_API_KEY")
    urls = await collect_candidate_urls(clients)

    async def worker(url: str) -> Optional[bool]:
        profile = await linkedin.scrape_profile(url)
        if not profile:
            logger.error("[Enrichment] Failed to scrape %s", url)
            return False
        candidate_id = await insert_candidate(clients, profile, source_url=url)
        return True if candidate_id else None

    return await run_in_batches(urls, worker, batch_size, delay_seconds, label="AddCandidates")


# ============================================================================
# GITHUB PEOPLE
# ============================================================================

async def build_github_person(clients: Clients, login: str) -> Optional[Dict[str, Any]]:
    """
    Fetch a GitHub user and merge everything known about them into a people row.

    Returns:
        The row, or None if the GitHub lookup failed
    """
    github = require(clients.github, "GITHUB_TOKEN")
    profile = await github.fetch_user(login)
    if profile is None:
        return None

    normalized_location, normalized_country = await asyncio.gather(
        normalize_location(clients.chat, profile.location or ""),
        normalize_country(clients.chat, profile.location or ""),
    )

    linkedin_url = normalize_linkedin_url(profile.linkedin_url)
    if profile.linkedin_url and not linkedin_url:
        logger.info("[GitHub] Ignoring non-profile LinkedIn URL for %s: %s", login, profile.linkedin_url)

    linkedin_data = None
    if linkedin_url and clients.linkedin is not None:
        linkedin_data = await clients.linkedin.scrape_profile(linkedin_url)

    twitter = None
    if profile.twitter_username and clients.twitter is not None:
        twitter = await clients.twitter.fetch_user(profile.twitter_username)

    whop = WhopStatus()
    if profile.email and clients.whop is not None:
        whop = await clients.whop.check_status(profile.email)
        logger.info("[Whop] Status for %s: user=%s creator=%s", profile.email, whop.is_user, whop.is_creator)

    summary = mini_summary = skills = None
    job_titles: List[str] = []
    if linkedin_data:
        summary, mini_summary, skills = await asyncio.gather(
            generate_summary(clients.chat, linkedin_data),
            generate_mini_summary(clients.chat, linkedin_data),
            derive_top_skills(clients, linkedin_data),
        )
        job_titles = job_titles_from_profile(linkedin_data)

    return {
        "github_login": profile.login,
        "name": profile.name,
        "email": profile.email,
        "image": profile.avatar_url,
        "github_image": profile.avatar_url,
        "github_id": profile.github_id,
        "location": profile.location,
        "normalized_location": normalized_location,
        "normalized_country": normalized_country,
        "linkedin_url": linkedin_url,
        "linkedin_data": linkedin_data,
        "github_data": profile.raw,
        "github_bio": profile.bio,
        "github_company": profile.company,
        "twitter_username": profile.twitter_username,
        "twitter_id": twitter.twitter_id if twitter else None,
        "twitter_data": twitter.raw if twitter else None,
        "twitter_follower_count": twitter.follower_count if twitter else None,
        "twitter_following_count": twitter.following_count if twitter else None,
        "twitter_follower_to_following_ratio": twitter.follower_to_following_ratio if twitter else None,
        "twitter_bio": twitter.bio if twitter else None,
        "is_whop_user": whop.is_user,
        "is_whop_creator": whop.is_creator,
        "summary": summary,
        "mini_summary": mini_summary,
        "lives_near_brooklyn": normalized_location == HOME_REGION,
        "is_near_nyc": normalized_location == HOME_REGION,
        "top_technologies": skills.tech if skills else [],
        "top_features": skills.features if skills else [],
        "job_titles": job_titles,
        "is_engineer": skills.is_engineer if skills else False,
        "followers": profile.followers,
        "following": profile.following,
        "follower_to_following_ratio": profile.follower_to_following_ratio,
        "contribution_years": profile.contribution_years,
        "total_commits": profile.total_commits,
        "restricted_contributions": profile.restricted_contributions,
        "total_repositories": profile.total_repositories,
        "total_stars": profile.total_stars,
        "total_forks": profile.total_forks,
        "github_languages": {
            lang: {"repoCount": stats.repo_count, "stars": stats.stars}
            for lang, stats in profile.languages.items()
        },
        "unique_topics": profile.unique_topics,
        "sponsors_count": profile.sponsors_count,
        "sponsored_projects": profile.sponsored_projects,
        "organizations": [org.model_dump() for org in profile.organizations],
        "website_url": profile.website_url,
        "source_tables": [GITHUB_SOURCE_TABLE],
        "created_at": _now(),
    }


async def add_github_person(clients: Clients, login: str) -> Optional[bool]:
    """
    Build and insert one GitHub person.

    Returns:
        True if inserted, None if they already existed, False on failure
    """
    row = await build_github_person(clients, login)
    if row is None:
        logger.error("[GitHub] Could not build person for %s", login)
        return False

    person_id = str(uuid.uuid4())
    row["id"] = person_id
    if not await clients.people.insert(row):
        return None

    # The company came from the confirmed GitHub fetch
    await clients.artifacts.mark_done([person_id], ArtifactKind.GITHUB_COMPANY)
    if row["twitter_bio"]:
        await clients.artifacts.register(person_id, [ArtifactKind.X_BIO])

    logger.info("[GitHub] Added %s (%s)", login, person_id)
    return True


async def add_github_people(
    clients: Clients,
    logins: Sequence[str],
    batch_size: int = CANDIDATE_BATCH_SIZE,
    delay_seconds: float = CANDIDATE_BATCH_DELAY_SECONDS,
) -> BatchReport:
    unique = list(dict.fromkeys(login for login in logins if login))
    existing = {
        row["github_login"]
        for row in await clients.people.select_in("github_login", unique, columns="github_login")
    }
    new_logins = [login for login in unique if login not in existing]
    logger.info("[GitHub] %d logins, %d already stored", len(unique), len(unique) - len(new_logins))

    async def worker(login: str) -> Optional[bool]:
        return await add_github_person(clients, login)

    return await run_in_batches(new_logins, worker, batch_size, delay_seconds, label="AddGitHubPeople")
