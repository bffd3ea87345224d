"""
Backfill jobs - fill in fields and artifacts missing from existing rows.

Each job selects the rows that still need work, then hands them to the batch
orchestrator. Workers return True / False / None (done / failed / skipped).
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from ..errors import MalformedResponseError
from ..models import ArtifactKind
from .batching import BatchReport, run_in_batches
from .clients import Clients, require
from .derivation.location import normalize_country, normalize_location
from .derivation.skills import company_feature_query, get_company_features, position_history
from .derivation.stats import company_top_technologies
from .providers.linkedin import normalize_linkedin_url, strip_trailing_slash
from .providers.twitter import twitter_bio_from_data

logger = logging.getLogger(__name__)

UNDEFINED_LOCATION = "UNDEFINED"

LOCATION_BATCH_SIZE = 10
WHOP_USER_DELAY_SECONDS = 0.1
GITHUB_COMPANY_BATCH_SIZE = 1000
TWITTER_BIO_BATCH_SIZE = 10000
LINKEDIN_URL_BATCH_SIZE = 10
GITHUB_IMAGE_BATCH_SIZE = 100
GITHUB_IMAGE_BATCH_DELAY_SECONDS = 20.0
COMPANY_IDS_PAGE_SIZE = 500
COMPANY_BATCH_SIZE = 10


async def normalize_locations(clients: Clients, batch_size: int = LOCATION_BATCH_SIZE) -> BatchReport:
    """Fill normalized_location / normalized_country where missing."""
    rows = await clients.people.select_all(
        columns="id,location", where=lambda q: q.is_("normalized_location", "null")
    )
    logger.info("[Location] Found %d people without a normalized location", len(rows))

    async def worker(row: Dict[str, Any]) -> bool:
        location = row.get("location")
        if not location:
            await clients.people.update(row["id"], {"normalized_location": UNDEFINED_LOCATION})
            return True

        normalized_location, normalized_country = await asyncio.gather(
            normalize_location(clients.chat, location),
            normalize_country(clients.chat, location),
        )
        await clients.people.update(
            row["id"],
            {"normalized_location": normalized_location, "normalized_country": normalized_country},
        )
        logger.info("[Location] %s -> %s / %s", location, normalized_location, normalized_country)
        return True

    return await run_in_batches(rows, worker, batch_size, label="NormalizeLocations")


async def update_whop_statuses(
    clients: Clients, delay_seconds: float = WHOP_USER_DELAY_SECONDS
) -> BatchReport:
    """Check Whop status one user at a time for people that have an email."""
    whop = require(clients.whop, "WHOP_API_KEY")
    rows = await clients.people.select_all(
        columns="id,email,github_login",
        where=lambda q: (
            q.not_is("email", "null")
            .neq("email", "")
            .is_("is_whop_user", "null")
            .is_("is_whop_creator", "null")
        ),
    )
    logger.info("[Whop] Found %d users to update", len(rows))

    async def worker(row: Dict[str, Any]) -> bool:
        status = await whop.check_status(row["email"])
        await clients.people.update(
            row["id"], {"is_whop_user": status.is_user, "is_whop_creator": status.is_creator}
        )
        return True

    return await run_in_batches(rows, worker, 1, delay_seconds, label="WhopStatus")


async def resolve_github_companies(
    clients: Clients, batch_size: int = GITHUB_COMPANY_BATCH_SIZE
) -> BatchReport:
    github = require(clients.github, "GITHUB_TOKEN")
    rows = await clients.people.select_all(
        columns="id,github_login", where=lambda q: q.not_is("github_login", "null")
    )
    rows = await clients.artifacts.pending(rows, ArtifactKind.GITHUB_COMPANY)
    logger.info("[GitHubCompany] %d people pending a company lookup", len(rows))

    async def worker(row: Dict[str, Any]) -> bool:
        user = await github.fetch_company(row["github_login"])
        if user is None:
            return False
        await clients.people.update(row["id"], {"github_company": user.get("company") or None})
        await clients.artifacts.mark_done([row["id"]], ArtifactKind.GITHUB_COMPANY)
        return True

    return await run_in_batches(rows, worker, batch_size, label="GitHubCompany")


async def backfill_twitter_bios(
    clients: Clients, batch_size: int = TWITTER_BIO_BATCH_SIZE
) -> BatchReport:
    """Copy the description out of stored Twitter payloads into twitter_bio."""
    rows = await clients.people.select_all(
        columns="id,twitter_data",
        where=lambda q: q.not_is("twitter_data", "null").is_("twitter_bio", "null"),
    )
    logger.info("[TwitterBios] Found %d people with twitterData", len(rows))

    async def worker(row: Dict[str, Any]) -> Optional[bool]:
        bio = twitter_bio_from_data(row.get("twitter_data"))
        if bio is None:
            logger.info("[TwitterBios] No valid description for %s. Skipping update.", row["id"])
            return None
        await clients.people.update(row["id"], {"twitter_bio": bio})
        await clients.artifacts.register(row["id"], [ArtifactKind.X_BIO])
        return True

    return await run_in_batches(rows, worker, batch_size, label="TwitterBios")


async def backfill_linkedin_urls(
    clients: Clients, batch_size: int = LINKEDIN_URL_BATCH_SIZE
) -> BatchReport:
    """
    Look up LinkedIn URLs from GitHub social accounts.

    An empty string is stored when the user has none, so the row isn't
    selected again.
    """
    github = require(clients.github, "GITHUB_TOKEN")
    rows = await clients.people.select_all(
        columns="id,github_login",
        where=lambda q: q.is_("linkedin_url", "null").not_is("github_login", "null"),
    )
    logger.info("[LinkedInUrls] Found %d people without a LinkedIn URL", len(rows))

    async def worker(row: Dict[str, Any]) -> bool:
        result = await github.fetch_linkedin_url(row["github_login"])
        if result is None:
            return False
        url = normalize_linkedin_url(result["linkedin_url"])
        await clients.people.update(row["id"], {"linkedin_url": url or ""})
        logger.info("[LinkedInUrls] %s -> %s", row["github_login"], url or "none")
        return True

    return await run_in_batches(rows, worker, batch_size, label="LinkedInUrls")


async def backfill_github_images(
    clients: Clients,
    batch_size: int = GITHUB_IMAGE_BATCH_SIZE,
    delay_seconds: float = GITHUB_IMAGE_BATCH_DELAY_SECONDS,
    sleep=asyncio.sleep,
) -> BatchReport:
    """Fill github_image (and github_id when missing) from the GitHub avatar."""
    github = require(clients.github, "GITHUB_TOKEN")
    rows = await clients.people.select_all(
        columns="id,github_login,github_id",
        where=lambda q: q.not_is("github_login", "null").is_("github_image", "null"),
    )
    logger.info("[GitHubImages] Found %d users to process", len(rows))

    async def worker(row: Dict[str, Any]) -> Optional[bool]:
        user = await github.fetch_user_fields(row["github_login"], "id avatarUrl")
        if user is None:
            return False
        avatar_url = user.get("avatarUrl")
        if not avatar_url:
            logger.info("[GitHubImages] No avatar for %s", row["github_login"])
            return None

        fields = {"github_image": avatar_url}
        if not row.get("github_id") and user.get("id"):
            fields["github_id"] = user["id"]
        await clients.people.update(row["id"], fields)
        logger.info("[GitHubImages] %s -> %s", row["github_login"], avatar_url)
        return True

    return await run_in_batches(rows, worker, batch_size, delay_seconds, label="GitHubImages", sleep=sleep)


def company_linkedin_urls(linkedin_data: Optional[Dict[str, Any]]) -> List[str]:
    """Company LinkedIn URLs from a profile's position history, trailing slash stripped."""
    urls: List[str] = []
    for position in position_history(linkedin_data or {}):
        url = position.get("linkedInUrl")
        if url:
            url = strip_trailing_slash(url)
            if url not in urls:
                urls.append(url)
    return urls


async def resolve_company_ids(
    clients: Clients, page_size: int = COMPANY_IDS_PAGE_SIZE, batch_size: int = 50
) -> BatchReport:
    """Link candidates to company rows through the companies in their work history."""
    rows = await clients.candidates.select_all(columns="id,linkedin_data", page_size=page_size)
    rows = await clients.artifacts.pending(rows, ArtifactKind.COMPANY_IDS)
    logger.info("[CompanyIds] %d candidates pending company ids", len(rows))

    async def worker(row: Dict[str, Any]) -> bool:
        urls = company_linkedin_urls(row.get("linkedin_data"))
        company_ids: List[str] = []
        if urls:
            companies = await clients.companies.select_in("linkedin_url", urls, columns="id")
            company_ids = [company["id"] for company in companies]
        await clients.candidates.update(row["id"], {"company_ids": company_ids})
        await clients.artifacts.mark_done([row["id"]], ArtifactKind.COMPANY_IDS)
        return True

    return await run_in_batches(rows, worker, batch_size, label="CompanyIds")


async def add_company_features(clients: Clients, batch_size: int = COMPANY_BATCH_SIZE) -> BatchReport:
    """Derive specialties and technical features for every company."""
    companies = await clients.companies.select_all(columns="id,name,linkedin_data")

    async def worker(company: Dict[str, Any]) -> bool:
        try:
            features = await get_company_features(clients.chat, company_feature_query(company))
        except MalformedResponseError as e:
            logger.error("[CompanyFeatures] %s: %s", company.get("name"), e)
            return False
        if features is None:
            return False
        await clients.companies.update(
            company["id"],
            {"specialties": features.specialties, "top_features": features.technical_features},
        )
        return True

    return await run_in_batches(companies, worker, batch_size, label="CompanyFeatures")


async def compute_company_technologies(
    clients: Clients, batch_size: int = COMPANY_BATCH_SIZE
) -> BatchReport:
    """Top technologies per company, counted over its engineer candidates."""
    companies = await clients.companies.select_all(columns="id")

    async def worker(company: Dict[str, Any]) -> bool:
        engineers = await clients.candidates.select_all(
            columns="id,top_technologies",
            where=lambda q: q.contains("company_ids", [company["id"]]).eq("is_engineer", True),
        )
        top_technologies = company_top_technologies(engineers)
        await clients.companies.update(company["id"], {"top_technologies": top_technologies})
        logger.info("[CompanyTech] Updated company %s with top technologies", company["id"])
        return True

    return await run_in_batches(companies, worker, batch_size, label="CompanyTech")
