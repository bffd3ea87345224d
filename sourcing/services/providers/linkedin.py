"""
LinkedIn profile adapter (Scrapin) plus the profile URL normalizer.
"""

import logging
import re
from typing import Any, Dict, Optional

import httpx

from ..rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

SCRAPIN_PROFILE_URL = "https://api.scrapin.io/enrichment/profile"

_URL_PATTERN = re.compile(r"(https?://)?([^/]+)(/.*)?", re.IGNORECASE)


def normalize_linkedin_url(url: Optional[str]) -> Optional[str]:
    """
    Normalize a LinkedIn profile URL to ``https://www.linkedin.com/in/<slug>``.

    The host must end with ``linkedin.com`` and the path must start with
    ``/in/``; a bare ``linkedin.com`` host gets ``www.``, the scheme is forced
    to https and one trailing slash is dropped.

    Returns:
        The normalized URL, or None if the URL is not a LinkedIn profile URL
    """
    if not url:
        return None

    match = _URL_PATTERN.fullmatch(url)
    if not match:
        return None

    _, hostname, pathname = match.groups()
    if not hostname.endswith("linkedin.com"):
        return None

    if hostname == "linkedin.com":
        hostname = "www.linkedin.com"

    pathname = pathname or ""
    if not pathname.startswith("/in/"):
        return None

    if pathname.endswith("/"):
        pathname = pathname[:-1]

    return f"https://{hostname}{pathname}"


def strip_trailing_slash(url: str) -> str:
    return url[:-1] if url.endswith("/") else url


class LinkedInScraper:
    """Scrapin enrichment calls routed through the shared rate limiter."""

    def __init__(self, http: httpx.AsyncClient, limiter: RateLimiter, api_key: Optional[str]):
        if not api_key:
            raise ValueError("Missing SCRAPIN_API_KEY environment variable")
        self.http = http
        self.limiter = limiter
        self.api_key = api_key

    async def scrape_profile(self, linkedin_url: str) -> Optional[Dict[str, Any]]:
        """
        Scrape one LinkedIn profile.

        Returns:
            The ``person`` payload, or None on not-found / failure
        """
        async def call() -> Optional[Dict[str, Any]]:
            logger.info("[LinkedIn] Scraping profile %s", linkedin_url)
            response = await self.http.get(
                SCRAPIN_PROFILE_URL,
                params={"apikey": self.api_key, "linkedInUrl": linkedin_url},
            )
            if response.status_code == 404:
                logger.warning("[LinkedIn] Profile not found: %s", linkedin_url)
                return None
            if not response.is_success:
                logger.error(
                    "[LinkedIn] Scrape failed for %s: %s %s",
                    linkedin_url, response.status_code, response.text[:200],
                )
                return None

            data = response.json()
            if not data.get("success") or not data.get("person"):
                logger.warning("[LinkedIn] No profile data returned for %s", linkedin_url)
                return None
            return data["person"]

        return await self.limiter.execute(call, name="scrape_linkedin_profile", key=linkedin_url)
