"""
GitHub GraphQL adapter.

One query per login returns profile, owned non-fork repositories,
contributions, organizations, sponsors and social accounts. Aggregates are
derived once into a GitHubProfile; the raw ``user`` payload rides along.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ...errors import RateLimitedError, SourcingError
from ...models import GitHubProfile
from ..derivation.stats import build_github_profile
from ..rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

GRAPHQL_URL = "https://api.github.com/graphql"

USER_QUERY = """
query($login: String!) {
  user(login: $login) {
    id
    login
    name
    bio
    location
    company
    websiteUrl
    twitterUsername
    email
    avatarUrl
    followers { totalCount }
    following { totalCount }
    repositories(first: 100, isFork: false, ownerAffiliations: OWNER) {
      totalCount
      nodes {
        name
        stargazerCount
        forkCount
        primaryLanguage { name }
        repositoryTopics(first: 10) { nodes { topic { name } } }
      }
    }
    contributionsCollection {
      contributionYears
      totalCommitContributions
      restrictedContributionsCount
    }
    organizations(first: 100) {
      nodes {
        login
        name
        description
        membersWithRole { totalCount }
      }
    }
    sponsors(first: 100) {
      totalCount
      nodes {
        __typename
        ... on User { login name }
        ... on Organization { login name }
      }
    }
    socialAccounts(first: 10) { nodes { provider url } }
  }
}
"""

USER_FIELDS_QUERY = """
query($login: String!) {
  user(login: $login) {
    %s
  }
}
"""

SOCIAL_ACCOUNTS_FIELDS = "socialAccounts(first: 10) { nodes { provider url } }"


def extract_linkedin_url(user: Dict[str, Any]) -> Optional[str]:
    """First social account whose provider is LinkedIn (any case)."""
    accounts: List[Dict[str, Any]] = ((user.get("socialAccounts") or {}).get("nodes")) or []
    for account in accounts:
        if account and (account.get("provider") or "").lower() == "linkedin":
            return account.get("url")
    return None


class GitHubClient:
    """GraphQL calls routed through the shared rate limiter."""

    def __init__(self, http: httpx.AsyncClient, limiter: RateLimiter, token: Optional[str]):
        if not token:
            raise ValueError("Missing GITHUB_TOKEN environment variable")
        self.http = http
        self.limiter = limiter
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    async def _graphql(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        response = await self.http.post(
            GRAPHQL_URL, json={"query": query, "variables": variables}, headers=self.headers
        )
        # Secondary limits come back as 403 with a rate limit message
        if response.status_code == 429 or (
            response.status_code == 403 and "rate limit" in response.text.lower()
        ):
            raise RateLimitedError(f"GitHub rate limited: {response.text[:200]}")
        response.raise_for_status()

        body = response.json()
        errors = body.get("errors") or []
        if any(error.get("type") == "RATE_LIMITED" for error in errors):
            raise RateLimitedError(errors[0].get("message", "RATE_LIMITED"))
        if errors:
            raise SourcingError("; ".join(error.get("message", "") for error in errors))
        return body.get("data") or {}

    async def fetch_user_fields(self, login: str, fields: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a narrow field set for one user.

        Returns:
            The ``user`` object, or None if the lookup failed
        """
        data = await self.limiter.execute(
            lambda: self._graphql(USER_FIELDS_QUERY % fields, {"login": login}),
            name="fetch_github_user_fields",
            key=login,
        )
        if not data or not data.get("user"):
            return None
        return data["user"]

    async def fetch_user(self, login: str) -> Optional[GitHubProfile]:
        logger.info("[GitHub] Fetching user data for %s", login)
        data = await self.limiter.execute(
            lambda: self._graphql(USER_QUERY, {"login": login}),
            name="fetch_github_user",
            key=login,
        )
        if not data or not data.get("user"):
            logger.warning("[GitHub] No user data for %s", login)
            return None

        user = data["user"]
        return build_github_profile(user, linkedin_url=extract_linkedin_url(user))

    async def fetch_company(self, login: str) -> Optional[Dict[str, Any]]:
        """``{"company": ...}`` for the login, or None if the lookup failed."""
        return await self.fetch_user_fields(login, "company")

    async def fetch_linkedin_url(self, login: str) -> Optional[Dict[str, Any]]:
        """
        Look up the LinkedIn URL from the user's social accounts.

        Returns:
            ``{"linkedin_url": url-or-None}``, or None if the lookup failed
        """
        user = await self.fetch_user_fields(login, SOCIAL_ACCOUNTS_FIELDS)
        if user is None:
            return None
        return {"linkedin_url": extract_linkedin_url(user)}
