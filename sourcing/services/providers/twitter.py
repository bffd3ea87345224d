"""
Twitter/X adapter (SocialData).
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from ...models import TwitterProfile
from ..derivation.stats import ratio
from ..rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

SOCIAL_DATA_USER_URL = "https://api.socialdata.tools/twitter/user/{username}"


def twitter_bio_from_data(twitter_data: Any) -> Optional[str]:
    """Trimmed ``description`` from a raw user payload, None if blank."""
    if not isinstance(twitter_data, dict):
        return None
    description = twitter_data.get("description")
    if isinstance(description, str) and description.strip():
        return description.strip()
    return None


def build_twitter_profile(username: str, data: Dict[str, Any]) -> TwitterProfile:
    followers = data.get("followers_count") or 0
    following = data.get("friends_count") or 0
    return TwitterProfile(
        username=username,
        twitter_id=data.get("id_str"),
        follower_count=followers,
        following_count=following,
        follower_to_following_ratio=ratio(followers, following),
        bio=data.get("description") or None,
        raw=data,
    )


class TwitterClient:
    def __init__(self, http: httpx.AsyncClient, limiter: RateLimiter, api_key: Optional[str]):
        if not api_key:
            raise ValueError("Missing SOCIAL_DATA_API_KEY environment variable")
        self.http = http
        self.limiter = limiter
        self.headers = {
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
        }

    async def fetch_user(self, username: str) -> Optional[TwitterProfile]:
        """
        Fetch one X user by handle.

        Returns:
            TwitterProfile, or None if the handle is invalid or the call failed
        """
        async def call() -> Optional[TwitterProfile]:
            url = SOCIAL_DATA_USER_URL.format(username=quote(username, safe=""))
            response = await self.http.get(url, headers=self.headers)
            if response.status_code == 404:
                logger.warning("[Twitter] User '%s' not found (404). Marking as invalid.", username)
                return None
            if not response.is_success:
                logger.error(
                    "[Twitter] Failed to fetch %s: %s %s",
                    username, response.status_code, response.reason_phrase,
                )
                return None

            data = response.json()
            if not data:
                logger.info("[Twitter] No data found for %s", username)
                return None
            return build_twitter_profile(username, data)

        return await self.limiter.execute(call, name="fetch_twitter_user", key=username)
