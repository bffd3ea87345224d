"""
Whop identity check by email.
"""

import logging
from typing import Optional

import httpx

from ...models import WhopStatus
from ..rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

WHOP_CHECK_EMAIL_URL = "https://api.whop.com/api/v3/sales/check_email"


class WhopClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        limiter: RateLimiter,
        api_key: Optional[str],
        cookie: Optional[str] = None,
    ):
        if not api_key:
            raise ValueError("Missing WHOP_API_KEY environment variable")
        self.http = http
        self.limiter = limiter
        self.headers = {"Authorization": f"Bearer {api_key}"}
        if cookie:
            self.headers["Cookie"] = cookie

    async def check_status(self, email: str) -> WhopStatus:
        """Whop user / creator flags for an email; both False on any failure."""
        async def call() -> Optional[WhopStatus]:
            response = await self.http.get(
                WHOP_CHECK_EMAIL_URL, params={"email": email}, headers=self.headers
            )
            if not response.is_success:
                logger.error(
                    "[Whop] Status check failed for %s: %s", email, response.status_code
                )
                return None
            data = response.json() or {}
            return WhopStatus(
                is_user=bool(data.get("is_user")),
                is_creator=bool(data.get("is_creator")),
            )

        status = await self.limiter.execute(call, name="check_whop_status", key=email)
        return status or WhopStatus()
