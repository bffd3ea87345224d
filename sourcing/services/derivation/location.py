"""
Location normalization - free-text location to an uppercase region label.
"""

import logging
from typing import Optional

from .completions import ChatCompleter

logger = logging.getLogger(__name__)

UNKNOWN = "UNKNOWN"

LOCATION_PROMPT = """You are a location normalizer. Given a location, return the uppercase state name if it's a US location, or the uppercase country name if it's outside the US. If it's a city, return the state (for US) or country it's in. If unsure or the location is invalid, return "UNKNOWN".

Examples:
- New York City -> NEW YORK
- New York -> NEW YORK
- London -> UNITED KINGDOM
- California -> CALIFORNIA
- Tokyo -> JAPAN
- Paris, France -> FRANCE
- Sydney -> AUSTRALIA
- 90210 -> CALIFORNIA
- Earth -> UNKNOWN"""

COUNTRY_PROMPT = """You are a country normalizer. Given a location, return the uppercase country name. If it's a US location (city or state), return "UNITED STATES". For other locations, return the uppercase country name. If unsure or the location is invalid, return "UNKNOWN".

Examples:
- New York City -> UNITED STATES
- New York -> UNITED STATES
- London -> UNITED KINGDOM
- California -> UNITED STATES
- Tokyo -> JAPAN
- Paris, France -> FRANCE
- Sydney -> AUSTRALIA
- 90210 -> UNITED STATES
- Earth -> UNKNOWN"""


async def _normalize(
    chat: ChatCompleter, prompt: str, location: Optional[str], skip_empty: bool, name: str
) -> str:
    location = location or ""
    if skip_empty and not location.strip():
        return UNKNOWN

    content = await chat.complete(
        prompt, location, temperature=0, max_tokens=256, name=name, key=location
    )
    normalized = (content or "").strip().upper()
    if not normalized:
        logger.warning("[Location] No answer for '%s', using %s", location, UNKNOWN)
        return UNKNOWN
    return normalized


async def normalize_location(
    chat: ChatCompleter, location: Optional[str], skip_empty: bool = False
) -> str:
    """Uppercase US state or non-US country, UNKNOWN if unsure or on failure."""
    return await _normalize(chat, LOCATION_PROMPT, location, skip_empty, "normalize_location")


async def normalize_country(
    chat: ChatCompleter, location: Optional[str], skip_empty: bool = False
) -> str:
    """Uppercase country (US locations collapse to UNITED STATES), UNKNOWN on failure."""
    return await _normalize(chat, COUNTRY_PROMPT, location, skip_empty, "normalize_country")
