"""
Profile summaries (text mode).
"""

import json
from typing import Any, Dict, Optional

from .completions import ChatCompleter

SUMMARY_PROMPT = (
    "You are to take in this person's LinkedIn profile data, and generate a list of their "
    "hard skills amount of experience and specification"
)

MINI_SUMMARY_PROMPT = (
    "You are to take in this person's LinkedIn profile data, and generate a 1-2 sentence "
    "summary of their experience"
)


async def generate_summary(chat: ChatCompleter, profile: Dict[str, Any]) -> Optional[str]:
    return await chat.complete(
        SUMMARY_PROMPT,
        json.dumps(profile),
        temperature=0,
        json_mode=False,
        name="generate_summary",
        key=profile.get("linkedInUrl"),
    )


async def generate_mini_summary(chat: ChatCompleter, profile: Dict[str, Any]) -> Optional[str]:
    return await chat.complete(
        MINI_SUMMARY_PROMPT,
        json.dumps(profile),
        temperature=0,
        json_mode=False,
        name="generate_mini_summary",
        key=profile.get("linkedInUrl"),
    )
