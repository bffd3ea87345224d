"""
Yes/no questions answered by the completion service.
"""

import json
import logging
from typing import Any, Dict

from ...errors import MalformedResponseError
from ...models import ConditionAnswer
from .completions import ChatCompleter, parse_json_response
from .skills import position_history

logger = logging.getLogger(__name__)

CONDITION_PROMPT = (
    'You are to return a valid parseable JSON object with one attribute "condition" which '
    "can either be true or false. All questions users ask will always be able to be "
    'answered in a yes or no. An example response would be { "condition": true }'
)


async def ask_condition(chat: ChatCompleter, question: str) -> bool:
    """Answer a yes/no question; False on any failure."""
    content = await chat.complete(
        CONDITION_PROMPT,
        question,
        temperature=0,
        max_tokens=256,
        json_mode=True,
        name="ask_condition",
    )
    if content is None:
        return False
    try:
        return parse_json_response(content, ConditionAnswer).condition
    except MalformedResponseError as e:
        logger.warning("[Conditions] %s", e)
        return False


def big_tech_question(profile: Dict[str, Any]) -> str:
    company_names = [p.get("companyName") for p in position_history(profile)]
    return (
        f"Has this person worked in big tech? {json.dumps(company_names, indent=2)} "
        f"{profile.get('summary')} {profile.get('headline')}"
    )


def near_brooklyn_question(profile: Dict[str, Any]) -> str:
    positions = position_history(profile)
    current = f"or {json.dumps(positions[0], indent=2)}" if positions else ""
    return (
        "Does this person live within 50 miles of Brooklyn, New York, USA? "
        f"Their location: {profile.get('location') or 'unknown location'} {current}"
    )


async def worked_in_big_tech(chat: ChatCompleter, profile: Dict[str, Any]) -> bool:
    return await ask_condition(chat, big_tech_question(profile))


async def lives_near_brooklyn(chat: ChatCompleter, profile: Dict[str, Any]) -> bool:
    return await ask_condition(chat, near_brooklyn_question(profile))
