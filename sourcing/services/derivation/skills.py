"""
Skill and feature extraction from LinkedIn and company profiles.

Both completions run in JSON mode and are parsed strictly: a response that
isn't the expected shape raises MalformedResponseError instead of being
patched up.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from ...models import CompanyFeatures, TopSkills
from .completions import ChatCompleter, parse_json_response

logger = logging.getLogger(__name__)

TOP_SKILLS_PROMPT = (
    "You are to take in this person's LinkedIn profile data and generate a JSON object "
    "with three fields: 'tech', 'features', and 'isEngineer'. The 'tech' field should "
    "contain a JSON array of strings representing the hard tech skills they are most "
    "familiar with. The 'features' field should contain a JSON array of strings "
    "representing the top hard features they have worked on the most. The 'isEngineer' "
    "field should be a boolean value indicating whether this person is likely an "
    "engineer based on their profile."
)

COMPANY_FEATURES_PROMPT = """Your primary task is to identify both the specialties and the technical features that are core to what the company does. Technical features refer to the specific functionalities, capabilities, or technologies central to the company's products or services. For example, for Slack, a technical feature might be "notifications" or "real-time messaging." For GitHub, it could be "version control" or "code collaboration." For Stripe, examples might include "payment processing" or "API integration."

If the input includes specialties but you believe others should be added, include these extra ones in the returned JSON. Additionally, if a company does not provide any specialties and you recognize the company, add relevant ones based on your understanding.

Return a JSON object with two attributes: "specialties" and "technicalFeatures". Ensure the list is comprehensive, focusing particularly on the technical features integral to the company's offerings."""


def position_history(profile: Dict[str, Any]) -> List[Dict[str, Any]]:
    positions = profile.get("positions") or {}
    return [p for p in (positions.get("positionHistory") or []) if p]


def job_titles_from_profile(profile: Dict[str, Any]) -> List[str]:
    return [p["title"] for p in position_history(profile) if p.get("title")]


def build_skill_input(profile: Dict[str, Any]) -> Dict[str, Any]:
    """``{skills, positions}`` with position descriptions joined by spaces."""
    descriptions = [p.get("description") or "" for p in position_history(profile)]
    return {
        "skills": profile.get("skills") or [],
        "positions": " ".join(descriptions),
    }


async def gather_top_skills(chat: ChatCompleter, profile: Dict[str, Any]) -> Optional[TopSkills]:
    """
    Extract tech skills, features and the engineer flag.

    Returns:
        TopSkills, or None if the completion call failed

    Raises:
        MalformedResponseError: the completion returned an unusable shape
    """
    content = await chat.complete(
        TOP_SKILLS_PROMPT,
        json.dumps(build_skill_input(profile)),
        json_mode=True,
        name="gather_top_skills",
        key=profile.get("linkedInUrl"),
    )
    if content is None:
        return None
    return parse_json_response(content, TopSkills)


def company_feature_query(company: Dict[str, Any]) -> str:
    linkedin_data = company.get("linkedin_data") or {}
    specialties = linkedin_data.get("specialities") or []
    tagline = linkedin_data.get("tagline") or ""
    description = linkedin_data.get("description") or ""
    return (
        f"company: {company.get('name')}, specialties: {', '.join(specialties)}. "
        f"tagline: {tagline}. description: {description}"
    )


async def get_company_features(chat: ChatCompleter, query: str) -> Optional[CompanyFeatures]:
    content = await chat.complete(
        COMPANY_FEATURES_PROMPT,
        query,
        temperature=0,
        json_mode=True,
        name="get_company_features",
    )
    if content is None:
        return None
    return parse_json_response(content, CompanyFeatures)
