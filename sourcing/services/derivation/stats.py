"""
Numeric aggregates and heuristic scores.

Pure functions only: GitHub profile statistics, follower ratios, log
dampening, the X candidate composite score and company technology counts.
"""

import math
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from ...models import GitHubProfile, LanguageStats, Organization

# X scoring weights
LOCATION_BONUS = 2.5
SIMILARITY_WEIGHT = 5
FOLLOWER_COUNT_WEIGHT = 0.5
FOLLOWER_RATIO_WEIGHT = 0.5
FOLLOWER_RATIO_CAP = 10
AVG_LIKES_WEIGHT = 0.5
HOME_REGION = "NEW YORK"

COMPANY_TOP_TECHNOLOGIES = 20


def ratio(numerator: float, denominator: float) -> float:
    """numerator / denominator, or numerator alone when denominator is zero."""
    if not denominator:
        return numerator
    return numerator / denominator


def log_dampen(value: float) -> float:
    """log10(value + 1), so 0 maps to 0."""
    return math.log10(max(value, 0) + 1)


def _nodes(container: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    if not container:
        return []
    return [node for node in (container.get("nodes") or []) if node]


def _total(container: Optional[Dict[str, Any]]) -> int:
    if not container:
        return 0
    return container.get("totalCount") or 0


def build_github_profile(user: Dict[str, Any], linkedin_url: Optional[str] = None) -> GitHubProfile:
    """
    Derive the typed GitHub record from the raw GraphQL ``user`` payload.

    Args:
        user: ``data.user`` from the profile query
        linkedin_url: LinkedIn URL pulled from the user's social accounts
    """
    repositories = _nodes(user.get("repositories"))
    contributions = user.get("contributionsCollection") or {}

    languages: Dict[str, LanguageStats] = {}
    topics: List[str] = []
    for repo in repositories:
        primary = repo.get("primaryLanguage")
        if primary:
            stats = languages.setdefault(primary["name"], LanguageStats())
            stats.repo_count += 1
            stats.stars += repo.get("stargazerCount") or 0
        for topic_node in _nodes(repo.get("repositoryTopics")):
            name = (topic_node.get("topic") or {}).get("name")
            if name and name not in topics:
                topics.append(name)

    followers = _total(user.get("followers"))
    following = _total(user.get("following"))
    commit_contributions = contributions.get("totalCommitContributions") or 0
    restricted = contributions.get("restrictedContributionsCount") or 0

    return GitHubProfile(
        login=user["login"],
        github_id=user.get("id"),
        name=user.get("name"),
        email=user.get("email") or None,
        avatar_url=user.get("avatarUrl"),
        bio=user.get("bio"),
        company=user.get("company"),
        location=user.get("location"),
        website_url=user.get("websiteUrl"),
        twitter_username=user.get("twitterUsername"),
        linkedin_url=linkedin_url,
        followers=followers,
        following=following,
        follower_to_following_ratio=ratio(followers, following),
        contribution_years=contributions.get("contributionYears") or [],
        total_commits=commit_contributions + restricted,
        restricted_contributions=restricted,
        total_repositories=_total(user.get("repositories")),
        total_stars=sum(repo.get("stargazerCount") or 0 for repo in repositories),
        total_forks=sum(repo.get("forkCount") or 0 for repo in repositories),
        languages=languages,
        unique_topics=topics,
        sponsors_count=_total(user.get("sponsors")),
        sponsored_projects=[node["login"] for node in _nodes(user.get("sponsors")) if node.get("login")],
        organizations=[
            Organization(
                name=org.get("name"),
                login=org.get("login"),
                description=org.get("description"),
                members_count=_total(org.get("membersWithRole")),
            )
            for org in _nodes(user.get("organizations"))
        ],
        raw=user,
    )


def average_likes(tweets: Optional[Iterable[Dict[str, Any]]]) -> float:
    tweets = list(tweets or [])
    if not tweets:
        return 0.0
    return sum(tweet.get("favorite_count") or 0 for tweet in tweets) / len(tweets)


@dataclass
class XCandidateScore:
    user_id: str
    username: str
    total_score: float
    location_score: float
    similarity_score: float
    follower_count_score: float
    follower_ratio_score: float
    avg_likes_score: float
    normalized_location: Optional[str]
    follower_count: int
    following_count: int
    follower_ratio: float
    bio: Optional[str]


def score_x_candidate(person: Dict[str, Any], similarity: float) -> XCandidateScore:
    """Composite ranking score for a person matched on their X bio."""
    normalized_location = person.get("normalized_location")
    follower_count = person.get("twitter_follower_count") or 0
    follower_ratio = person.get("twitter_follower_to_following_ratio") or 0

    location_score = LOCATION_BONUS if normalized_location == HOME_REGION else 0.0
    similarity_score = similarity * SIMILARITY_WEIGHT
    follower_count_score = log_dampen(follower_count) * FOLLOWER_COUNT_WEIGHT
    follower_ratio_score = min(follower_ratio / FOLLOWER_RATIO_CAP, 1) * FOLLOWER_RATIO_WEIGHT
    avg_likes_score = log_dampen(average_likes(person.get("tweets"))) * AVG_LIKES_WEIGHT

    return XCandidateScore(
        user_id=person["id"],
        username=person.get("twitter_username") or "unknown",
        total_score=(
            location_score + similarity_score + follower_count_score
            + follower_ratio_score + avg_likes_score
        ),
        location_score=location_score,
        similarity_score=similarity_score,
        follower_count_score=follower_count_score,
        follower_ratio_score=follower_ratio_score,
        avg_likes_score=avg_likes_score,
        normalized_location=normalized_location,
        follower_count=follower_count,
        following_count=person.get("twitter_following_count") or 0,
        follower_ratio=follower_ratio,
        bio=person.get("twitter_bio"),
    )


def company_top_technologies(
    candidates: Iterable[Dict[str, Any]], limit: int = COMPANY_TOP_TECHNOLOGIES
) -> List[str]:
    """Most frequent technologies across a company's candidates."""
    counts: Counter = Counter()
    for candidate in candidates:
        counts.update(candidate.get("top_technologies") or [])
    return [tech for tech, _ in counts.most_common(limit)]
