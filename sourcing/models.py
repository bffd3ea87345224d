"""
Typed records shared across providers, derivation and persistence.

Raw provider payloads are kept verbatim in the ``raw`` fields and stored as
opaque blobs; everything else is derived once when the record is built.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ArtifactKind(str, Enum):
    SKILL_AVERAGE = "skill_average"
    FEATURE_AVERAGE = "feature_average"
    JOB_TITLE_AVERAGE = "job_title_average"
    TECHNOLOGY_ITEMS = "technology_items"
    JOB_TITLE_ITEMS = "job_title_items"
    X_BIO = "x_bio"
    GITHUB_COMPANY = "github_company"
    COMPANY_IDS = "company_ids"


class ArtifactStatus(str, Enum):
    PENDING = "pending"
    DONE = "done"


# ============================================================================
# PROVIDER RECORDS
# ============================================================================

class LanguageStats(BaseModel):
    repo_count: int = 0
    stars: int = 0


class Organization(BaseModel):
    name: Optional[str] = None
    login: Optional[str] = None
    description: Optional[str] = None
    members_count: int = 0


class GitHubProfile(BaseModel):
    login: str
    github_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    website_url: Optional[str] = None
    twitter_username: Optional[str] = None
    linkedin_url: Optional[str] = None

    followers: int = 0
    following: int = 0
    follower_to_following_ratio: float = 0
    contribution_years: List[int] = Field(default_factory=list)
    total_commits: int = 0
    restricted_contributions: int = 0
    total_repositories: int = 0
    total_stars: int = 0
    total_forks: int = 0
    languages: Dict[str, LanguageStats] = Field(default_factory=dict)
    unique_topics: List[str] = Field(default_factory=list)
    sponsors_count: int = 0
    sponsored_projects: List[str] = Field(default_factory=list)
    organizations: List[Organization] = Field(default_factory=list)

    raw: Dict[str, Any] = Field(default_factory=dict)


class TwitterProfile(BaseModel):
    username: str
    twitter_id: Optional[str] = None
    follower_count: int = 0
    following_count: int = 0
    follower_to_following_ratio: float = 0
    bio: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict)


class WhopStatus(BaseModel):
    is_user: bool = False
    is_creator: bool = False


# ============================================================================
# STRUCTURED COMPLETION OUTPUT
# ============================================================================

class TopSkills(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tech: List[str]
    features: List[str]
    is_engineer: bool = Field(alias="isEngineer")


class CompanyFeatures(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    specialties: List[str] = Field(default_factory=list)
    technical_features: List[str] = Field(default_factory=list, alias="technicalFeatures")


class ConditionAnswer(BaseModel):
    condition: bool


# ============================================================================
# VECTOR STORE
# ============================================================================

@dataclass
class VectorRecord:
    id: str
    values: List[float]
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class VectorMatch:
    id: str
    score: float
    metadata: Dict[str, Any] = field(default_factory=dict)
