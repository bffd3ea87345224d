# Provider adapters
from .github import GitHubClient, extract_linkedin_url
from .linkedin import LinkedInScraper, normalize_linkedin_url, strip_trailing_slash
from .twitter import TwitterClient, twitter_bio_from_data
from .whop import WhopClient

__all__ = [
    "GitHubClient",
    "extract_linkedin_url",
    "LinkedInScraper",
    "normalize_linkedin_url",
    "strip_trailing_slash",
    "TwitterClient",
    "twitter_bio_from_data",
    "WhopClient",
]
