# Feature derivation
from .completions import ChatCompleter, parse_json_response
from .location import normalize_country, normalize_location
from .skills import gather_top_skills, get_company_features, job_titles_from_profile
from .conditions import ask_condition, lives_near_brooklyn, worked_in_big_tech
from .summaries import generate_mini_summary, generate_summary
from .stats import log_dampen, ratio

__all__ = [
    "ChatCompleter",
    "parse_json_response",
    "normalize_country",
    "normalize_location",
    "gather_top_skills",
    "get_company_features",
    "job_titles_from_profile",
    "ask_condition",
    "lives_near_brooklyn",
    "worked_in_big_tech",
    "generate_mini_summary",
    "generate_summary",
    "log_dampen",
    "ratio",
]
