"""
Runtime settings loaded from the environment (.env.local, then .env).
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    supabase_url: Optional[str]
    supabase_key: Optional[str]

    openai_api_key: Optional[str]
    chat_model: str
    embedding_model: str

    pinecone_api_key: Optional[str]
    pinecone_index: str

    github_token: Optional[str]
    scrapin_api_key: Optional[str]
    social_data_api_key: Optional[str]
    whop_api_key: Optional[str]
    whop_cookie: Optional[str]

    rate_limit_cooldown_seconds: float = 60.0
    http_timeout_seconds: float = 30.0
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv(".env.local")
    load_dotenv()

    return Settings(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_KEY"),
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        chat_model=os.getenv("CHAT_MODEL", "gpt-4o-mini"),
        embedding_model=os.getenv("EMBEDDING_MODEL", "text-embedding-3-large"),
        pinecone_api_key=os.getenv("PINECONE_API_KEY"),
        pinecone_index=os.getenv("PINECONE_INDEX", "whop"),
        github_token=os.getenv("GITHUB_TOKEN") or os.getenv("TOKEN_GITHUB"),
        scrapin_api_key=os.getenv("SCRAPIN_API_KEY"),
        social_data_api_key=os.getenv("SOCIAL_DATA_API_KEY"),
        whop_api_key=os.getenv("WHOP_API_KEY"),
        whop_cookie=os.getenv("WHOP_COOKIE"),
        rate_limit_cooldown_seconds=float(os.getenv("RATE_LIMIT_COOLDOWN_SECONDS", "60")),
        http_timeout_seconds=float(os.getenv("HTTP_TIMEOUT_SECONDS", "30")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
