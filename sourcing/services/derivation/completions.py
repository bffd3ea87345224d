"""
Chat completions through the shared rate limiter.

Every completion-based feature (location, skills, conditions, summaries,
company features) goes through ChatCompleter.complete, which returns the
message text or None when the call failed.
"""

import json
import logging
from typing import Any, Dict, Optional, Type, TypeVar

from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError

from ...errors import MalformedResponseError
from ..rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

DEFAULT_CHAT_MODEL = "gpt-4o-mini"
DEFAULT_MAX_TOKENS = 2048


class ChatCompleter:
    def __init__(self, client: AsyncOpenAI, limiter: RateLimiter, model: str = DEFAULT_CHAT_MODEL):
        self.client = client
        self.limiter = limiter
        self.model = model

    async def complete(
        self,
        system: str,
        user: str,
        temperature: Optional[float] = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        json_mode: Optional[bool] = None,
        name: str = "chat_completion",
        key: Optional[str] = None,
    ) -> Optional[str]:
        """
        Run one system + user completion.

        Args:
            json_mode: True for a JSON object response, False for explicit
                text mode, None to leave the response format unset

        Returns:
            Message content, or None if the call failed
        """
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "max_tokens": max_tokens,
        }
        if temperature is not None:
            kwargs["temperature"] = temperature
        if json_mode is not None:
            kwargs["response_format"] = {"type": "json_object" if json_mode else "text"}

        async def call() -> Optional[str]:
            response = await self.client.chat.completions.create(**kwargs)
            return response.choices[0].message.content

        return await self.limiter.execute(call, name=name, key=key)


def parse_json_response(content: Optional[str], model: Type[M]) -> M:
    """
    Parse a JSON-mode completion into ``model``.

    Raises:
        MalformedResponseError: content is empty, not JSON, or the wrong shape
    """
    if not content:
        raise MalformedResponseError(f"Empty response for {model.__name__}")
    try:
        return model.model_validate(json.loads(content))
    except (json.JSONDecodeError, ValidationError) as e:
        raise MalformedResponseError(f"Malformed {model.__name__} response: {e}") from e
