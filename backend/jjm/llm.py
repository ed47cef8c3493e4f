import logging
from functools import lru_cache

from groq import Groq

from backend.jjm import config

logger = logging.getLogger(__name__)


class LLMNotConfiguredError(RuntimeError):
    """Raised when a Groq call is attempted without GROQ_API_KEY."""


@lru_cache(maxsize=1)
def get_client():
    if not config.GROQ_API_KEY:
        raise LLMNotConfiguredError("❌ GROQ_API_KEY not found. Add it in .env or the host environment.")
    return Groq(api_key=config.GROQ_API_KEY)


def complete(messages, temperature=0.7, max_tokens=300) -> str:
    """Run a chat completion and return the reply text."""
    response = get_client().chat.completions.create(
        model=config.GROQ_MODEL,
        messages=messages,
        temperature=temperature,
        max_tokens=max_tokens,
    )
    return response.choices[0].message.content.strip()
