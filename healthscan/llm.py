import logging
from typing import Any

from openai import AsyncOpenAI

from healthscan.config import settings

log = logging.getLogger(__name__)

_client: AsyncOpenAI | None = None

# Gemini's OpenAI-compatible endpoint honours json_object output mode.
_JSON_OUTPUT = {"type": "json_object"}


def get_client() -> AsyncOpenAI:
    global _client
    if _client is None:
        cfg = settings.gemini
        _client = AsyncOpenAI(api_key=cfg.api_key, base_url=cfg.base_url)
    return _client


def get_model() -> str:
    return settings.gemini.model


async def complete(messages: list[dict[str, Any]]) -> str:
    """Send a JSON-mode chat completion. Returns the text, or "" if the model produced none."""
    client = get_client()
    model = get_model()
    log.info("Requesting analysis from %s", model)
    resp = await client.chat.completions.create(
        model=model,
        messages=messages,
        temperature=settings.gemini.temperature,
        response_format=_JSON_OUTPUT,
    )
    if not resp.choices:
        return ""
    choice = resp.choices[0]
    log.info("Completion finished (%s)", choice.finish_reason or "stop")
    return choice.message.content or ""
