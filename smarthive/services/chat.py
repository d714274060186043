"""
Relay to the external chat-completion API (OpenAI-compatible).
"""
import logging
from typing import List, Optional

import httpx

from smarthive.core.config import Settings, get_settings
from smarthive.core.errors import UpstreamError
from smarthive.schemas.chat import ChatMessage, ChatOut, TextBlock

logger = logging.getLogger(__name__)


def build_payload(system: str, messages: List[ChatMessage], settings: Settings) -> dict:
    return {
        "model": settings.chat_model,
        "messages": [{"role": "system", "content": system}]
        + [{"role": m.role, "content": m.content} for m in messages],
        "max_tokens": settings.chat_max_tokens,
        "temperature": settings.chat_temperature,
    }


async def relay(
    client: httpx.AsyncClient,
    system: str,
    messages: List[ChatMessage],
    settings: Optional[Settings] = None,
) -> ChatOut:
    settings = settings or get_settings()
    try:
        response = await client.post(
            settings.chat_api_url,
            json=build_payload(system, messages, settings),
            headers={"Authorization": f"Bearer {settings.groq_api_key or ''}"},
        )
    except httpx.RequestError as e:
        logger.error(f"Chat API unreachable: {e}")
        raise UpstreamError(502, "Chat service unavailable")

    if not response.is_success:
        logger.error(f"Chat API error {response.status_code}: {response.text[:500]}")
        raise UpstreamError(response.status_code)

    try:
        text = response.json()["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError):
        logger.error(f"Unexpected chat API response: {response.text[:500]}")
        raise UpstreamError(502, "Unexpected response from chat service")
    return ChatOut(content=[TextBlock(text=text)])
