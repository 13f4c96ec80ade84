"""
Stream relay: forwards a chat request upstream and hands back the raw
event stream unmodified.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from codestream.llm.client import GatewayClient
from codestream.llm.exceptions import ConfigError, TransportAbort
from codestream.llm.models import LLMMessage, MessageRole
from codestream.prompts import ASSISTANT_PERSONA, LANGUAGE_HINT
from codestream.schemas import ChatRequest

logger = logging.getLogger(__name__)

EVENT_STREAM_HEADERS = {"Cache-Control": "no-cache"}


class ChatRelay:
    """Relays one chat request per call. No retries."""

    def __init__(self, client: GatewayClient) -> None:
        self.client = client

    def build_messages(self, request: ChatRequest) -> list[dict[str, Any]]:
        """Persona first, then the caller's turns.

        Images are attached to the last message when it is a user turn.
        """
        persona = ASSISTANT_PERSONA
        if request.language:
            persona += "\n\n" + LANGUAGE_HINT.format(language=request.language)

        messages = [LLMMessage(MessageRole.SYSTEM, persona).to_dict()]
        images = [url for url in (request.images or []) if url]
        last_index = len(request.messages) - 1

        for index, msg in enumerate(request.messages):
            if images and index == last_index and msg.role == "user":
                content: list[dict[str, Any]] = [
                    {"type": "text", "text": msg.content}
                ]
                content.extend(
                    {"type": "image_url", "image_url": {"url": url}}
                    for url in images
                )
                messages.append({"role": msg.role, "content": content})
            else:
                messages.append({"role": msg.role, "content": msg.content})

        return messages

    async def open(self, request: ChatRequest) -> AsyncIterator[bytes]:
        """Open the upstream stream and return its raw body iterator.

        Upstream errors are raised here, before any byte is relayed, so
        the caller can still answer with a JSON error and status.

        Raises:
            ConfigError: If the gateway credential is missing.
            UpstreamRateLimited: On upstream 429.
            UpstreamPaymentRequired: On upstream 402.
            UpstreamServiceError: On any other upstream failure.
        """
        if not self.client.config.api_key:
            logger.error("Gateway API key not configured")
            raise ConfigError()

        logger.info(
            f"Chat request received: messages={len(request.messages)}, "
            f"images={bool(request.images)}"
        )
        response = await self.client.open_stream(self.build_messages(request))
        return self._relay_body(response)

    @staticmethod
    async def _relay_body(response: httpx.Response) -> AsyncIterator[bytes]:
        relayed = 0
        try:
            async for chunk in response.aiter_bytes():
                relayed += len(chunk)
                yield chunk
        except (httpx.HTTPError, httpx.StreamError) as e:
            logger.error(f"Upstream dropped after {relayed} bytes: {e}")
            raise TransportAbort(f"Upstream connection lost: {e}") from e
        finally:
            await response.aclose()
            logger.info(f"Relay finished: {relayed} bytes")
