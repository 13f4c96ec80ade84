"""
HTTP client for the upstream chat-completion gateway.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .exceptions import ConfigError, UpstreamServiceError, error_for_status
from .models import GatewayConfig

logger = logging.getLogger(__name__)

COMPLETIONS_PATH = "/chat/completions"


class GatewayClient:
    """Single-attempt gateway client. Callers decide whether to retry."""

    def __init__(
        self,
        config: GatewayConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.client: httpx.AsyncClient = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=httpx.Timeout(
                connect=config.connect_timeout,
                read=config.read_timeout,
                write=config.write_timeout,
                pool=config.pool_timeout,
            ),
            transport=transport,
        )

    def _headers(self) -> dict[str, str]:
        if not self.config.api_key:
            raise ConfigError()
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

    async def open_stream(self, messages: list[dict[str, Any]]) -> httpx.Response:
        """Start a streaming completion and return the open response.

        The caller owns the returned response and must close it.

        Raises:
            ConfigError: If no credential is configured. No request is sent.
            UpstreamRateLimited: On upstream 429.
            UpstreamPaymentRequired: On upstream 402.
            UpstreamServiceError: On any other failure.
        """
        headers = self._headers()
        payload = {
            "model": self.config.model,
            "messages": messages,
            "stream": True,
        }

        request = self.client.build_request(
            "POST", COMPLETIONS_PATH, json=payload, headers=headers
        )
        try:
            response = await self.client.send(request, stream=True)
        except httpx.HTTPError as e:
            logger.error(f"HTTP error opening stream: {e}")
            raise UpstreamServiceError(response_text=str(e)) from e

        logger.info(f"Gateway response status: {response.status_code}")
        if not response.is_success:
            error_text = (await response.aread()).decode("utf-8", "replace")
            await response.aclose()
            logger.error(f"Gateway error {response.status_code}: {error_text}")
            raise error_for_status(response.status_code, error_text)

        return response

    async def complete(
        self,
        messages: list[dict[str, Any]],
        temperature: float | None = None,
    ) -> str:
        """Run a non-streaming completion and return the reply text.

        Raises:
            ConfigError: If no credential is configured.
            UpstreamRateLimited: On upstream 429.
            UpstreamPaymentRequired: On upstream 402.
            UpstreamServiceError: On any other failure or an empty reply.
        """
        headers = self._headers()
        payload: dict[str, Any] = {
            "model": self.config.model,
            "messages": messages,
        }
        if temperature is not None:
            payload["temperature"] = temperature

        try:
            response = await self.client.post(
                COMPLETIONS_PATH, json=payload, headers=headers
            )
        except httpx.HTTPError as e:
            logger.error(f"HTTP error: {e}")
            raise UpstreamServiceError(response_text=str(e)) from e

        if not response.is_success:
            logger.error(f"Gateway error {response.status_code}: {response.text}")
            raise error_for_status(response.status_code, response.text)

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error(f"Unexpected response format: {e}")
            raise UpstreamServiceError(response_text=response.text) from e

        if not content:
            raise UpstreamServiceError("No content received from AI")
        return content

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
