"""
Client-side streaming pipeline.

Composes the relay byte stream, the incremental decoder and the playback
driver as two asyncio tasks per request:

- the decode task suspends on "await next chunk"
- the playback task suspends on "await next tick"

``PipelineController`` keeps at most one pipeline alive and cancels the
previous one before a new request starts.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterable, AsyncIterator, Callable
from typing import Any

import httpx

from codestream.llm.exceptions import (
    LLMError,
    TransportAbort,
    UpstreamPaymentRequired,
    UpstreamRateLimited,
    UpstreamServiceError,
)
from codestream.llm.streaming.parser import IncrementalDecoder
from codestream.llm.streaming.playback import DEFAULT_TICK_INTERVAL, PlaybackDriver
from codestream.prompts import CODE_GENERATION_PROMPT

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[str], None]
AbortCallback = Callable[[LLMError], None]


def build_code_generation_messages(
    prompt: str, language: str
) -> list[dict[str, str]]:
    """Conversation for a "return only code" generation request."""
    return [
        {
            "role": "system",
            "content": CODE_GENERATION_PROMPT.format(language=language),
        },
        {"role": "user", "content": prompt},
    ]


class RelayClient:
    """Talks to the stream relay and yields its raw body."""

    def __init__(
        self,
        base_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 120.0,
    ) -> None:
        self.client = httpx.AsyncClient(
            base_url=base_url, transport=transport, timeout=timeout
        )

    async def stream(self, body: dict[str, Any]) -> AsyncIterator[bytes]:
        """POST ``body`` to ``/chat`` and yield raw response bytes.

        Raises:
            UpstreamRateLimited: On relay 429.
            UpstreamPaymentRequired: On relay 402.
            UpstreamServiceError: On any other non-success relay answer.
            TransportAbort: If the connection drops mid-stream.
        """
        try:
            async with self.client.stream("POST", "/chat", json=body) as response:
                if not response.is_success:
                    await response.aread()
                    raise self._error_from(response)
                async for chunk in response.aiter_bytes():
                    yield chunk
        except (httpx.HTTPError, httpx.StreamError) as e:
            raise TransportAbort(f"Relay connection lost: {e}") from e

    @staticmethod
    def _error_from(response: httpx.Response) -> LLMError:
        try:
            message = response.json().get("error")
        except ValueError:
            message = None

        status = response.status_code
        if status == UpstreamRateLimited.status_code:
            return UpstreamRateLimited(message, upstream_status=status)
        if status == UpstreamPaymentRequired.status_code:
            return UpstreamPaymentRequired(message, upstream_status=status)
        return UpstreamServiceError(message, upstream_status=status)

    async def close(self) -> None:
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class StreamPipeline:
    """One request: decode task feeding a playback task."""

    def __init__(
        self,
        chunks: AsyncIterable[bytes],
        *,
        extract_code: bool = False,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        on_update: UpdateCallback | None = None,
        on_complete: UpdateCallback | None = None,
        on_abort: AbortCallback | None = None,
    ) -> None:
        self.decoder = IncrementalDecoder(extract_code=extract_code)
        self.driver = PlaybackDriver(
            self.decoder,
            tick_interval=tick_interval,
            on_update=self._guard(on_update),
            on_complete=self._guard(on_complete),
        )
        self._chunks = chunks
        self._on_abort = on_abort
        self._cancelled = False
        self._decode_task: asyncio.Task | None = None
        self._playback_task: asyncio.Task | None = None
        self.error: LLMError | None = None

    def _guard(self, callback: UpdateCallback | None) -> UpdateCallback | None:
        if callback is None:
            return None

        def guarded(text: str) -> None:
            if not self._cancelled:
                callback(text)

        return guarded

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self) -> None:
        """Schedule the decode and playback tasks."""
        self._decode_task = asyncio.create_task(self._decode())
        self._playback_task = asyncio.create_task(self.driver.run())

    async def _decode(self) -> None:
        try:
            async for _ in self.decoder.decode(self._chunks):
                pass
        except LLMError as e:
            self.error = e
            if self._on_abort and not self._cancelled:
                self._on_abort(e)

    async def wait(self) -> str | None:
        """Wait for both tasks; return the final text or ``None``.

        Raises:
            LLMError: The error that ended decoding, if any.
        """
        if self._decode_task is None or self._playback_task is None:
            raise RuntimeError("Pipeline not started")

        await self._decode_task
        final = await self._playback_task
        if self.error is not None:
            raise self.error
        return final

    async def cancel(self) -> None:
        """Stop both tasks. No callback fires afterwards."""
        self._cancelled = True
        for task in (self._decode_task, self._playback_task):
            if task is not None and not task.done():
                task.cancel()
        for task in (self._decode_task, self._playback_task):
            if task is not None:
                with contextlib.suppress(asyncio.CancelledError):
                    await task


class PipelineController:
    """Keeps one live pipeline; a new request supersedes the old one."""

    def __init__(self, tick_interval: float = DEFAULT_TICK_INTERVAL) -> None:
        self.tick_interval = tick_interval
        self.current: StreamPipeline | None = None

    async def start(
        self,
        chunks: AsyncIterable[bytes],
        **kwargs: Any,
    ) -> StreamPipeline:
        """Cancel the running pipeline, then start one over ``chunks``."""
        if self.current is not None:
            logger.info("Superseding in-flight pipeline")
            await self.current.cancel()

        kwargs.setdefault("tick_interval", self.tick_interval)
        pipeline = StreamPipeline(chunks, **kwargs)
        pipeline.start()
        self.current = pipeline
        return pipeline

    async def stop(self) -> None:
        if self.current is not None:
            await self.current.cancel()
            self.current = None
