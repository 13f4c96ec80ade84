"""
Incremental SSE decoder with fragment reassembly and delta accumulation.
"""

from __future__ import annotations

import asyncio
import codecs
import json
import logging
from collections.abc import AsyncIterable, AsyncIterator

import httpx

from ..exceptions import FrameParseError, LLMError, TransportAbort
from ..extraction import extract_fenced_code
from ..models import FramePayload
from .models import DecoderState, DecoderStats, FrameKind

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class IncrementalDecoder:
    """Turns relayed byte chunks into an accumulated text result.

    Chunk boundaries are arbitrary: a frame may be split across chunks and
    one chunk may carry many frames. Only the decoder writes the result;
    each append replaces the ``str`` reference so readers always see a
    complete prefix.
    """

    def __init__(self, extract_code: bool = False):
        self.extract_code = extract_code
        self.state = DecoderState.BUFFERING
        self.stats = DecoderStats()
        self.aborted = False
        self.finished = False
        self.finish_reason: str | None = None

        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._accumulated = ""
        self._final: str | None = None
        self._changed = asyncio.Event()

    @property
    def accumulated(self) -> str:
        """Raw concatenation of every delta decoded so far."""
        return self._accumulated

    @property
    def result(self) -> str:
        """Text visible to playback.

        With ``extract_code`` this stays empty until the decoder finishes
        and then holds the fence-stripped result.
        """
        if not self.extract_code:
            return self._accumulated
        return self._final if self._final is not None else ""

    def final_text(self) -> str:
        """Post-processed result once the stream is complete."""
        if self._final is not None:
            return self._final
        return extract_fenced_code(self._accumulated)

    def feed(self, chunk: bytes) -> list[str]:
        """Consume one raw chunk and return the deltas it completed.

        Nothing is processed once the sentinel has been seen.
        """
        if self.state is DecoderState.DONE:
            return []

        self._buffer += self._decoder.decode(chunk)
        deltas: list[str] = []

        while (newline_index := self._buffer.find("\n")) != -1:
            line = self._buffer[:newline_index]
            self._buffer = self._buffer[newline_index + 1:]

            kind, payload = self._classify(line)
            self.stats.total_frames += 1

            if kind is FrameKind.SENTINEL:
                self._finish(DecoderState.DONE)
                break

            if kind is not FrameKind.DATA:
                self.stats.skipped_frames += 1
                continue

            self.stats.data_frames += 1
            try:
                frame = self._parse_payload(payload)
            except FrameParseError as e:
                self.stats.dropped_frames += 1
                logger.debug("Dropping malformed frame: %s", e)
                continue

            if frame.finish_reason:
                self.finish_reason = frame.finish_reason
                logger.debug("Upstream finish reason: %s", frame.finish_reason)

            if frame.content:
                self._accumulated = self._accumulated + frame.content
                self.stats.deltas += 1
                deltas.append(frame.content)

        if deltas:
            self._changed.set()
        return deltas

    def close(self) -> None:
        """Mark a clean end of the underlying stream.

        A trailing line without its newline is never processed.
        """
        if not self.finished:
            self._finish(DecoderState.DONE)

    async def decode(self, chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
        """Pull chunks from ``chunks`` and yield deltas as they complete.

        Stops at the sentinel or when ``chunks`` is exhausted, whichever
        comes first.

        Raises:
            TransportAbort: If the transport or ``chunks`` fails mid-stream.
                The decoder stays in ``BUFFERING``.
            LLMError: Any other error raised by ``chunks``, after marking
                the decoder aborted.
        """
        iterator = aiter(chunks)
        try:
            while self.state is DecoderState.BUFFERING:
                try:
                    chunk = await anext(iterator)
                except StopAsyncIteration:
                    self.close()
                    break
                for delta in self.feed(chunk):
                    yield delta
        except (httpx.TransportError, ConnectionError) as e:
            self._mark_aborted(e)
            raise TransportAbort(
                f"Stream aborted: {e}", partial_text=self._accumulated
            ) from e
        except TransportAbort as e:
            self._mark_aborted(e)
            e.partial_text = self._accumulated
            raise
        except LLMError as e:
            self._mark_aborted(e)
            raise
        except Exception as e:
            self._mark_aborted(e)
            raise TransportAbort(
                f"Stream failed: {e}", partial_text=self._accumulated
            ) from e
        finally:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()

    async def wait_for_change(self) -> None:
        """Suspend until new text arrives, the stream ends or aborts."""
        self._changed.clear()
        await self._changed.wait()

    def get_stats(self) -> dict[str, int]:
        """Get decoding statistics for monitoring."""
        return self.stats.as_dict()

    def _mark_aborted(self, error: BaseException) -> None:
        self.aborted = True
        self._changed.set()
        logger.warning(
            "Stream aborted after %d chars: %s", len(self._accumulated), error
        )

    def _finish(self, state: DecoderState) -> None:
        self.state = state
        self.finished = True
        self._final = extract_fenced_code(self._accumulated)
        self._changed.set()

    @staticmethod
    def _classify(line: str) -> tuple[FrameKind, str]:
        if line.endswith("\r"):
            line = line[:-1]

        if not line.strip():
            return FrameKind.BLANK, ""
        if line.startswith(":"):
            return FrameKind.COMMENT, ""
        if not line.startswith(DATA_PREFIX):
            return FrameKind.OTHER, ""

        payload = line[len(DATA_PREFIX):].strip()
        if payload == DONE_SENTINEL:
            return FrameKind.SENTINEL, payload
        return FrameKind.DATA, payload

    @staticmethod
    def _parse_payload(payload: str) -> FramePayload:
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise FrameParseError(f"JSON decode error: {e}", raw_data=payload) from e
        return FramePayload.from_json(data)
