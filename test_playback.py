#!/usr/bin/env python3
"""
Tests for typewriter playback.
"""

import asyncio
import json

import httpx
import pytest

from codestream.llm.exceptions import TransportAbort
from codestream.llm.streaming import IncrementalDecoder, PlaybackDriver

TICK = 0.001


def frame(content: str) -> bytes:
    return f"data: {json.dumps({'choices': [{'delta': {'content': content}}]})}\n".encode()


DONE = b"data: [DONE]\n"


class TestPlaybackDriver:
    """Cursor movement and completion."""

    def test_rejects_non_positive_tick(self):
        with pytest.raises(ValueError, match="tick_interval must be positive"):
            PlaybackDriver(IncrementalDecoder(), tick_interval=0)

    @pytest.mark.asyncio
    async def test_reveals_one_character_per_tick(self):
        decoder = IncrementalDecoder()
        decoder.feed(frame("abc") + DONE)
        updates: list[str] = []
        completed: list[str] = []

        driver = PlaybackDriver(
            decoder, TICK, on_update=updates.append, on_complete=completed.append
        )
        final = await driver.run()

        assert updates == ["a", "ab", "abc"]
        assert completed == ["abc"]
        assert final == "abc"
        assert driver.cursor == 3
        assert driver.completed

    @pytest.mark.asyncio
    async def test_next_tick_returns_none_when_done(self):
        decoder = IncrementalDecoder()
        decoder.feed(frame("x") + DONE)
        driver = PlaybackDriver(decoder, TICK)

        assert await driver.next_tick() == "x"
        assert await driver.next_tick() is None
        assert driver.displayed == "x"

    @pytest.mark.asyncio
    async def test_completion_fires_once(self):
        decoder = IncrementalDecoder()
        decoder.feed(frame("hi") + DONE)
        completed: list[str] = []
        driver = PlaybackDriver(decoder, TICK, on_complete=completed.append)

        await driver.run()
        await driver.run()

        assert completed == ["hi"]

    @pytest.mark.asyncio
    async def test_idles_until_more_text(self):
        decoder = IncrementalDecoder()
        decoder.feed(frame("a"))
        driver = PlaybackDriver(decoder, TICK)

        assert await driver.next_tick() == "a"

        pending = asyncio.create_task(driver.next_tick())
        await asyncio.sleep(TICK * 20)
        assert not pending.done()
        assert driver.cursor == 1

        decoder.feed(frame("b"))
        assert await asyncio.wait_for(pending, timeout=1) == "ab"

    @pytest.mark.asyncio
    async def test_wakes_on_finish_without_more_text(self):
        decoder = IncrementalDecoder()
        decoder.feed(frame("a"))
        driver = PlaybackDriver(decoder, TICK)
        await driver.next_tick()

        pending = asyncio.create_task(driver.next_tick())
        await asyncio.sleep(TICK * 5)
        decoder.feed(DONE)

        assert await asyncio.wait_for(pending, timeout=1) is None

    @pytest.mark.asyncio
    async def test_cursor_bounded_under_interleaving(self):
        decoder = IncrementalDecoder()
        observed: list[tuple[int, int, bool]] = []
        completion_state: list[bool] = []

        def on_update(shown: str) -> None:
            observed.append((len(shown), len(decoder.result), decoder.finished))

        driver = PlaybackDriver(
            decoder,
            TICK,
            on_update=on_update,
            on_complete=lambda _text: completion_state.append(decoder.finished),
        )

        async def produce():
            for part in ["He", "llo", ", ", "wor", "ld"]:
                decoder.feed(frame(part))
                await asyncio.sleep(TICK * 3)
            decoder.feed(DONE)

        _, final = await asyncio.gather(produce(), driver.run())

        assert final == "Hello, world"
        assert [shown for shown, _, _ in observed] == list(range(1, 13))
        assert all(shown <= available for shown, available, _ in observed)
        assert completion_state == [True]

    @pytest.mark.asyncio
    async def test_extract_code_plays_only_body(self):
        decoder = IncrementalDecoder(extract_code=True)
        updates: list[str] = []
        driver = PlaybackDriver(decoder, TICK, on_update=updates.append)

        async def produce():
            decoder.feed(frame("```ts\n"))
            await asyncio.sleep(TICK * 3)
            decoder.feed(frame("Hello\n```") + DONE)

        _, final = await asyncio.gather(produce(), driver.run())

        assert final == "Hello"
        assert updates[-1] == "Hello"
        assert all("`" not in shown for shown in updates)

    @pytest.mark.asyncio
    async def test_abort_stops_without_completion(self):
        async def dropped():
            yield frame("partial")
            await asyncio.sleep(TICK * 3)
            raise httpx.ReadError("reset")

        decoder = IncrementalDecoder()
        completed: list[str] = []
        driver = PlaybackDriver(decoder, TICK, on_complete=completed.append)

        async def consume():
            async for _ in decoder.decode(dropped()):
                pass

        results = await asyncio.gather(consume(), driver.run(), return_exceptions=True)

        assert isinstance(results[0], TransportAbort)
        assert results[0].partial_text == "partial"
        assert results[1] is None
        assert completed == []
        assert driver.cursor <= len("partial")
