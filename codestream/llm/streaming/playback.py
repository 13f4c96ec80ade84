"""
Typewriter playback of a decoded result at a fixed per-character tick.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL = 0.01


class TextSource(Protocol):
    """What the driver reads from. Implemented by ``IncrementalDecoder``."""

    @property
    def result(self) -> str: ...

    finished: bool
    aborted: bool

    async def wait_for_change(self) -> None: ...


class PlaybackDriver:
    """Reveals a growing text one character per tick.

    The driver is the only writer of the cursor. It never reveals more
    than the source currently holds and idles on the source's change
    notification when it has caught up.
    """

    def __init__(
        self,
        source: TextSource,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        on_update: Callable[[str], None] | None = None,
        on_complete: Callable[[str], None] | None = None,
    ):
        if tick_interval <= 0:
            raise ValueError("tick_interval must be positive")

        self._source = source
        self._tick_interval = tick_interval
        self._on_update = on_update
        self._on_complete = on_complete
        self._cursor = 0
        self._completed = False

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def displayed(self) -> str:
        return self._source.result[:self._cursor]

    @property
    def completed(self) -> bool:
        return self._completed

    async def next_tick(self) -> str | None:
        """Wait one tick and reveal one more character.

        Returns:
            The displayed prefix after this tick, or ``None`` once every
            character of a finished source has been shown or the source
            aborted.
        """
        while True:
            if self._source.aborted:
                return None
            if self._cursor < len(self._source.result):
                await asyncio.sleep(self._tick_interval)
                if self._source.aborted:
                    return None
                self._cursor += 1
                return self._source.result[:self._cursor]
            if self._source.finished:
                return None
            await self._source.wait_for_change()

    async def run(self) -> str | None:
        """Drive playback to the end.

        Returns:
            The final text, or ``None`` if the source aborted. The
            completion callback fires at most once.
        """
        while (shown := await self.next_tick()) is not None:
            if self._on_update:
                self._on_update(shown)

        if self._source.aborted:
            logger.info("Playback stopped at %d chars after abort", self._cursor)
            return None

        final = self._source.result
        if not self._completed:
            self._completed = True
            if self._on_complete:
                self._on_complete(final)
        return final
