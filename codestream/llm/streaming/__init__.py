"""
Client-side streaming: incremental SSE decoding and typewriter playback.
"""

from __future__ import annotations

from .models import DecoderState, DecoderStats, FrameKind
from .parser import DATA_PREFIX, DONE_SENTINEL, IncrementalDecoder
from .playback import DEFAULT_TICK_INTERVAL, PlaybackDriver, TextSource

__all__ = [
    "DATA_PREFIX",
    "DEFAULT_TICK_INTERVAL",
    "DONE_SENTINEL",
    "DecoderState",
    "DecoderStats",
    "FrameKind",
    "IncrementalDecoder",
    "PlaybackDriver",
    "TextSource",
]
