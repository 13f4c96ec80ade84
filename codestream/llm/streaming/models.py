"""
Streaming-specific dataclasses for the incremental decoder.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DecoderState(Enum):
    """Decoder lifecycle states."""
    BUFFERING = "buffering"
    DONE = "done"


class FrameKind(Enum):
    """Classification of one newline-delimited line."""
    BLANK = "blank"
    COMMENT = "comment"
    OTHER = "other"
    DATA = "data"
    SENTINEL = "sentinel"


@dataclass
class DecoderStats:
    """Mutable counters for one decoder instance."""
    total_frames: int = 0
    data_frames: int = 0
    skipped_frames: int = 0
    dropped_frames: int = 0
    deltas: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "total_frames": self.total_frames,
            "data_frames": self.data_frames,
            "skipped_frames": self.skipped_frames,
            "dropped_frames": self.dropped_frames,
            "deltas": self.deltas,
        }
