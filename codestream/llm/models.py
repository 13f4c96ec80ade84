"""
Core gateway dataclasses.

This module provides the foundational types for gateway interactions:
- Gateway connection settings
- Message structures
- Typed frame payloads for streamed deltas
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class MessageRole(Enum):
    """OpenAI-compatible message roles."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class GatewayConfig:
    """Upstream gateway configuration, read-only after startup."""
    base_url: str
    model: str
    api_key: str | None = None

    # Connection settings
    connect_timeout: float = 10.0
    read_timeout: float = 120.0
    write_timeout: float = 10.0
    pool_timeout: float = 10.0


@dataclass(frozen=True)
class LLMMessage:
    """OpenAI-compatible message structure."""
    role: MessageRole
    content: str | list[dict[str, Any]]

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class FramePayload:
    """Decoded JSON payload of one data frame.

    ``content`` is ``None`` for heartbeat and metadata frames.
    """
    content: str | None = None
    finish_reason: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_json(cls, data: Any) -> FramePayload:
        """Pick ``choices[0].delta.content`` out of a parsed payload."""
        if not isinstance(data, dict):
            return cls()

        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            return cls(raw=data)

        choice = choices[0]
        if not isinstance(choice, dict):
            return cls(raw=data)

        delta = choice.get("delta")
        content = delta.get("content") if isinstance(delta, dict) else None
        return cls(
            content=content if isinstance(content, str) else None,
            finish_reason=choice.get("finish_reason"),
            raw=data,
        )
