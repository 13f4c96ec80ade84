"""
Gateway integration for the coding assistant.

This package provides:
- A single-attempt httpx client for the chat-completion gateway
- Typed message and frame payload models
- Client-facing error taxonomy
- Incremental stream decoding and playback (``streaming``)
"""

from __future__ import annotations

from .client import GatewayClient
from .exceptions import (
    ConfigError,
    FrameParseError,
    LLMError,
    TransportAbort,
    UpstreamPaymentRequired,
    UpstreamRateLimited,
    UpstreamServiceError,
)
from .extraction import extract_fenced_code, parse_json_reply
from .models import FramePayload, GatewayConfig, LLMMessage, MessageRole

__all__ = [
    # Client
    "GatewayClient",
    # Models
    "FramePayload",
    "GatewayConfig",
    "LLMMessage",
    "MessageRole",
    # Errors
    "ConfigError",
    "FrameParseError",
    "LLMError",
    "TransportAbort",
    "UpstreamPaymentRequired",
    "UpstreamRateLimited",
    "UpstreamServiceError",
    # Extraction
    "extract_fenced_code",
    "parse_json_reply",
]
