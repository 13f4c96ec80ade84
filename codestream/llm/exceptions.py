"""
Error handling for gateway and streaming operations.

Every caller-visible error carries an HTTP status and a human-readable
message that is safe to hand back to the browser:
- Configuration errors surface before any network call
- Upstream 429/402 keep their status so the UI can react
- Everything else upstream collapses to a generic 500
- Frame parse errors never leave the decoder
"""

from __future__ import annotations


class LLMError(Exception):
    """Base gateway error with client-facing context."""

    status_code: int = 500
    client_message: str = "AI service temporarily unavailable. Please try again."

    def __init__(
        self,
        message: str | None = None,
        *,
        upstream_status: int | None = None,
        response_text: str | None = None,
    ):
        super().__init__(message or self.client_message)
        if message:
            self.client_message = message
        self.upstream_status = upstream_status
        self.response_text = response_text

    def to_dict(self) -> dict[str, str]:
        """Structured JSON body returned to the caller."""
        return {"error": self.client_message}


class ConfigError(LLMError):
    """Upstream credential or configuration missing."""

    status_code = 500
    client_message = "AI service not configured. Please contact support."


class UpstreamRateLimited(LLMError):
    """Upstream gateway answered 429."""

    status_code = 429
    client_message = "Rate limit exceeded. Please wait a moment and try again."


class UpstreamPaymentRequired(LLMError):
    """Upstream gateway answered 402."""

    status_code = 402
    client_message = "AI credits depleted. Please add credits to continue."


class UpstreamServiceError(LLMError):
    """Any other non-success upstream answer."""

    status_code = 500


class FrameParseError(LLMError):
    """A single data frame carried malformed JSON. Recovered locally."""

    def __init__(self, message: str, raw_data: str = ""):
        super().__init__(message)
        self.raw_data = raw_data


class TransportAbort(LLMError):
    """Connection dropped mid-stream."""

    status_code = 500
    client_message = "Connection lost while streaming. Please try again."

    def __init__(self, message: str | None = None, partial_text: str = ""):
        super().__init__(message)
        self.partial_text = partial_text


def error_for_status(
    status_code: int, response_text: str | None = None
) -> LLMError:
    """Map a non-success upstream status to its client-facing error."""
    if status_code == UpstreamRateLimited.status_code:
        return UpstreamRateLimited(
            upstream_status=status_code, response_text=response_text
        )
    if status_code == UpstreamPaymentRequired.status_code:
        return UpstreamPaymentRequired(
            upstream_status=status_code, response_text=response_text
        )
    return UpstreamServiceError(
        upstream_status=status_code, response_text=response_text
    )
