"""
Helpers for pulling code and JSON out of model replies.
"""

from __future__ import annotations

import json
import re
from typing import Any, Literal

FENCED_CODE_RE = re.compile(r"```\w*\n(.*?)\n```", re.DOTALL)
FENCED_JSON_RE = re.compile(r"```json\n(.*?)\n```", re.DOTALL)
PLAIN_FENCE_RE = re.compile(r"```\n(.*?)\n```", re.DOTALL)
BARE_ARRAY_RE = re.compile(r"\[.*\]", re.DOTALL)

JsonFallback = Literal["fence", "array", "none"]


def extract_fenced_code(text: str) -> str:
    """Return the body of a fenced code block, or ``text`` unchanged.

    >>> extract_fenced_code("```ts\\nHello\\n```")
    'Hello'
    """
    match = FENCED_CODE_RE.search(text)
    return match.group(1) if match else text


def _extract_json_text(text: str, fallback: JsonFallback = "fence") -> str:
    """Locate the JSON portion of a reply.

    A ```json fence always wins. Otherwise ``fallback`` picks the second
    attempt: a plain ``` fence, the outermost ``[...]`` span, or nothing.
    The whole reply is returned when no attempt matches.
    """
    match = FENCED_JSON_RE.search(text)
    if match:
        return match.group(1)

    if fallback == "fence":
        match = PLAIN_FENCE_RE.search(text)
        return match.group(1) if match else text
    if fallback == "array":
        match = BARE_ARRAY_RE.search(text)
        return match.group(0) if match else text
    return text


def parse_json_reply(text: str, fallback: JsonFallback = "fence") -> Any:
    """Extract and decode JSON from a reply.

    Raises:
        json.JSONDecodeError: If the located text is not valid JSON.
    """
    return json.loads(_extract_json_text(text, fallback))
