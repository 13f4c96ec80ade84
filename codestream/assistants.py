"""
Non-streaming code assistant tools.

Each tool builds a prompt, runs one completion and pulls JSON out of the
reply. When the reply is not valid JSON a tool-specific fallback shape is
returned instead.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from codestream.llm.client import GatewayClient
from codestream.llm.exceptions import LLMError
from codestream.llm.extraction import JsonFallback, parse_json_reply
from codestream.logging_utils import log_operation
from codestream.prompts import (
    COMPLETION_PROMPT,
    LINT_PROMPT,
    REFACTOR_GOALS,
    REFACTOR_PROMPT,
    REVIEW_PROMPT,
    TESTS_PROMPT,
    fenced,
)
from codestream.schemas import CodeRequest, CompletionRequest, RefactorRequest

logger = logging.getLogger(__name__)

COMPLETION_CONTEXT_LINES = 10


class CodeAssistant:
    """Prompt-and-parse wrappers around the gateway client."""

    def __init__(
        self,
        client: GatewayClient,
        temperatures: dict[str, float] | None = None,
    ) -> None:
        self.client = client
        self.temperatures = temperatures or {}

    async def _ask(
        self, system_prompt: str, user_prompt: str, tool: str | None = None
    ) -> str:
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        temperature = self.temperatures.get(tool) if tool else None
        return await self.client.complete(messages, temperature=temperature)

    @log_operation("lint_code")
    async def lint(self, request: CodeRequest) -> dict[str, Any]:
        """Lint ``request.code``. Never fails: errors yield no issues."""
        try:
            reply = await self._ask(
                LINT_PROMPT,
                f"Lint this {request.language} code:\n"
                f"{fenced(request.code, request.language)}",
                tool="lint",
            )
        except LLMError as e:
            logger.warning(f"Linting unavailable: {e}")
            return {"issues": []}

        issues = _parse_list(reply)
        return {"issues": issues}

    @log_operation("code_review")
    async def review(self, request: CodeRequest) -> dict[str, Any]:
        """Review ``request.code`` and return the structured review."""
        logger.info(f"Reviewing {request.file_name} ({request.language})")
        reply = await self._ask(
            REVIEW_PROMPT,
            f"Review this {request.language} code from {request.file_name}:\n\n"
            f"{fenced(request.code, request.language)}",
            tool="review",
        )

        parsed = _parse_object(reply, "fence")
        if parsed is None:
            logger.warning("Failed to parse review JSON")
            return {
                "overall": reply,
                "severity": "medium",
                "issues": [],
                "strengths": [],
                "score": 70,
            }
        return parsed

    @log_operation("generate_tests")
    async def generate_tests(self, request: CodeRequest) -> dict[str, Any]:
        """Generate a test suite for ``request.code``."""
        logger.info(f"Generating tests for {request.file_name} ({request.language})")
        reply = await self._ask(
            TESTS_PROMPT,
            f"Generate tests for this {request.language} code from "
            f"{request.file_name}:\n\n{fenced(request.code, request.language)}",
            tool="tests",
        )

        parsed = _parse_object(reply, "fence")
        if parsed is None:
            logger.warning("Failed to parse test JSON")
            return {
                "testFile": f"{request.file_name}.test.{request.language}",
                "testCode": reply,
                "description": "Generated test suite",
                "coverage": {"functions": 0, "lines": 0, "branches": 0},
                "fixes": [],
            }
        return parsed

    @log_operation("refactor_code")
    async def refactor(self, request: RefactorRequest) -> dict[str, Any]:
        """Refactor ``request.code`` towards ``request.refactor_type``."""
        goal = REFACTOR_GOALS.get(request.refactor_type, REFACTOR_GOALS["general"])
        reply = await self._ask(
            REFACTOR_PROMPT.format(goal=goal, language=request.language),
            f"Refactor this {request.language} code from {request.file_name}:\n\n"
            f"{fenced(request.code, request.language)}",
        )

        parsed = _parse_object(reply, "none")
        if parsed is None:
            return {
                "refactoredCode": reply,
                "changes": [],
                "summary": "Code refactored successfully",
            }
        return parsed

    @log_operation("smart_completion")
    async def complete(self, request: CompletionRequest) -> dict[str, Any]:
        """Suggest completions at the cursor. Errors yield no suggestions."""
        lines = request.code.split("\n")
        cursor = request.cursor_position
        current_line = lines[cursor.line] if cursor.line < len(lines) else ""
        prefix = current_line[:cursor.column]
        start = max(0, cursor.line - COMPLETION_CONTEXT_LINES)
        context = "\n".join(lines[start:cursor.line + 1])

        try:
            reply = await self._ask(
                COMPLETION_PROMPT,
                f"Language: {request.language}\nContext:\n{context}\n\n"
                f'Current prefix: "{prefix}"\n\nProvide completions.',
                tool="completion",
            )
        except LLMError as e:
            logger.warning(f"Completion unavailable: {e}")
            return {"suggestions": []}

        return {"suggestions": _parse_list(reply)}


def _parse_list(reply: str) -> list[Any]:
    try:
        parsed = parse_json_reply(reply, "array")
    except json.JSONDecodeError:
        return []
    return parsed if isinstance(parsed, list) else []


def _parse_object(reply: str, fallback: JsonFallback) -> dict[str, Any] | None:
    try:
        parsed = parse_json_reply(reply, fallback)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None
