"""
Request bodies accepted by the HTTP surface.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """One conversation turn as sent by the browser."""
    role: Literal["system", "user", "assistant"]
    content: str | list[dict[str, Any]]


class ChatRequest(BaseModel):
    """Body of ``POST /chat``."""
    messages: list[ChatMessage] = Field(default_factory=list)
    images: list[str | None] | None = None
    language: str | None = None


class CodeRequest(BaseModel):
    """Shared body for the code assistant endpoints."""
    model_config = ConfigDict(populate_by_name=True)

    code: str
    language: str = "typescript"
    file_name: str = Field(default="untitled", alias="fileName")


class RefactorRequest(CodeRequest):
    refactor_type: str = Field(default="general", alias="refactorType")


class CursorPosition(BaseModel):
    line: int = Field(ge=0)
    column: int = Field(ge=0)


class CompletionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code: str
    language: str = "typescript"
    cursor_position: CursorPosition = Field(alias="cursorPosition")
