"""
HTTP surface: the stream relay and the code assistant endpoints.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from codestream.assistants import CodeAssistant
from codestream.config import RelayConfig
from codestream.llm.client import GatewayClient
from codestream.llm.exceptions import LLMError
from codestream.logging_utils import ErrorHandler
from codestream.relay import EVENT_STREAM_HEADERS, ChatRelay
from codestream.schemas import (
    ChatRequest,
    CodeRequest,
    CompletionRequest,
    RefactorRequest,
)

logger = logging.getLogger(__name__)


def create_app(
    config: RelayConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the application around one shared, read-only ``config``.

    ``transport`` replaces the upstream network transport (tests).
    """
    client = GatewayClient(config.gateway, transport=transport)
    relay = ChatRelay(client)
    assistant = CodeAssistant(client, config.temperatures)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            f"Relay ready: gateway={config.gateway.base_url} "
            f"model={config.gateway.model} "
            f"credential={'set' if config.gateway.api_key else 'missing'}"
        )
        yield
        await client.close()
        logger.info("Gateway client closed")

    app = FastAPI(title="codestream", lifespan=lifespan)
    app.state.config = config
    app.state.relay = relay
    app.state.assistant = assistant

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["*"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )

    @app.exception_handler(LLMError)
    async def handle_llm_error(request: Request, exc: LLMError) -> JSONResponse:
        status = ErrorHandler.log_error(exc, request.url.path)
        return JSONResponse(ErrorHandler.error_body(exc), status_code=status)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        status = ErrorHandler.log_error(exc, request.url.path)
        return JSONResponse(ErrorHandler.error_body(exc), status_code=status)

    @app.post("/chat")
    async def chat(body: ChatRequest) -> StreamingResponse:
        stream = await relay.open(body)
        return StreamingResponse(
            stream, media_type="text/event-stream", headers=EVENT_STREAM_HEADERS
        )

    @app.post("/lint-code")
    async def lint_code(body: CodeRequest) -> dict[str, Any]:
        return await assistant.lint(body)

    @app.post("/code-review")
    async def code_review(body: CodeRequest) -> dict[str, Any]:
        return await assistant.review(body)

    @app.post("/generate-tests")
    async def generate_tests(body: CodeRequest) -> dict[str, Any]:
        return await assistant.generate_tests(body)

    @app.post("/refactor-code")
    async def refactor_code(body: RefactorRequest) -> dict[str, Any]:
        return await assistant.refactor(body)

    @app.post("/smart-completion")
    async def smart_completion(body: CompletionRequest) -> dict[str, Any]:
        return await assistant.complete(body)

    return app
