"""
Centralized logging and error handling utilities for codestream.

This module provides decorators and helper functions to standardize logging
and error reporting across the relay and assistant endpoints.

Features:
- Structured logging with contextual information
- Error classification into HTTP status and category
- Uniform ``{"error": ...}`` bodies for caller-visible failures
- Performance timing
"""

from __future__ import annotations

import functools
import time
from collections.abc import Awaitable, Callable
from typing import Any, ParamSpec, TypeVar

import httpx
import structlog
from pydantic import ValidationError

from codestream.llm.exceptions import LLMError

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(colors=True),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

# Type variables for generic decorators
P = ParamSpec("P")
T = TypeVar("T")
AsyncCallable = Callable[P, Awaitable[T]]

logger = structlog.get_logger(__name__)

HTTP_INTERNAL_ERROR = 500


class ErrorHandler:
    """Centralized error classification with structured logging."""

    @staticmethod
    def classify_error(error: Exception) -> tuple[int, str]:
        """
        Classify an error and return the HTTP status and category.

        Request bodies are validated before a route runs, so only gateway
        errors carry a non-500 status.

        Args:
            error: The exception to classify

        Returns:
            Tuple of (http_status, error_category)
        """
        if isinstance(error, LLMError):
            return error.status_code, "gateway_error"
        if isinstance(error, ValidationError):
            return HTTP_INTERNAL_ERROR, "validation_error"
        if isinstance(error, TimeoutError | httpx.TimeoutException):
            return HTTP_INTERNAL_ERROR, "timeout_error"
        if isinstance(error, ConnectionError | OSError | httpx.TransportError):
            return HTTP_INTERNAL_ERROR, "connection_error"
        if isinstance(error, ValueError | TypeError):
            return HTTP_INTERNAL_ERROR, "parameter_error"
        return HTTP_INTERNAL_ERROR, "unknown_error"

    @staticmethod
    def error_body(error: Exception) -> dict[str, str]:
        """Build the caller-visible JSON body for ``error``."""
        if isinstance(error, LLMError):
            return error.to_dict()
        return {"error": str(error) or "An unexpected error occurred"}

    @staticmethod
    def log_error(
        error: Exception,
        operation: str,
        context: dict[str, Any] | None = None,
    ) -> int:
        """
        Log ``error`` with its classification and return the HTTP status.

        Args:
            error: Original exception
            operation: Description of the operation that failed
            context: Additional context for logging

        Returns:
            HTTP status to answer with
        """
        status, category = ErrorHandler.classify_error(error)
        extra: dict[str, Any] = {}
        if isinstance(error, LLMError) and error.upstream_status is not None:
            extra["upstream_status"] = error.upstream_status

        logger.error(
            "Operation failed",
            operation=operation,
            error_type=type(error).__name__,
            error_category=category,
            status_code=status,
            error_message=str(error),
            **extra,
            **(context or {}),
        )
        return status


def log_operation(
    operation: str,
    *,
    log_args: bool = False,
    log_result: bool = False,
    log_timing: bool = True,
    context: dict[str, Any] | None = None,
) -> Callable[[AsyncCallable[P, T]], AsyncCallable[P, T]]:
    """
    Decorator for logging async operations with structured context.

    Args:
        operation: Description of the operation being performed
        log_args: Whether to log function arguments
        log_result: Whether to log function result
        log_timing: Whether to log execution timing
        context: Additional context to include in logs

    Returns:
        Decorated function with logging
    """
    def decorator(func: AsyncCallable[P, T]) -> AsyncCallable[P, T]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            operation_logger = logger.bind(
                operation=operation,
                function=func.__name__,
                **(context or {}),
            )

            log_data = {}
            if log_args:
                log_data.update({
                    "args": args[1:] if args else [],  # Skip 'self' if present
                    "kwargs": kwargs,
                })

            operation_logger.info("Operation started", **log_data)

            start_time = time.perf_counter() if log_timing else None

            try:
                result = await func(*args, **kwargs)

                end_log_data: dict[str, Any] = {}
                if log_timing and start_time is not None:
                    duration = round((time.perf_counter() - start_time) * 1000, 2)
                    end_log_data["duration_ms"] = duration
                if log_result:
                    end_log_data["result"] = result

                operation_logger.info(
                    "Operation completed successfully", **end_log_data
                )
                return result

            except Exception as e:
                error_log_data: dict[str, Any] = {
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                }
                if log_timing and start_time is not None:
                    duration = round((time.perf_counter() - start_time) * 1000, 2)
                    error_log_data["duration_ms"] = duration

                operation_logger.error("Operation failed", **error_log_data)
                raise

        return wrapper
    return decorator
