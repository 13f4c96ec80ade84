#!/usr/bin/env python3
"""
Test script for logging utilities.

This validates that the centralized logging and error handling works correctly.
"""

import httpx
import pytest
from pydantic import ValidationError

from codestream.llm.exceptions import (
    ConfigError,
    UpstreamPaymentRequired,
    UpstreamRateLimited,
    UpstreamServiceError,
)
from codestream.logging_utils import ErrorHandler, log_operation


class TestErrorHandler:
    """Test the ErrorHandler class."""

    def test_classify_rate_limit(self):
        """Gateway errors keep their own status."""
        code, category = ErrorHandler.classify_error(UpstreamRateLimited())
        assert code == 429
        assert category == "gateway_error"

    def test_classify_payment_required(self):
        code, category = ErrorHandler.classify_error(UpstreamPaymentRequired())
        assert code == 402
        assert category == "gateway_error"

    def test_classify_config_error(self):
        code, category = ErrorHandler.classify_error(ConfigError())
        assert code == 500
        assert category == "gateway_error"

    def test_classify_validation_error(self):
        """Test classification of ValidationError."""
        validation_error = ValidationError.from_exception_data(
            "ValidationError",
            [{"type": "missing", "loc": ("field",), "input": {}}],
        )
        code, category = ErrorHandler.classify_error(validation_error)
        assert code == 500
        assert category == "validation_error"

    def test_classify_timeout(self):
        code, category = ErrorHandler.classify_error(httpx.ReadTimeout("slow"))
        assert code == 500
        assert category == "timeout_error"

    def test_classify_connection_error(self):
        """Test classification of ConnectionError."""
        code, category = ErrorHandler.classify_error(
            ConnectionError("Network unreachable")
        )
        assert code == 500
        assert category == "connection_error"

    def test_classify_httpx_connect_error(self):
        code, category = ErrorHandler.classify_error(httpx.ConnectError("refused"))
        assert code == 500
        assert category == "connection_error"

    def test_classify_value_error(self):
        """Test classification of ValueError."""
        code, category = ErrorHandler.classify_error(ValueError("Invalid parameter"))
        assert code == 500
        assert category == "parameter_error"

    def test_classify_unknown_error(self):
        """Test classification of unknown error type."""
        code, category = ErrorHandler.classify_error(RuntimeError("Unknown error"))
        assert code == 500
        assert category == "unknown_error"

    def test_error_body_for_gateway_error(self):
        assert ErrorHandler.error_body(UpstreamRateLimited()) == {
            "error": "Rate limit exceeded. Please wait a moment and try again."
        }

    def test_error_body_custom_message(self):
        error = UpstreamServiceError("No content received from AI")
        assert ErrorHandler.error_body(error) == {
            "error": "No content received from AI"
        }

    def test_error_body_for_unexpected_error(self):
        assert ErrorHandler.error_body(RuntimeError("boom")) == {"error": "boom"}
        assert ErrorHandler.error_body(RuntimeError()) == {
            "error": "An unexpected error occurred"
        }

    def test_log_error_returns_status(self):
        status = ErrorHandler.log_error(
            UpstreamPaymentRequired(upstream_status=402),
            "/chat",
            {"messages": 3},
        )
        assert status == 402

    def test_log_error_status_matches_classification(self):
        status = ErrorHandler.log_error(TypeError("bad argument"), "/lint-code")
        assert status == ErrorHandler.classify_error(TypeError())[0] == 500


class TestDecorators:
    """Test logging decorators."""

    @pytest.mark.asyncio
    async def test_log_operation_success(self):
        """Test log_operation decorator with successful function."""

        @log_operation("test_operation", log_timing=True)
        async def successful_function():
            return "success"

        result = await successful_function()
        assert result == "success"

    @pytest.mark.asyncio
    async def test_log_operation_with_args_and_result(self):

        @log_operation("test_operation", log_args=True, log_result=True)
        async def echo(value, *, suffix=""):
            return value + suffix

        assert await echo("a", suffix="b") == "ab"

    @pytest.mark.asyncio
    async def test_log_operation_with_error(self):
        """Test log_operation decorator with function that raises error."""

        @log_operation("test_operation", log_timing=True)
        async def failing_function():
            raise UpstreamRateLimited()

        with pytest.raises(UpstreamRateLimited):
            await failing_function()

    def test_log_operation_preserves_name(self):

        @log_operation("test_operation")
        async def named_function():
            return None

        assert named_function.__name__ == "named_function"
