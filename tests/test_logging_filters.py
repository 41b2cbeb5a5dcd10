"""Tests for sensitive data filtering and correlation ids in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

from chirp.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    bind_caller_id,
    clear_request_id,
    set_request_id,
)


def _capture(name: str) -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_sensitive_filter_redacts_session_material():
    """Ensure session tokens, cookies and secrets are redacted."""

    logger, stream = _capture("test_redaction")

    logger.info(
        "test_event",
        extra={
            "authorization": "Bearer eyJhbGciOi.session",
            "__session": "eyJcookie",
            "secret_key": "sk_live_123",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()

    assert "eyJhbGciOi" not in output
    assert "eyJcookie" not in output
    assert "sk_live_123" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_sensitive_filter_redacts_connection_strings():
    logger, stream = _capture("test_dsn_redaction")

    logger.info(
        "config_event",
        extra={
            "database_url": "postgresql+asyncpg://chirp:pw@db/chirp",
            "redis_url": "redis://:pw@cache:6379/0",
            "pool_size": 10,
        },
    )

    output = stream.getvalue()

    assert "chirp:pw" not in output
    assert ":pw@cache" not in output
    assert "pool_size" in output


def test_sensitive_filter_allows_safe_fields():
    """Verify safe fields pass through unmodified."""

    logger, stream = _capture("test_safe_fields")

    logger.info(
        "safe_event",
        extra={
            "request_id": "req-123",
            "path": "/v1/posts",
            "status": 201,
            "duration_ms": 150.5,
        },
    )

    output = stream.getvalue()

    assert "req-123" in output
    assert "/v1/posts" in output
    assert "201" in output
    assert "[REDACTED]" not in output


def test_sensitive_filter_redacts_nested_dicts():
    """Ensure nested sensitive fields are redacted."""

    logger, stream = _capture("test_nested")

    logger.info(
        "nested_event",
        extra={
            "headers": {
                "Authorization": "Bearer secret-token",
                "user-agent": "pytest",
            },
        },
    )

    output = stream.getvalue()

    assert "secret-token" not in output
    assert "[REDACTED]" in output
    assert "pytest" in output


def test_context_ids_are_attached_and_cleared():
    logger, stream = _capture("test_context_ids")

    set_request_id("req-ctx")
    bind_caller_id("user_a")
    logger.info("with_context")
    clear_request_id()
    logger.info("without_context")

    first, second = [json.loads(line) for line in stream.getvalue().splitlines()]

    assert first["request_id"] == "req-ctx"
    assert first["caller_id"] == "user_a"
    assert "request_id" not in second
    assert "caller_id" not in second


def test_emoji_content_is_not_escaped():
    logger, stream = _capture("test_unicode")

    logger.info("posts.created", extra={"preview": "🎉"})

    assert "🎉" in stream.getvalue()
