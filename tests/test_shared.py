"""
Tests for the cross-cutting helpers: log redaction and throttling keys.
"""

import asyncio
import logging

import pytest
from starlette.requests import Request

from app.shared.logging import CredentialRedactingFilter, redact
from app.shared.security.rate_limiting import client_key, rate_limit_exceeded_handler


def _request(headers: dict[str, str]) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/api/v1/alerts",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": ("203.0.113.7", 5000),
        "query_string": b"",
    }
    return Request(scope)


class TestRedaction:
    @pytest.mark.parametrize(
        "message, leaked",
        [
            ("Authorization: Bearer abc.def-123", "abc.def-123"),
            ("GET /api/v1/cron/expire-subscriptions?secret=s3cr3t HTTP/1.1", "s3cr3t"),
            ("POST https://api.telegram.org/bot123456:AAH-xyz/sendMessage", "AAH-xyz"),
            ("url=https://x?access_token=APP_USR-1", "APP_USR-1"),
        ],
    )
    def test_credentials_are_masked(self, message, leaked):
        cleaned = redact(message)
        assert leaked not in cleaned
        assert "***" in cleaned

    def test_plain_messages_untouched(self):
        assert redact("Alert created: AAPL BUY") == "Alert created: AAPL BUY"

    def test_filter_rewrites_formatted_record(self):
        record = logging.LogRecord(
            "test", logging.INFO, __file__, 1, "called with %s", ("Bearer tok-1",), None
        )
        assert CredentialRedactingFilter().filter(record)
        assert record.getMessage() == "called with Bearer ***"


class TestRateLimitKey:
    def test_signed_in_callers_are_keyed_by_token(self):
        first = client_key(_request({"Authorization": "Bearer ana-token"}))
        second = client_key(_request({"Authorization": "Bearer leo-token"}))
        assert first.startswith("token:")
        assert first != second
        assert "ana-token" not in first

    def test_anonymous_callers_are_keyed_by_ip(self):
        assert client_key(_request({})) == "ip:203.0.113.7"

    def test_throttled_response(self):
        exc = type("Exceeded", (), {"detail": "10 per 1 minute"})()
        response = asyncio.run(rate_limit_exceeded_handler(_request({}), exc))
        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"
