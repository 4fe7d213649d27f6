"""Tests for request-aware logging and the request id middleware."""

import json
import logging

import pytest

from jobboard.core.logging import (
    JSONFormatter,
    RequestContextFilter,
    request_id_var,
    subject_var,
)
from jobboard.middleware.request_context import REQUEST_ID_HEADER, resolve_request_id


def _record(message: str = "hello") -> logging.LogRecord:
    record = logging.LogRecord("jobboard.test", logging.INFO, __file__, 1, message, None, None)
    RequestContextFilter().filter(record)
    return record


class TestJSONFormatter:
    def test_outside_request_has_no_context_fields(self):
        entry = json.loads(JSONFormatter().format(_record()))
        assert entry["message"] == "hello"
        assert entry["level"] == "INFO"
        assert "request_id" not in entry
        assert "subject" not in entry

    def test_includes_request_context(self):
        request_token = request_id_var.set("req-123")
        subject_token = subject_var.set("9b2f6c1e-0000-4000-8000-000000000001")
        try:
            entry = json.loads(JSONFormatter().format(_record()))
        finally:
            subject_var.reset(subject_token)
            request_id_var.reset(request_token)

        assert entry["request_id"] == "req-123"
        assert entry["subject"] == "9b2f6c1e-0000-4000-8000-000000000001"

    def test_quotes_and_newlines_stay_on_one_line(self):
        output = JSONFormatter().format(_record('say "hi"\nthen leave'))
        assert "\n" not in output
        assert json.loads(output)["message"] == 'say "hi"\nthen leave'


class TestResolveRequestId:
    def test_keeps_well_formed_id(self):
        assert resolve_request_id("abc-123_x.y") == "abc-123_x.y"

    def test_replaces_missing_id(self):
        assert len(resolve_request_id(None)) == 32

    def test_replaces_malformed_id(self):
        generated = resolve_request_id("bad id\r\ninjected: header")
        assert generated != "bad id\r\ninjected: header"
        assert len(generated) == 32

    def test_replaces_oversized_id(self):
        assert resolve_request_id("a" * 65) != "a" * 65


class TestRequestContextMiddleware:
    @pytest.mark.asyncio
    async def test_generates_request_id(self, async_client):
        response = await async_client.get("/health")
        assert len(response.headers[REQUEST_ID_HEADER]) == 32

    @pytest.mark.asyncio
    async def test_echoes_incoming_request_id(self, async_client):
        response = await async_client.get("/health", headers={REQUEST_ID_HEADER: "trace-42"})
        assert response.headers[REQUEST_ID_HEADER] == "trace-42"

    @pytest.mark.asyncio
    async def test_rejected_requests_carry_request_id(self, async_client):
        response = await async_client.get("/api/jobs/mine")
        assert response.status_code == 401
        assert REQUEST_ID_HEADER in response.headers

    @pytest.mark.asyncio
    async def test_context_cleared_after_request(self, async_client, seeker_headers):
        await async_client.get("/auth/me", headers=seeker_headers)
        assert request_id_var.get() is None
        assert subject_var.get() is None
