"""
Request Logging Tests

Request ids and the per-request log line.
"""

import json
import logging

import pytest
from httpx import AsyncClient

from accessgate.api.auth.tokens import create_access_token


def _request_lines(caplog) -> list:
    return [
        json.loads(r.getMessage())
        for r in caplog.records
        if r.name == "accessgate.requests"
    ]


@pytest.mark.asyncio
async def test_request_id_generated(async_client: AsyncClient):
    first = await async_client.get("/api/health")
    second = await async_client.get("/api/health")

    assert first.headers["X-Request-ID"]
    assert first.headers["X-Request-ID"] != second.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_echoed(async_client: AsyncClient):
    response = await async_client.get("/api/health", headers={"X-Request-ID": "edge-42"})

    assert response.headers["X-Request-ID"] == "edge-42"


@pytest.mark.asyncio
async def test_log_line_names_resolved_account(
    async_client: AsyncClient, auth_headers, granted_user, caplog
):
    account_id = str(granted_user.id)
    caplog.set_level(logging.INFO, logger="accessgate.requests")

    response = await async_client.get(
        "/api/auth/me", headers={**auth_headers, "X-Forwarded-For": "203.0.113.7"}
    )

    assert response.status_code == 200
    line = _request_lines(caplog)[-1]
    assert line["path"] == "/api/auth/me"
    assert line["status"] == 200
    assert line["account_id"] == account_id
    assert line["client_ip"] == "203.0.113.7"
    assert line["request_id"] == response.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_denied_request_logged_without_account(
    async_client: AsyncClient, revoked_user, helpers, caplog
):
    caplog.set_level(logging.INFO, logger="accessgate.requests")

    response = await async_client.get(
        "/api/auth/me", headers=helpers.bearer(create_access_token(revoked_user.id))
    )

    assert response.status_code == 403
    record = [r for r in caplog.records if r.name == "accessgate.requests"][-1]
    assert record.levelno == logging.INFO
    assert json.loads(record.getMessage())["account_id"] is None
